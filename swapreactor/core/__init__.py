"""
swapreactor core: order model, errors, canonical encoding, keys, clock, config.
"""
