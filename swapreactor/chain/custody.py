"""
Token custody transfer.

The reactor never moves an offerer's tokens itself; it asks a custody
capability to collect the resolved input. SignatureTransfer is the
default capability:

    1. permit deadline     : now > info.deadline     → SignatureExpired
    2. signed maximum      : amount > max_amount     → InvalidAmount
    3. offerer signature   : Ed25519 over order hash → InvalidSignature
    4. single-use nonce    : bitmap per offerer       → InvalidNonce
    5. token movement      : offerer → `to`           → InsufficientBalance

Nonces live in a 256-bit bitmap per (offerer, word). Nonce n occupies
bit (n & 0xff) of word (n >> 8). Bitmaps are chain-state storage, so a
reverted batch also un-consumes its nonces.
"""

import logging
from typing import Dict, Protocol, Union

from swapreactor.chain.state import ChainState
from swapreactor.core.crypto import Ed25519KeyManager, address_from_public_key
from swapreactor.core.exceptions import (
    InvalidAmount,
    InvalidNonce,
    InvalidSignature,
    SignatureExpired,
    ValidationError,
)
from swapreactor.core.models import ResolvedOrder

logger = logging.getLogger(__name__)

NONCE_BITMAP_SLOT = "custody.nonce_bitmap"


class CustodyTransfer(Protocol):
    """Capability the reactor uses to move tokens it does not own."""

    def collect(self, order: ResolvedOrder, to: str, now: int) -> None:
        ...

    def transfer_out(self, token: str, sender: str, recipient: str, amount: int) -> None:
        ...


def _nonce_position(nonce: int):
    return nonce >> 8, 1 << (nonce & 0xFF)


class SignatureTransfer:
    """
    Signature-authorized custody over a ChainState.

    Offerers must register their public key before their orders can be
    collected; the address derived from that key is the order offerer.
    """

    def __init__(self, state: ChainState) -> None:
        self.state = state
        self._public_keys: Dict[str, str] = {}

    # ── Key registry ──────────────────────────────────────────

    def register(self, key: Union[Ed25519KeyManager, str]) -> str:
        """Register a signer (key manager or 64-char public key hex). Returns its address."""
        public_key_hex = key.public_key_hex if isinstance(key, Ed25519KeyManager) else key
        address = address_from_public_key(public_key_hex)
        self._public_keys[address] = public_key_hex
        return address

    def public_key_of(self, address: str) -> str:
        return self._public_keys.get(address)

    # ── Nonces ────────────────────────────────────────────────

    def nonce_bitmap(self, owner: str, word_pos: int) -> int:
        return self.state.sload(NONCE_BITMAP_SLOT, (owner, word_pos), 0)

    def is_nonce_used(self, owner: str, nonce: int) -> bool:
        word_pos, bit = _nonce_position(nonce)
        return bool(self.nonce_bitmap(owner, word_pos) & bit)

    def invalidate_nonces(self, owner: str, word_pos: int, mask: int) -> None:
        """
        Cancel every nonce whose bit is set in mask, within one word.
        Called by the owner only; the caller is the owner by construction.
        """
        if mask < 0 or mask >= 1 << 256:
            raise ValidationError("mask must fit in 256 bits", {"mask": mask})
        current = self.nonce_bitmap(owner, word_pos)
        self.state.sstore(NONCE_BITMAP_SLOT, (owner, word_pos), current | mask)
        logger.info("Invalidated nonces owner=%s word=%d mask=%#x", owner, word_pos, mask)

    def invalidate_nonce(self, owner: str, nonce: int) -> None:
        word_pos, bit = _nonce_position(nonce)
        self.invalidate_nonces(owner, word_pos, bit)

    def _use_nonce(self, owner: str, nonce: int) -> None:
        word_pos, bit = _nonce_position(nonce)
        current = self.nonce_bitmap(owner, word_pos)
        if current & bit:
            raise InvalidNonce(
                "Nonce already used", {"offerer": owner, "nonce": nonce}
            )
        self.state.sstore(NONCE_BITMAP_SLOT, (owner, word_pos), current | bit)

    # ── CustodyTransfer ───────────────────────────────────────

    def collect(self, order: ResolvedOrder, to: str, now: int) -> None:
        """Pull order.input.amount from the offerer to `to`."""
        info = order.info

        if now > info.deadline:
            raise SignatureExpired(
                "Permit deadline passed",
                {"order_hash": order.hash, "deadline": info.deadline, "now": now},
            )

        if order.input.amount > order.input.max_amount:
            raise InvalidAmount(
                "Input amount exceeds signed maximum",
                {
                    "order_hash": order.hash,
                    "amount":     order.input.amount,
                    "max_amount": order.input.max_amount,
                },
            )

        public_key_hex = self._public_keys.get(info.offerer)
        if public_key_hex is None or not Ed25519KeyManager.verify_detached(
            order.hash.encode("ascii"), order.sig, public_key_hex
        ):
            raise InvalidSignature(
                "Offerer signature does not verify",
                {"order_hash": order.hash, "offerer": info.offerer},
            )

        self._use_nonce(info.offerer, info.nonce)
        self.state.transfer(order.input.token, info.offerer, to, order.input.amount)

    def transfer_out(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Move tokens the sender already holds (used for fee claims)."""
        self.state.transfer(token, sender, recipient, amount)
