"""
tests/test_concurrency.py

Concurrent settlement against one reactor and one fill journal.
Threads filling distinct orders must neither lose balances nor corrupt
the journal chain, and a quote running beside a fill must not undo it.

Run:
    pytest tests/test_concurrency.py -v --tb=short
"""

import threading

from swapreactor.core.crypto import Ed25519KeyManager
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.ledger.journal import FillJournal, verify_journal_file
from swapreactor.settlement.engine import Reactor

from conftest import (
    FILLER,
    OWNER,
    REACTOR,
    RECIPIENT,
    TOKEN_IN,
    TOKEN_OUT,
    PayingFiller,
    ShortPayingFiller,
    make_dutch_order,
    sign,
)

THREADS    = 4
PER_THREAD = 10


class TestConcurrency:

    def test_concurrent_fills_no_corruption(self, state, custody, clock, offerer_key, tmp_path):
        path    = tmp_path / "fills.jsonl"
        journal = FillJournal(path, Ed25519KeyManager.generate())
        reactor = Reactor(REACTOR, state, custody, clock=clock, journal=journal)

        total = THREADS * PER_THREAD
        state.mint(TOKEN_IN, offerer_key.address, 100 * total)
        state.mint(TOKEN_OUT, FILLER, 1000 * total)

        orders = [sign(make_dutch_order(offerer_key.address, nonce=n), offerer_key) for n in range(total)]
        filler = PayingFiller(state)
        errors = []

        def fill_slice(start):
            try:
                for order in orders[start:start + PER_THREAD]:
                    reactor.execute_with_callback(order, filler)
            except Exception as e:
                errors.append(str(e))

        threads = [threading.Thread(target=fill_slice, args=(i * PER_THREAD,)) for i in range(THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == [], f"Concurrent fills raised exceptions: {errors}"
        assert state.token_balance(TOKEN_OUT, RECIPIENT) == 1000 * total
        assert state.token_balance(TOKEN_IN, FILLER) == 100 * total
        assert len(reactor.fills) == total

        report = verify_journal_file(path)
        assert report.valid, report.violations
        assert report.total_entries == total

    def test_failing_fills_do_not_disturb_good_ones(self, state, custody, clock, offerer_key):
        reactor = Reactor(REACTOR, state, custody, clock=clock)
        state.mint(TOKEN_IN, offerer_key.address, 100 * 20)
        state.mint(TOKEN_OUT, FILLER, 1000 * 20)

        good = [sign(make_dutch_order(offerer_key.address, nonce=n), offerer_key) for n in range(10)]
        bad  = [sign(make_dutch_order(offerer_key.address, nonce=n), offerer_key) for n in range(10, 20)]
        failures = []

        def run(orders, filler):
            for order in orders:
                try:
                    reactor.execute_with_callback(order, filler)
                except Exception as e:
                    failures.append(type(e).__name__)

        threads = [
            threading.Thread(target=run, args=(good, PayingFiller(state))),
            threading.Thread(target=run, args=(bad, ShortPayingFiller(state))),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert failures == ["InsufficientOutput"] * 10
        assert state.token_balance(TOKEN_OUT, RECIPIENT) == 10_000
        assert state.token_balance(TOKEN_IN, offerer_key.address) == 1000
        for nonce in range(10, 20):
            assert not custody.is_nonce_used(offerer_key.address, nonce)

    def test_quote_never_reverts_a_concurrent_fill(self, state, custody, clock, offerer_key):
        entered = threading.Event()
        release = threading.Event()

        class PausingController:
            """Holds the first caller inside fee computation until released."""

            def __init__(self):
                self.calls = 0

            def get_fee_outputs(self, order):
                self.calls += 1
                if self.calls == 1:
                    entered.set()
                    release.wait(timeout=5)
                return []

        fees    = ProtocolFees(owner=OWNER, fee_controller=PausingController())
        reactor = Reactor(REACTOR, state, custody, protocol_fees=fees, clock=clock)
        state.mint(TOKEN_IN, offerer_key.address, 200)
        state.mint(TOKEN_OUT, FILLER, 2000)

        quoted = sign(make_dutch_order(offerer_key.address, nonce=0), offerer_key)
        filled = sign(make_dutch_order(offerer_key.address, nonce=1), offerer_key)
        errors = []

        def run(call):
            try:
                call()
            except Exception as e:
                errors.append(str(e))

        quoter = threading.Thread(target=run, args=(lambda: reactor.quote(quoted),))
        quoter.start()
        assert entered.wait(timeout=5)

        fill = threading.Thread(
            target=run, args=(lambda: reactor.execute_with_callback(filled, PayingFiller(state)),)
        )
        fill.start()
        fill.join(timeout=0.2)
        release.set()
        quoter.join()
        fill.join()

        assert errors == []
        assert state.token_balance(TOKEN_OUT, RECIPIENT) == 1000
        assert state.token_balance(TOKEN_IN, FILLER) == 100
        assert custody.is_nonce_used(offerer_key.address, 1)
        assert not custody.is_nonce_used(offerer_key.address, 0)
        assert len(reactor.fills) == 1
