"""
tests/test_fees.py

Fee composition: controller-driven protocol fees (ceiling, duplicates,
governance) and the interface/protocol skim fee (split, ledger, claims,
recipient rotation).
"""

import pytest

from swapreactor.core.exceptions import (
    DuplicateFeeOutput,
    FeeTooLarge,
    InvalidFee,
    InvalidFeeToken,
    Unauthorized,
)
from swapreactor.core.models import InputToken, OutputToken, ResolvedOrder
from swapreactor.fees.controller import BpsFeeController
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.fees.skim import InterfaceFeeSkimmer

from conftest import (
    INTERFACE,
    OWNER,
    PROTOCOL,
    REACTOR,
    RECIPIENT,
    TOKEN_ALT,
    TOKEN_IN,
    TOKEN_OUT,
    make_info,
)

OFFERER = "0x" + "0f" * 20
OTHER   = "0x" + "99" * 20


def resolved(*outputs) -> ResolvedOrder:
    return ResolvedOrder(
        info=make_info(OFFERER),
        input=InputToken(TOKEN_IN, 100, 100),
        outputs=tuple(OutputToken(t, a, r) for t, a, r in outputs),
        sig="",
        hash="ab" * 32,
    )


class StaticController:
    """Returns a fixed list of fee outputs regardless of the order."""

    def __init__(self, *fees):
        self.fees = [OutputToken(t, a, r) for t, a, r in fees]

    def get_fee_outputs(self, order):
        return list(self.fees)


# ─────────────────────────────────────────────────────────────
# Protocol fees
# ─────────────────────────────────────────────────────────────

class TestProtocolFees:

    def test_no_controller_no_fees(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        assert ProtocolFees(owner=OWNER).inject_fees(order) == order

    def test_fee_at_ceiling_appended(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        fees  = ProtocolFees(owner=OWNER, fee_controller=StaticController((TOKEN_OUT, 500, PROTOCOL)))
        out   = fees.inject_fees(order)
        assert out.outputs[0] == order.outputs[0]
        assert out.outputs[1] == OutputToken(TOKEN_OUT, 500, PROTOCOL)

    def test_fee_above_ceiling_rejected(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        fees  = ProtocolFees(owner=OWNER, fee_controller=StaticController((TOKEN_OUT, 501, PROTOCOL)))
        with pytest.raises(FeeTooLarge):
            fees.inject_fees(order)

    def test_ceiling_sums_same_token_outputs(self):
        order = resolved(
            (TOKEN_OUT, 600_000, RECIPIENT),
            (TOKEN_ALT, 10, RECIPIENT),
            (TOKEN_OUT, 400_000, OTHER),
        )
        fees = ProtocolFees(owner=OWNER, fee_controller=StaticController((TOKEN_OUT, 500, PROTOCOL)))
        assert len(fees.inject_fees(order).outputs) == 4

    def test_ceiling_is_configurable(self):
        order = resolved((TOKEN_OUT, 10_000, RECIPIENT))
        fees  = ProtocolFees(
            owner=OWNER, max_fee_bps=30, fee_controller=StaticController((TOKEN_OUT, 30, PROTOCOL))
        )
        assert fees.inject_fees(order).outputs[-1].amount == 30

    def test_duplicate_token_rejected(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        fees  = ProtocolFees(
            owner=OWNER,
            fee_controller=StaticController((TOKEN_OUT, 100, PROTOCOL), (TOKEN_OUT, 100, OTHER)),
        )
        with pytest.raises(DuplicateFeeOutput):
            fees.inject_fees(order)

    def test_duplicate_pair_rejected(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        fees  = ProtocolFees(
            owner=OWNER,
            fee_controller=StaticController((TOKEN_OUT, 100, PROTOCOL), (TOKEN_OUT, 100, PROTOCOL)),
        )
        with pytest.raises(DuplicateFeeOutput):
            fees.inject_fees(order)

    def test_fee_in_foreign_token_rejected(self):
        order = resolved((TOKEN_OUT, 1_000_000, RECIPIENT))
        fees  = ProtocolFees(owner=OWNER, fee_controller=StaticController((TOKEN_ALT, 1, PROTOCOL)))
        with pytest.raises(InvalidFeeToken):
            fees.inject_fees(order)

    def test_bps_controller_one_fee_per_token(self):
        order = resolved(
            (TOKEN_OUT, 600_000, RECIPIENT),
            (TOKEN_ALT, 200_000, RECIPIENT),
            (TOKEN_OUT, 400_000, OTHER),
        )
        fees = ProtocolFees(owner=OWNER, fee_controller=BpsFeeController(5, PROTOCOL))
        out  = fees.inject_fees(order)
        assert out.outputs[:3] == order.outputs
        assert out.outputs[3:] == (
            OutputToken(TOKEN_OUT, 500, PROTOCOL),
            OutputToken(TOKEN_ALT, 100, PROTOCOL),
        )

    def test_owner_sets_controller(self):
        fees = ProtocolFees(owner=OWNER)
        controller = BpsFeeController(1, PROTOCOL)
        fees.set_fee_controller(OWNER, controller)
        assert fees.fee_controller is controller
        fees.set_fee_controller(OWNER, None)
        assert fees.fee_controller is None

    def test_non_owner_cannot_set_controller(self):
        fees = ProtocolFees(owner=OWNER)
        with pytest.raises(Unauthorized):
            fees.set_fee_controller(OTHER, BpsFeeController(1, PROTOCOL))
        assert fees.fee_controller is None

    def test_ownership_transfer(self):
        fees = ProtocolFees(owner=OWNER)
        fees.transfer_ownership(OWNER, OTHER)
        with pytest.raises(Unauthorized):
            fees.set_fee_controller(OWNER, None)
        fees.set_fee_controller(OTHER, None)

    def test_invalid_ceiling_rejected(self):
        with pytest.raises(InvalidFee):
            ProtocolFees(owner=OWNER, max_fee_bps=10_001)


# ─────────────────────────────────────────────────────────────
# Skim fee
# ─────────────────────────────────────────────────────────────

@pytest.fixture
def skimmer(state, custody):
    return InterfaceFeeSkimmer(
        state=state,
        custody=custody,
        engine_address=REACTOR,
        split_bps=5000,
        protocol_fee_recipient=PROTOCOL,
    )


class TestSkimFee:

    def test_split_above_100_percent_rejected(self, state, custody):
        with pytest.raises(InvalidFee):
            InterfaceFeeSkimmer(state, custody, REACTOR, 10_001, PROTOCOL)

    def test_split_bounds_accepted(self, state, custody):
        InterfaceFeeSkimmer(state, custody, REACTOR, 0, PROTOCOL)
        InterfaceFeeSkimmer(state, custody, REACTOR, 10_000, PROTOCOL)

    def test_single_output_unchanged(self, skimmer):
        order = resolved((TOKEN_OUT, 1000, RECIPIENT))
        assert skimmer.take_fees(order) == order
        assert skimmer.claimable(TOKEN_OUT, PROTOCOL) == 0

    def test_last_output_split_and_redirected(self, skimmer):
        order = resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, 7, INTERFACE))
        out   = skimmer.take_fees(order)

        assert out.outputs[0] == order.outputs[0]
        assert out.outputs[1] == OutputToken(TOKEN_OUT, 7, REACTOR)
        assert skimmer.claimable(TOKEN_OUT, PROTOCOL) == 3
        assert skimmer.claimable(TOKEN_OUT, INTERFACE) == 4

    @pytest.mark.parametrize("split", [0, 1, 2500, 3333, 5000, 9999, 10_000])
    @pytest.mark.parametrize("amount", [0, 1, 7, 10_000, 123_456_789])
    def test_split_sums_to_amount(self, state, custody, split, amount):
        skimmer = InterfaceFeeSkimmer(state, custody, REACTOR, split, PROTOCOL)
        skimmer.take_fees(resolved((TOKEN_OUT, 1, RECIPIENT), (TOKEN_ALT, amount, INTERFACE)))

        protocol  = skimmer.claimable(TOKEN_ALT, PROTOCOL)
        interface = skimmer.claimable(TOKEN_ALT, INTERFACE)
        assert protocol == amount * split // 10_000
        assert protocol + interface == amount

    def test_repeated_calls_accumulate(self, skimmer):
        for amount in (2, 2, 4):
            skimmer.take_fees(resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, amount, INTERFACE)))
        assert skimmer.claimable(TOKEN_OUT, PROTOCOL) == 4
        assert skimmer.claimable(TOKEN_OUT, INTERFACE) == 4

    def test_uneven_amounts_accumulate_floor_shares(self, skimmer):
        for amount in (1, 2, 5):
            skimmer.take_fees(resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, amount, INTERFACE)))
        assert skimmer.claimable(TOKEN_OUT, PROTOCOL) == 0 + 1 + 2
        assert skimmer.claimable(TOKEN_OUT, INTERFACE) == 1 + 1 + 3

    def test_real_outputs_limit_targets_interface_fee(self, skimmer):
        order = resolved(
            (TOKEN_OUT, 1000, RECIPIENT),
            (TOKEN_OUT, 10, INTERFACE),
            (TOKEN_OUT, 1, PROTOCOL),
        )
        out = skimmer.take_fees(order, real_outputs=2)
        assert out.outputs[1] == OutputToken(TOKEN_OUT, 10, REACTOR)
        assert out.outputs[2] == OutputToken(TOKEN_OUT, 1, PROTOCOL)
        assert skimmer.claimable(TOKEN_OUT, INTERFACE) == 5

    def test_claim_transfers_and_zeroes(self, state, skimmer):
        skimmer.take_fees(resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, 10, INTERFACE)))
        state.mint(TOKEN_OUT, REACTOR, 10)

        assert skimmer.claim(INTERFACE, TOKEN_OUT) == 5
        assert state.token_balance(TOKEN_OUT, INTERFACE) == 5
        assert skimmer.claimable(TOKEN_OUT, INTERFACE) == 0

        assert skimmer.claim(INTERFACE, TOKEN_OUT) == 0
        assert state.token_balance(TOKEN_OUT, INTERFACE) == 5

    def test_claim_with_nothing_accrued_is_noop(self, state, skimmer):
        assert skimmer.claim(OTHER, TOKEN_OUT) == 0
        assert state.token_balance(TOKEN_OUT, OTHER) == 0

    def test_only_recipient_can_rotate(self, skimmer):
        with pytest.raises(Unauthorized):
            skimmer.set_protocol_fee_recipient(OTHER, OTHER)
        assert skimmer.protocol_fee_recipient == PROTOCOL

    def test_rotation_keeps_old_balance_with_old_recipient(self, state, skimmer):
        skimmer.take_fees(resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, 10, INTERFACE)))
        skimmer.set_protocol_fee_recipient(PROTOCOL, OTHER)
        skimmer.take_fees(resolved((TOKEN_OUT, 1000, RECIPIENT), (TOKEN_OUT, 20, INTERFACE)))
        state.mint(TOKEN_OUT, REACTOR, 30)

        assert skimmer.claimable(TOKEN_OUT, PROTOCOL) == 5
        assert skimmer.claimable(TOKEN_OUT, OTHER) == 10

        assert skimmer.claim(OTHER, TOKEN_OUT) == 10
        assert skimmer.claim(OTHER, TOKEN_OUT) == 0
        assert skimmer.claim(PROTOCOL, TOKEN_OUT) == 5
