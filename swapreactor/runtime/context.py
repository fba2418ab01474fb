"""
Runtime context for a configured reactor.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from swapreactor.chain.custody import SignatureTransfer
from swapreactor.chain.state import ChainState
from swapreactor.core.config import ReactorConfig
from swapreactor.core.crypto import Ed25519KeyManager
from swapreactor.core.time import Clock, block_timestamp
from swapreactor.fees.controller import FeeController
from swapreactor.fees.protocol import ProtocolFees
from swapreactor.fees.skim import InterfaceFeeSkimmer
from swapreactor.ledger.journal import FillJournal
from swapreactor.settlement.engine import Reactor


@dataclass
class RuntimeContext:
    """Everything a configured reactor needs, wired together."""

    config:        ReactorConfig
    state:         ChainState
    custody:       SignatureTransfer
    protocol_fees: ProtocolFees
    skimmer:       Optional[InterfaceFeeSkimmer]
    reactor:       Reactor

    @classmethod
    def from_config(
        cls,
        config:         ReactorConfig,
        state:          Optional[ChainState] = None,
        clock:          Clock = block_timestamp,
        fee_controller: Optional[FeeController] = None,
        journal_key:    Optional[Ed25519KeyManager] = None,
    ) -> "RuntimeContext":
        """
        Build state, custody, fee layers and reactor from configuration.

        A fill journal is opened only when config.journal_path is set;
        journal_key signs it (a fresh key is generated if none is given).
        """
        state   = state if state is not None else ChainState()
        custody = SignatureTransfer(state)

        protocol_fees = ProtocolFees(
            owner=config.owner,
            max_fee_bps=config.max_fee_bps,
            fee_controller=fee_controller,
        )

        skimmer = None
        if config.skim is not None:
            skimmer = InterfaceFeeSkimmer(
                state=state,
                custody=custody,
                engine_address=config.reactor_address,
                split_bps=config.skim.split_bps,
                protocol_fee_recipient=config.skim.protocol_fee_recipient,
            )

        journal = None
        if config.journal_path:
            journal = FillJournal(
                Path(config.journal_path), journal_key or Ed25519KeyManager.generate()
            )

        reactor = Reactor(
            address=config.reactor_address,
            state=state,
            custody=custody,
            protocol_fees=protocol_fees,
            skimmer=skimmer,
            clock=clock,
            journal=journal,
        )

        return cls(
            config=config,
            state=state,
            custody=custody,
            protocol_fees=protocol_fees,
            skimmer=skimmer,
            reactor=reactor,
        )

    @classmethod
    def from_yaml(cls, config_file: Path, **kwargs) -> "RuntimeContext":
        return cls.from_config(ReactorConfig.from_yaml(config_file), **kwargs)

    def __repr__(self) -> str:
        return (
            f"RuntimeContext("
            f"reactor={self.reactor.address!r}, "
            f"fills={len(self.reactor.fills)})"
        )
