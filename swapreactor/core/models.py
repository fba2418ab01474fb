"""
swapreactor/core/models.py

Order Data Model

═══════════════════════════════════════════════════════════════════
CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1: Encoding
    encoded_order = canonicalize(order.to_dict())      (RFC 8785 JCS)
    order.to_dict() carries "order_type" so that two order types can
    never share an encoding.

CONTRACT 2: Order hash
    order_hash = SHA-256(encoded_order), lowercase hex

CONTRACT 3: Signature
    sig = Ed25519(offerer_key, order_hash.encode("ascii")), base64url no padding

CONTRACT 4: Output ordering
    ResolvedOrder.outputs[0:k] are the order's own outputs in signed order.
    Fee outputs are only ever appended (k..). Nothing is interleaved.

CONTRACT 5: Units
    amounts, nonces, timestamps are Python ints
    addresses are "0x" + 40 lowercase hex chars
    NATIVE ("0x000…000") as a token means the chain's native asset
═══════════════════════════════════════════════════════════════════
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from swapreactor.core.canonical import canonicalize, hash_bytes
from swapreactor.core.exceptions import ValidationError


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

NATIVE = "0x" + "0" * 40
BPS    = 10_000

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def is_address(value: Any) -> bool:
    """Return True for a 0x-prefixed 40-char lowercase hex string."""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def _check_amount(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(
            f"{name} must be a non-negative int", {"value": repr(value)}
        )


# ─────────────────────────────────────────────────────────────
# OrderInfo
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OrderInfo:
    """
    Fields common to every order type. Immutable once signed.

    nonce is single-use per offerer; consumption happens in custody.
    additional_validation_contract names a validator registered on the
    reactor (see reactors/validation.py); None disables the hook.
    """
    reactor:  str
    offerer:  str
    nonce:    int
    deadline: int
    additional_validation_contract: Optional[str] = None
    additional_validation_data:     bytes = b""

    def __post_init__(self):
        _check_amount("nonce", self.nonce)
        _check_amount("deadline", self.deadline)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reactor":  self.reactor,
            "offerer":  self.offerer,
            "nonce":    self.nonce,
            "deadline": self.deadline,
            "additional_validation_contract": self.additional_validation_contract,
            "additional_validation_data":     self.additional_validation_data.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderInfo":
        return cls(
            reactor=  data["reactor"],
            offerer=  data["offerer"],
            nonce=    data["nonce"],
            deadline= data["deadline"],
            additional_validation_contract=data.get("additional_validation_contract"),
            additional_validation_data=bytes.fromhex(
                data.get("additional_validation_data", "")
            ),
        )


# ─────────────────────────────────────────────────────────────
# Resolved tokens
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InputToken:
    """Resolved input. amount is collected; max_amount bounds the permit."""
    token:      str
    amount:     int
    max_amount: int

    def __post_init__(self):
        _check_amount("amount", self.amount)
        _check_amount("max_amount", self.max_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {"token": self.token, "amount": self.amount, "max_amount": self.max_amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InputToken":
        return cls(token=data["token"], amount=data["amount"], max_amount=data["max_amount"])


@dataclass(frozen=True)
class OutputToken:
    """Resolved output owed to recipient."""
    token:     str
    amount:    int
    recipient: str

    def __post_init__(self):
        _check_amount("amount", self.amount)

    def to_dict(self) -> Dict[str, Any]:
        return {"token": self.token, "amount": self.amount, "recipient": self.recipient}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutputToken":
        return cls(token=data["token"], amount=data["amount"], recipient=data["recipient"])


@dataclass(frozen=True)
class ResolvedOrder:
    """
    The canonical settlement unit. Every order type resolves into this.

    outputs is a tuple; see CONTRACT 4 for ordering.
    """
    info:    OrderInfo
    input:   InputToken
    outputs: Tuple[OutputToken, ...]
    sig:     str
    hash:    str

    def with_outputs(self, outputs) -> "ResolvedOrder":
        """Return a copy carrying a new outputs tuple."""
        return replace(self, outputs=tuple(outputs))

    def append_outputs(self, extra) -> "ResolvedOrder":
        """Return a copy with extra outputs appended after the existing ones."""
        return replace(self, outputs=self.outputs + tuple(extra))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "info":    self.info.to_dict(),
            "input":   self.input.to_dict(),
            "outputs": [o.to_dict() for o in self.outputs],
            "sig":     self.sig,
            "hash":    self.hash,
        }


# ─────────────────────────────────────────────────────────────
# Order types (pre-resolution)
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DutchInput:
    token:        str
    start_amount: int
    end_amount:   int

    def __post_init__(self):
        _check_amount("start_amount", self.start_amount)
        _check_amount("end_amount", self.end_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token":        self.token,
            "start_amount": self.start_amount,
            "end_amount":   self.end_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DutchInput":
        return cls(
            token=data["token"],
            start_amount=data["start_amount"],
            end_amount=data["end_amount"],
        )


@dataclass(frozen=True)
class DutchOutput:
    token:        str
    start_amount: int
    end_amount:   int
    recipient:    str

    def __post_init__(self):
        _check_amount("start_amount", self.start_amount)
        _check_amount("end_amount", self.end_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token":        self.token,
            "start_amount": self.start_amount,
            "end_amount":   self.end_amount,
            "recipient":    self.recipient,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DutchOutput":
        return cls(
            token=data["token"],
            start_amount=data["start_amount"],
            end_amount=data["end_amount"],
            recipient=data["recipient"],
        )


class _EncodableOrder:
    """Encoding and hashing shared by every order type (CONTRACTS 1-2)."""

    ORDER_TYPE = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def encode(self) -> bytes:
        return canonicalize(self.to_dict())

    def hash(self) -> str:
        return hash_bytes(self.encode())


@dataclass(frozen=True)
class DutchOrder(_EncodableOrder):
    """
    Linearly decaying order.

    decay_end_time defaults to info.deadline when constructed through
    DutchOrder.create().
    """
    ORDER_TYPE = "dutch"

    info:             OrderInfo
    decay_start_time: int
    decay_end_time:   int
    input:            DutchInput
    outputs:          Tuple[DutchOutput, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        info:             OrderInfo,
        decay_start_time: int,
        input:            DutchInput,
        outputs,
        decay_end_time:   Optional[int] = None,
    ) -> "DutchOrder":
        return cls(
            info=info,
            decay_start_time=decay_start_time,
            decay_end_time=info.deadline if decay_end_time is None else decay_end_time,
            input=input,
            outputs=tuple(outputs),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_type":       self.ORDER_TYPE,
            "info":             self.info.to_dict(),
            "decay_start_time": self.decay_start_time,
            "decay_end_time":   self.decay_end_time,
            "input":            self.input.to_dict(),
            "outputs":          [o.to_dict() for o in self.outputs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DutchOrder":
        return cls(
            info=OrderInfo.from_dict(data["info"]),
            decay_start_time=data["decay_start_time"],
            decay_end_time=data["decay_end_time"],
            input=DutchInput.from_dict(data["input"]),
            outputs=tuple(DutchOutput.from_dict(o) for o in data["outputs"]),
        )


@dataclass(frozen=True)
class LimitOrder(_EncodableOrder):
    """Fixed-price order. Resolves to its own amounts at any time."""
    ORDER_TYPE = "limit"

    info:    OrderInfo
    input:   InputToken
    outputs: Tuple[OutputToken, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_type": self.ORDER_TYPE,
            "info":       self.info.to_dict(),
            "input":      self.input.to_dict(),
            "outputs":    [o.to_dict() for o in self.outputs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LimitOrder":
        return cls(
            info=OrderInfo.from_dict(data["info"]),
            input=InputToken.from_dict(data["input"]),
            outputs=tuple(OutputToken.from_dict(o) for o in data["outputs"]),
        )


# ─────────────────────────────────────────────────────────────
# Wire form
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SignedOrder:
    """Order type tag + encoded order bytes + offerer signature."""
    order_type: str
    order:      bytes
    sig:        str

    @classmethod
    def sign(cls, order: _EncodableOrder, key_manager) -> "SignedOrder":
        """
        Encode and sign an order (CONTRACT 3).

        Pattern:
            signed = SignedOrder.sign(dutch_order, offerer_key)
        """
        encoded = order.encode()
        sig     = key_manager.sign(hash_bytes(encoded).encode("ascii"))
        return cls(order_type=order.ORDER_TYPE, order=encoded, sig=sig)

    @property
    def hash(self) -> str:
        return hash_bytes(self.order)


@dataclass(frozen=True)
class SettlementRecord:
    """One fill record per settled order."""
    order_hash: str
    filler:     str
    offerer:    str
    nonce:      int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_hash": self.order_hash,
            "filler":     self.filler,
            "offerer":    self.offerer,
            "nonce":      self.nonce,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SettlementRecord":
        return cls(
            order_hash=data["order_hash"],
            filler=data["filler"],
            offerer=data["offerer"],
            nonce=data["nonce"],
        )
