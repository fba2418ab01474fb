"""
Fill journal: append-only, hash-chained, signed JSONL of fill records.

Entry contract:
    entry_hash    = SHA-256(JCS(entry.to_chain_dict()))   (everything but signature)
    previous_hash = entry_hash of the previous entry, GENESIS_HASH for the first
    signature     = Ed25519(journal key, entry_hash.encode("ascii"))

Each entry carries its signer_public_key, so a journal can be verified
with no private key (see verify_journal_file, used by the CLI).
"""

import json
import os
import threading
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from swapreactor.core.canonical import canonical_hash
from swapreactor.core.crypto import Ed25519KeyManager
from swapreactor.core.exceptions import LedgerError
from swapreactor.core.models import SettlementRecord
from swapreactor.core.time import journal_timestamp

GENESIS_HASH = "0" * 64


@dataclass
class JournalEntry:
    """A single entry in the fill journal"""
    index:             int
    previous_hash:     str
    timestamp:         str
    record:            Dict[str, Any]
    signer_public_key: str
    signature:         str = ""

    def to_chain_dict(self) -> Dict[str, Any]:
        return {
            "index":             self.index,
            "previous_hash":     self.previous_hash,
            "timestamp":         self.timestamp,
            "record":            self.record,
            "signer_public_key": self.signer_public_key,
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_chain_dict()
        d["signature"] = self.signature
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "JournalEntry":
        return JournalEntry(
            index=data["index"],
            previous_hash=data["previous_hash"],
            timestamp=data["timestamp"],
            record=data["record"],
            signer_public_key=data["signer_public_key"],
            signature=data.get("signature", ""),
        )

    def compute_hash(self) -> str:
        return canonical_hash(self.to_chain_dict())

    def verify_signature(self) -> bool:
        return Ed25519KeyManager.verify_detached(
            self.compute_hash().encode("ascii"), self.signature, self.signer_public_key
        )

    @property
    def settlement(self) -> SettlementRecord:
        return SettlementRecord.from_dict(self.record)


@dataclass
class JournalReport:
    """Result of verifying a journal. bool(report) is True iff valid."""
    total_entries: int = 0
    violations:    List[str] = field(default_factory=list)
    head_hash:     Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.valid


def _read_entries(path: Path) -> List[JournalEntry]:
    entries = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(JournalEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                raise LedgerError(f"Invalid journal entry at line {line_num}: {exc}") from exc
    return entries


def verify_entries(entries: List[JournalEntry]) -> JournalReport:
    """Check index sequence, chain linkage, and signatures of every entry."""
    report   = JournalReport(total_entries=len(entries))
    expected = GENESIS_HASH

    for position, entry in enumerate(entries):
        if entry.index != position:
            report.violations.append(
                f"index {entry.index} at position {position}: sequence gap"
            )
        if entry.previous_hash != expected:
            report.violations.append(
                f"index {entry.index}: chain break, expected previous_hash "
                f"...{expected[-12:]}, got ...{entry.previous_hash[-12:]}"
            )
        if not entry.verify_signature():
            report.violations.append(f"index {entry.index}: invalid signature")
        expected = entry.compute_hash()

    report.head_hash = expected if entries else None
    return report


def verify_journal_file(path: Path) -> JournalReport:
    """
    Verify a journal on disk with no key material.
    Raises FileNotFoundError if missing, LedgerError if unparseable.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Journal not found: {path}")
    return verify_entries(_read_entries(path))


class FillJournal:
    """
    Append-only fill journal bound to one signing key.

    Loads and verifies an existing file on construction; refuses to
    extend a journal that does not verify.
    """

    def __init__(self, journal_path: Path, key_manager: Ed25519KeyManager) -> None:
        self.journal_path = Path(journal_path)
        self.key_manager  = key_manager
        self.entries: List[JournalEntry] = []
        self._lock:   threading.Lock     = threading.Lock()

        if self.journal_path.exists():
            self._drop_torn_tail()
            self.entries = _read_entries(self.journal_path)
            self.verify_or_raise()

    def _drop_torn_tail(self) -> None:
        """
        An unparseable LAST line is an interrupted append: cut it off with a
        RuntimeWarning. Unparseable lines elsewhere are left for
        _read_entries() to reject.
        """
        with open(self.journal_path, "r", encoding="utf-8") as f:
            lines = f.readlines()
        while lines and not lines[-1].strip():
            lines.pop()
        if not lines:
            return

        try:
            JournalEntry.from_dict(json.loads(lines[-1]))
            return
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            warnings.warn(
                f"FillJournal: dropping unreadable last line of {self.journal_path}: {exc}",
                RuntimeWarning,
                stacklevel=3,
            )

        try:
            with open(self.journal_path, "w", encoding="utf-8") as f:
                f.writelines(lines[:-1])
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise LedgerError(f"Failed to truncate journal: {exc}") from exc

    def append(self, record: SettlementRecord) -> JournalEntry:
        """Sign, chain, and persist one fill record. Thread-safe."""
        with self._lock:
            entry = JournalEntry(
                index=len(self.entries),
                previous_hash=self.entries[-1].compute_hash() if self.entries else GENESIS_HASH,
                timestamp=journal_timestamp(),
                record=record.to_dict(),
                signer_public_key=self.key_manager.public_key_hex,
            )
            entry.signature = self.key_manager.sign(entry.compute_hash().encode("ascii"))

            self._write_entry(entry)
            self.entries.append(entry)
            return entry

    def records(self) -> List[SettlementRecord]:
        return [entry.settlement for entry in self.entries]

    def verify(self) -> JournalReport:
        return verify_entries(self.entries)

    def verify_or_raise(self) -> None:
        report = self.verify()
        if not report:
            raise LedgerError(
                "Fill journal failed verification",
                {"path": str(self.journal_path), "first": report.violations[0]},
            )

    def _write_entry(self, entry: JournalEntry) -> None:
        """Append one line and fsync. State does not advance if this raises."""
        try:
            self.journal_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.journal_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise LedgerError(f"Failed to write journal entry: {exc}") from exc

    def __len__(self) -> int:
        return len(self.entries)
