"""
swapreactor Fill Journal - Append-Only Signed Record of Fills
"""

from swapreactor.ledger.journal import FillJournal, JournalEntry, verify_journal_file

__all__ = ["FillJournal", "JournalEntry", "verify_journal_file"]
