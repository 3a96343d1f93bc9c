"""
capdrop Journal - signed audit trail of committed operations.
"""

from capdrop.journal.journal import (
    GENESIS_HASH,
    EventJournal,
    JournalEntry,
    JournalReport,
    JournalViolation,
    load_jsonl,
    verify_entries,
)

__all__ = [
    "GENESIS_HASH",
    "EventJournal",
    "JournalEntry",
    "JournalReport",
    "JournalViolation",
    "load_jsonl",
    "verify_entries",
]
