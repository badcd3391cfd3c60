"""Journaling of committed registry notifications."""

from contract_manager.events.journal import EventJournal, JournalEntry

__all__ = ["EventJournal", "JournalEntry"]
