"""
Persistent progress ledger.
"""

from storyquest.kernel.progress.ledger_store import CompletionResult, LedgerStore

__all__ = ["CompletionResult", "LedgerStore"]
