"""Concrete collaborators for claim verification workflows."""

from .ledger import HttpLedgerPublisher
from .llm_analysis import LLMAnalysisProvider, clean_text, parse_analysis
from .memory_store import InMemoryStore
from .openai_backend import create_openai_backend
from .postgres_store import PostgresStore
from .stake_ledger import LocalStakeLedger

__all__ = [
    "HttpLedgerPublisher",
    "InMemoryStore",
    "LLMAnalysisProvider",
    "LocalStakeLedger",
    "PostgresStore",
    "clean_text",
    "create_openai_backend",
    "parse_analysis",
]
