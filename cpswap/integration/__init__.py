"""
Integration layer: in-memory ledger, snapshots, configuration files and CLI
"""

from .config import configure_logging, load_config
from .memory_ledger import InMemoryLedger
from .snapshot import LedgerSnapshot, dump_snapshot, ledger_from_snapshot, load_snapshot, snapshot_from_ledger

__all__ = [
    "configure_logging",
    "load_config",
    "InMemoryLedger",
    "LedgerSnapshot",
    "dump_snapshot",
    "ledger_from_snapshot",
    "load_snapshot",
    "snapshot_from_ledger",
]
