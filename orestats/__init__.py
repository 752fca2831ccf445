"""
ore-stats - Round and miner accounting storage

SQLite storage for game rounds, deployments, the treasury and miner
snapshots, with versioned migrations and the per-miner aggregate backfill.
"""

__version__ = "0.1.0"

__all__ = [
    "backfill",
    "cli",
    "pubkeys",
    "storage",
]
