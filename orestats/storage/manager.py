import logging
from typing import Optional

try:
    import aiosqlite
except ImportError:
    raise ImportError(
        "aiosqlite is required for the storage layer. "
        "Install with: pip install aiosqlite"
    )

from ._schema import SCHEMA_VERSION
from ._migrate import get_schema_version, run_migrations
from .rounds import RoundRepo
from .deployments import DeploymentRepo
from .treasury import TreasuryRepo
from .snapshots import MinerSnapshotRepo
from .stats import StatsRepo

logger = logging.getLogger("storage")

TABLES = (
    "rounds",
    "deployments",
    "treasury",
    "miner_snapshots",
    "miner_round_stats",
    "miner_totals",
)


class StorageManager:
    """Top-level manager: opens the database, runs migrations, exposes repos."""

    def __init__(self, db_path: str = "data/ore.db", target_version: int = SCHEMA_VERSION):
        self.db_path = db_path
        self.target_version = target_version
        self.schema_version = 0
        self._db: Optional[aiosqlite.Connection] = None
        self.rounds: Optional[RoundRepo] = None
        self.deployments: Optional[DeploymentRepo] = None
        self.treasury: Optional[TreasuryRepo] = None
        self.snapshots: Optional[MinerSnapshotRepo] = None
        self.stats: Optional[StatsRepo] = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("StorageManager is not initialized")
        return self._db

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        try:
            self.schema_version = await run_migrations(
                self._db, logger, target_version=self.target_version
            )
        except Exception:
            await self.close()
            raise

        self.rounds = RoundRepo(self._db)
        self.deployments = DeploymentRepo(self._db)
        self.treasury = TreasuryRepo(self._db)
        self.snapshots = MinerSnapshotRepo(self._db)
        self.stats = StatsRepo(self._db)

        logger.info("Storage initialized: %s (v%d)", self.db_path, self.schema_version)

    async def table_counts(self) -> dict:
        counts = {}
        for table in TABLES:
            async with self.db.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                row = await cursor.fetchone()
            counts[table] = row[0] if row else 0
        return counts

    async def current_version(self) -> int:
        return await get_schema_version(self.db)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")
