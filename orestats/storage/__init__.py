from ._schema import BOARD_SQUARES, SCHEMA_VERSION, UNRESOLVED_SQUARE
from ._migrate import MigrationError, get_schema_version, run_migrations
from .rounds import RoundRepo
from .deployments import DeploymentRepo
from .treasury import TreasuryRepo
from .snapshots import MinerSnapshotRepo
from .stats import StatsRepo
from .manager import StorageManager

__all__ = [
    "BOARD_SQUARES",
    "SCHEMA_VERSION",
    "UNRESOLVED_SQUARE",
    "MigrationError",
    "get_schema_version",
    "run_migrations",
    "RoundRepo",
    "DeploymentRepo",
    "TreasuryRepo",
    "MinerSnapshotRepo",
    "StatsRepo",
    "StorageManager",
]
