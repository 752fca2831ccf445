import logging
import time

from orestats.pubkeys import decode_pubkey

from ._schema import MIGRATIONS, SCHEMA_VERSION, SCHEMA_VERSION_SQL

logger = logging.getLogger("storage")


class MigrationError(RuntimeError):
    """A migration step failed and was rolled back."""

    def __init__(self, version: int, description: str):
        super().__init__(f"migration v{version} ({description}) failed")
        self.version = version
        self.description = description


def _pubkey_bytes(value):
    # SQL-callable; an exception here aborts the statement
    return decode_pubkey(value)


async def get_schema_version(db) -> int:
    async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
        row = await cursor.fetchone()
    if row and row[0] is not None:
        return row[0]
    return 0


async def run_migrations(db, logger_override=None, target_version: int = SCHEMA_VERSION) -> int:
    """Apply every pending step up to ``target_version``, each in its own transaction.

    Returns the resulting schema version. A failing step is rolled back and
    raises MigrationError; steps after it are not attempted.
    """
    log = logger_override or logger
    await db.execute(SCHEMA_VERSION_SQL)
    # also ends any transaction the caller left open, before BEGIN IMMEDIATE below
    await db.commit()
    current_version = await get_schema_version(db)

    if current_version >= target_version:
        log.debug("Database schema up to date (v%d)", current_version)
        return current_version

    log.info("Migrating database from v%d to v%d", current_version, target_version)
    await db.create_function("pubkey_bytes", 1, _pubkey_bytes, deterministic=True)

    for version, description, statements in MIGRATIONS:
        if version <= current_version or version > target_version:
            continue
        try:
            await db.execute("BEGIN IMMEDIATE")
            for sql in statements:
                await db.execute(sql)
            await db.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, time.time()),
            )
            await db.commit()
        except Exception as e:
            await db.rollback()
            log.exception("V%d migration failed: %s", version, description)
            raise MigrationError(version, description) from e
        log.info("Applied v%d: %s", version, description)
        current_version = version

    log.info("Migration complete (v%d)", current_version)
    return current_version
