import time
from typing import Iterable, List, Optional

import aiosqlite

_COLUMNS = "id, pubkey, unclaimed_ore, refined_ore, lifetime_sol, lifetime_ore, created_at"


def _row_to_dict(row) -> dict:
    return {
        "id": row[0],
        "pubkey": row[1],
        "unclaimed_ore": row[2],
        "refined_ore": row[3],
        "lifetime_sol": row[4],
        "lifetime_ore": row[5],
        "created_at": row[6],
    }


class MinerSnapshotRepo:
    """Point-in-time miner balances; created_at is integer epoch seconds."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert_batch(self, rows: Iterable[tuple], created_at: Optional[int] = None) -> int:
        """Insert (pubkey, unclaimed_ore, refined_ore, lifetime_sol, lifetime_ore)
        tuples in one transaction, all stamped with the same timestamp."""
        now = int(time.time()) if created_at is None else created_at
        params = [
            (pubkey, unclaimed, refined, sol, ore, now)
            for pubkey, unclaimed, refined, sol, ore in rows
        ]
        try:
            await self._db.execute("BEGIN IMMEDIATE")
            await self._db.executemany(
                "INSERT INTO miner_snapshots (pubkey, unclaimed_ore, refined_ore, lifetime_sol, "
                "lifetime_ore, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                params,
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return len(params)

    async def list_for_pubkey(self, pubkey: str, limit: int = 50, offset: int = 0) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM miner_snapshots WHERE pubkey = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            (pubkey, limit, offset),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results

    async def latest(self, pubkey: str) -> Optional[dict]:
        rows = await self.list_for_pubkey(pubkey, limit=1)
        return rows[0] if rows else None
