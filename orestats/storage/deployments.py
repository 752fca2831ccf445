from datetime import datetime, timezone
from typing import Iterable, List, Optional

import aiosqlite

_COLUMNS = (
    "round_id, pubkey, square_id, amount, sol_earned, ore_earned, unclaimed_ore, created_at"
)


def _row_to_dict(row) -> dict:
    return {
        "round_id": row[0],
        "pubkey": row[1],
        "square_id": row[2],
        "amount": row[3],
        "sol_earned": row[4],
        "ore_earned": row[5],
        "unclaimed_ore": row[6],
        "created_at": row[7],
    }


class DeploymentRepo:
    """Inserts and lookups for the deployments table.

    Deployments carry no primary key: the same (round, pubkey, square) may be
    recorded more than once.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(
        self,
        round_id: int,
        pubkey: str,
        square_id: int,
        amount: int,
        sol_earned: int = 0,
        ore_earned: int = 0,
        unclaimed_ore: int = 0,
    ) -> dict:
        created_at = datetime.now(timezone.utc).isoformat()
        row = (round_id, pubkey, square_id, amount, sol_earned, ore_earned, unclaimed_ore, created_at)
        try:
            await self._db.execute(
                f"INSERT INTO deployments ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)", row
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return _row_to_dict(row)

    async def insert_batch(self, rows: Iterable[tuple]) -> int:
        """Insert (round_id, pubkey, square_id, amount, sol_earned, ore_earned,
        unclaimed_ore) tuples atomically. Returns the number of rows written."""
        created_at = datetime.now(timezone.utc).isoformat()
        params = [tuple(r) + (created_at,) for r in rows]
        try:
            await self._db.execute("BEGIN IMMEDIATE")
            await self._db.executemany(
                f"INSERT INTO deployments ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)", params
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return len(params)

    async def list_for_round(self, round_id: int) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM deployments WHERE round_id = ? ORDER BY ore_earned DESC",
            (round_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results

    async def list_for_pubkey(
        self, pubkey: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[dict]:
        query = (f"SELECT {_COLUMNS} FROM deployments WHERE pubkey = ? "
                 "ORDER BY round_id DESC, square_id")
        params: tuple = (pubkey,)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params = params + (limit, offset)
        results = []
        async with self._db.execute(query, params) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results

    async def winners(self, round_id: int) -> List[dict]:
        """Deployments placed on the round's winning square."""
        results = []
        async with self._db.execute(
            "SELECT d.round_id, d.pubkey, d.square_id, d.amount, d.sol_earned, d.ore_earned, "
            "d.unclaimed_ore, d.created_at "
            "FROM rounds r JOIN deployments d "
            "ON d.round_id = r.id AND d.square_id = r.winning_square "
            "WHERE r.id = ? ORDER BY d.amount DESC",
            (round_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results

    async def count(self, round_id: Optional[int] = None) -> int:
        if round_id is not None:
            async with self._db.execute(
                "SELECT COUNT(*) FROM deployments WHERE round_id = ?", (round_id,)
            ) as cursor:
                row = await cursor.fetchone()
        else:
            async with self._db.execute("SELECT COUNT(*) FROM deployments") as cursor:
                row = await cursor.fetchone()
        return row[0] if row else 0

    async def count_orphaned(self) -> int:
        """Deployments whose round_id has no row in rounds."""
        async with self._db.execute(
            "SELECT COUNT(*) FROM deployments d "
            "WHERE NOT EXISTS (SELECT 1 FROM rounds r WHERE r.id = d.round_id)"
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0
