from datetime import datetime, timezone
from typing import Optional

import aiosqlite

TREASURY_ROW_ID = 1


class TreasuryRepo:
    """The treasury table holds exactly one row (id = 1), overwritten in place."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def upsert(
        self,
        balance: int,
        motherlode: int,
        total_staked: int,
        total_unclaimed: int,
        total_refined: int,
    ) -> dict:
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            await self._db.execute(
                "INSERT INTO treasury (id, balance, motherlode, total_staked, total_unclaimed, "
                "total_refined, created_at) VALUES (?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "balance=excluded.balance, motherlode=excluded.motherlode, "
                "total_staked=excluded.total_staked, total_unclaimed=excluded.total_unclaimed, "
                "total_refined=excluded.total_refined, created_at=excluded.created_at",
                (TREASURY_ROW_ID, balance, motherlode, total_staked, total_unclaimed,
                 total_refined, created_at),
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return await self.get()

    async def get(self) -> Optional[dict]:
        async with self._db.execute(
            "SELECT id, balance, motherlode, total_staked, total_unclaimed, total_refined, created_at "
            "FROM treasury WHERE id = ?",
            (TREASURY_ROW_ID,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return {
            "id": row[0],
            "balance": row[1],
            "motherlode": row[2],
            "total_staked": row[3],
            "total_unclaimed": row[4],
            "total_refined": row[5],
            "created_at": row[6],
        }
