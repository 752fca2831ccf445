from datetime import datetime, timezone
from typing import List, Optional, Union

import aiosqlite

from orestats.pubkeys import decode_pubkey, encode_pubkey

from ._schema import UNRESOLVED_SQUARE

_COLUMNS = (
    "id, slot_hash, winning_square, expires_at, motherlode, rent_payer, top_miner, "
    "top_miner_reward, total_deployed, total_vaulted, total_winnings, created_at"
)


def _row_to_dict(row) -> dict:
    return {
        "id": row[0],
        "slot_hash": bytes(row[1]),
        "winning_square": row[2],
        "expires_at": row[3],
        "motherlode": row[4],
        "rent_payer": encode_pubkey(row[5]),
        "top_miner": encode_pubkey(row[6]),
        "top_miner_reward": row[7],
        "total_deployed": row[8],
        "total_vaulted": row[9],
        "total_winnings": row[10],
        "created_at": row[11],
    }


class RoundRepo:
    """CRUD operations for the rounds table."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def upsert(
        self,
        round_id: int,
        slot_hash: bytes,
        rent_payer: Union[str, bytes],
        top_miner: Union[str, bytes],
        expires_at: int,
        motherlode: int = 0,
        top_miner_reward: int = 0,
        total_deployed: int = 0,
        total_vaulted: int = 0,
        total_winnings: int = 0,
        winning_square: int = UNRESOLVED_SQUARE,
    ) -> dict:
        """Insert a round, or overwrite every column of an existing one.

        ``rent_payer`` and ``top_miner`` may be base58 text or 32 raw bytes.
        A ``slot_hash`` that is not 32 bytes is rejected by the table's CHECK
        constraint (sqlite3.IntegrityError).
        """
        params = (
            round_id, bytes(slot_hash), winning_square, expires_at, motherlode,
            decode_pubkey(rent_payer), decode_pubkey(top_miner),
            top_miner_reward, total_deployed, total_vaulted, total_winnings,
            datetime.now(timezone.utc).isoformat(),
        )
        try:
            await self._db.execute(
                f"INSERT INTO rounds ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "slot_hash=excluded.slot_hash, winning_square=excluded.winning_square, "
                "expires_at=excluded.expires_at, motherlode=excluded.motherlode, "
                "rent_payer=excluded.rent_payer, top_miner=excluded.top_miner, "
                "top_miner_reward=excluded.top_miner_reward, total_deployed=excluded.total_deployed, "
                "total_vaulted=excluded.total_vaulted, total_winnings=excluded.total_winnings, "
                "created_at=excluded.created_at",
                params,
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return await self.get(round_id)

    async def get(self, round_id: int) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM rounds WHERE id = ?", (round_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_dict(row)

    async def list(self, limit: int = 50, offset: int = 0) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM rounds ORDER BY id DESC LIMIT ? OFFSET ?",
            (limit, offset),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results

    async def count(self) -> int:
        async with self._db.execute("SELECT COUNT(*) FROM rounds") as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0
