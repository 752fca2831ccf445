import asyncio
import logging
from typing import List, Optional

import aiosqlite

from ._schema import (
    REBUILD_ROUND_STATS,
    REBUILD_TOTALS,
    ROUND_STATS_INSERT,
    ROUND_STATS_SELECT,
    TOTALS_INSERT,
    TOTALS_SELECT,
)

logger = logging.getLogger("storage")

_ROUND_STATS_COLUMNS = (
    "round_id, pubkey, total_sol_deployed, total_sol_earned, total_ore_earned, "
    "won_round, net_sol_round"
)
_TOTALS_COLUMNS = (
    "pubkey, rounds_played, rounds_won, total_sol_deployed, total_sol_earned, "
    "total_ore_earned, net_sol_change"
)


def _round_stats_to_dict(row) -> dict:
    return {
        "round_id": row[0],
        "pubkey": row[1],
        "total_sol_deployed": row[2],
        "total_sol_earned": row[3],
        "total_ore_earned": row[4],
        "won_round": bool(row[5]),
        "net_sol_round": row[6],
    }


def _totals_to_dict(row) -> dict:
    return {
        "pubkey": row[0],
        "rounds_played": row[1],
        "rounds_won": row[2],
        "total_sol_deployed": row[3],
        "total_sol_earned": row[4],
        "total_ore_earned": row[5],
        "net_sol_change": row[6],
    }


class StatsRepo:
    """Derived tables miner_round_stats and miner_totals.

    Both are caches of deployments joined with rounds. Every write here
    replaces rows rather than accumulating into them, and miner_totals is
    only ever computed from miner_round_stats.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db
        self._refresh_lock = asyncio.Lock()

    async def _run_script(self, statements: List[str]):
        # one executescript call, so no other coroutine on this connection
        # can run between the DELETE and the re-INSERT
        script = "BEGIN IMMEDIATE;\n" + ";\n".join(statements) + ";\nCOMMIT;"
        try:
            await self._db.executescript(script)
        except Exception:
            if self._db.in_transaction:
                await self._db.rollback()
            raise

    async def rebuild_round_stats(self) -> int:
        await self._run_script(REBUILD_ROUND_STATS)
        return await self.count_round_stats()

    async def rebuild_totals(self) -> int:
        await self._run_script(REBUILD_TOTALS)
        return await self.count_totals()

    async def rebuild(self) -> dict:
        """Rebuild round stats, then totals from them."""
        round_stats = await self.rebuild_round_stats()
        miners = await self.rebuild_totals()
        return {"round_stats": round_stats, "miners": miners}

    async def refresh_round(self, round_id: int) -> List[str]:
        """Re-derive one round's stats and the totals of every miner in it.

        Returns the affected pubkeys, sorted.
        """
        round_id = int(round_id)
        async with self._refresh_lock:
            await self._run_script([
                "CREATE TEMP TABLE IF NOT EXISTS refresh_pubkeys (pubkey TEXT PRIMARY KEY)",
                "DELETE FROM refresh_pubkeys",
                # old rows too, so miners dropped from the round get their totals fixed
                f"INSERT OR IGNORE INTO refresh_pubkeys "
                f"SELECT pubkey FROM miner_round_stats WHERE round_id = {round_id} "
                f"UNION SELECT pubkey FROM deployments WHERE round_id = {round_id}",
                f"DELETE FROM miner_round_stats WHERE round_id = {round_id}",
                ROUND_STATS_INSERT + ROUND_STATS_SELECT
                + f" WHERE d.round_id = {round_id} GROUP BY d.round_id, d.pubkey",
                "DELETE FROM miner_totals WHERE pubkey IN (SELECT pubkey FROM refresh_pubkeys)",
                TOTALS_INSERT + TOTALS_SELECT
                + " WHERE pubkey IN (SELECT pubkey FROM refresh_pubkeys) GROUP BY pubkey",
            ])
            async with self._db.execute(
                "SELECT pubkey FROM refresh_pubkeys ORDER BY pubkey"
            ) as cursor:
                affected = [row[0] for row in await cursor.fetchall()]
        logger.debug("Refreshed round %d stats for %d miners", round_id, len(affected))
        return affected

    async def get_round_stats(self, round_id: int, pubkey: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_ROUND_STATS_COLUMNS} FROM miner_round_stats "
            "WHERE round_id = ? AND pubkey = ?",
            (round_id, pubkey),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _round_stats_to_dict(row)

    async def list_round_stats(self, round_id: int) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_ROUND_STATS_COLUMNS} FROM miner_round_stats "
            "WHERE round_id = ? ORDER BY pubkey",
            (round_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_round_stats_to_dict(row))
        return results

    async def history(self, pubkey: str, limit: int = 50, offset: int = 0) -> List[dict]:
        """A miner's per-round stats, newest round first."""
        results = []
        async with self._db.execute(
            f"SELECT {_ROUND_STATS_COLUMNS} FROM miner_round_stats "
            "WHERE pubkey = ? ORDER BY round_id DESC LIMIT ? OFFSET ?",
            (pubkey, limit, offset),
        ) as cursor:
            async for row in cursor:
                results.append(_round_stats_to_dict(row))
        return results

    async def get_totals(self, pubkey: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_TOTALS_COLUMNS} FROM miner_totals WHERE pubkey = ?", (pubkey,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _totals_to_dict(row)

    async def list_totals(self, limit: int = 50, offset: int = 0) -> List[dict]:
        """All-time totals, best net SOL change first."""
        results = []
        async with self._db.execute(
            f"SELECT {_TOTALS_COLUMNS} FROM miner_totals "
            "ORDER BY net_sol_change DESC, pubkey LIMIT ? OFFSET ?",
            (limit, offset),
        ) as cursor:
            async for row in cursor:
                results.append(_totals_to_dict(row))
        return results

    async def count_round_stats(self) -> int:
        async with self._db.execute("SELECT COUNT(*) FROM miner_round_stats") as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def count_totals(self) -> int:
        async with self._db.execute("SELECT COUNT(*) FROM miner_totals") as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0
