"""
Shared fixtures for ore-stats integration tests.

These tests drive the command-line entry point against real database files
and seed data with the synchronous sqlite3 module, the way an external
writer process would.
"""

import sqlite3

import pytest

from orestats.pubkeys import encode_pubkey


def b58_key(n: int) -> str:
    return encode_pubkey(bytes([n]) * 32)


# Text-keyed revision of the tables: base58 text pubkeys on rounds, text
# snapshot timestamps, an autoincrement treasury ledger, and no
# schema_version bookkeeping.
LEGACY_SCHEMA = """
CREATE TABLE rounds (
    id                INTEGER PRIMARY KEY,
    slot_hash         BLOB NOT NULL CHECK(length(slot_hash) = 32),
    winning_square    INTEGER NOT NULL,
    expires_at        INTEGER NOT NULL,
    motherlode        INTEGER NOT NULL,
    rent_payer        TEXT NOT NULL,
    top_miner         TEXT NOT NULL,
    top_miner_reward  INTEGER NOT NULL,
    total_deployed    INTEGER NOT NULL,
    total_vaulted     INTEGER NOT NULL,
    total_winnings    INTEGER NOT NULL,
    created_at        TEXT NOT NULL
);
CREATE TABLE deployments (
    round_id      INTEGER NOT NULL,
    pubkey        TEXT    NOT NULL,
    square_id     INTEGER NOT NULL,
    amount        INTEGER NOT NULL,
    sol_earned    INTEGER NOT NULL,
    ore_earned    INTEGER NOT NULL,
    unclaimed_ore INTEGER NOT NULL,
    created_at    TEXT    NOT NULL
);
CREATE TABLE treasury (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    balance         INTEGER NOT NULL,
    motherlode      INTEGER NOT NULL,
    total_staked    INTEGER NOT NULL,
    total_unclaimed INTEGER NOT NULL,
    total_refined   INTEGER NOT NULL,
    created_at      TEXT    NOT NULL
);
CREATE TABLE miner_snapshots (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    pubkey        TEXT NOT NULL,
    unclaimed_ore INTEGER NOT NULL,
    refined_ore   INTEGER NOT NULL,
    lifetime_sol  INTEGER NOT NULL,
    lifetime_ore  INTEGER NOT NULL,
    created_at    TEXT    NOT NULL
);
"""


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "ore.db")


@pytest.fixture
def legacy_db(tmp_path):
    """A database file in the legacy shapes, seeded with one settled round."""
    path = str(tmp_path / "legacy.db")
    conn = sqlite3.connect(path)
    conn.executescript(LEGACY_SCHEMA)
    conn.execute(
        "INSERT INTO rounds VALUES (1, ?, 3, 1700000000, 500, ?, ?, 10, 180, 5, 250, ?)",
        (bytes(32), b58_key(1), b58_key(2), "2025-10-27T12:00:00+00:00"),
    )
    conn.executemany(
        "INSERT INTO deployments VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "A", 3, 100, 250, 5, 5, "2025-10-27T12:00:00+00:00"),
            (1, "A", 1, 50, 0, 0, 0, "2025-10-27T12:00:00+00:00"),
            (1, "B", 2, 30, 0, 0, 0, "2025-10-27T12:00:00+00:00"),
        ],
    )
    conn.executemany(
        "INSERT INTO treasury (balance, motherlode, total_staked, total_unclaimed, "
        "total_refined, created_at) VALUES (?, 0, 0, 0, 0, ?)",
        [(10, "2025-10-25T00:00:00+00:00"), (20, "2025-10-26T00:00:00+00:00")],
    )
    conn.execute(
        "INSERT INTO miner_snapshots (pubkey, unclaimed_ore, refined_ore, lifetime_sol, "
        "lifetime_ore, created_at) VALUES ('A', 1, 2, 3, 4, '2025-10-27T12:00:00.123456789Z')"
    )
    conn.commit()
    conn.close()
    return path
