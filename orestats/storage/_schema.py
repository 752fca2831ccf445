SCHEMA_VERSION = 7

# Square index stored for a round whose outcome is not known yet. No
# deployment targets it, so such a round never counts as won.
BOARD_SQUARES = 25
UNRESOLVED_SQUARE = 100

SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at REAL NOT NULL
)
"""

# -- v1: bootstrap ----------------------------------------------------------

V1_BOOTSTRAP = [
    # Rounds: one row per settled game round
    """
    CREATE TABLE IF NOT EXISTS rounds (
        id               INTEGER PRIMARY KEY,
        slot_hash        BLOB    NOT NULL CHECK (length(slot_hash) = 32),
        winning_square   INTEGER NOT NULL,
        expires_at       INTEGER NOT NULL,
        motherlode       INTEGER NOT NULL,
        rent_payer       TEXT    NOT NULL,
        top_miner        TEXT    NOT NULL,
        top_miner_reward INTEGER NOT NULL,
        total_deployed   INTEGER NOT NULL,
        total_vaulted    INTEGER NOT NULL,
        total_winnings   INTEGER NOT NULL,
        created_at       TEXT    NOT NULL
    )
    """,
    # Deployments: a miner's stake on one square; duplicates allowed
    """
    CREATE TABLE IF NOT EXISTS deployments (
        round_id      INTEGER NOT NULL,
        pubkey        TEXT    NOT NULL,
        square_id     INTEGER NOT NULL,
        amount        INTEGER NOT NULL,
        sol_earned    INTEGER NOT NULL,
        ore_earned    INTEGER NOT NULL,
        unclaimed_ore INTEGER NOT NULL,
        created_at    TEXT    NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS treasury (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        balance         INTEGER NOT NULL,
        motherlode      INTEGER NOT NULL,
        total_staked    INTEGER NOT NULL,
        total_unclaimed INTEGER NOT NULL,
        total_refined   INTEGER NOT NULL,
        created_at      TEXT    NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS miner_snapshots (
        id            INTEGER PRIMARY KEY AUTOINCREMENT,
        pubkey        TEXT    NOT NULL,
        unclaimed_ore INTEGER NOT NULL,
        refined_ore   INTEGER NOT NULL,
        lifetime_sol  INTEGER NOT NULL,
        lifetime_ore  INTEGER NOT NULL,
        created_at    TEXT    NOT NULL
    )
    """,
]

# -- v2: deployment / round indexes -----------------------------------------

V2_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_deployments_pubkey_round ON deployments(pubkey, round_id)",
    "CREATE INDEX IF NOT EXISTS idx_deployments_round ON deployments(round_id)",
    "CREATE INDEX IF NOT EXISTS idx_deployments_pubkey ON deployments(pubkey)",
    "CREATE INDEX IF NOT EXISTS idx_deployments_prs "
    "ON deployments(pubkey, round_id, sol_earned, amount)",
    # winner lookup: join on (round_id, square_id)
    "CREATE INDEX IF NOT EXISTS idx_deployments_round_square ON deployments(round_id, square_id)",
    "CREATE INDEX IF NOT EXISTS idx_rounds_winning_square ON rounds(winning_square)",
]

# -- v3: rounds pubkeys text -> 32-byte blobs --------------------------------
# pubkey_bytes() is registered on the connection by the migration runner.

V3_ROUNDS_BINARY_KEYS = [
    "DROP TABLE IF EXISTS rounds_new",
    """
    CREATE TABLE rounds_new (
        id               INTEGER PRIMARY KEY,
        slot_hash        BLOB    NOT NULL CHECK (length(slot_hash) = 32),
        winning_square   INTEGER NOT NULL,
        expires_at       INTEGER NOT NULL,
        motherlode       INTEGER NOT NULL,
        rent_payer       BLOB    NOT NULL CHECK (length(rent_payer) = 32),
        top_miner        BLOB    NOT NULL CHECK (length(top_miner) = 32),
        top_miner_reward INTEGER NOT NULL,
        total_deployed   INTEGER NOT NULL,
        total_vaulted    INTEGER NOT NULL,
        total_winnings   INTEGER NOT NULL,
        created_at       TEXT    NOT NULL
    )
    """,
    """
    INSERT INTO rounds_new (
        id, slot_hash, winning_square, expires_at, motherlode, rent_payer, top_miner,
        top_miner_reward, total_deployed, total_vaulted, total_winnings, created_at
    )
    SELECT
        id, slot_hash, winning_square, expires_at, motherlode,
        pubkey_bytes(rent_payer), pubkey_bytes(top_miner),
        top_miner_reward, total_deployed, total_vaulted, total_winnings, created_at
    FROM rounds
    """,
    "DROP TABLE rounds",
    "ALTER TABLE rounds_new RENAME TO rounds",
    "CREATE INDEX IF NOT EXISTS idx_rounds_winning_square ON rounds(winning_square)",
]

# -- v4: miner_snapshots.created_at text -> epoch seconds --------------------

V4_SNAPSHOTS_EPOCH = [
    "DROP TABLE IF EXISTS miner_snapshots_new",
    """
    CREATE TABLE miner_snapshots_new (
        id            INTEGER PRIMARY KEY AUTOINCREMENT,
        pubkey        TEXT    NOT NULL,
        unclaimed_ore INTEGER NOT NULL,
        refined_ore   INTEGER NOT NULL,
        lifetime_sol  INTEGER NOT NULL,
        lifetime_ore  INTEGER NOT NULL,
        created_at    INTEGER NOT NULL
    )
    """,
    """
    INSERT INTO miner_snapshots_new (
        id, pubkey, unclaimed_ore, refined_ore, lifetime_sol, lifetime_ore, created_at
    )
    SELECT
        id, pubkey, unclaimed_ore, refined_ore, lifetime_sol, lifetime_ore,
        CASE
            WHEN created_at NOT GLOB '*[^0-9]*' AND created_at <> '' THEN CAST(created_at AS INTEGER)
            ELSE CAST(strftime('%s', created_at) AS INTEGER)
        END
    FROM miner_snapshots
    """,
    "DROP TABLE miner_snapshots",
    "ALTER TABLE miner_snapshots_new RENAME TO miner_snapshots",
    "CREATE INDEX IF NOT EXISTS idx_snapshots_pubkey_created_at_desc "
    "ON miner_snapshots(pubkey, created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_snapshots_created_at ON miner_snapshots(created_at)",
]

# -- v5: treasury becomes a single row ---------------------------------------

V5_TREASURY_SINGLETON = [
    "DROP TABLE IF EXISTS treasury_new",
    """
    CREATE TABLE treasury_new (
        id              INTEGER NOT NULL PRIMARY KEY CHECK (id = 1),
        balance         INTEGER NOT NULL,
        motherlode      INTEGER NOT NULL,
        total_staked    INTEGER NOT NULL,
        total_unclaimed INTEGER NOT NULL,
        total_refined   INTEGER NOT NULL,
        created_at      TEXT    NOT NULL
    )
    """,
    # keep the most recent ledger row
    """
    INSERT INTO treasury_new (
        id, balance, motherlode, total_staked, total_unclaimed, total_refined, created_at
    )
    SELECT 1, balance, motherlode, total_staked, total_unclaimed, total_refined, created_at
    FROM treasury
    ORDER BY id DESC
    LIMIT 1
    """,
    "DROP TABLE treasury",
    "ALTER TABLE treasury_new RENAME TO treasury",
]

# -- v6: derived aggregate tables --------------------------------------------

V6_DERIVED_TABLES = [
    """
    CREATE TABLE IF NOT EXISTS miner_round_stats (
        round_id           INTEGER NOT NULL,
        pubkey             TEXT    NOT NULL,
        total_sol_deployed INTEGER NOT NULL,
        total_sol_earned   INTEGER NOT NULL,
        total_ore_earned   INTEGER NOT NULL,
        won_round          INTEGER NOT NULL CHECK (won_round IN (0, 1)),
        net_sol_round      INTEGER NOT NULL,
        PRIMARY KEY (round_id, pubkey)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS miner_totals (
        pubkey             TEXT    NOT NULL PRIMARY KEY,
        rounds_played      INTEGER NOT NULL,
        rounds_won         INTEGER NOT NULL,
        total_sol_deployed INTEGER NOT NULL,
        total_sol_earned   INTEGER NOT NULL,
        total_ore_earned   INTEGER NOT NULL,
        net_sol_change     INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_round_stats_pubkey_round ON miner_round_stats(pubkey, round_id)",
]

# -- aggregation queries (v7 backfill and StatsRepo) -------------------------

ROUND_STATS_SELECT = """
    SELECT
        d.round_id,
        d.pubkey,
        SUM(d.amount)                                                   AS total_sol_deployed,
        SUM(d.sol_earned)                                               AS total_sol_earned,
        SUM(d.ore_earned)                                               AS total_ore_earned,
        MAX(CASE WHEN d.square_id = r.winning_square THEN 1 ELSE 0 END) AS won_round,
        SUM(d.sol_earned) - SUM(d.amount)                               AS net_sol_round
    FROM deployments d
    JOIN rounds r ON r.id = d.round_id
"""

ROUND_STATS_INSERT = """
    INSERT OR REPLACE INTO miner_round_stats (
        round_id, pubkey, total_sol_deployed, total_sol_earned, total_ore_earned,
        won_round, net_sol_round
    )
"""

TOTALS_SELECT = """
    SELECT
        pubkey,
        COUNT(*)                AS rounds_played,
        SUM(won_round)          AS rounds_won,
        SUM(total_sol_deployed) AS total_sol_deployed,
        SUM(total_sol_earned)   AS total_sol_earned,
        SUM(total_ore_earned)   AS total_ore_earned,
        SUM(net_sol_round)      AS net_sol_change
    FROM miner_round_stats
"""

TOTALS_INSERT = """
    INSERT OR REPLACE INTO miner_totals (
        pubkey, rounds_played, rounds_won, total_sol_deployed, total_sol_earned,
        total_ore_earned, net_sol_change
    )
"""

REBUILD_ROUND_STATS = [
    "DELETE FROM miner_round_stats",
    ROUND_STATS_INSERT + ROUND_STATS_SELECT + " GROUP BY d.round_id, d.pubkey",
]

REBUILD_TOTALS = [
    "DELETE FROM miner_totals",
    TOTALS_INSERT + TOTALS_SELECT + " GROUP BY pubkey",
]

# -- v7: backfill -------------------------------------------------------------

# round stats first: totals are derived from them
V7_BACKFILL = REBUILD_ROUND_STATS + REBUILD_TOTALS

MIGRATIONS = [
    (1, "create rounds, deployments, treasury, miner_snapshots", V1_BOOTSTRAP),
    (2, "create deployment and round indexes", V2_INDEXES),
    (3, "rounds pubkeys to 32-byte keys", V3_ROUNDS_BINARY_KEYS),
    (4, "miner_snapshots timestamps to epoch seconds", V4_SNAPSHOTS_EPOCH),
    (5, "treasury as a single row", V5_TREASURY_SINGLETON),
    (6, "create miner_round_stats and miner_totals", V6_DERIVED_TABLES),
    (7, "backfill miner_round_stats and miner_totals", V7_BACKFILL),
]
