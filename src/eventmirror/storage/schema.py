"""
schema.py
---------

DuckDB schema of the persisted mirror.

Chain integers (token/collection/offer indices, prices, amounts) are stored
as decimal VARCHAR because uint256 overflows every SQL integer type. Block
numbers and log indices are BIGINT. Every mirrored collection is keyed by
domain identifiers; `applied_logs` is the append-only idempotency ledger.
"""

# =====================================================================
# MIRRORED COLLECTIONS
# =====================================================================

TABLES: dict[str, str] = {
    "contracts": """
CREATE TABLE IF NOT EXISTS contracts (
    contract_address    VARCHAR PRIMARY KEY,
    owner               VARCHAR,
    deployment_index    VARCHAR,
    title               VARCHAR,
    diamond             BOOLEAN,
    factory_address     VARCHAR,
    base_uri            VARCHAR,
    append_token_index  BOOLEAN,
    metadata_extension  VARCHAR,
    block_number        BIGINT,
    tx_hash             VARCHAR
);
""",
    "collections": """
CREATE TABLE IF NOT EXISTS collections (
    contract_address    VARCHAR NOT NULL,
    collection_index    VARCHAR NOT NULL,
    name                VARCHAR,
    starting_token      VARCHAR,
    length              VARCHAR,
    metadata_uri        VARCHAR,
    append_token_index  BOOLEAN,
    metadata_extension  VARCHAR,
    diamond             BOOLEAN,
    block_number        BIGINT,
    PRIMARY KEY (contract_address, collection_index)
);
""",
    "ranges": """
CREATE TABLE IF NOT EXISTS ranges (
    contract_address    VARCHAR NOT NULL,
    range_index         VARCHAR NOT NULL,
    collection_index    VARCHAR,
    range_start         VARCHAR,
    range_end           VARCHAR,
    price               VARCHAR,
    tokens_allowed      VARCHAR,
    locked_tokens       VARCHAR,
    name                VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (contract_address, range_index)
);
""",
    "locks": """
CREATE TABLE IF NOT EXISTS locks (
    contract_address    VARCHAR NOT NULL,
    collection_index    VARCHAR NOT NULL,
    range_start         VARCHAR NOT NULL,
    range_end           VARCHAR,
    locked_tokens       VARCHAR,
    lock_index          VARCHAR,
    name                VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (contract_address, collection_index, range_start)
);
""",
    "offer_pools": """
CREATE TABLE IF NOT EXISTS offer_pools (
    marketplace_address VARCHAR NOT NULL,
    catalog_index       VARCHAR NOT NULL,
    contract_address    VARCHAR,
    collection_index    VARCHAR,
    ranges_created      VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (marketplace_address, catalog_index)
);
""",
    "offers": """
CREATE TABLE IF NOT EXISTS offers (
    marketplace_address VARCHAR NOT NULL,
    offer_pool          VARCHAR NOT NULL,
    offer_index         VARCHAR NOT NULL,
    contract_address    VARCHAR,
    collection_index    VARCHAR,
    range_index         VARCHAR,
    range_start         VARCHAR,
    range_end           VARCHAR,
    price               VARCHAR,
    name                VARCHAR,
    tokens              VARCHAR,
    visible             BOOLEAN,
    fee_splits_length   VARCHAR,
    minted              BIGINT DEFAULT 0,
    diamond             BOOLEAN,
    block_number        BIGINT,
    PRIMARY KEY (marketplace_address, offer_pool, offer_index)
);
""",
    "tokens": """
CREATE TABLE IF NOT EXISTS tokens (
    contract_address    VARCHAR NOT NULL,
    token_index         VARCHAR NOT NULL,
    owner               VARCHAR,
    collection_index    VARCHAR,
    marketplace_address VARCHAR,
    offer_pool          VARCHAR,
    offer_index         VARCHAR,
    metadata_uri        VARCHAR,
    minted              BOOLEAN,
    diamond             BOOLEAN,
    block_number        BIGINT,
    tx_hash             VARCHAR,
    PRIMARY KEY (contract_address, token_index)
);
""",
    "resale_offers": """
CREATE TABLE IF NOT EXISTS resale_offers (
    marketplace_address VARCHAR NOT NULL,
    offer_index         VARCHAR NOT NULL,
    contract_address    VARCHAR,
    seller              VARCHAR,
    token_index         VARCHAR,
    price               VARCHAR,
    status              VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (marketplace_address, offer_index)
);
""",
    "royalty_splits": """
CREATE TABLE IF NOT EXISTS royalty_splits (
    marketplace_address VARCHAR NOT NULL,
    contract_address    VARCHAR NOT NULL,
    splits              VARCHAR,
    remainder_for_seller VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (marketplace_address, contract_address)
);
""",
    "credit_balances": """
CREATE TABLE IF NOT EXISTS credit_balances (
    handler_address     VARCHAR NOT NULL,
    user_address        VARCHAR NOT NULL,
    token_address       VARCHAR NOT NULL,
    balance             VARCHAR NOT NULL,
    PRIMARY KEY (handler_address, user_address, token_address)
);
""",
    "credit_movements": """
CREATE TABLE IF NOT EXISTS credit_movements (
    tx_hash             VARCHAR NOT NULL,
    log_index           BIGINT NOT NULL,
    handler_address     VARCHAR,
    user_address        VARCHAR,
    token_address       VARCHAR,
    direction           VARCHAR,
    amount              VARCHAR,
    block_number        BIGINT,
    PRIMARY KEY (tx_hash, log_index)
);
""",
}


# =====================================================================
# IDEMPOTENCY LEDGER
# =====================================================================

APPLIED_LOGS_TABLE = """
CREATE TABLE IF NOT EXISTS applied_logs (
    tx_hash             VARCHAR NOT NULL,
    log_index           BIGINT NOT NULL,
    block_number        BIGINT,
    address             VARCHAR,
    event               VARCHAR,
    applied_at          DOUBLE,
    PRIMARY KEY (tx_hash, log_index)
);
"""

# Highest (block_number, log_index) applied per emitting address.
EMITTER_POSITIONS_TABLE = """
CREATE TABLE IF NOT EXISTS emitter_positions (
    address             VARCHAR PRIMARY KEY,
    block_number        BIGINT NOT NULL,
    log_index           BIGINT NOT NULL
);
"""

IS_APPLIED_QUERY = """
SELECT 1 FROM applied_logs WHERE tx_hash = ? AND log_index = ? LIMIT 1;
"""

RECORD_APPLIED_QUERY = """
INSERT INTO applied_logs (tx_hash, log_index, block_number, address, event, applied_at)
VALUES (?, ?, ?, ?, ?, ?);
"""

APPLIED_COUNT_QUERY = """
SELECT count(*) FROM applied_logs;
"""

POSITION_QUERY = """
SELECT block_number, log_index FROM emitter_positions WHERE address = ?;
"""

INSERT_POSITION_QUERY = """
INSERT INTO emitter_positions (address, block_number, log_index) VALUES (?, ?, ?);
"""

UPDATE_POSITION_QUERY = """
UPDATE emitter_positions SET block_number = ?, log_index = ? WHERE address = ?;
"""
