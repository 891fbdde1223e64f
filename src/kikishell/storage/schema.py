"""Database schema for the persistent index."""

SCHEMA = """
-- Documents table: one row per indexed path
CREATE TABLE IF NOT EXISTS documents (
    path TEXT PRIMARY KEY,
    key TEXT NOT NULL,
    text TEXT NOT NULL,
    fingerprint TEXT NOT NULL,
    position INTEGER NOT NULL,
    indexed_at TEXT NOT NULL
);

-- Metadata table: stores index metadata
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);

CREATE INDEX IF NOT EXISTS idx_documents_position ON documents(position);
"""
