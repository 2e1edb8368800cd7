"""Database schema definitions for the skis issue tracker.

The schema is expressed as per-version statement lists consumed by the
migration runner.  Statements are executed one at a time so the runner's
single transaction covers every DDL change (``executescript`` would commit).
"""

from __future__ import annotations

SCHEMA_V1_STATEMENTS: tuple[str, ...] = (
    """\
CREATE TABLE IF NOT EXISTS issues (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT NOT NULL,
    body         TEXT,
    type         TEXT NOT NULL DEFAULT 'task',
    state        TEXT NOT NULL DEFAULT 'open',
    state_reason TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    closed_at    TEXT,
    deleted_at   TEXT,

    CHECK (length(trim(title)) > 0),
    CHECK (type IN ('epic', 'task', 'bug', 'request')),
    CHECK (state IN ('open', 'closed')),
    CHECK (state_reason IS NULL OR state_reason IN ('completed', 'not_planned')),
    CHECK (
        (state = 'open' AND state_reason IS NULL AND closed_at IS NULL)
        OR (state = 'closed' AND state_reason IS NOT NULL AND closed_at IS NOT NULL)
    )
)""",
    "CREATE INDEX IF NOT EXISTS idx_issues_type ON issues(type)",
    "CREATE INDEX IF NOT EXISTS idx_issues_state ON issues(state)",
    "CREATE INDEX IF NOT EXISTS idx_issues_deleted ON issues(deleted_at)",
    "CREATE INDEX IF NOT EXISTS idx_issues_created ON issues(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_issues_updated ON issues(updated_at)",
    """\
CREATE TABLE IF NOT EXISTS labels (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL COLLATE NOCASE,
    description TEXT,
    color       TEXT NOT NULL,

    CHECK (length(trim(name)) > 0),
    CHECK (length(color) = 6 AND color NOT GLOB '*[^0-9a-f]*')
)""",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_labels_name ON labels(name COLLATE NOCASE)",
    """\
CREATE TABLE IF NOT EXISTS issue_labels (
    issue_id INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    label_id INTEGER NOT NULL REFERENCES labels(id) ON DELETE CASCADE,
    PRIMARY KEY (issue_id, label_id)
)""",
    "CREATE INDEX IF NOT EXISTS idx_issue_labels_label ON issue_labels(label_id)",
    """\
CREATE TABLE IF NOT EXISTS comments (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    issue_id   INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    body       TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)""",
    "CREATE INDEX IF NOT EXISTS idx_comments_issue ON comments(issue_id, created_at)",
    """\
CREATE TABLE IF NOT EXISTS issue_links (
    issue_a_id INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    issue_b_id INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    PRIMARY KEY (issue_a_id, issue_b_id),
    CHECK (issue_a_id < issue_b_id)
)""",
    "CREATE INDEX IF NOT EXISTS idx_issue_links_a ON issue_links(issue_a_id)",
    "CREATE INDEX IF NOT EXISTS idx_issue_links_b ON issue_links(issue_b_id)",
    # FTS5 full-text search with sync triggers
    """\
CREATE VIRTUAL TABLE IF NOT EXISTS issues_fts USING fts5(
    title, body, content='issues', content_rowid='id'
)""",
    """\
CREATE TRIGGER IF NOT EXISTS issues_fts_insert AFTER INSERT ON issues BEGIN
    INSERT INTO issues_fts(rowid, title, body) VALUES (new.id, new.title, new.body);
END""",
    """\
CREATE TRIGGER IF NOT EXISTS issues_fts_update AFTER UPDATE OF title, body ON issues BEGIN
    INSERT INTO issues_fts(issues_fts, rowid, title, body)
        VALUES('delete', old.id, old.title, old.body);
    INSERT INTO issues_fts(rowid, title, body) VALUES (new.id, new.title, new.body);
END""",
    """\
CREATE TRIGGER IF NOT EXISTS issues_fts_delete AFTER DELETE ON issues BEGIN
    INSERT INTO issues_fts(issues_fts, rowid, title, body)
        VALUES('delete', old.id, old.title, old.body);
END""",
)

SCHEMA_TABLES = frozenset({"issues", "labels", "issue_labels", "comments", "issue_links", "issues_fts"})

CURRENT_SCHEMA_VERSION = 1
