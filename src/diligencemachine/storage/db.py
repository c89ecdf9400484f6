from __future__ import annotations
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

DB_NAME = "diligencemachine.sqlite3"

def db_path(data_dir: Path) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_NAME

def connect(data_dir: Path) -> sqlite3.Connection:
    path = db_path(data_dir)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn

def init_schema(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS wizard_sessions (
            session_id TEXT PRIMARY KEY,
            state_json TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )

    conn.commit()

def read_state(conn: sqlite3.Connection, session_id: str) -> Optional[str]:
    row = conn.execute(
        """
        SELECT state_json FROM wizard_sessions
        WHERE session_id = ?
        """,
        (session_id,),
    ).fetchone()
    return row["state_json"] if row else None

def write_state(conn: sqlite3.Connection, session_id: str, state_json: str) -> None:
    conn.execute(
        """
        INSERT INTO wizard_sessions(session_id, state_json, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(session_id) DO UPDATE SET
            state_json=excluded.state_json,
            updated_at=excluded.updated_at
        """,
        (
            session_id,
            state_json,
            datetime.now(timezone.utc).isoformat(),
        ),
    )
    conn.commit()
