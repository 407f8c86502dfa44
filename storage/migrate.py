"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS coaching_sessions (
  id TEXT PRIMARY KEY,
  job_position TEXT NOT NULL,
  interview_stage TEXT NOT NULL,
  experience_level TEXT NOT NULL,
  language TEXT NOT NULL DEFAULT 'en',
  company_name TEXT,
  industry TEXT,
  status TEXT NOT NULL DEFAULT 'not_started',
  phase TEXT NOT NULL DEFAULT 'not_started',
  resume_phase TEXT,
  current_question INTEGER NOT NULL DEFAULT 0,
  total_questions INTEGER NOT NULL,
  progress REAL NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  started_at TEXT,
  last_activity TEXT,
  completed_at TEXT,
  abandoned_at TEXT,
  archived_at TEXT
);
""",
    """
CREATE TABLE IF NOT EXISTS coaching_questions (
  id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL REFERENCES coaching_sessions(id) ON DELETE CASCADE,
  sequence INTEGER NOT NULL,
  text TEXT NOT NULL,
  translated_text TEXT,
  category TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  created_at TEXT NOT NULL,
  UNIQUE (session_id, sequence)
);
""",
    """
CREATE TABLE IF NOT EXISTS coaching_responses (
  id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL REFERENCES coaching_sessions(id) ON DELETE CASCADE,
  question_id TEXT NOT NULL REFERENCES coaching_questions(id) ON DELETE CASCADE,
  text TEXT NOT NULL,
  language TEXT NOT NULL,
  input_method TEXT NOT NULL,
  word_count INTEGER NOT NULL,
  star_scores TEXT,
  overall_score REAL,
  model_answer TEXT,
  evaluated_by TEXT,
  evaluation_seconds REAL,
  created_at TEXT NOT NULL,
  evaluated_at TEXT
);
""",
    """
CREATE TABLE IF NOT EXISTS coaching_turns (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL REFERENCES coaching_sessions(id) ON DELETE CASCADE,
  role TEXT NOT NULL,
  kind TEXT NOT NULL,
  question_number INTEGER NOT NULL DEFAULT 0,
  content TEXT NOT NULL,
  metadata TEXT,
  created_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_turns_session ON coaching_turns(session_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_activity ON coaching_sessions(status, last_activity);",
]


def migrate(db_path: str = "data/coaching.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
