"""Lightweight CLI helpers for inspecting and maintaining coaching sessions."""
from __future__ import annotations

import argparse
import json
import sqlite3

from config.settings import settings
from observability.logger import setup_logging


def tail_sessions(limit: int = 20) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT created_at, id, job_position, interview_stage, status, phase,
                   current_question, total_questions, progress, abandoned_at, archived_at
            FROM coaching_sessions
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, position, stage, status, phase, current, total, progress, abandoned, archived = row
            flags = ",".join(name for name, value in (("abandoned", abandoned), ("archived", archived)) if value)
            print(
                f"[{ts}] {session_id} {position}/{stage} -> {status}/{phase} q={current}/{total} "
                f"progress={progress:.0f}% flags={flags or '-'}"
            )
    finally:
        conn.close()


def sweep() -> None:
    from services.lifecycle import SessionLifecycleManager
    from storage.repository import SqliteSessionStore

    result = SessionLifecycleManager(SqliteSessionStore()).sweep_once()
    print(f"abandoned={result.abandoned} archived={result.archived}")


def archive(days: int) -> None:
    from services.lifecycle import SessionLifecycleManager
    from storage.repository import SqliteSessionStore

    count = SessionLifecycleManager(SqliteSessionStore()).archive(days)
    print(f"archived={count}")


def show_providers() -> None:
    from llm_gateway.gateway import default_gateway

    print(json.dumps(default_gateway().health(), indent=2, default=str))


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the latest coaching sessions")
    parser.add_argument("--sweep", action="store_true", help="Run one abandonment and archive sweep")
    parser.add_argument("--archive", type=int, metavar="DAYS", help="Archive sessions completed more than DAYS ago")
    parser.add_argument("--providers", action="store_true", help="Show AI provider circuit state")
    args = parser.parse_args()
    setup_logging()

    if args.sweep:
        sweep()
    if args.archive is not None:
        archive(args.archive)
    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.providers:
        show_providers()


if __name__ == "__main__":
    main()
