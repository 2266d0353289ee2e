#!/usr/bin/env python3
"""
Container entrypoint: migrate + seed, then hand the process over to gunicorn.

Environment:
  PORT             listen port (default 8080)
  WEB_CONCURRENCY  gunicorn workers (default 2)
  SKIP_RELEASE     "true" to start without running migrations

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.teamforms.utils import parse_bool, parse_positive_int  # noqa: E402


def _port() -> int:
    raw = (os.environ.get("PORT") or "8080").strip()
    try:
        port = int(raw)
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        print(f"ERROR: PORT must be an integer 1-65535 (got {raw!r}).", flush=True)
        sys.exit(1)
    return port


def gunicorn_argv(port: int, workers: int) -> list[str]:
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", str(workers),
        "--timeout", "60",
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    port = _port()
    workers = parse_positive_int(os.environ.get("WEB_CONCURRENCY"), 2)

    if not parse_bool(os.environ.get("SKIP_RELEASE") or ""):
        from scripts.release import run_release

        try:
            run_release()
        except Exception as e:
            print(f"Release failed: {e}", flush=True)
            sys.exit(1)

    print(f"=== gunicorn app.wsgi:app on :{port} ({workers} workers) ===", flush=True)
    # exec: gunicorn becomes PID 1 and gets signals directly
    os.execvp("gunicorn", gunicorn_argv(port, workers))


if __name__ == "__main__":
    main()
