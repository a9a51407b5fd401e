#!/usr/bin/env python3
"""
ResortGate -- resort directory and location pings behind token authentication.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py promote alice01
  python main.py promote alice01 --role user

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Required. HS256 signing key, at least 32 characters.
  DATABASE_URL   SQLAlchemy URL. Defaults to sqlite:///resortgate.db.
"""

import argparse
import sys
from typing import Optional

from auth.models import Role
from auth.store import UserStore
from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run("api.main:app", host=args.host, port=args.port or settings.port, reload=args.reload)
    return 0


def _promote(args: argparse.Namespace) -> int:
    """Set a registered user's role. Registration only ever creates "user"."""
    store = UserStore(get_settings().database_url)
    try:
        if not store.set_role(args.username, Role(args.role)):
            print(f"  [!] No user named '{args.username}'.")
            return 1
    finally:
        store.close()
    print(f"  {args.username} is now {args.role}.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="resortgate", description="ResortGate API server and admin tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=0, help="Defaults to PORT (3001).")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development).")
    serve.set_defaults(func=_serve)

    promote = sub.add_parser("promote", help="Change a user's role.")
    promote.add_argument("username")
    promote.add_argument("--role", choices=[r.value for r in Role], default=Role.admin.value)
    promote.set_defaults(func=_promote)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
