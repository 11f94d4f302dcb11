#!/usr/bin/env python3
"""
User Admin -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8787
  python main.py serve --reload
  python main.py create-admin --email admin@example.com --password 's3cret!'
  python main.py create-admin --email admin@example.com --password 's3cret!' --name Admin

Environment variables (see core/config.py for the full list):
  SECRET_KEY        Signs session tokens. Required unless DEBUG=true.
  ADMIN_SECRET_KEY  Secret that POST /api/auth/register must present.
  DATABASE_URL      SQLAlchemy URL. Defaults to a SQLite file in the project root.
"""

import argparse
import logging
import sys

from core.config import get_settings
from core.errors import EmailExists

logger = logging.getLogger("useradmin.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_admin(args: argparse.Namespace) -> int:
    """Create an active admin directly in the store.

    For first-run bootstrap when ADMIN_SECRET_KEY is deliberately left unset.
    The store is opened and closed here, the same way the API lifespan does.
    """
    from auth.service import AuthService
    from auth.store import UserStore

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        service = AuthService(store, admin_secret_key=None, bcrypt_rounds=settings.bcrypt_rounds)
        try:
            user = service.create_user(
                args.email.strip().lower(),
                args.password,
                name=args.name,
                role="admin",
                is_active=True,
            )
        except EmailExists:
            print(f"  [!] A user with email '{args.email}' already exists.")
            return 1
        logger.info("Admin bootstrapped from CLI: user_id=%s", user.id)
        print(f"  Admin created: id={user.id} email={user.email}")
        return 0
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="useradmin",
        description="Users CRUD API with admin-gated registration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP server (uvicorn)")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8787, help="Port (default: 8787)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_serve)

    create_admin = sub.add_parser("create-admin", help="Create an active admin account")
    create_admin.add_argument("--email", required=True, help="Login email")
    create_admin.add_argument("--password", required=True, help="Password (6 characters to 72 bytes)")
    create_admin.add_argument("--name", default=None, help="Display name")
    create_admin.set_defaults(func=_create_admin)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    if args.command == "create-admin" and len(args.password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 2
    if args.command == "create-admin" and len(args.password.encode("utf-8")) > 72:
        print("  [!] Password must be at most 72 bytes.")
        return 2

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
