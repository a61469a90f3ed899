#!/usr/bin/env python3
"""
Tripmate auth -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --port 8000 --reload
  python main.py create-account --email ann@example.com --first-name Ann
  python main.py create-account --email ann@example.com --first-name Ann --last-name Lee --phone 555-0100

Environment variables (see core/config.py for the full list):
  SECRET_KEY    Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL  SQLAlchemy URL of the account database.
  PORT          Listening port for `serve` (default 3000).
"""

import argparse
import getpass
import sys

from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _create_account(args: argparse.Namespace) -> int:
    """Register an account directly against the store, bypassing HTTP.

    The password is read from a TTY prompt (or --password-stdin) so it never
    lands in shell history. It is not echoed in any output.
    """
    from auth.errors import AuthError
    from auth.service import Authenticator
    from auth.store import AccountStore

    if args.password_stdin:
        password = sys.stdin.readline().rstrip("\n")
    else:
        password = getpass.getpass("Password: ")

    store = AccountStore(get_settings().database_url)
    try:
        account_id = Authenticator(store).register(
            email=args.email,
            password=password,
            first_name=args.first_name,
            last_name=args.last_name,
            phone=args.phone,
        )
    except AuthError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        store.close()

    print(f"  Account created: {account_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tripmate",
        description="Tripmate authentication service.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 127.0.0.1).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3000).")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development only).")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-account", help="Register an account from the command line.")
    create.add_argument("--email", required=True)
    create.add_argument("--first-name", required=True)
    create.add_argument("--last-name", default=None)
    create.add_argument("--phone", default=None)
    create.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin instead of prompting.",
    )
    create.set_defaults(func=_create_account)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
