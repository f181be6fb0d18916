# cli/cli.py
"""
CLI registry and dispatcher for leaddesk operator commands.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Callable, Dict, Optional

from leaddesk.core.config import settings
from leaddesk.core.exceptions import BaseAPIException
from leaddesk.db.session import dispose_engine, session_scope
from leaddesk.services import admin_auth, lead_store


# Output formatting utilities
def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    """Print success message with [✓] symbol."""
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    """Print error message with [✗] symbol."""
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    """Print warning message with [!] symbol."""
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    """Print info message with [i] symbol."""
    print(f"{BLUE}[i]{RESET} {message}")


# Command functions
async def cmd_init_db(args: argparse.Namespace) -> int:
    """Command: Provision the leads table, columns and index."""
    if not settings.resolved_database_url():
        print_error("No database configured (set DATABASE_URL)")
        return 1

    print_info("Provisioning enroll_leads schema...")
    try:
        async with session_scope() as session:
            await lead_store.ensure_schema(session)
    finally:
        await dispose_engine()

    print_success("Schema is up to date")
    return 0


async def cmd_db_status(args: argparse.Namespace) -> int:
    """Command: Show database configuration and lead count."""
    try:
        status = await lead_store.get_database_status()
    finally:
        await dispose_engine()

    if not status.configured:
        print_warning("Database: not configured")
        return 0

    print_success(f"Database: {status.host}")
    print_info(f"  Total leads: {status.total_leads}")
    return 0


async def cmd_issue_token(args: argparse.Namespace) -> int:
    """Command: Mint an admin session token (for scripted access)."""
    if settings.uses_insecure_session_secret():
        print_warning("Signing with the built-in fallback secret; set ADMIN_SESSION_SECRET")

    token = admin_auth.issue_token()
    if args.cookie:
        print(admin_auth.build_session_cookie(token))
    else:
        print(token)
    return 0


async def cmd_verify_token(args: argparse.Namespace) -> int:
    """Command: Check whether a token would be accepted right now."""
    if admin_auth.verify_token(args.token):
        print_success("Token is valid")
        return 0

    print_error("Token is not valid")
    return 1


# Command registry
COMMANDS: Dict[str, Callable] = {
    'init-db': cmd_init_db,
    'db-status': cmd_db_status,
    'issue-token': cmd_issue_token,
    'verify-token': cmd_verify_token,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog='leaddesk-cli',
        description='LeadDesk operator commands',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('init-db', help='Create or upgrade the leads table')
    subparsers.add_parser('db-status', help='Show database host and lead count')

    issue_parser = subparsers.add_parser('issue-token', help='Mint an admin session token')
    issue_parser.add_argument('--cookie', action='store_true', help='Print a full Set-Cookie value')

    verify_parser = subparsers.add_parser('verify-token', help='Verify an admin session token')
    verify_parser.add_argument('token', help='Token to verify')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except BaseAPIException as e:
        print_error(e.message)
        return 1


if __name__ == '__main__':
    sys.exit(main())
