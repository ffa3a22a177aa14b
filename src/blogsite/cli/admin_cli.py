"""
Command-line interface for identity and admin management.

Accounts of the identity provider are created out-of-band with this tool; the blog has
no sign-up page. It talks to MongoDB directly using the same settings as the server.

```bash
blogsite-admin create-user --email ada@example.com --display-name Ada --admin
blogsite-admin list-admins
blogsite-admin set-admin --email bob@example.com --revoke
```
"""

import argparse
import asyncio
import getpass
import sys
from typing import Optional

from blogsite.database import db_manager
from blogsite.errors import ValidationFailure
from blogsite.managers.admin_manager import AdminManager, admin_manager
from blogsite.managers.identity_manager import IdentityManager, identity_manager
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import Identity

logger = get_logger(prefix="[AdminCLI]")


class AdminCLI:
    """CLI operations over the `users` and `admins` collections."""

    def __init__(self, identities: IdentityManager = identity_manager, admins: AdminManager = admin_manager):
        self.identities = identities
        self.admins = admins

    async def create_user(self, email: str, password: str, display_name: Optional[str], make_admin: bool) -> bool:
        try:
            account = await self.identities.create_account(email, password, display_name)
        except ValidationFailure as e:
            logger.error("Could not create account: %s", e.message)
            return False

        logger.info("Created account %s (%s)", account.email, account.uid)
        if make_admin:
            await self.admins.set_admin(Identity(uid=account.uid, email=account.email), True)
            logger.info("Granted admin access to %s", account.email)
        return True

    async def list_admins(self) -> bool:
        admins = await self.admins.list_admins()
        logger.info("Admin records (%d):", len(admins))
        for admin in admins:
            logger.info("  - %s %s is_admin=%s", admin.uid, admin.email, admin.is_admin)
        return True

    async def set_admin(self, email: str, is_admin: bool) -> bool:
        account = await self.identities.find_account(email)
        if account is None:
            logger.error("No account with email %s", email)
            return False
        await self.admins.set_admin(Identity(uid=account.uid, email=account.email), is_admin)
        logger.info("%s admin access for %s", "Granted" if is_admin else "Revoked", account.email)
        return True


async def run_command(args: argparse.Namespace, cli: Optional[AdminCLI] = None) -> bool:
    cli = cli or AdminCLI()
    await db_manager.connect()
    try:
        if args.command == "create-user":
            password = args.password or getpass.getpass("Password: ")
            return await cli.create_user(args.email, password, args.display_name, args.admin)
        if args.command == "list-admins":
            return await cli.list_admins()
        if args.command == "set-admin":
            return await cli.set_admin(args.email, not args.revoke)
        return False
    finally:
        await db_manager.disconnect()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Blogsite identity and admin management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_parser = subparsers.add_parser("create-user", help="Create an email/password account")
    create_parser.add_argument("--email", required=True, help="Account email")
    create_parser.add_argument("--password", help="Account password (prompted when omitted)")
    create_parser.add_argument("--display-name", help="Display name")
    create_parser.add_argument("--admin", action="store_true", help="Also grant admin access")

    subparsers.add_parser("list-admins", help="List admin records")

    set_parser = subparsers.add_parser("set-admin", help="Grant or revoke admin access")
    set_parser.add_argument("--email", required=True, help="Account email")
    set_parser.add_argument("--revoke", action="store_true", help="Revoke instead of grant")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    success = asyncio.run(run_command(args))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
