"""CLI interface for rolegraph.

Usage:
    python -m rolegraph import seed.yaml
    python -m rolegraph check alice read invoice
    python -m rolegraph show alice
"""

import argparse
import asyncio
import sys

from rolegraph.core.config import get_settings
from rolegraph.core.exceptions import RBACError
from rolegraph.core.logger import setup_logger
from rolegraph.core.rbac.loader import load_import_file
from rolegraph.rbac import init


async def _import(rbac, args) -> int:
    document = load_import_file(args.file)
    result = await rbac.loader.import_document(document)
    print(f"Permissions: {len(result.permissions)}")
    print(f"Roles: {len(result.roles)}")
    print(f"Users: {len(result.users)}")
    return 0


async def _check(rbac, args) -> int:
    user = await rbac.user.get(args.user)
    for diagnostic in user.diagnostics:
        print(f"Warning: {diagnostic.message}", file=sys.stderr)
    allowed = user.can(args.operation, args.permission)
    print(f"{args.user} {'CAN' if allowed else 'CANNOT'} {args.operation} {args.permission}")
    return 0 if allowed else 1


async def _show(rbac, args) -> int:
    user = await rbac.user.get(args.user)
    print(f"User: {user.user_name}")
    print("Roles:")
    for name in sorted(role.name for role in user.roles):
        print(f"  - {name}")
    print("Permissions:")
    for namespace in sorted(permission.namespace for permission in user.permissions):
        print(f"  - {namespace}")
    for diagnostic in user.diagnostics:
        print(f"Warning: {diagnostic.message}", file=sys.stderr)
    return 0


COMMANDS = {"import": _import, "check": _check, "show": _show}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rolegraph", description="Role-based access control resolution")
    parser.add_argument("--database-url", help="Override ROLEGRAPH_DATABASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    import_cmd = sub.add_parser("import", help="Import permissions, roles and users from a YAML file")
    import_cmd.add_argument("file")

    check_cmd = sub.add_parser("check", help="Check whether a user can perform an operation")
    check_cmd.add_argument("user")
    check_cmd.add_argument("operation")
    check_cmd.add_argument("permission")

    show_cmd = sub.add_parser("show", help="Show a user's effective roles and permissions")
    show_cmd.add_argument("user")
    return parser


async def run(args) -> int:
    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})

    async with init(settings=settings) as rbac:
        await rbac.create_schema()
        return await COMMANDS[args.command](rbac, args)


def main(argv=None):
    """Main entry point for the rolegraph CLI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logger(
        "rolegraph",
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.file_logging,
    )

    try:
        code = asyncio.run(run(args))
    except (RBACError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
