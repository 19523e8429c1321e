"""
Command-line front end.

Usage:
    dualstore backend get|set <remote|local>|clear
    dualstore items list|add|update|delete
    dualstore addresses list|add|update|delete|favorite
    dualstore check
    dualstore sync
    dualstore cep <postal-code>

Results are printed as JSON on stdout. Failures print a one-line message
on stderr and exit with status 1.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from typing import Any

from .config import StoreConfig
from .exceptions import DualStoreError
from .logging_utils import configure_structured_logging
from .postal import normalize_postal_code
from .store import DualStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dualstore",
        description="Items and addresses over a local SQLite store and a remote document API.",
    )
    parser.add_argument("--config", help="Path to a YAML settings file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON log lines on stderr",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    backend = commands.add_parser("backend", help="Show or change the active store")
    backend_actions = backend.add_subparsers(dest="action", required=True)
    backend_actions.add_parser("get", help="Print the active store")
    backend_set = backend_actions.add_parser("set", help="Select the active store")
    backend_set.add_argument("choice", help="remote or local")
    backend_actions.add_parser("clear", help="Forget the choice (defaults to remote)")

    items = commands.add_parser("items", help="Manage items in the active store")
    item_actions = items.add_subparsers(dest="action", required=True)
    item_actions.add_parser("list", help="List items, newest first")
    item_add = item_actions.add_parser("add", help="Create an item")
    item_add.add_argument("name")
    item_add.add_argument("--description", default="")
    item_update = item_actions.add_parser("update", help="Replace an item")
    item_update.add_argument("id")
    item_update.add_argument("name")
    item_update.add_argument("--description", default="")
    item_delete = item_actions.add_parser("delete", help="Delete an item")
    item_delete.add_argument("id")

    addresses = commands.add_parser("addresses", help="Manage addresses in the active store")
    address_actions = addresses.add_subparsers(dest="action", required=True)
    address_actions.add_parser("list", help="List addresses, newest first")
    for action in ("add", "update"):
        sub = address_actions.add_parser(action, help=f"{action.capitalize()} an address")
        if action == "update":
            sub.add_argument("id")
        sub.add_argument("--cep", required=True, help="Postal code")
        sub.add_argument("--number", required=True)
        sub.add_argument("--street", help="Looked up from the postal code when omitted")
        sub.add_argument("--neighborhood", help="Looked up from the postal code when omitted")
        sub.add_argument("--state")
    address_delete = address_actions.add_parser("delete", help="Delete an address")
    address_delete.add_argument("id")
    address_favorite = address_actions.add_parser("favorite", help="Set the favorite flag")
    address_favorite.add_argument("id")
    address_favorite.add_argument("--off", action="store_true", help="Clear the flag instead")

    commands.add_parser("check", help="Check whether the remote store is reachable")
    commands.add_parser("sync", help="Reconcile the local and the remote store")

    cep = commands.add_parser("cep", help="Look up a postal code")
    cep.add_argument("postal_code")

    return parser


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value):
        return asdict(value)
    if hasattr(value, "value"):
        return value.value
    return value


async def _address_fields(store: DualStore, args: argparse.Namespace) -> dict[str, Any]:
    fields = {
        "postal_code": normalize_postal_code(args.cep),
        "number": args.number,
        "street": args.street,
        "neighborhood": args.neighborhood,
        "state": args.state,
    }
    if not (args.street and args.neighborhood):
        found = await store.lookup_postal_code(args.cep)
        fields["postal_code"] = found.postal_code
        fields["street"] = args.street or found.street
        fields["neighborhood"] = args.neighborhood or found.neighborhood
        fields["state"] = args.state or found.state
    return fields


async def dispatch(store: DualStore, args: argparse.Namespace) -> Any:
    """Run the parsed command against a store and return its result."""
    command, action = args.command, getattr(args, "action", None)

    if command == "backend":
        if action == "get":
            return await store.get_database_choice()
        if action == "set":
            return await store.save_database_choice(args.choice)
        await store.clear_database_choice()
        return {"message": "Backend choice cleared"}

    if command == "items":
        if action == "list":
            return await store.read_items()
        if action == "add":
            return await store.create_item({"name": args.name, "description": args.description})
        if action == "update":
            return await store.update_item(
                args.id, {"name": args.name, "description": args.description}
            )
        return await store.delete_item(args.id)

    if command == "addresses":
        if action == "list":
            return await store.read_addresses()
        if action == "add":
            return await store.create_address(await _address_fields(store, args))
        if action == "update":
            return await store.update_address(args.id, await _address_fields(store, args))
        if action == "favorite":
            return await store.favorite_address(args.id, not args.off)
        return await store.delete_address(args.id)

    if command == "check":
        return {"reachable": await store.check_remote_connection()}

    if command == "sync":
        return await store.sync_databases()

    return await store.lookup_postal_code(args.postal_code)


async def run(argv: list[str] | None = None, store: DualStore | None = None) -> int:
    """Parse arguments, run the command and print its result.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)
    configure_structured_logging(
        level=getattr(logging, args.log_level),
        logger_name="dualstore",
        json_output=args.json_logs,
    )

    owns_store = store is None
    try:
        if store is None:
            store = await DualStore.create(StoreConfig.from_file(args.config))
        result = await dispatch(store, args)
    except DualStoreError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        if owns_store and store is not None:
            await store.close()

    print(json.dumps(_jsonable(result), indent=2, ensure_ascii=False))
    if args.command == "sync" and not result.success:
        return 1
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
