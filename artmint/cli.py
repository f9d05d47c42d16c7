#!/usr/bin/env python3
"""
artmint CLI

Command-line interface for a single collection:
  artmint init <name> <symbol> --admin <user> [--sign]
  artmint identity create <user> | identity list
  artmint create --as <user> --to <user> <pointer>
  artmint create-batch --as <user> --to <user> <pointer>...
  artmint destroy --as <user> <id>
  artmint destroy-batch --as <user> <id>...
  artmint transfer --as <user> <id> <to>
  artmint approve --as <user> <id> [<operator> | --clear]
  artmint approve-all --as <user> <operator> [--revoke]
  artmint owner <id> | content <id> | items [<user>] | supply
  artmint events [--item <id>] [--identity <user>] [--verify]

Usernames known to the identity store resolve to their identity string;
anything else is used verbatim.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .collection import Collection
from .config import CollectionConfig
from .errors import RegistryError
from .identity import IdentityStore
from .signatures import verify_notification_origin


def _identities(config: CollectionConfig) -> IdentityStore:
    return IdentityStore(config.identities_path)


def _open_collection(config: CollectionConfig) -> Collection:
    """Open the configured collection, with its signer if one is set."""
    if not (config.store_path / "collection.json").exists():
        raise ValueError(f"No collection at {config.store_path}; run 'artmint init' first")

    signer = None
    if config.signer:
        signer = _identities(config).get(config.signer)
        if signer is None:
            raise ValueError(f"Signer identity {config.signer} not found")
    return Collection(config.store_path, signer=signer)


def cmd_init(args, config: CollectionConfig):
    """Create a new collection."""
    if (config.store_path / "collection.json").exists():
        raise ValueError(f"Collection already initialized at {config.store_path}")

    identities = _identities(config)
    signer = None
    if args.sign:
        signer = identities.get(args.admin) or identities.create(args.admin)
        admin = signer.id
        config.signer = args.admin
    else:
        admin = identities.resolve(args.admin)

    config.name = args.name
    config.symbol = args.symbol
    collection = Collection(
        config.store_path,
        admin=admin,
        name=args.name,
        symbol=args.symbol,
        signer=signer,
    )
    config_path = config.save()

    print(f"Collection: {collection.name} ({collection.symbol})")
    print(f"Admin: {collection.admin}")
    print(f"Store: {collection.store_dir}")
    print(f"Config saved to: {config_path}")


def cmd_identity(args, config: CollectionConfig):
    """Manage signing identities."""
    identities = _identities(config)
    if args.identity_command == "create":
        identity = identities.create(args.username, args.display_name)
        print(f"Created {identity.id}")
        print(f"Key: {identity.key_id}")
    else:
        for identity in identities.list():
            print(f"{identity.username}\t{identity.id}")


def cmd_create(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    item_id = collection.create(
        identities.resolve(args.caller),
        identities.resolve(args.to),
        args.pointer,
    )
    print(item_id)


def cmd_create_batch(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    item_ids = collection.create_batch(
        identities.resolve(args.caller),
        identities.resolve(args.to),
        args.pointers,
    )
    for item_id in item_ids:
        print(item_id)


def cmd_destroy(args, config: CollectionConfig):
    collection = _open_collection(config)
    collection.destroy(_identities(config).resolve(args.caller), args.item_id)
    print(f"Destroyed {args.item_id}")


def cmd_destroy_batch(args, config: CollectionConfig):
    collection = _open_collection(config)
    collection.destroy_batch(_identities(config).resolve(args.caller), args.item_ids)
    print(f"Destroyed {len(args.item_ids)} items")


def cmd_transfer(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    destination = identities.resolve(args.to)
    collection.transfer(identities.resolve(args.caller), args.item_id, destination)
    print(f"Transferred {args.item_id} to {destination}")


def cmd_approve(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    if args.clear:
        operator = None
    elif args.operator:
        operator = identities.resolve(args.operator)
    else:
        raise ValueError("Give an operator or --clear")
    collection.approve(identities.resolve(args.caller), args.item_id, operator)
    print(f"Approved {operator} for {args.item_id}" if operator else f"Cleared approval for {args.item_id}")


def cmd_approve_all(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    operator = identities.resolve(args.operator)
    collection.set_approval_for_all(identities.resolve(args.caller), operator, not args.revoke)
    print(f"{'Revoked' if args.revoke else 'Approved'} operator {operator}")


def cmd_owner(args, config: CollectionConfig):
    print(_open_collection(config).owner_of(args.item_id))


def cmd_content(args, config: CollectionConfig):
    print(_open_collection(config).content_pointer_of(args.item_id))


def cmd_items(args, config: CollectionConfig):
    collection = _open_collection(config)
    if args.identity:
        item_ids = sorted(collection.items_owned_by(_identities(config).resolve(args.identity)))
    else:
        item_ids = collection.all_items()
    for item_id in item_ids:
        print(item_id)


def cmd_supply(args, config: CollectionConfig):
    print(_open_collection(config).total_live_count())


def _verification_status(event, identities: IdentityStore) -> str:
    if not event.signature:
        return "unsigned"
    signer = identities.find_by_key_id(event.signature.get("creator", ""))
    if signer is None:
        return "unverified"
    return "ok" if verify_notification_origin(event, signer) else "BAD"


def cmd_events(args, config: CollectionConfig):
    collection = _open_collection(config)
    identities = _identities(config)
    if args.item is not None:
        events = collection.events.find_by_item(args.item)
    elif args.identity:
        events = collection.events.find_by_identity(identities.resolve(args.identity))
    else:
        events = collection.events.list()

    for event in events:
        line = f"{event.published} {event.event_type:<14} {json.dumps(event.payload, sort_keys=True)}"
        if args.verify:
            status = _verification_status(event, identities)
            line = f"{line} [{status}]"
        print(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="artmint",
        description="artmint - minimal NFT registry for art assets",
    )
    parser.add_argument("--home", help="artmint home directory (default: $ARTMINT_HOME or ~/.artmint)")
    parser.add_argument("--log-level", help="Logging level (default: from config)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    init_parser = subparsers.add_parser("init", help="Create a collection")
    init_parser.add_argument("name", help="Collection name")
    init_parser.add_argument("symbol", help="Collection symbol")
    init_parser.add_argument("--admin", required=True, help="Administrator identity")
    init_parser.add_argument("--sign", action="store_true",
                             help="Sign notifications with the administrator's key")

    identity_parser = subparsers.add_parser("identity", help="Manage identities")
    identity_sub = identity_parser.add_subparsers(dest="identity_command", required=True)
    identity_create = identity_sub.add_parser("create", help="Create an identity with a new key pair")
    identity_create.add_argument("username")
    identity_create.add_argument("--display-name", help="Human-readable name")
    identity_sub.add_parser("list", help="List identities")

    create_parser = subparsers.add_parser("create", help="Mint one item")
    create_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    create_parser.add_argument("--to", required=True, help="Destination identity")
    create_parser.add_argument("pointer", help="Content pointer")

    batch_parser = subparsers.add_parser("create-batch", help="Mint one item per pointer")
    batch_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    batch_parser.add_argument("--to", required=True, help="Destination identity")
    batch_parser.add_argument("pointers", nargs="+", help="Content pointers")

    destroy_parser = subparsers.add_parser("destroy", help="Burn an item")
    destroy_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    destroy_parser.add_argument("item_id", type=int)

    destroy_batch_parser = subparsers.add_parser("destroy-batch", help="Burn several items atomically")
    destroy_batch_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    destroy_batch_parser.add_argument("item_ids", type=int, nargs="+")

    transfer_parser = subparsers.add_parser("transfer", help="Transfer an item")
    transfer_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    transfer_parser.add_argument("item_id", type=int)
    transfer_parser.add_argument("to", help="Destination identity")

    approve_parser = subparsers.add_parser("approve", help="Approve an operator for one item")
    approve_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    approve_parser.add_argument("item_id", type=int)
    approve_parser.add_argument("operator", nargs="?", help="Operator identity")
    approve_parser.add_argument("--clear", action="store_true", help="Clear the approval")

    approve_all_parser = subparsers.add_parser("approve-all", help="Approve an operator for all your items")
    approve_all_parser.add_argument("--as", dest="caller", required=True, help="Calling identity")
    approve_all_parser.add_argument("operator", help="Operator identity")
    approve_all_parser.add_argument("--revoke", action="store_true", help="Revoke instead of grant")

    owner_parser = subparsers.add_parser("owner", help="Show the owner of an item")
    owner_parser.add_argument("item_id", type=int)

    content_parser = subparsers.add_parser("content", help="Show the content pointer of an item")
    content_parser.add_argument("item_id", type=int)

    items_parser = subparsers.add_parser("items", help="List live items")
    items_parser.add_argument("identity", nargs="?", help="Only items owned by this identity")

    subparsers.add_parser("supply", help="Count live items")

    events_parser = subparsers.add_parser("events", help="Show the notification log")
    events_parser.add_argument("--item", type=int, help="Only events for this item")
    events_parser.add_argument("--identity", help="Only events naming this identity")
    events_parser.add_argument("--verify", action="store_true", help="Check signatures")

    return parser


COMMANDS = {
    "init": cmd_init,
    "identity": cmd_identity,
    "create": cmd_create,
    "create-batch": cmd_create_batch,
    "destroy": cmd_destroy,
    "destroy-batch": cmd_destroy_batch,
    "transfer": cmd_transfer,
    "approve": cmd_approve,
    "approve-all": cmd_approve_all,
    "owner": cmd_owner,
    "content": cmd_content,
    "items": cmd_items,
    "supply": cmd_supply,
    "events": cmd_events,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    config = CollectionConfig.load(Path(args.home) if args.home else None)
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        command(args, config)
    except (RegistryError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
