"""Command-line interface for the Sennight dating backend."""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from sennight.config import Settings, load_settings
from sennight.profiles import ProfileRegistry
from sennight.store import CollectionStore

logger = logging.getLogger("sennight.main")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (default: SENNIGHT_CONFIG or config/sennight.yaml)",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding users.json, matches.json and messages.json",
    )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sennight dating backend utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    _add_common_options(serve_parser)
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument("--port", type=int, default=None, help="Port for the API (default: 3000)")

    init_parser = subparsers.add_parser("init-data", help="Create the data directory and empty collections")
    _add_common_options(init_parser)

    users_parser = subparsers.add_parser("users", help="List registered users")
    _add_common_options(users_parser)

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-data", "users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config).expanduser() if args.config else None
    settings = load_settings(config_path)
    if args.data_dir:
        settings = replace(settings, data_dir=Path(args.data_dir).expanduser().resolve(strict=False))
    return settings


def _initialise_store(settings: Settings) -> CollectionStore:
    store = CollectionStore(settings.data_dir)
    store.initialize()
    logger.info("Collections initialised in %s", settings.data_dir)
    return store


def _serve(settings: Settings) -> None:
    from sennight.api import create_app
    import uvicorn

    logger.info("Starting Sennight API on http://%s:%s", settings.host, settings.port)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


def _list_users(store: CollectionStore) -> None:
    users = ProfileRegistry(store).list_users()
    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':<22}  {'Name':<24}  {'Email':<32}  Created")
    print("-" * 100)
    for user in users:
        print(f"{user.id:<22}  {user.name:<24}  {user.email:<32}  {user.created_at}")


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = _parse_args(argv)
    settings = _load_settings(args)

    if args.command == "init-data":
        _initialise_store(settings)
        return 0

    if args.command == "users":
        _list_users(CollectionStore(settings.data_dir))
        return 0

    if args.host:
        settings = replace(settings, host=args.host)
    if args.port:
        settings = replace(settings, port=args.port)
    _serve(settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
