#!/usr/bin/env python3
"""
CLI tool for interacting with the catalog service.

Usage:
    catalog-cli list
    catalog-cli genre SciFi
    catalog-cli create "Dune" SciFi 2021
    catalog-cli upload dune.mp4 ./dune.mp4
    catalog-cli link dune.mp4 m1
    catalog-cli state dune.mp4
    catalog-cli serve --config config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import httpx
from colorama import Fore, Style, init as colorama_init

colorama_init()


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def print_json(data: Any, indent: int = 2) -> None:
    print(json.dumps(data, indent=indent, default=str))


def print_item(item: dict) -> None:
    asset = item.get("asset_ref")
    asset_text = colorize(asset, Fore.GREEN) if asset else colorize("(no file)", Style.DIM)
    print(
        f"  {colorize(item['id'], Fore.YELLOW)}  {item['title']} "
        f"{colorize('[' + item['genre'] + ']', Fore.MAGENTA)} {item['year']}  {asset_text}"
    )


def print_items(data: dict) -> None:
    items = data.get("items", [])
    print(colorize(f"\nItems ({data.get('count', len(items))}):", Style.BRIGHT))
    for item in items:
        print_item(item)
    if not items:
        print(colorize("  (none)", Style.DIM))


def print_link(data: dict) -> None:
    state_colors = {
        "linked": Fore.GREEN,
        "file_pending": Fore.CYAN,
        "record_pending": Fore.YELLOW,
        "unlinked": Style.DIM,
    }
    state = data.get("state", "unknown")
    print(colorize("\nAsset:", Style.BRIGHT), data.get("key"))
    print(colorize("State:", Style.BRIGHT), colorize(state, state_colors.get(state, "")))
    if data.get("record_id"):
        print(colorize("Record:", Style.BRIGHT), data["record_id"])
    if data.get("dropped"):
        print(colorize("Dropped:", Fore.RED), data.get("reason"))


async def _call(args, method: str, path: str, **kwargs) -> dict | None:
    """Send one request; print the error and return None on failure."""
    try:
        async with httpx.AsyncClient(base_url=args.base_url) as client:
            response = await client.request(method, path, headers=_get_headers(args), **kwargs)
    except httpx.HTTPError as e:
        print(colorize(f"Error: cannot reach {args.base_url}", Fore.RED), file=sys.stderr)
        print(str(e), file=sys.stderr)
        return None

    if response.status_code >= 400:
        print(colorize(f"Error: {response.status_code}", Fore.RED), file=sys.stderr)
        print(response.text, file=sys.stderr)
        return None
    return response.json()


async def cmd_list(args):
    """List all items, optionally narrowed."""
    params = {}
    if args.year_from is not None:
        params["year_from"] = args.year_from
    if args.year_to is not None:
        params["year_to"] = args.year_to
    if args.title:
        params["title"] = args.title

    data = await _call(args, "GET", "/catalog", params=params)
    if data is None:
        return 1
    print_items(data)
    return 0


async def cmd_genre(args):
    data = await _call(args, "GET", f"/catalog/{args.genre}")
    if data is None:
        return 1
    print_items(data)
    return 0


async def cmd_get(args):
    data = await _call(args, "GET", f"/catalog/items/{args.id}")
    if data is None:
        return 1
    print_json(data)
    return 0


async def cmd_create(args):
    body: dict[str, Any] = {"title": args.title, "genre": args.genre, "year": args.year}
    if args.id:
        body["id"] = args.id
    if args.asset:
        body["asset_key"] = args.asset

    data = await _call(args, "POST", "/catalog", json=body)
    if data is None:
        return 1
    print(colorize("\nCreated:", Style.BRIGHT))
    print_item(data)
    if data.get("link_state"):
        print(colorize("Link state:", Style.BRIGHT), data["link_state"])
    return 0


async def cmd_delete(args):
    data = await _call(args, "DELETE", f"/catalog/items/{args.id}")
    if data is None:
        return 1
    print(colorize("\nDeleted:", Style.BRIGHT))
    print_item(data)
    return 0


async def cmd_upload(args):
    """Upload a local file under an asset key."""
    content = Path(args.file).read_bytes()
    data = await _call(args, "POST", f"/assets/{args.key}", content=content)
    if data is None:
        return 1
    print_link(data)
    return 0


async def cmd_link(args):
    data = await _call(args, "POST", f"/assets/{args.key}/link/{args.id}")
    if data is None:
        return 1
    print_link(data)
    return 0


async def cmd_state(args):
    data = await _call(args, "GET", f"/assets/{args.key}")
    if data is None:
        return 1
    print_link(data)
    return 0


def _get_headers(args) -> dict:
    """Build request headers."""
    headers = {}
    if args.api_key:
        headers["X-API-Key"] = args.api_key
    return headers


COMMANDS = {
    "list": cmd_list,
    "genre": cmd_genre,
    "get": cmd_get,
    "create": cmd_create,
    "delete": cmd_delete,
    "upload": cmd_upload,
    "link": cmd_link,
    "state": cmd_state,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CLI tool for the Movie Catalog Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8060",
        help="Base URL of the catalog service",
    )
    parser.add_argument(
        "--api-key",
        help="Key sent in X-API-Key for write commands",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("list", help="List catalog items")
    list_parser.add_argument("--year-from", type=int)
    list_parser.add_argument("--year-to", type=int)
    list_parser.add_argument("--title", help="Title substring")

    genre_parser = subparsers.add_parser("genre", help="List items in a genre")
    genre_parser.add_argument("genre")

    get_parser = subparsers.add_parser("get", help="Show one item")
    get_parser.add_argument("id")

    create_parser = subparsers.add_parser("create", help="Create an item")
    create_parser.add_argument("title")
    create_parser.add_argument("genre")
    create_parser.add_argument("year", type=int)
    create_parser.add_argument("--id", help="Explicit id (default: assigned)")
    create_parser.add_argument("--asset", help="Asset key to link once stored")

    delete_parser = subparsers.add_parser("delete", help="Delete an item")
    delete_parser.add_argument("id")

    upload_parser = subparsers.add_parser("upload", help="Upload a file as an asset")
    upload_parser.add_argument("key", help="Asset key")
    upload_parser.add_argument("file", help="Local file to upload")

    link_parser = subparsers.add_parser("link", help="Link an asset to an item")
    link_parser.add_argument("key")
    link_parser.add_argument("id")

    state_parser = subparsers.add_parser("state", help="Show an asset's link state")
    state_parser.add_argument("key")

    serve_parser = subparsers.add_parser("serve", help="Run the catalog service")
    serve_parser.add_argument("--config", help="YAML/JSON config file")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "serve":
        from .main import run
        run(args.config)
        return 0

    return asyncio.run(COMMANDS[args.command](args))


if __name__ == "__main__":
    sys.exit(main() or 0)
