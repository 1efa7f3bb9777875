"""
Command-line interface for Torrent Remote.

Runs searches on a qBittorrent daemon and lists its search plugins.

Usage:
    torrent-remote search <query> [--category movies] [--timeout 30]
    torrent-remote plugins
    torrent-remote categories
"""

import argparse
import asyncio
import sys
from typing import List

from .client import RemoteClient
from .config import Config
from .errors import JobTimedOut, SearchError
from .logger import logger
from .models import SearchResultRecord


def format_bytes(size):
    """Format bytes as human-readable string."""
    if size is None:
        return "N/A"
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} PB"


def print_results(records: List[SearchResultRecord]):
    if not records:
        print("No results found.")
        return

    print(f"{'SEEDS':<7} {'PEERS':<7} {'SIZE':<12} {'TITLE'}")
    print("-" * 80)
    for r in records:
        print(f"{r.seeder_count:<7} {r.leecher_count:<7} {format_bytes(r.size_bytes):<12} {r.title[:60]}")
        if r.description_uri:
            print(f"{'':<28} {r.description_uri}")


async def run(args) -> int:
    async with RemoteClient(args.url, args.username, args.password) as client:
        try:
            if args.command == "search":
                try:
                    records = await client.search(args.query, args.category, timeout=args.timeout)
                except JobTimedOut as e:
                    print_results(e.records)
                    print(f"\nSearch timed out, showing {len(e.records)} partial results.")
                    return 0

                print_results(records)
                if records and args.links:
                    print()
                    for r in records:
                        print(r.download_uri)

            elif args.command == "plugins":
                plugins = await client.list_plugins()
                if not plugins:
                    print("No search plugins installed.")
                else:
                    print(f"{'NAME':<20} {'VERSION':<10} {'ENABLED':<8} {'CATEGORIES'}")
                    print("-" * 80)
                    for p in plugins:
                        enabled = "Yes" if p.enabled else "No"
                        categories = ", ".join(sorted(p.supported_categories))
                        print(f"{p.display_name[:20]:<20} {p.version[:10]:<10} {enabled:<8} {categories}")

            elif args.command == "categories":
                for category in await client.categories():
                    print(category)

        except (SearchError, ValueError) as e:
            logger.error(f"{args.command} failed: {e}")
            print(f"Error: {e}")
            return 1

    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Torrent Remote CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s search ubuntu
  %(prog)s search "big buck bunny" --category movies --timeout 30
  %(prog)s plugins
"""
    )
    parser.add_argument("--url", default=Config.QBT_URL, help="Daemon Web UI URL")
    parser.add_argument("--username", default=Config.QBT_USERNAME, help="Web UI username")
    parser.add_argument("--password", default=Config.QBT_PASSWORD, help="Web UI password")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    search_parser = subparsers.add_parser("search", help="Search for torrents")
    search_parser.add_argument("query", help="Search pattern")
    search_parser.add_argument("--category", default="all",
                               help=f"Category to search, e.g. {', '.join(Config.SEARCH_CATEGORIES)} (default: all)")
    search_parser.add_argument("--timeout", type=float, default=None,
                               help="Give up after this many seconds")
    search_parser.add_argument("--links", action="store_true",
                               help="Print download links after the results")

    subparsers.add_parser("plugins", help="List installed search plugins")
    subparsers.add_parser("categories", help="List searchable categories")
    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        print("Cancelled")
        sys.exit(130)


if __name__ == "__main__":
    main()
