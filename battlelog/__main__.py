"""Battlelog snapshots - CLI entry point."""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from battlelog.errors import NO_DATA, exit_with_message
from battlelog.service import ReturnType, SnapshotService
from config.settings import get_settings


def main(argv=None):
    parser = argparse.ArgumentParser(description="Battlelog server and player snapshots")
    parser.add_argument("url", help="Battlelog server page URL")
    parser.add_argument("--players", action="store_true", help="Fetch the player snapshot instead of server info")
    parser.add_argument("--json", action="store_true", help="Print the raw upstream JSON")
    parser.add_argument("--cache-dir", help="Cache directory (default from settings)")
    parser.add_argument("--no-cache", action="store_true", help="Always fetch, never write the cache")
    parser.add_argument("--user-agent", help="User-Agent sent upstream")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log cache activity")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    service = SnapshotService(args.url, settings=get_settings(), error_handler=exit_with_message)
    if args.cache_dir:
        service.set_cache_dir(args.cache_dir)
    if args.user_agent:
        service.set_user_agent(args.user_agent)
    if args.no_cache:
        service.use_cache(False)

    return_type = ReturnType.JSON if args.json else ReturnType.ARRAY
    if args.players:
        data = service.get_player_data(return_type)
    else:
        data = service.get_server_data(return_type)

    if data is NO_DATA:
        print("No data.")
        sys.exit(2)

    if return_type is ReturnType.JSON:
        print(data)
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
