#!/usr/bin/env python3
"""
Command-line smoke test: run one website import and print the result.

Usage:
    python main.py example.com --category Restaurants --city Austin --state TX
"""

import argparse
import asyncio
import json
import sys
import threading
import time

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config  # noqa: E402
from models.vendor import CallerIdentity, CallerProfile  # noqa: E402
from pipeline.core import WebsiteDealPipeline  # noqa: E402
from pipeline.response_mapper import map_error  # noqa: E402


def show_loading_animation(stop_event: threading.Event) -> None:
    """
    Show a loading animation in the console.

    Args:
        stop_event: A threading.Event that will be set to stop the animation
    """
    while not stop_event.is_set():
        for char in '|/-\\':
            if stop_event.is_set():
                break
            sys.stderr.write(f'\r\033[93mAnalyzing website {char}\033[0m')
            sys.stderr.flush()
            time.sleep(0.1)
    sys.stderr.write('\r' + ' ' * 40 + '\r')
    sys.stderr.flush()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate deal suggestions from a business website")
    parser.add_argument("url", help="Website URL (scheme optional)")
    parser.add_argument("--business-name", default=None)
    parser.add_argument("--category", default=None, help="Marketplace category, enables competitor lookup")
    parser.add_argument("--city", default=None)
    parser.add_argument("--state", default=None)
    parser.add_argument("--tier", default="business", help="Subscription tier to check against")
    parser.add_argument("--user-id", default="cli-vendor")
    parser.add_argument("--no-competitors", action="store_true", help="Skip the database competitor lookup")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = Config()
    print(f"Using {config.get_model_info()}", file=sys.stderr)

    pipeline = WebsiteDealPipeline.from_config(config)
    if args.no_competitors:
        pipeline.competitor_builder = None

    identity = CallerIdentity(user_id=args.user_id, role="vendor")
    profile = CallerProfile(
        business_name=args.business_name,
        category=args.category,
        city=args.city,
        state=args.state,
        subscription_tier=args.tier,
    )

    stop_event = threading.Event()
    spinner = threading.Thread(target=show_loading_animation, args=(stop_event,), daemon=True)
    spinner.start()
    try:
        result = asyncio.run(pipeline.run(identity, profile, args.url))
    except Exception as e:
        stop_event.set()
        spinner.join()
        mapped = map_error(e)
        print(json.dumps({"status": mapped.status_code, **mapped.to_dict()}, indent=2))
        return 1

    stop_event.set()
    spinner.join()
    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
