"""
Command line entry point.

    serpsurfer probe URL KEYWORD [--user U] [--country C]
    serpsurfer campaign URL KEYWORD --hits-per-day N --days D [--bots B] [--dwell-ms MS]

``probe`` exits 0 when the target was found and 1 otherwise. ``campaign``
runs the paced generator and the queue worker until the plan is spent.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from serpsurfer.core.config import get_config
from serpsurfer.core.error_logger import get_error_logger
from serpsurfer.core.error_models import ErrorComponent, ErrorStage, ErrorType
from serpsurfer.core.logging import get_logger, setup_logging
from serpsurfer.db.storage import InMemoryTrafficStore, TrafficStore

logger = get_logger(__name__)


def build_store() -> TrafficStore:
    """Supabase when configured, otherwise a process-local store."""
    from serpsurfer.db.supabase_client import SupabaseTrafficStore, is_supabase_enabled

    if is_supabase_enabled():
        return SupabaseTrafficStore()
    logger.warning("Supabase not configured, results are kept in memory only")
    return InMemoryTrafficStore()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="serpsurfer", description="Search-result rank probe and traffic campaigns.")
    ap.add_argument("--env", default="configs/.env", help="Path to the .env file")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    probe = sub.add_parser("probe", help="Check once whether URL ranks for KEYWORD")
    probe.add_argument("url")
    probe.add_argument("keyword")
    probe.add_argument("--user", default="cli")
    probe.add_argument("--country", default="US")

    campaign = sub.add_parser("campaign", help="Run a paced traffic campaign")
    campaign.add_argument("url")
    campaign.add_argument("keyword")
    campaign.add_argument("--hits-per-day", type=int, required=True)
    campaign.add_argument("--days", type=int, required=True)
    campaign.add_argument("--bots", type=int, default=1, help="Concurrent tabs per hit")
    campaign.add_argument("--dwell-ms", type=int, default=None)
    campaign.add_argument("--user", default="cli")
    campaign.add_argument("--country", default="US")
    return ap


async def _probe(args, store: TrafficStore) -> int:
    from serpsurfer.service import SurferService

    service = SurferService(store=store)
    found = await service.run_search_once(args.url, args.keyword, args.user, args.country)
    record = store.get_traffic_record(args.user, args.keyword, args.url, args.country)
    if found:
        print(f"{args.url} ranks #{record.rank if record else '?'} for '{args.keyword}'")
        return 0
    print(f"{args.url} not found for '{args.keyword}'")
    return 1


async def _campaign(args, store: TrafficStore) -> int:
    from serpsurfer.service import SurferService

    config = get_config()
    if args.dwell_ms is not None:
        config.campaign_dwell_ms = args.dwell_ms

    service = SurferService(store=store, config=config)
    service.generator.bot_count = args.bots
    store.create_traffic_record(args.user, args.keyword, args.url, args.country)

    service.start()
    try:
        await service.generator.generate(
            args.url, args.keyword, args.country, args.user, args.hits_per_day, args.days
        )
        while len(service.queue):
            await asyncio.sleep(config.queue_idle_delay)
    finally:
        await service.stop()

    record = store.get_traffic_record(args.user, args.keyword, args.url, args.country)
    print(f"Campaign finished: {record.hits if record else 0} hit(s), last rank {record.rank if record else None}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config(Path(args.env))
    try:
        setup_logging(level="DEBUG" if args.verbose else config.log_level, log_dir=str(config.log_dir))
    except ValueError as e:
        print(f"serpsurfer: {e}", file=sys.stderr)
        return 2
    if config.supabase_enabled and not (config.supabase_url and config.supabase_service_role_key):
        logger.warning("Supabase credentials missing, falling back to the in-memory store")
        config.supabase_enabled = False
    try:
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        get_error_logger().log_error(
            component=ErrorComponent.CONFIG,
            stage=ErrorStage.VALIDATE_CONFIG,
            error_type=ErrorType.CONFIG_ERROR,
            domain="config",
            message=str(e),
        )
        return 2

    store = build_store()
    if args.command == "probe":
        return asyncio.run(_probe(args, store))
    return asyncio.run(_campaign(args, store))


if __name__ == "__main__":
    sys.exit(main())
