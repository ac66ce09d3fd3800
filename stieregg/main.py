"""Main entry point for the Stieregg availability service."""

import asyncio
import sys

import uvicorn

from stieregg.config import get_settings
from stieregg.services.availability_service import create_availability_service
from stieregg.utils.dates import format_date
from stieregg.utils.logger import get_logger, mask_url, setup_logging

logger = get_logger(__name__)


# =============================================================================
# CLI Commands
# =============================================================================


async def cmd_refresh() -> None:
    """Fetch availability for every apartment once and print it."""
    service = create_availability_service()

    try:
        availability = await service.get_availability_map()

        print("\n📅 Booked ranges")
        print("=" * 50)
        for slug, ranges in availability.items():
            if ranges is None:
                print(f"{slug}: ❌ availability unknown")
                continue
            print(f"{slug}: {len(ranges)} booked range(s)")
            for booked in ranges:
                print(f"   {format_date(booked.start)} → {format_date(booked.end)}")
        print("=" * 50 + "\n")

    finally:
        await service.close()


async def cmd_check_feeds() -> None:
    """Fetch every configured feed individually and report the result."""
    service = create_availability_service()
    print("\n🔍 Checking calendar feeds...\n")

    try:
        for apartment in service.catalog:
            if not apartment.calendar_urls:
                print(f"⚠️  {apartment.slug}: no calendar feeds configured")
                continue
            for url in apartment.calendar_urls:
                ranges = await service.feeds.fetch_feed(url)
                print(f"   {apartment.slug} {mask_url(url)}: {len(ranges)} event(s)")

        print("\n✅ Feed check complete!\n")

    finally:
        await service.close()


def cmd_serve() -> None:
    """Run the HTTP API."""
    settings = get_settings()
    logger.info("starting_api", host=settings.app.host, port=settings.app.port)
    uvicorn.run(
        "stieregg.api.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_level=settings.app.log_level.lower(),
    )


def main() -> None:
    """Main entry point."""
    settings = get_settings()
    setup_logging(settings.app.log_level, settings.app.log_format)

    command = sys.argv[1] if len(sys.argv) > 1 else "serve"

    if command == "refresh":
        asyncio.run(cmd_refresh())
    elif command == "check":
        asyncio.run(cmd_check_feeds())
    elif command == "serve":
        cmd_serve()
    else:
        print(f"Unknown command: {command}")
        print("Usage: stieregg [serve|refresh|check]")
        sys.exit(1)


if __name__ == "__main__":
    main()
