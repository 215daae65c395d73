"""Course teams report and category cascade from the command line.

Lists the team categories of a course with their teams (this also loads the
id mappings for the process) and can delete one category including its teams
and their activity assignments.

Usage example:

    python -m cowork.tools.course_report --course-id 12
    python -m cowork.tools.course_report --course-id 12 --delete-category 48213 --dry-run

Configuration comes from ROBLE_* variables; a local `.env` is loaded unless
running under pytest or COWORK_ENABLE_DOTENV is false.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..records.config import load_cache_config, load_record_store_config
from ..records.errors import CoworkError
from ..wiring import Services, build_services, configure_logging


logger = logging.getLogger("cowork.tools.course_report")


def _should_load_dotenv() -> bool:
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("COWORK_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report course team categories and run category cascades")
    parser.add_argument("--course-id", type=int, required=True)
    parser.add_argument("--delete-category", type=int, default=None, help="Local id of a category to delete")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be deleted without deleting")
    parser.add_argument("--token", default=os.getenv("ROBLE_ACCESS_TOKEN"), help="Bearer token for the record store")
    return parser.parse_args(argv)


async def run_report(services: Services, course_id: int, delete_category: Optional[int], dry_run: bool) -> int:
    categories = await services.categories.list_categories(course_id)
    print(f"course {course_id}: {len(categories)} categories")
    for category in categories:
        teams = await services.categories.list_teams(category.id)
        print(f"  [{category.id}] {category.name} (max {category.max_members}, {len(teams)} teams)")
        for team in teams:
            print(f"      [{team.id}] {team.name}: {len(team.member_ids)} members")

    if delete_category is None:
        return 0
    if delete_category not in {c.id for c in categories}:
        logger.error("category %s is not part of course %s", delete_category, course_id)
        return 1
    if dry_run:
        teams = await services.categories.list_teams(delete_category)
        logger.info("[dry-run] would delete category %s and %d teams", delete_category, len(teams))
        return 0
    try:
        report = await services.categories.delete_category(delete_category)
    except CoworkError as exc:
        logger.error("delete failed: %s", exc)
        return 1
    print(services.controller.cascade_summary(report))
    return 0 if report.complete else 1


async def _main_async(args: argparse.Namespace) -> int:
    config = load_record_store_config()
    token = args.token
    async with build_services(
        config,
        cache_config=load_cache_config(),
        token_provider=(lambda: token) if token else None,
    ) as services:
        return await run_report(services, args.course_id, args.delete_category, args.dry_run)


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    if _should_load_dotenv():
        load_dotenv()
    args = _parse_args(argv)
    try:
        return asyncio.run(_main_async(args))
    except ValueError as exc:
        logger.error("invalid configuration: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - manual entry point
    raise SystemExit(main())
