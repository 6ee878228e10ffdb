#!/usr/bin/env python3
"""Seed the Echelon demo organisation into Cosmos DB.

Run from the backend/ directory:

    python3 scripts/seed.py [--dry-run] [--verbose]

Documents are upserted by id, so re-running the script is safe. The four
demo users (admin, hr, manager, employee) map to the executives seeded here.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from app.core.config import Settings  # noqa: E402
from app.services.record_store import EMPLOYEES, TEAM_MEMBERS, TEAMS, RecordStore  # noqa: E402

logger = logging.getLogger(__name__)

# (id suffix, first, last, title, department, manager suffix, hire date, salary)
_EMPLOYEES: list[tuple[str, str, str, str, str, str | None, str, int]] = [
    ("0001", "Sarah", "Chen", "Chief Executive Officer", "Executive", None, "2015-03-01", 320000),
    ("0002", "Michael", "Rodriguez", "Chief Technology Officer", "Engineering", "0001", "2016-06-15", 280000),
    ("0003", "Emily", "Watson", "Chief People Officer", "Human Resources", "0001", "2017-01-09", 230000),
    ("0004", "David", "Kim", "Chief Financial Officer", "Finance", "0001", "2016-11-21", 260000),
    ("0005", "Alex", "Thompson", "VP of Engineering", "Engineering", "0002", "2018-04-02", 210000),
    ("0006", "Priya", "Nair", "Engineering Manager", "Engineering", "0005", "2019-02-18", 175000),
    ("0007", "James", "O'Connor", "Senior Backend Engineer", "Engineering", "0006", "2020-08-03", 155000),
    ("0008", "Mei", "Tanaka", "Frontend Engineer", "Engineering", "0006", "2021-05-10", 128000),
    ("0009", "Lucas", "Silva", "Site Reliability Engineer", "Engineering", "0005", "2021-09-27", 140000),
    ("0010", "Hannah", "Becker", "HR Business Partner", "Human Resources", "0003", "2019-10-14", 98000),
    ("0011", "Omar", "Haddad", "Recruiter", "Human Resources", "0003", "2022-03-07", 82000),
    ("0012", "Grace", "Liu", "Financial Analyst", "Finance", "0004", "2020-01-20", 105000),
    ("0013", "Noah", "Williams", "Product Manager", "Product", "0002", "2021-07-19", 150000),
    ("0014", "Sofia", "Rossi", "Product Designer", "Product", "0013", "2022-11-01", 118000),
]

# (id, name, description, lead suffix, parent id)
_TEAMS: list[tuple[str, str, str, str, str | None]] = [
    ("team-engineering", "Engineering", "All product engineering", "0005", None),
    ("team-platform", "Platform", "Core services, infrastructure and reliability", "0006", "team-engineering"),
    ("team-web", "Web Experience", "Customer-facing web application", "0008", "team-engineering"),
    ("team-people", "People Operations", "Hiring, onboarding and employee experience", "0010", None),
    ("team-product", "Product", "Product management and design", "0013", None),
]

_MEMBERS: dict[str, list[str]] = {
    "team-engineering": ["0005", "0006", "0009"],
    "team-platform": ["0006", "0007", "0009"],
    "team-web": ["0008", "0014"],
    "team-people": ["0010", "0011", "0003"],
    "team-product": ["0013", "0014"],
}


def employee_id(suffix: str) -> str:
    return f"10000000-0000-0000-0000-00000000{suffix}"


def build_seed_documents(now: str | None = None) -> dict[str, list[dict[str, Any]]]:
    """Build employee, team and membership documents keyed by entity type."""
    timestamp = now or datetime.now(timezone.utc).isoformat()

    employees = [
        {
            "id": employee_id(suffix),
            "firstName": first,
            "lastName": last,
            "email": f"{first}.{last}@echelon.com".lower().replace("'", ""),
            "phone": None,
            "title": title,
            "department": department,
            "status": "active",
            "managerId": employee_id(manager) if manager else None,
            "hireDate": hire_date,
            "salary": salary,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
        for suffix, first, last, title, department, manager, hire_date, salary in _EMPLOYEES
    ]

    teams = [
        {
            "id": team_id,
            "name": name,
            "description": description,
            "teamLeadId": employee_id(lead),
            "parentTeamId": parent,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
        for team_id, name, description, lead, parent in _TEAMS
    ]

    members = [
        {
            "id": f"{team_id}:{employee_id(suffix)}",
            "teamId": team_id,
            "employeeId": employee_id(suffix),
            "joinedAt": timestamp,
        }
        for team_id, suffixes in _MEMBERS.items()
        for suffix in suffixes
    ]

    return {EMPLOYEES: employees, TEAMS: teams, TEAM_MEMBERS: members}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the Echelon demo organisation into Cosmos DB")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build documents without writing them",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def write_documents(
    store: RecordStore,
    documents: dict[str, list[dict[str, Any]]],
    *,
    dry_run: bool = False,
) -> dict[str, int]:
    written: dict[str, int] = {}
    for entity, docs in documents.items():
        if dry_run:
            written[entity] = len(docs)
            continue
        for doc in docs:
            await store.replace(entity, doc)
        written[entity] = len(docs)
        logger.info("Upserted %d %s", len(docs), entity)
    return written


async def seed(args: argparse.Namespace) -> None:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    documents = build_seed_documents()
    store = RecordStore()
    if not args.dry_run:
        await store.initialize(settings)
        if not store.initialized:
            logger.error("Cosmos DB is not configured; set COSMOS_DB_ENDPOINT and COSMOS_DB_KEY")
            return

    try:
        written = await write_documents(store, documents, dry_run=args.dry_run)
    finally:
        await store.close()

    logger.info("=" * 50)
    for entity, count in written.items():
        logger.info("%s: %d", entity, count)
    if args.dry_run:
        logger.info("[DRY RUN] No documents were written.")


def main() -> None:
    args = parse_args()
    asyncio.run(seed(args))


if __name__ == "__main__":
    main()
