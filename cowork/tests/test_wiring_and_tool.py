"""
Process wiring over a mocked HTTP transport and the course report tool.

Focus:
    - `build_services` talks to `{base}/database/{project}` with the token
    - `run_report` lists, refuses foreign categories, honours --dry-run and
      prints the cascade summary
    - `main` turns configuration errors into exit code 1
"""

from __future__ import annotations

import httpx
import pytest

from cowork.records.config import RecordStoreConfig
from cowork.teams.dto import CATEGORIES, TEAMS
from cowork.tools import course_report
from cowork.wiring import build_services


@pytest.mark.anyio
async def test_build_services_uses_configured_endpoint():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"_id": "C1", "nombre": "Proyecto", "curso_id": 3}])

    config = RecordStoreConfig(base_url="https://roble.test", project="proj_1", timeout_seconds=5)
    async with build_services(
        config, token_provider=lambda: "tok", transport=httpx.MockTransport(handler)
    ) as services:
        categories = await services.categories.list_categories(3)

    assert [c.name for c in categories] == ["Proyecto"]
    request = seen[0]
    assert request.url.path == "/database/proj_1/read"
    assert request.url.params["tableName"] == CATEGORIES
    assert request.url.params["curso_id"] == "3"
    assert request.headers["Authorization"] == "Bearer tok"


async def _seed_course(services):
    category_id = await services.categories.create_category(12, "Proyecto", max_members=3)
    await services.categories.create_team(category_id, "G1", member_ids=[1, 2])
    await services.categories.create_team(category_id, "G2")
    return category_id


@pytest.mark.anyio
async def test_report_lists_categories_and_teams(services, capsys):
    category_id = await _seed_course(services)

    code = await course_report.run_report(services, 12, None, False)

    out = capsys.readouterr().out
    assert code == 0
    assert "course 12: 1 categories" in out
    assert f"[{category_id}] Proyecto (max 3, 2 teams)" in out
    assert "G1: 2 members" in out


@pytest.mark.anyio
async def test_report_dry_run_keeps_records(services, store):
    category_id = await _seed_course(services)
    assert await course_report.run_report(services, 12, category_id, True) == 0
    assert len(store.rows(TEAMS)) == 2 and len(store.rows(CATEGORIES)) == 1


@pytest.mark.anyio
async def test_report_rejects_category_of_other_course(services, store):
    await _seed_course(services)
    other = await services.categories.create_category(99, "Otra")
    assert await course_report.run_report(services, 12, other, False) == 1
    assert len(store.rows(CATEGORIES)) == 2


@pytest.mark.anyio
async def test_report_deletes_and_flags_partial_failure(services, store, capsys):
    category_id = await _seed_course(services)
    failing = store.rows(TEAMS)[0]["_id"]
    store.fail("delete", TEAMS, failing)

    code = await course_report.run_report(services, 12, category_id, False)

    assert code == 1
    assert "1 teams and 0 assignments deleted, 1 failures" in capsys.readouterr().out
    assert store.rows(CATEGORIES) == []


def test_main_reports_invalid_configuration(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COWORK_ENV", "production")
    assert course_report.main(["--course-id", "1"]) == 1


def test_dotenv_is_skipped_under_pytest():
    assert course_report._should_load_dotenv() is False
