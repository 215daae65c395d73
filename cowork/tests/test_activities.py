"""Activities: repository queries, service validation, delete cascade.

Time is pinned through the service clock; seeded rows use fixed ISO dates.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cowork.activities.dto import ACTIVITIES
from cowork.activities.usecases import ActivityService, CreateActivityInput, UpdateActivityInput
from cowork.identity.codec import stable_id
from cowork.records.errors import NotFoundError, RemoteError, ResolutionError, ValidationError
from cowork.teams.dto import ASSIGNMENTS


NOW = datetime(2025, 5, 10, 12, 0, tzinfo=timezone.utc)


def _row(remote_id, name, due, *, category_id=3, created="2025-05-01T00:00:00Z", **extra):
    row = {
        "_id": remote_id,
        "category_id": category_id,
        "name": name,
        "description": f"{name} desc",
        "delivery_date": due,
        "creado_en": created,
    }
    row.update(extra)
    return row


@pytest.fixture
def service(services):
    return ActivityService(activities=services.repos.activities, clock=lambda: NOW)


@pytest.fixture
def seeded(store):
    store.seed(
        ACTIVITIES,
        _row("A-past", "Informe", "2025-05-01T00:00:00Z"),
        _row("A-soon", "Entrega 1", "2025-05-12T00:00:00Z"),
        _row("A-later", "Entrega 2", "2025-06-30T00:00:00Z", category_id=4),
        _row("A-off", "Viejo", "2025-05-02T00:00:00Z", activo="false"),
    )
    return store


@pytest.mark.anyio
async def test_missing_flag_counts_as_active(services, seeded):
    active = await services.repos.activities.list_active()
    assert sorted(a.remote_id for a in active) == ["A-later", "A-past", "A-soon"]


@pytest.mark.anyio
async def test_date_queries(services, seeded):
    repo = services.repos.activities
    assert [a.remote_id for a in await repo.list_overdue(NOW)] == ["A-past"]
    assert sorted(a.remote_id for a in await repo.list_pending(NOW)) == ["A-later", "A-soon"]
    assert sorted(a.remote_id for a in await repo.list_in_progress(NOW)) == ["A-later", "A-soon"]
    in_may = await repo.list_in_date_range(
        datetime(2025, 5, 1, tzinfo=timezone.utc), datetime(2025, 5, 31, tzinfo=timezone.utc)
    )
    assert sorted(a.remote_id for a in in_may) == ["A-off", "A-past", "A-soon"]
    assert await repo.count_by_category(3) == 3
    assert await repo.count_pending(NOW) == 2


@pytest.mark.anyio
async def test_search_and_name_checks(services, service, seeded):
    assert sorted(a.name for a in await service.search("entrega")) == ["Entrega 1", "Entrega 2"]
    assert len(await service.search("  ")) == 4
    assert await services.repos.activities.exists_in_category(3, " informe ")
    assert await service.is_name_available(4, "Informe")


@pytest.mark.anyio
async def test_stats(service, seeded):
    assert await service.stats() == {"total": 4, "active": 3, "overdue": 1, "upcoming": 1}


@pytest.mark.anyio
async def test_upcoming_and_overdue_use_clock(service, seeded):
    assert [a.remote_id for a in await service.upcoming(days=7)] == ["A-soon"]
    assert [a.remote_id for a in await service.overdue()] == ["A-past"]


@pytest.mark.anyio
async def test_create_validates_input(service, seeded, store):
    due = NOW + timedelta(days=3)
    with pytest.raises(ValidationError) as excinfo:
        await service.create(CreateActivityInput(category_id=3, name="  ", description="d", due_at=due))
    assert excinfo.value.code == "invalid_name"
    with pytest.raises(ValidationError) as excinfo:
        await service.create(CreateActivityInput(category_id=3, name="X", description="", due_at=due))
    assert excinfo.value.code == "invalid_description"
    with pytest.raises(ValidationError) as excinfo:
        await service.create(CreateActivityInput(category_id=3, name="X", description="d", due_at=datetime(2030, 1, 1)))
    assert excinfo.value.code == "invalid_due_at"
    with pytest.raises(ValidationError) as excinfo:
        await service.create(CreateActivityInput(category_id=3, name="X", description="d", due_at=NOW - timedelta(hours=1)))
    assert excinfo.value.code == "due_in_past"
    with pytest.raises(ValidationError) as excinfo:
        await service.create(CreateActivityInput(category_id=3, name="INFORME", description="d", due_at=due))
    assert excinfo.value.code == "duplicate_name"
    assert store.ops("create") == []


@pytest.mark.anyio
async def test_create_then_update(service, services, store):
    activity_id = await service.create(
        CreateActivityInput(category_id=3, name=" Taller ", description="Leer", due_at=NOW + timedelta(days=2))
    )
    row = store.rows(ACTIVITIES)[0]
    assert row["name"] == "Taller" and row["activo"] is True
    assert row["creado_en"] == "2025-05-10T12:00:00Z"
    assert activity_id == stable_id(row["_id"])

    updated = await service.update(UpdateActivityInput(activity_id=activity_id, description="Leer cap. 2"))
    assert updated.description == "Leer cap. 2"
    assert store.rows(ACTIVITIES)[0]["description"] == "Leer cap. 2"

    with pytest.raises(NotFoundError):
        await service.update(UpdateActivityInput(activity_id=4242, name="x"))


@pytest.mark.anyio
async def test_delete_cascades_to_assignments(service, services, store):
    activity_id = await service.create(
        CreateActivityInput(category_id=3, name="Taller", description="d", due_at=NOW + timedelta(days=2))
    )
    store.seed(
        ASSIGNMENTS,
        {"_id": "as1", "equipo_id": "T1", "actividad_id": str(activity_id)},
        {"_id": "as2", "equipo_id": "T2", "actividad_id": str(activity_id)},
        {"_id": "as3", "equipo_id": "T2", "actividad_id": "other"},
    )
    assert await service.can_delete(activity_id)

    report = await service.delete(activity_id)

    assert sorted(report.dependents.succeeded) == ["as1", "as2"]
    assert [r["_id"] for r in store.rows(ASSIGNMENTS)] == ["as3"]
    assert store.rows(ACTIVITIES) == []
    assert await service.get(activity_id) is None
    with pytest.raises(ResolutionError):
        await service.delete(activity_id)


@pytest.mark.anyio
async def test_deactivate_writes_flag_only(service, services, seeded, store):
    await services.repos.activities.list_all()
    await service.deactivate(stable_id("A-soon"))
    assert store.tables[ACTIVITIES]["A-soon"]["activo"] is False
    assert store.tables[ACTIVITIES]["A-soon"]["name"] == "Entrega 1"


@pytest.mark.anyio
async def test_invalid_date_range(service):
    with pytest.raises(ValidationError):
        await service.list_in_date_range(NOW, NOW - timedelta(days=1))


@pytest.mark.anyio
async def test_delete_stops_when_assignments_cannot_be_listed(service, store):
    activity_id = await service.create(
        CreateActivityInput(category_id=3, name="Taller", description="d", due_at=NOW + timedelta(days=2))
    )
    store.seed(ASSIGNMENTS, {"_id": "as1", "equipo_id": "T1", "actividad_id": str(activity_id)})
    store.fail("read", ASSIGNMENTS)

    with pytest.raises(RemoteError):
        await service.delete(activity_id)

    assert len(store.rows(ACTIVITIES)) == 1
    assert [r["_id"] for r in store.rows(ASSIGNMENTS)] == ["as1"]
    assert (await service.get(activity_id)).name == "Taller"


@pytest.mark.anyio
async def test_date_range_bounds(service, services, seeded):
    with pytest.raises(ValidationError) as excinfo:
        await service.list_in_date_range(datetime(2025, 5, 1), NOW)
    assert excinfo.value.code == "invalid_date_range"

    # the repository reads naive bounds as UTC
    in_may = await services.repos.activities.list_in_date_range(datetime(2025, 5, 1), datetime(2025, 5, 31))
    assert sorted(a.remote_id for a in in_may) == ["A-off", "A-past", "A-soon"]
