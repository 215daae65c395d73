"""
Process wiring: one record store client, one registry set, shared repositories.

Intent:
    Build the object graph once per process (or per test) and hand it out.
    Registries and the cache live exactly as long as the returned `Services`.

Usage:
    async with build_services(load_record_store_config()) as services:
        await services.categories.list_categories(course_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from .activities.repo_remote import ActivityRepository
from .activities.usecases import ActivityService
from .common.cache import TimedCache
from .identity.registry import RegistrySet
from .records.client import RecordStoreClient, RecordStoreProtocol, TokenProvider
from .records.config import CacheConfig, RecordStoreConfig
from .teams.controller import CategoryTeamsController
from .teams.repo_remote import AssignmentRepository, CategoryRepository, TeamRepository
from .teams.usecases import AssignmentService, CategoryTeamsService
from .users.repo_remote import EnrolmentRepository, UserRepository


_log = logging.getLogger("cowork.wiring")


@dataclass
class Repositories:
    assignments: AssignmentRepository
    teams: TeamRepository
    categories: CategoryRepository
    activities: ActivityRepository
    users: UserRepository
    enrolments: EnrolmentRepository


@dataclass
class Services:
    store: RecordStoreProtocol
    registries: RegistrySet
    repos: Repositories
    categories: CategoryTeamsService
    assignments: AssignmentService
    activities: ActivityService
    controller: CategoryTeamsController
    _close: Optional[Callable] = field(default=None, repr=False)

    async def aclose(self) -> None:
        if self._close is not None:
            await self._close()

    async def __aenter__(self) -> "Services":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_repositories(store: RecordStoreProtocol, registries: RegistrySet) -> Repositories:
    assignments = AssignmentRepository(store, registries.teams)
    teams = TeamRepository(store, registries.teams, assignments)
    return Repositories(
        assignments=assignments,
        teams=teams,
        categories=CategoryRepository(store, registries.categories, teams),
        activities=ActivityRepository(store, registries.activities, assignments),
        users=UserRepository(store, registries.users),
        enrolments=EnrolmentRepository(store, registries.users),
    )


def build_services_for_store(
    store: RecordStoreProtocol,
    *,
    cache_config: Optional[CacheConfig] = None,
    registries: Optional[RegistrySet] = None,
) -> Services:
    """Assemble services over an existing store (real client or a fake)."""
    registries = registries or RegistrySet()
    repos = build_repositories(store, registries)
    cache_config = cache_config or CacheConfig(ttl_seconds=300, policy="per_key")
    categories = CategoryTeamsService(
        categories=repos.categories,
        teams=repos.teams,
        users=repos.users,
        enrolments=repos.enrolments,
    )
    cache = TimedCache(cache_config.ttl_seconds, policy=cache_config.policy)
    return Services(
        store=store,
        registries=registries,
        repos=repos,
        categories=categories,
        assignments=AssignmentService(assignments=repos.assignments),
        activities=ActivityService(activities=repos.activities),
        controller=CategoryTeamsController(categories, cache),
    )


def build_services(
    config: RecordStoreConfig,
    *,
    cache_config: Optional[CacheConfig] = None,
    token_provider: Optional[TokenProvider] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    client = RecordStoreClient(config, token_provider=token_provider, transport=transport)
    services = build_services_for_store(client, cache_config=cache_config)
    services._close = client.aclose
    _log.info("wiring.ready project=%s cache_policy=%s", config.project, services.controller.cache.policy)
    return services


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


__all__ = [
    "Repositories",
    "Services",
    "build_repositories",
    "build_services_for_store",
    "build_services",
    "configure_logging",
]
