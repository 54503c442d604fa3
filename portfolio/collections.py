"""
Local, refetch-on-demand copies of entity collections.

Each collection owns its own list; nothing is shared between collections and
nothing is reconciled with writes made elsewhere. A create, update or delete
only changes the local list once the store has confirmed it, and a stale copy
stays stale until ``refresh()`` is called again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from content.types import LoadingStatus, Project, Series, Venture
from portfolio.data_access import ContentRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContentCollection(Generic[T]):
    def __init__(
        self,
        name: str,
        repository: ContentRepository,
        fetch: Callable[[], list[T]],
        *,
        create: Optional[Callable[[Mapping[str, Any]], Optional[T]]] = None,
        update: Optional[Callable[[str, Mapping[str, Any]], Optional[T]]] = None,
        delete: Optional[Callable[[str], bool]] = None,
    ):
        self.name = name
        self.repository = repository
        self._fetch = fetch
        self._create = create
        self._update = update
        self._delete = delete
        self.items: list[T] = []
        self.status = LoadingStatus.LOADING
        self.error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.status == LoadingStatus.LOADING

    def _settle(self) -> None:
        self.status = LoadingStatus.SUCCESS if self.items else LoadingStatus.EMPTY

    def refresh(self) -> list[T]:
        self.status = LoadingStatus.LOADING
        self.error = None
        items = self._fetch()
        if self.repository.last_error:
            self.items = []
            self.error = self.repository.last_error
            self.status = LoadingStatus.ERROR
            logger.warning("Collection %s failed to load: %s", self.name, self.error)
        else:
            self.items = list(items)
            self._settle()
        return self.items

    def add(self, values: Mapping[str, Any]) -> Optional[T]:
        created = self._create(values)
        if created is not None:
            self.items.insert(0, created)
            self._settle()
        else:
            self.error = self.repository.last_error
        return created

    def edit(self, id: str, updates: Mapping[str, Any]) -> Optional[T]:
        updated = self._update(id, updates)
        if updated is not None:
            self.items = [updated if item.id == id else item for item in self.items]
        else:
            self.error = self.repository.last_error
        return updated

    def remove(self, id: str) -> bool:
        removed = self._delete(id)
        if removed:
            self.items = [item for item in self.items if item.id != id]
            self._settle()
        else:
            self.error = self.repository.last_error
        return removed


@dataclass
class SiteContent:
    """The three collections the design-work and ventures pages are built from."""

    projects: ContentCollection[Project]
    series: ContentCollection[Series]
    ventures: ContentCollection[Venture]

    @classmethod
    def from_repository(cls, repository: ContentRepository) -> "SiteContent":
        return cls(
            projects=ContentCollection(
                "projects",
                repository,
                repository.list_projects,
                create=repository.create_project,
                update=repository.update_project,
                delete=repository.delete_project,
            ),
            series=ContentCollection(
                "series",
                repository,
                repository.list_series,
                create=repository.create_series,
                update=repository.update_series,
                delete=repository.delete_series,
            ),
            ventures=ContentCollection(
                "ventures",
                repository,
                repository.list_ventures,
                create=repository.create_venture,
                update=repository.update_venture,
                delete=repository.delete_venture,
            ),
        )

    @property
    def loading(self) -> bool:
        return self.projects.loading or self.series.loading or self.ventures.loading

    def refresh(self) -> "SiteContent":
        self.projects.refresh()
        self.series.refresh()
        self.ventures.refresh()
        return self


def page_state(collections, *, has_data: bool) -> LoadingStatus:
    """
    Terminal state of a page assembled from ``collections``.

    Stays LOADING while any collection is still loading, so an empty result
    is never reported before every source has resolved.
    """
    collections = list(collections)
    if any(collection.loading for collection in collections):
        return LoadingStatus.LOADING
    if has_data:
        return LoadingStatus.SUCCESS
    if any(collection.status == LoadingStatus.ERROR for collection in collections):
        return LoadingStatus.ERROR
    return LoadingStatus.EMPTY
