"""
Data access layer: one method per entity and operation.

Every method is a single round trip to the store. Failures never reach the
caller as exceptions: lists come back empty, lookups and writes come back as
None, deletes as False, and the reason is logged and kept on
``last_error`` so the admin API can name it.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, Optional, TypeVar

from content.convert import (
    CONTACT_MAPPING,
    EDUCATION_MAPPING,
    EXPERIENCE_MAPPING,
    PROFILE_MAPPING,
    PROJECT_MAPPING,
    SERIES_MAPPING,
    VENTURE_MAPPING,
    EntityMapping,
    experience_to_row,
)
from content.types import (
    Category,
    ContactSubmission,
    Education,
    Experience,
    Profile,
    Project,
    Series,
    Venture,
)
from portfolio.store import (
    MIGRATIONS,
    TABLES,
    Migration,
    StoreError,
    TableStore,
    missing_column,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Columns added after launch. They are only written when non-empty so that
# environments whose schema predates them keep accepting writes that leave
# them blank.
OPTIONAL_PROJECT_COLUMNS = ("overview",)

# Malformed rows surface as conversion errors; treat them like store errors.
_FAILURES = (StoreError, KeyError, TypeError, ValueError)

SORT_ORDER = (("sort_order", True),)
RANK_THEN_NEWEST = (("sort_order", True), ("createdAt", False))


class _Table(Generic[T]):
    def __init__(self, name: str, mapping: EntityMapping[T], label: str):
        self.name = name
        self.mapping = mapping
        self.label = label
        self.spec = TABLES[name]


PROJECTS = _Table("projects", PROJECT_MAPPING, "project")
SERIES = _Table("series", SERIES_MAPPING, "series")
VENTURES = _Table("ventures", VENTURE_MAPPING, "venture")
EXPERIENCE = _Table("experience", EXPERIENCE_MAPPING, "experience")
EDUCATION = _Table("education", EDUCATION_MAPPING, "education")
PROFILE = _Table("profile", PROFILE_MAPPING, "profile")
CONTACT_SUBMISSIONS = _Table("contact_submissions", CONTACT_MAPPING, "contact submission")


def _writable(table: _Table, row: Mapping[str, Any]) -> dict:
    """Drop identifiers and timestamps; the store owns those."""
    owned = {"id", table.spec.created_column, table.spec.updated_column}
    return {column: value for column, value in row.items() if column not in owned}


def project_row(values: Mapping[str, Any] | Project) -> dict:
    row = _writable(PROJECTS, PROJECT_MAPPING.to_row(values))
    for column in OPTIONAL_PROJECT_COLUMNS:
        if column in row and not row[column]:
            del row[column]
    return row


class ContentRepository:
    """Per-entity CRUD over a ``TableStore``."""

    def __init__(self, store: TableStore):
        self.store = store
        self.last_error: Optional[str] = None
        # Set when a write matched no row, as opposed to failing outright.
        self.not_found = False
        self._schema_version: Optional[int] = None
        self._schema_checked = False

    def _reset(self) -> None:
        self.last_error = None
        self.not_found = False

    def _fail(self, action: str, exc: Exception) -> None:
        column = missing_column(exc) if isinstance(exc, StoreError) else None
        if column:
            self.last_error = (
                f"Error {action}: the '{column}' column does not exist in this "
                f"environment's schema. Apply the migration that adds it, or "
                f"leave the field empty until then."
            )
            logger.error("%s (%s)", self.last_error, exc)
        else:
            self.last_error = f"Error {action}: {exc}"
            logger.error("Error %s: %s", action, exc)

    def schema_version(self) -> Optional[int]:
        """
        Highest migration recorded in the ledger, or None when the environment
        keeps no ledger. Read once per repository.
        """
        if not self._schema_checked:
            self._schema_checked = True
            try:
                rows = self.store.select(
                    "schema_migrations", order=(("version", False),), limit=1
                )
                self._schema_version = int(rows[0]["version"]) if rows else None
            except (StoreError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Schema ledger unavailable: %s", exc)
                self._schema_version = None
        return self._schema_version

    def pending_migrations(self) -> list[Migration]:
        version = self.schema_version()
        if version is None:
            return []
        return [m for m in MIGRATIONS if m.version > version]

    def _unmigrated(self, table: _Table, row: Mapping[str, Any], action: str) -> bool:
        """
        Refuse a write that needs a column this environment has not migrated
        to yet. Unversioned environments fall through to the store, whose
        error is then recognised by ``_fail``.
        """
        touched = [
            m
            for m in MIGRATIONS
            if m.table == table.name and set(m.columns) & set(row)
        ]
        if not touched:
            return False
        pending = [m for m in touched if m in self.pending_migrations()]
        if not pending:
            return False
        migration = pending[0]
        column = next(c for c in migration.columns if c in row)
        self.last_error = (
            f"Error {action}: the '{column}' column needs schema version "
            f"{migration.version} ({migration.description}) but this environment "
            f"is at version {self.schema_version()}. Apply the migration, or leave "
            f"the field empty until then."
        )
        logger.error(self.last_error)
        return True

    def _list(
        self,
        table: _Table[T],
        *,
        filters: Mapping[str, Any] | None = None,
        order=SORT_ORDER,
        action: str | None = None,
    ) -> list[T]:
        self._reset()
        try:
            rows = self.store.select(table.name, filters=filters, order=order)
            return [table.mapping.from_row(row) for row in rows]
        except _FAILURES as exc:
            self._fail(action or f"fetching {table.name}", exc)
            return []

    def _get(
        self, table: _Table[T], filters: Mapping[str, Any], *, order=(), action: str
    ) -> Optional[T]:
        self._reset()
        try:
            rows = self.store.select(table.name, filters=filters, order=order, limit=1)
            if not rows:
                return None
            return table.mapping.from_row(rows[0])
        except _FAILURES as exc:
            self._fail(action, exc)
            return None

    def _create(self, table: _Table[T], row: Mapping[str, Any]) -> Optional[T]:
        self._reset()
        if self._unmigrated(table, row, f"creating {table.label}"):
            return None
        try:
            return table.mapping.from_row(self.store.insert(table.name, row))
        except _FAILURES as exc:
            self._fail(f"creating {table.label}", exc)
            return None

    def _update(self, table: _Table[T], id: str, row: Mapping[str, Any]) -> Optional[T]:
        self._reset()
        if self._unmigrated(table, row, f"updating {table.label}"):
            return None
        patch = dict(row)
        patch[table.spec.updated_column] = utc_now_iso()
        try:
            rows = self.store.update(table.name, {"id": id}, patch)
            if not rows:
                self.last_error = f"Error updating {table.label}: {id} not found"
                self.not_found = True
                logger.warning(self.last_error)
                return None
            return table.mapping.from_row(rows[0])
        except _FAILURES as exc:
            self._fail(f"updating {table.label}", exc)
            return None

    def _delete(self, table: _Table, id: str) -> bool:
        self._reset()
        try:
            deleted = self.store.delete(table.name, {"id": id})
        except StoreError as exc:
            self._fail(f"deleting {table.label}", exc)
            return False
        if not deleted:
            self.last_error = f"Error deleting {table.label}: {id} not found"
            self.not_found = True
            logger.warning(self.last_error)
            return False
        logger.info("Deleted %s %s", table.label, id)
        return True

    # Projects

    def list_projects(self) -> list[Project]:
        return self._list(PROJECTS, order=RANK_THEN_NEWEST)

    def list_visible_projects(self) -> list[Project]:
        return self._list(
            PROJECTS,
            filters={"is_visible": True},
            order=RANK_THEN_NEWEST,
            action="fetching visible projects",
        )

    def get_project(self, id: str) -> Optional[Project]:
        return self._get(PROJECTS, {"id": id}, action="fetching project")

    def get_project_by_slug(self, slug: str) -> Optional[Project]:
        """Visible project with this slug; hidden drafts are not served."""
        return self._get(
            PROJECTS,
            {"url_slug": slug, "is_visible": True},
            action="fetching project by slug",
        )

    def get_projects_by_series(self, series_id: str) -> list[Project]:
        return self._list(
            PROJECTS,
            filters={"series_id": series_id},
            action="fetching projects for series",
        )

    def create_project(self, values: Mapping[str, Any] | Project) -> Optional[Project]:
        return self._create(PROJECTS, project_row(values))

    def update_project(self, id: str, updates: Mapping[str, Any]) -> Optional[Project]:
        return self._update(PROJECTS, id, project_row(updates))

    def update_project_visibility(self, id: str, is_visible: bool) -> Optional[Project]:
        return self.update_project(id, {"is_visible": is_visible})

    def update_project_order(self, id: str, sort_order: int) -> Optional[Project]:
        return self.update_project(id, {"sort_order": sort_order})

    def remove_project_from_series(self, project_id: str) -> Optional[Project]:
        """Detach a project from its series; the project itself is kept."""
        return self.update_project(project_id, {"series_id": None})

    def delete_project(self, id: str) -> bool:
        return self._delete(PROJECTS, id)

    # Series

    def list_series(self) -> list[Series]:
        return self._list(SERIES)

    def get_series(self, id: str) -> Optional[Series]:
        return self._get(SERIES, {"id": id}, action="fetching series")

    def get_series_by_slug(
        self, slug: str, category: Category | None = None
    ) -> Optional[Series]:
        filters: dict[str, Any] = {"url_slug": slug}
        if category is not None:
            filters["badge_type"] = str(category)
        return self._get(SERIES, filters, action="fetching series by slug")

    def create_series(self, values: Mapping[str, Any] | Series) -> Optional[Series]:
        return self._create(SERIES, _writable(SERIES, SERIES_MAPPING.to_row(values)))

    def update_series(self, id: str, updates: Mapping[str, Any]) -> Optional[Series]:
        return self._update(SERIES, id, _writable(SERIES, SERIES_MAPPING.to_row(updates)))

    def delete_series(self, id: str) -> bool:
        return self._delete(SERIES, id)

    # Ventures

    def list_ventures(self) -> list[Venture]:
        return self._list(VENTURES, order=RANK_THEN_NEWEST)

    def get_venture(self, id: str) -> Optional[Venture]:
        return self._get(VENTURES, {"id": id}, action="fetching venture")

    def get_venture_by_slug(self, slug: str) -> Optional[Venture]:
        return self._get(VENTURES, {"url_slug": slug}, action="fetching venture by slug")

    def create_venture(self, values: Mapping[str, Any] | Venture) -> Optional[Venture]:
        return self._create(VENTURES, _writable(VENTURES, VENTURE_MAPPING.to_row(values)))

    def update_venture(self, id: str, updates: Mapping[str, Any]) -> Optional[Venture]:
        return self._update(
            VENTURES, id, _writable(VENTURES, VENTURE_MAPPING.to_row(updates))
        )

    def delete_venture(self, id: str) -> bool:
        return self._delete(VENTURES, id)

    # Experience

    def list_experience(self) -> list[Experience]:
        return self._list(EXPERIENCE)

    def get_experience(self, id: str) -> Optional[Experience]:
        return self._get(EXPERIENCE, {"id": id}, action="fetching experience")

    def create_experience(
        self, values: Mapping[str, Any] | Experience
    ) -> Optional[Experience]:
        return self._create(EXPERIENCE, _writable(EXPERIENCE, experience_to_row(values)))

    def update_experience(
        self, id: str, updates: Mapping[str, Any]
    ) -> Optional[Experience]:
        return self._update(
            EXPERIENCE, id, _writable(EXPERIENCE, experience_to_row(updates))
        )

    def delete_experience(self, id: str) -> bool:
        return self._delete(EXPERIENCE, id)

    # Education

    def list_education(self) -> list[Education]:
        return self._list(EDUCATION)

    def get_education(self, id: str) -> Optional[Education]:
        return self._get(EDUCATION, {"id": id}, action="fetching education")

    def create_education(
        self, values: Mapping[str, Any] | Education
    ) -> Optional[Education]:
        return self._create(
            EDUCATION, _writable(EDUCATION, EDUCATION_MAPPING.to_row(values))
        )

    def update_education(self, id: str, updates: Mapping[str, Any]) -> Optional[Education]:
        return self._update(
            EDUCATION, id, _writable(EDUCATION, EDUCATION_MAPPING.to_row(updates))
        )

    def delete_education(self, id: str) -> bool:
        return self._delete(EDUCATION, id)

    # Profile

    def get_profile(self) -> Optional[Profile]:
        """The first profile row; only one is meaningful."""
        return self._get(
            PROFILE, {}, order=(("created_at", True),), action="fetching profile"
        )

    def update_profile(
        self,
        updates: Mapping[str, Any],
        defaults: Mapping[str, Any] | Profile | None = None,
    ) -> Optional[Profile]:
        """
        Patch the profile row, creating it on first save.

        The first save starts from ``defaults`` so that a partial patch (a bio
        on its own, say) still produces a row with a name and a title.
        """
        current = self.get_profile()
        if current is None and self.last_error:
            return None
        row = _writable(PROFILE, PROFILE_MAPPING.to_row(updates))
        if current is None:
            base = _writable(PROFILE, PROFILE_MAPPING.to_row(defaults or {}))
            base = {column: value for column, value in base.items() if value is not None}
            return self._create(PROFILE, {**base, **row})
        return self._update(PROFILE, current.id, row)

    # Contact submissions

    def create_contact_submission(
        self, values: Mapping[str, Any] | ContactSubmission
    ) -> Optional[ContactSubmission]:
        return self._create(
            CONTACT_SUBMISSIONS,
            _writable(CONTACT_SUBMISSIONS, CONTACT_MAPPING.to_row(values)),
        )
