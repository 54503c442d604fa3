"""
Table store abstraction for the hosted database and an in-memory test implementation.

The store is addressed the way the hosted service's client addresses it:
by table name, with equality filters and ordering. Every backend raises
``StoreError`` on failure; nothing above the data access layer sees it.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import requests
from sqlalchemy import JSON, Boolean, Column, Integer, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Filters = Mapping[str, Any]
Order = Sequence[tuple[str, bool]]

UNDEFINED_COLUMN = "42703"
UNDEFINED_TABLE = "42P01"
NOT_NULL_VIOLATION = "23502"

_MISSING_COLUMN_PATTERNS = (
    re.compile(r'column "?(?:\w+\.)?(\w+)"?(?: of relation "?\w+"?)? does not exist'),
    re.compile(r"[Cc]ould not find the '(\w+)' column"),
)


class StoreError(Exception):
    """A failed round trip to the content store."""

    def __init__(self, message: str, code: str | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class StoreConfigurationError(RuntimeError):
    """No usable store connection parameters were configured."""


def missing_column(error: StoreError) -> Optional[str]:
    """
    Name of the column a schema-mismatch error refers to, or None.

    Schema mismatches are only recognisable from the error text, so this
    looks at both the message and the details.
    """
    text = " ".join(part for part in (error.message, error.details) if part)
    for pattern in _MISSING_COLUMN_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: tuple[str, ...]
    created_column: str
    updated_column: Optional[str] = None
    # NOT NULL columns the store has no default for.
    required: tuple[str, ...] = ()

    def without(self, *columns: str) -> "TableSpec":
        """Same table as deployed before ``columns`` were migrated in."""
        return TableSpec(
            name=self.name,
            columns=tuple(c for c in self.columns if c not in columns),
            created_column=self.created_column,
            updated_column=self.updated_column,
            required=tuple(c for c in self.required if c not in columns),
        )


TABLES: Dict[str, TableSpec] = {
    spec.name: spec
    for spec in (
        TableSpec(
            "projects",
            (
                "id", "title", "badgeType", "heroImage", "summary",
                "businessdetails", "situation", "task", "action", "output",
                "lessonsLearned", "overview", "metrics", "images", "is_visible",
                "sort_order", "url_slug", "show_on_homepage",
                "homepage_display_order", "series_id", "createdAt", "updatedAt",
            ),
            created_column="createdAt",
            updated_column="updatedAt",
            required=("title", "badgeType", "url_slug"),
        ),
        TableSpec(
            "series",
            (
                "id", "title", "description", "badge_type", "image_url",
                "url_slug", "sort_order", "is_visible", "created_at", "updated_at",
            ),
            created_column="created_at",
            updated_column="updated_at",
            required=("title", "badge_type", "url_slug"),
        ),
        TableSpec(
            "ventures",
            (
                "id", "title", "description", "image", "url", "status",
                "is_visible", "sort_order", "url_slug", "createdAt", "updatedAt",
            ),
            created_column="createdAt",
            updated_column="updatedAt",
            required=("title", "url_slug"),
        ),
        TableSpec(
            "experience",
            (
                "id", "title", "company", "location", "start_month", "start_year",
                "end_month", "end_year", "is_current", "description",
                "achievements", "logo_url", "sort_order", "created_at", "updated_at",
            ),
            created_column="created_at",
            updated_column="updated_at",
            required=("title", "company", "start_month", "start_year"),
        ),
        TableSpec(
            "education",
            (
                "id", "title", "institution", "year", "emphasis", "logo_url",
                "sort_order", "created_at", "updated_at",
            ),
            created_column="created_at",
            updated_column="updated_at",
            required=("title", "institution"),
        ),
        TableSpec(
            "profile",
            ("id", "name", "title", "bio", "photo_url", "created_at", "updated_at"),
            created_column="created_at",
            updated_column="updated_at",
            required=("name", "title"),
        ),
        TableSpec(
            "contact_submissions",
            (
                "id", "first_name", "last_name", "business", "email", "phone",
                "message", "created_at",
            ),
            created_column="created_at",
            required=("first_name", "last_name", "email", "message"),
        ),
        TableSpec(
            "schema_migrations",
            ("id", "version", "description", "applied_at"),
            created_column="applied_at",
            required=("version", "description"),
        ),
    )
}


@dataclass(frozen=True)
class Migration:
    """A schema change; applied ones are recorded in the ``schema_migrations`` ledger."""

    version: int
    description: str
    table: Optional[str] = None
    columns: tuple[str, ...] = ()


MIGRATIONS = (
    Migration(1, "Initial content tables"),
    Migration(2, "Add projects.overview", table="projects", columns=("overview",)),
)
LATEST_SCHEMA_VERSION = MIGRATIONS[-1].version


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TableStore(Protocol):
    """Interface for the remote content store."""

    def select(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        order: Order = (),
        limit: int | None = None,
    ) -> list[dict]:
        ...

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        ...

    def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[dict]:
        ...

    def delete(self, table: str, filters: Filters) -> int:
        ...


def _sort_rows(rows: list[dict], order: Order) -> list[dict]:
    # Apply keys last-to-first so the first key dominates; sorts are stable.
    # Nulls sort last ascending and first descending, as in Postgres.
    for column, ascending in reversed(list(order)):
        rows.sort(
            key=lambda row: (
                row.get(column) is None,
                0 if row.get(column) is None else row.get(column),
            ),
            reverse=not ascending,
        )
    return rows


class InMemoryTableStore:
    """Simple in-memory store for development and tests."""

    def __init__(
        self,
        tables: Mapping[str, TableSpec] | None = None,
        schema_version: int | None = LATEST_SCHEMA_VERSION,
    ):
        self.tables: Dict[str, TableSpec] = dict(tables or TABLES)
        self.schema_version = schema_version
        self.rows: Dict[str, list[dict]] = {name: [] for name in self.tables}
        self._record_migrations()

    def _record_migrations(self) -> None:
        if self.schema_version is None or "schema_migrations" not in self.tables:
            return
        for migration in MIGRATIONS:
            if migration.version <= self.schema_version:
                self.insert(
                    "schema_migrations",
                    {"version": migration.version, "description": migration.description},
                )

    def reset(self) -> None:
        """Clear all stored rows (useful in tests) and re-seed the migration ledger."""
        for rows in self.rows.values():
            rows.clear()
        self._record_migrations()

    def _spec(self, table: str) -> TableSpec:
        spec = self.tables.get(table)
        if spec is None:
            raise StoreError(f'relation "{table}" does not exist', code=UNDEFINED_TABLE)
        return spec

    def _check_columns(self, spec: TableSpec, columns) -> None:
        for column in columns:
            if column not in spec.columns:
                raise StoreError(
                    f'column "{column}" of relation "{spec.name}" does not exist',
                    code=UNDEFINED_COLUMN,
                )

    @staticmethod
    def _check_required(spec: TableSpec, row: Mapping[str, Any]) -> None:
        for column in spec.required:
            if column in row and row[column] is None:
                raise StoreError(
                    f'null value in column "{column}" of relation "{spec.name}" '
                    f"violates not-null constraint",
                    code=NOT_NULL_VIOLATION,
                )

    def _matching(self, table: str, filters: Filters | None) -> list[dict]:
        spec = self._spec(table)
        filters = filters or {}
        self._check_columns(spec, filters)
        return [
            row
            for row in self.rows[table]
            if all(row.get(column) == value for column, value in filters.items())
        ]

    def select(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        order: Order = (),
        limit: int | None = None,
    ) -> list[dict]:
        self._check_columns(self._spec(table), [column for column, _ in order])
        rows = _sort_rows([dict(row) for row in self._matching(table, filters)], order)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        spec = self._spec(table)
        self._check_columns(spec, row)
        now = utc_now_iso()
        record = {column: None for column in spec.columns}
        record.update(row)
        self._check_required(spec, record)
        record["id"] = record.get("id") or uuid.uuid4().hex
        record[spec.created_column] = now
        if spec.updated_column:
            record[spec.updated_column] = now
        self.rows[table].append(record)
        return dict(record)

    def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[dict]:
        spec = self._spec(table)
        self._check_columns(spec, patch)
        self._check_required(spec, patch)
        updated = []
        for row in self._matching(table, filters):
            row.update(patch)
            updated.append(dict(row))
        return updated

    def delete(self, table: str, filters: Filters) -> int:
        doomed = {id(row) for row in self._matching(table, filters)}
        self.rows[table] = [row for row in self.rows[table] if id(row) not in doomed]
        return len(doomed)


@dataclass
class RestTableStore:
    """
    Client for the hosted store's REST interface.

    Filters are sent as ``column=eq.value`` query parameters and writes ask
    for the affected rows back, so each operation is one request.
    """

    url: str
    api_key: str
    timeout: float | None = None
    session: requests.Session = field(default_factory=requests.Session)

    def __post_init__(self):
        if not self.url or not self.api_key:
            raise StoreConfigurationError("STORE_URL and STORE_API_KEY are required")
        self.base_url = f"{self.url.rstrip('/')}/rest/v1"
        self.session.headers.update(
            {
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            }
        )

    @staticmethod
    def _filter_params(filters: Filters | None) -> dict:
        params = {}
        for column, value in (filters or {}).items():
            if value is None:
                params[column] = "is.null"
            elif isinstance(value, bool):
                params[column] = f"eq.{str(value).lower()}"
            else:
                params[column] = f"eq.{value}"
        return params

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict,
        payload: Any = None,
        returning: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"} if returning else {}
        try:
            response = self.session.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreError(f"{method} {table} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            raise StoreError(
                body.get("message") or response.text or f"HTTP {response.status_code}",
                code=body.get("code"),
                details=body.get("details") or body.get("hint"),
            )
        if not response.content:
            return None
        return response.json()

    def select(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        order: Order = (),
        limit: int | None = None,
    ) -> list[dict]:
        params = {"select": "*", **self._filter_params(filters)}
        if order:
            params["order"] = ",".join(
                f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order
            )
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", table, params=params) or []

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        rows = self._request(
            "POST", table, params={"select": "*"}, payload=[dict(row)], returning=True
        )
        if not rows:
            raise StoreError(f"insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[dict]:
        params = {"select": "*", **self._filter_params(filters)}
        return (
            self._request("PATCH", table, params=params, payload=dict(patch), returning=True)
            or []
        )

    def delete(self, table: str, filters: Filters) -> int:
        rows = self._request(
            "DELETE", table, params=self._filter_params(filters), returning=True
        )
        return len(rows or [])


class SqlTableStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise StoreConfigurationError("DATABASE_URL is required for SqlTableStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _model(self, table: str):
        model = ROW_MODELS.get(table)
        if model is None:
            raise StoreError(f'relation "{table}" does not exist', code=UNDEFINED_TABLE)
        return model

    @staticmethod
    def _column(model, name: str):
        if name not in model.__table__.columns:
            raise StoreError(
                f'column "{name}" of relation "{model.__tablename__}" does not exist',
                code=UNDEFINED_COLUMN,
            )
        return model.__table__.columns[name]

    def _where(self, model, stmt, filters: Filters | None):
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        return stmt

    @staticmethod
    def _as_dict(row) -> dict:
        return {column.name: getattr(row, column.name) for column in row.__table__.columns}

    def select(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        order: Order = (),
        limit: int | None = None,
    ) -> list[dict]:
        model = self._model(table)
        stmt = self._where(model, select(model), filters)
        for name, ascending in order:
            column = self._column(model, name)
            stmt = stmt.order_by(column.asc() if ascending else column.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.Session() as session:
                return [self._as_dict(row) for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc

    def insert(self, table: str, row: Mapping[str, Any]) -> dict:
        model = self._model(table)
        spec = TABLES[table]
        for name in row:
            self._column(model, name)
        now = utc_now_iso()
        values = dict(row)
        values["id"] = values.get("id") or uuid.uuid4().hex
        values[spec.created_column] = now
        if spec.updated_column:
            values[spec.updated_column] = now
        try:
            with self.Session() as session:
                record = model(**values)
                session.add(record)
                session.commit()
                session.refresh(record)
                return self._as_dict(record)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc

    def update(self, table: str, filters: Filters, patch: Mapping[str, Any]) -> list[dict]:
        model = self._model(table)
        for name in patch:
            self._column(model, name)
        stmt = self._where(model, select(model), filters)
        try:
            with self.Session() as session:
                records = list(session.execute(stmt).scalars())
                for record in records:
                    for name, value in patch.items():
                        setattr(record, name, value)
                session.commit()
                return [self._as_dict(record) for record in records]
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc

    def delete(self, table: str, filters: Filters) -> int:
        model = self._model(table)
        stmt = self._where(model, select(model), filters)
        try:
            with self.Session() as session:
                records = list(session.execute(stmt).scalars())
                for record in records:
                    session.delete(record)
                session.commit()
                return len(records)
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc


def _store_error(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    return StoreError(str(orig or exc), code=getattr(orig, "pgcode", None))


Base = declarative_base()


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    badgeType = Column(String, nullable=False)
    heroImage = Column(String, nullable=True)
    summary = Column(Text, nullable=True)
    businessdetails = Column(Text, nullable=True)
    situation = Column(Text, nullable=True)
    task = Column(Text, nullable=True)
    action = Column(Text, nullable=True)
    output = Column(Text, nullable=True)
    lessonsLearned = Column(Text, nullable=True)
    overview = Column(Text, nullable=True)
    metrics = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    is_visible = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    url_slug = Column(String, nullable=False, index=True)
    show_on_homepage = Column(Boolean, nullable=False, default=False)
    homepage_display_order = Column(Integer, nullable=True)
    series_id = Column(String, nullable=True, index=True)
    createdAt = Column(String, nullable=False)
    updatedAt = Column(String, nullable=False)


class SeriesRow(Base):
    __tablename__ = "series"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    badge_type = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    url_slug = Column(String, nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class VentureRow(Base):
    __tablename__ = "ventures"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String, nullable=True)
    url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    is_visible = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    url_slug = Column(String, nullable=False, index=True)
    createdAt = Column(String, nullable=False)
    updatedAt = Column(String, nullable=False)


class ExperienceRow(Base):
    __tablename__ = "experience"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    location = Column(String, nullable=True)
    start_month = Column(Integer, nullable=False)
    start_year = Column(Integer, nullable=False)
    end_month = Column(Integer, nullable=True)
    end_year = Column(Integer, nullable=True)
    is_current = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    achievements = Column(JSON, nullable=False, default=list)
    logo_url = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class EducationRow(Base):
    __tablename__ = "education"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    institution = Column(String, nullable=False)
    year = Column(Integer, nullable=True)
    emphasis = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class ProfileRow(Base):
    __tablename__ = "profile"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    title = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    photo_url = Column(String, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class ContactSubmissionRow(Base):
    __tablename__ = "contact_submissions"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    business = Column(String, nullable=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    created_at = Column(String, nullable=False)


class SchemaMigrationRow(Base):
    __tablename__ = "schema_migrations"

    id = Column(String, primary_key=True)
    version = Column(Integer, nullable=False, unique=True)
    description = Column(String, nullable=False)
    applied_at = Column(String, nullable=False)


ROW_MODELS = {
    model.__tablename__: model
    for model in (
        ProjectRow,
        SeriesRow,
        VentureRow,
        ExperienceRow,
        EducationRow,
        ProfileRow,
        ContactSubmissionRow,
        SchemaMigrationRow,
    )
}
