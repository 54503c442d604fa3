"""
Helpers to convert stored rows into dataclass instances and back.

Storage column names differ from the attribute names used in the
application (``badgeType`` vs ``badge_type``, ``createdAt`` vs
``created_at``), and a few values change shape on the way through
(numeric years, metric tuples). Everything that crosses the store
boundary goes through the mappings below.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Type, TypeVar

from content.types import (
    BadgeType,
    Category,
    ContactSubmission,
    Education,
    Experience,
    Metric,
    Profile,
    Project,
    Series,
    Venture,
    VentureStatus,
)

T = TypeVar("T")


def _metrics_from_row(value: Any) -> list[Metric]:
    metrics = []
    for item in value or []:
        if isinstance(item, Metric):
            metrics.append(item)
        else:
            metrics.append(
                Metric(
                    value=str(item.get("value", "")),
                    title=item.get("title", ""),
                    description=item.get("description", ""),
                )
            )
    return metrics


def _metrics_to_row(value: Any) -> list[dict]:
    return [asdict(m) if is_dataclass(m) else dict(m) for m in value or []]


def _text(value: Any) -> str:
    return "" if value is None else value


def _rank(value: Any) -> int:
    return int(value or 0)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _year_to_row(value: Any) -> Any:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


class EntityMapping(Generic[T]):
    """Two-way translation between one table's rows and one dataclass."""

    def __init__(
        self,
        entity: Type[T],
        columns: Dict[str, str],
        *,
        readers: Optional[Dict[str, Callable[[Any], Any]]] = None,
        writers: Optional[Dict[str, Callable[[Any], Any]]] = None,
    ):
        self.entity = entity
        self.columns = columns
        self.attributes = {column: attr for attr, column in columns.items()}
        self.readers = readers or {}
        self.writers = writers or {}

    def from_row(self, row: Mapping[str, Any]) -> T:
        values = {}
        for attr, column in self.columns.items():
            if column not in row:
                continue
            value = row[column]
            reader = self.readers.get(attr)
            if reader is not None:
                value = reader(value)
            values[attr] = value
        return self.entity(**values)

    def to_row(self, values: Mapping[str, Any] | T) -> Dict[str, Any]:
        """
        Translate an entity or a partial attribute patch into storage columns.

        Attributes without a column (derived properties, unknown keys) are
        dropped.
        """
        if is_dataclass(values):
            values = asdict(values)
        row = {}
        for attr, value in values.items():
            column = self.columns.get(attr)
            if column is None:
                continue
            writer = self.writers.get(attr)
            if writer is not None and value is not None:
                value = writer(value)
            row[column] = value
        return row


PROJECT_MAPPING = EntityMapping(
    Project,
    {
        "id": "id",
        "title": "title",
        "badge_type": "badgeType",
        "hero_image": "heroImage",
        "summary": "summary",
        "business_details": "businessdetails",
        "situation": "situation",
        "task": "task",
        "action": "action",
        "output": "output",
        "lessons_learned": "lessonsLearned",
        "overview": "overview",
        "metrics": "metrics",
        "images": "images",
        "is_visible": "is_visible",
        "sort_order": "sort_order",
        "url_slug": "url_slug",
        "show_on_homepage": "show_on_homepage",
        "homepage_display_order": "homepage_display_order",
        "series_id": "series_id",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
    readers={
        "badge_type": BadgeType,
        "metrics": _metrics_from_row,
        "images": lambda value: list(value or []),
        "homepage_display_order": _optional_int,
        "sort_order": _rank,
        "hero_image": _text,
        "summary": _text,
        "business_details": _text,
        "situation": _text,
        "task": _text,
        "action": _text,
        "output": _text,
        "lessons_learned": _text,
        "is_visible": bool,
        "show_on_homepage": bool,
    },
    writers={
        "badge_type": str,
        "metrics": _metrics_to_row,
        "images": list,
    },
)

SERIES_MAPPING = EntityMapping(
    Series,
    {
        "id": "id",
        "title": "title",
        "description": "description",
        "badge_type": "badge_type",
        "image_url": "image_url",
        "url_slug": "url_slug",
        "sort_order": "sort_order",
        "is_visible": "is_visible",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    readers={
        "badge_type": Category,
        "description": _text,
        "image_url": _text,
        "sort_order": _rank,
        "is_visible": bool,
    },
    writers={"badge_type": str},
)

VENTURE_MAPPING = EntityMapping(
    Venture,
    {
        "id": "id",
        "title": "title",
        "description": "description",
        "image": "image",
        "url": "url",
        "status": "status",
        "is_visible": "is_visible",
        "sort_order": "sort_order",
        "url_slug": "url_slug",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
    readers={
        "status": VentureStatus,
        "description": _text,
        "image": _text,
        "sort_order": _rank,
        "is_visible": bool,
    },
    writers={"status": str},
)

EXPERIENCE_MAPPING = EntityMapping(
    Experience,
    {
        "id": "id",
        "title": "title",
        "company": "company",
        "location": "location",
        "start_month": "start_month",
        "start_year": "start_year",
        "end_month": "end_month",
        "end_year": "end_year",
        "is_current": "is_current",
        "description": "description",
        "achievements": "achievements",
        "logo_url": "logo_url",
        "sort_order": "sort_order",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    readers={
        "start_month": int,
        "start_year": int,
        "end_month": _optional_int,
        "end_year": _optional_int,
        "location": _text,
        "description": _text,
        "achievements": lambda value: list(value or []),
        "is_current": bool,
        "sort_order": _rank,
    },
    writers={"achievements": list},
)

EDUCATION_MAPPING = EntityMapping(
    Education,
    {
        "id": "id",
        "title": "title",
        "institution": "institution",
        "year": "year",
        "emphasis": "emphasis",
        "logo_url": "logo_url",
        "sort_order": "sort_order",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    readers={
        "year": lambda value: "" if value is None else str(value),
        "sort_order": _rank,
    },
    writers={"year": _year_to_row},
)

PROFILE_MAPPING = EntityMapping(
    Profile,
    {
        "id": "id",
        "name": "name",
        "title": "title",
        "bio": "bio",
        "photo_url": "photo_url",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
)

CONTACT_MAPPING = EntityMapping(
    ContactSubmission,
    {
        "id": "id",
        "first_name": "first_name",
        "last_name": "last_name",
        "business": "business",
        "email": "email",
        "phone": "phone",
        "message": "message",
        "created_at": "created_at",
    },
)


def experience_to_row(values: Mapping[str, Any] | Experience) -> Dict[str, Any]:
    """Experience rows never carry an end date while the role is current."""
    row = EXPERIENCE_MAPPING.to_row(values)
    if row.get("is_current"):
        row["end_month"] = None
        row["end_year"] = None
    return row
