"""
Page view models assembled from raw project, series and venture lists.

The store has no join across these tables, so every listing, detail lookup
and related-items strip is computed here from collections that have already
been fetched. All functions are pure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterable, List, Optional, Protocol, Sequence, Union

from content.types import (
    BadgeType,
    Category,
    Education,
    Experience,
    Profile,
    Project,
    Series,
    Venture,
    coarse_category,
)

HOMEPAGE_FEATURE_LIMIT = 8
RELATED_ITEMS_LIMIT = 3

Listable = Union[Project, Series, Venture]


class ItemKind(StrEnum):
    PROJECT = "project"
    SERIES = "series"
    VENTURE = "venture"


@dataclass(frozen=True)
class ListingItem:
    """One card on a listing page, tagged with the shape it carries."""

    kind: ItemKind
    item: Listable

    @classmethod
    def of(cls, item: Listable) -> "ListingItem":
        if isinstance(item, Series):
            return cls(ItemKind.SERIES, item)
        if isinstance(item, Venture):
            return cls(ItemKind.VENTURE, item)
        if isinstance(item, Project):
            return cls(ItemKind.PROJECT, item)
        raise TypeError(f"Cannot list {type(item).__name__}")

    @property
    def sort_order(self) -> int:
        return self.item.sort_order


def _by_sort_order(items: Iterable) -> list:
    return sorted(items, key=lambda item: item.sort_order)


def standalone_projects(projects: Iterable[Project], category: Category) -> list[Project]:
    """Visible projects in ``category`` that do not belong to a series."""
    return [
        project
        for project in projects
        if project.is_visible
        and project.series_id is None
        and coarse_category(project.badge_type) == category
    ]


def visible_series(series: Iterable[Series], category: Category) -> list[Series]:
    return [s for s in series if s.is_visible and s.badge_type == category]


def _merge(*groups: Iterable[Listable]) -> list[ListingItem]:
    # One global sort so series and projects interleave by their shared rank.
    return _by_sort_order(ListingItem.of(item) for group in groups for item in group)


def design_work_listing(
    projects: Iterable[Project], series: Iterable[Series]
) -> list[ListingItem]:
    return _merge(
        standalone_projects(projects, Category.DESIGN_WORK),
        visible_series(series, Category.DESIGN_WORK),
    )


def ventures_listing(
    ventures: Iterable[Venture],
    projects: Iterable[Project],
    series: Iterable[Series],
) -> list[ListingItem]:
    return _merge(
        [venture for venture in ventures if venture.is_visible],
        standalone_projects(projects, Category.VENTURES),
        visible_series(series, Category.VENTURES),
    )


def category_listing(
    category: Category,
    projects: Iterable[Project],
    series: Iterable[Series],
    ventures: Iterable[Venture],
) -> list[ListingItem]:
    if category == Category.VENTURES:
        return ventures_listing(ventures, projects, series)
    return design_work_listing(projects, series)


class LoadableCollection(Protocol):
    items: list
    loading: bool


class ResolutionKind(StrEnum):
    LOADING = "loading"
    SERIES = "series"
    PROJECT = "project"
    VENTURE = "venture"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class SlugResolution:
    kind: ResolutionKind
    target: Optional[Listable] = None


def resolve_slug(
    slug: Optional[str],
    category: Category,
    projects: LoadableCollection,
    series: LoadableCollection,
    ventures: LoadableCollection,
) -> SlugResolution:
    """
    Decide which table a detail-page slug belongs to.

    Series are tried first, then (under ventures) the ventures table, then
    projects of the same category. Until all three collections have loaded
    the answer is LOADING, never NOT_FOUND. Matching is exact.
    """
    if not slug:
        return SlugResolution(ResolutionKind.NOT_FOUND)
    if projects.loading or series.loading or ventures.loading:
        return SlugResolution(ResolutionKind.LOADING)

    for candidate in series.items:
        if candidate.is_visible and candidate.url_slug == slug and candidate.badge_type == category:
            return SlugResolution(ResolutionKind.SERIES, candidate)

    if category == Category.VENTURES:
        for venture in ventures.items:
            if venture.is_visible and venture.url_slug == slug:
                return SlugResolution(ResolutionKind.VENTURE, venture)

    for project in projects.items:
        if (
            project.is_visible
            and project.url_slug == slug
            and coarse_category(project.badge_type) == category
        ):
            return SlugResolution(ResolutionKind.PROJECT, project)

    return SlugResolution(ResolutionKind.NOT_FOUND)


@dataclass
class SeriesDetail:
    series: Series
    projects: List[Project] = field(default_factory=list)


def series_detail(series: Series, members: Iterable[Project]) -> SeriesDetail:
    return SeriesDetail(
        series=series,
        projects=_by_sort_order(
            project
            for project in members
            if project.is_visible and project.series_id == series.id
        ),
    )


def homepage_featured(
    projects: Iterable[Project], limit: int = HOMEPAGE_FEATURE_LIMIT
) -> list[Project]:
    """
    Featured projects for the homepage.

    The stored display order is only a recommendation from the admin form,
    so unordered picks go last and the result is always capped.
    """
    featured = [p for p in projects if p.show_on_homepage and p.is_visible]
    featured.sort(
        key=lambda p: math.inf
        if p.homepage_display_order is None
        else p.homepage_display_order
    )
    return featured[:limit]


def related_projects(
    project: Project, projects: Iterable[Project], limit: int = RELATED_ITEMS_LIMIT
) -> list[Project]:
    return [
        other
        for other in projects
        if other.badge_type == project.badge_type
        and other.id != project.id
        and other.is_visible
    ][:limit]


def related_ventures(
    current: Union[Project, Venture],
    candidates: Iterable[Union[Project, Venture]],
    limit: int = RELATED_ITEMS_LIMIT,
) -> list:
    """
    Neighbours of ``current`` by sort order.

    Anchor on the first other item ranked after ``current``. With no such
    item the last ``limit`` are returned; when it is the very first item the
    first ``limit``; otherwise one item before the anchor plus the ones
    following it.
    """
    others = _by_sort_order(
        c for c in candidates if c.id != current.id and c.is_visible
    )
    anchor = next(
        (i for i, other in enumerate(others) if other.sort_order > current.sort_order),
        -1,
    )
    if anchor == -1:
        return others[-limit:] if others else []
    if anchor == 0:
        return others[:limit]
    before = others[max(0, anchor - 1) : anchor]
    after = others[anchor : anchor + limit - 1]
    return (before + after)[:limit]


def related_items(
    item: Union[Project, Venture],
    projects: Sequence[Project],
    ventures: Sequence[Venture] = (),
    limit: int = RELATED_ITEMS_LIMIT,
) -> list:
    """Related strip for a detail page; ventures use the neighbour rule."""
    if isinstance(item, Venture):
        return related_ventures(item, ventures, limit)
    if coarse_category(item.badge_type) == Category.VENTURES:
        peers = [p for p in projects if p.badge_type == BadgeType.VENTURES]
        return related_ventures(item, peers, limit)
    return related_projects(item, projects, limit)


def series_options(badge_type: BadgeType, series: Iterable[Series]) -> list[Series]:
    """Series a project with ``badge_type`` may be assigned to."""
    category = coarse_category(badge_type)
    return _by_sort_order(s for s in series if s.badge_type == category)


def category_mismatches(
    projects: Iterable[Project], series: Iterable[Series]
) -> list[tuple[Project, Series]]:
    """Series members whose badge does not map onto the series' category."""
    by_id = {s.id: s for s in series}
    mismatches = []
    for project in projects:
        owner = by_id.get(project.series_id) if project.series_id else None
        if owner is not None and coarse_category(project.badge_type) != owner.badge_type:
            mismatches.append((project, owner))
    return mismatches


def detail_path(item: Union[ListingItem, Listable]) -> str:
    if isinstance(item, ListingItem):
        item = item.item
    if isinstance(item, Series):
        category = item.badge_type
    elif isinstance(item, Venture):
        category = Category.VENTURES
    else:
        category = coarse_category(item.badge_type)
    return f"/{category.route}/{item.url_slug}"


@dataclass
class ResumeView:
    profile: Profile
    experience: List[Experience]
    education: List[Education]


def _year_key(education: Education) -> int:
    try:
        return int(education.year)
    except (TypeError, ValueError):
        return 0


def resume_view(
    profile: Optional[Profile],
    experience: Iterable[Experience],
    education: Iterable[Education],
    fallback: Profile,
) -> ResumeView:
    """Resume page: newest roles and degrees first, default profile if unset."""
    return ResumeView(
        profile=profile or fallback,
        experience=sorted(experience, key=lambda e: e.start_date, reverse=True),
        education=sorted(education, key=_year_key, reverse=True),
    )
