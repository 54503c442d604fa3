# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from calendar import month_abbr
from dataclasses import dataclass, field
from enum import StrEnum
from typing import List, Optional


class LoadingStatus(StrEnum):
    LOADING = "LOADING"
    SUCCESS = "SUCCESS"
    EMPTY = "EMPTY"
    ERROR = "ERROR"


class BadgeType(StrEnum):
    """Fine-grained project category shown as the card badge."""

    UX_DESIGN = "UX Design"
    UX_STRATEGY = "UX Strategy"
    VENTURES = "Ventures"
    MANAGER = "Manager"


class Category(StrEnum):
    """Coarse category used by series and the top-level routes."""

    DESIGN_WORK = "Design Work"
    VENTURES = "Ventures"

    @property
    def route(self) -> str:
        return _CATEGORY_ROUTES[self]


_CATEGORY_ROUTES = {
    Category.DESIGN_WORK: "design-work",
    Category.VENTURES: "ventures",
}

_COARSE_CATEGORIES = {
    BadgeType.UX_DESIGN: Category.DESIGN_WORK,
    BadgeType.UX_STRATEGY: Category.DESIGN_WORK,
    BadgeType.MANAGER: Category.DESIGN_WORK,
    BadgeType.VENTURES: Category.VENTURES,
}

# Every badge must map to exactly one coarse category.
assert set(_COARSE_CATEGORIES) == set(BadgeType), "unmapped badge type"
assert set(_CATEGORY_ROUTES) == set(Category), "unrouted category"


def coarse_category(badge: BadgeType) -> Category:
    """Map a project's badge onto the category its series and route use."""
    return _COARSE_CATEGORIES[BadgeType(badge)]


class VentureStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


@dataclass
class Metric:
    value: str
    title: str
    description: str = ""


@dataclass
class Project:
    """A case study shown under design work or ventures."""

    id: str
    title: str
    badge_type: BadgeType
    url_slug: str
    hero_image: str = ""
    summary: str = ""
    business_details: str = ""
    situation: str = ""
    task: str = ""
    action: str = ""
    output: str = ""
    lessons_learned: str = ""
    overview: Optional[str] = None
    metrics: List[Metric] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    is_visible: bool = True
    sort_order: int = 0
    show_on_homepage: bool = False
    homepage_display_order: Optional[int] = None
    series_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# Rich-text fields authored in the editor.
PROJECT_RICH_TEXT_FIELDS = (
    "summary",
    "business_details",
    "situation",
    "task",
    "action",
    "output",
    "lessons_learned",
    "overview",
)


@dataclass
class Series:
    """A named group of projects shown as one card with its own page."""

    id: str
    title: str
    badge_type: Category
    url_slug: str
    description: str = ""
    image_url: str = ""
    sort_order: int = 0
    is_visible: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Venture:
    id: str
    title: str
    url_slug: str
    description: str = ""
    image: str = ""
    url: Optional[str] = None
    status: VentureStatus = VentureStatus.ACTIVE
    is_visible: bool = True
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def _iso_month(year: Optional[int], month: Optional[int]) -> Optional[str]:
    if not year or not month:
        return None
    return f"{int(year):04d}-{int(month):02d}-01"


def _month_label(year: int, month: int) -> str:
    return f"{month_abbr[int(month)]} {int(year)}"


@dataclass
class Experience:
    """A resume entry; end month/year are ignored while the role is current."""

    id: str
    title: str
    company: str
    start_month: int
    start_year: int
    location: str = ""
    end_month: Optional[int] = None
    end_year: Optional[int] = None
    is_current: bool = False
    description: str = ""
    achievements: List[str] = field(default_factory=list)
    logo_url: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def start_date(self) -> str:
        return _iso_month(self.start_year, self.start_month)

    @property
    def end_date(self) -> Optional[str]:
        if self.is_current:
            return None
        return _iso_month(self.end_year, self.end_month)

    def date_range(self) -> str:
        start = _month_label(self.start_year, self.start_month)
        if self.end_date is None:
            return f"{start} - Present"
        return f"{start} - {_month_label(self.end_year, self.end_month)}"


@dataclass
class Education:
    id: str
    title: str
    institution: str
    year: str
    emphasis: Optional[str] = None
    logo_url: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Profile:
    id: Optional[str]
    name: str
    title: str
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class ContactSubmission:
    """An inbound contact-form message; never edited once stored."""

    first_name: str
    last_name: str
    email: str
    message: str
    business: Optional[str] = None
    phone: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None
