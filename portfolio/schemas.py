"""
Pydantic schemas for the portfolio content API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from content.types import BadgeType, Category, LoadingStatus, VentureStatus
from portfolio.view_models import ItemKind, ResolutionKind


_FIELD_LABELS = {"url_slug": "URL slug"}


def _required_text(value: Optional[str], info: ValidationInfo) -> str:
    if value is None or not value.strip():
        label = _FIELD_LABELS.get(info.field_name) or info.field_name.replace("_", " ").capitalize()
        raise ValueError(f"{label} is required")
    return value.strip()


class MetricModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: str
    title: str
    description: str = ""


# Requests


class ProjectCreate(BaseModel):
    title: str
    url_slug: str
    badge_type: BadgeType = BadgeType.UX_DESIGN
    hero_image: str = ""
    summary: str = ""
    business_details: str = ""
    situation: str = ""
    task: str = ""
    action: str = ""
    output: str = ""
    lessons_learned: str = ""
    overview: Optional[str] = None
    metrics: list[MetricModel] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    is_visible: bool = True
    sort_order: int = 0
    show_on_homepage: bool = False
    # The admin form suggests 1-8; out-of-range values are stored as given.
    homepage_display_order: Optional[int] = None
    series_id: Optional[str] = None

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    url_slug: Optional[str] = None
    badge_type: Optional[BadgeType] = None
    hero_image: Optional[str] = None
    summary: Optional[str] = None
    business_details: Optional[str] = None
    situation: Optional[str] = None
    task: Optional[str] = None
    action: Optional[str] = None
    output: Optional[str] = None
    lessons_learned: Optional[str] = None
    overview: Optional[str] = None
    metrics: Optional[list[MetricModel]] = None
    images: Optional[list[str]] = None
    is_visible: Optional[bool] = None
    sort_order: Optional[int] = None
    show_on_homepage: Optional[bool] = None
    homepage_display_order: Optional[int] = None
    series_id: Optional[str] = None

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class VisibilityUpdate(BaseModel):
    is_visible: bool


class OrderUpdate(BaseModel):
    sort_order: int


class SeriesCreate(BaseModel):
    title: str
    url_slug: str
    badge_type: Category = Category.DESIGN_WORK
    description: str = ""
    image_url: str = ""
    sort_order: int = 0
    is_visible: bool = True

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class SeriesUpdate(BaseModel):
    title: Optional[str] = None
    url_slug: Optional[str] = None
    badge_type: Optional[Category] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: Optional[int] = None
    is_visible: Optional[bool] = None

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class VentureCreate(BaseModel):
    title: str
    url_slug: str
    description: str = ""
    image: str = ""
    url: Optional[str] = None
    status: VentureStatus = VentureStatus.ACTIVE
    is_visible: bool = True
    sort_order: int = 0

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class VentureUpdate(BaseModel):
    title: Optional[str] = None
    url_slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    status: Optional[VentureStatus] = None
    is_visible: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("title", "url_slug")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class ExperienceCreate(BaseModel):
    title: str
    company: str
    location: str = ""
    start_month: int = Field(..., ge=1, le=12)
    start_year: int = Field(..., ge=1900, le=2100)
    end_month: Optional[int] = Field(default=None, ge=1, le=12)
    end_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    is_current: bool = False
    description: str = ""
    achievements: list[str] = Field(default_factory=list)
    logo_url: Optional[str] = None
    sort_order: int = 0

    @field_validator("title", "company")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)

    @model_validator(mode="after")
    def check_dates(self):
        if self.is_current:
            self.end_month = None
            self.end_year = None
        elif self.end_year and self.end_month:
            if (self.end_year, self.end_month) < (self.start_year, self.start_month):
                raise ValueError("End date must not be before start date")
        return self


class ExperienceUpdate(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    start_month: Optional[int] = Field(default=None, ge=1, le=12)
    start_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    end_month: Optional[int] = Field(default=None, ge=1, le=12)
    end_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    is_current: Optional[bool] = None
    description: Optional[str] = None
    achievements: Optional[list[str]] = None
    logo_url: Optional[str] = None
    sort_order: Optional[int] = None

    @field_validator("title", "company")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class EducationCreate(BaseModel):
    title: str
    institution: str
    year: str = Field(..., pattern=r"^\d{4}$")
    emphasis: Optional[str] = None
    logo_url: Optional[str] = None
    sort_order: int = 0

    @field_validator("title", "institution", "year", mode="before")
    @classmethod
    def check_required(cls, value, info: ValidationInfo) -> str:
        return _required_text(None if value is None else str(value), info)


class EducationUpdate(BaseModel):
    title: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    emphasis: Optional[str] = None
    logo_url: Optional[str] = None
    sort_order: Optional[int] = None

    @field_validator("title", "institution", "year", mode="before")
    @classmethod
    def check_required(cls, value, info: ValidationInfo) -> str:
        return _required_text(None if value is None else str(value), info)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator("name", "title")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


class ContactRequest(BaseModel):
    first_name: str = Field(..., max_length=128)
    last_name: str = Field(..., max_length=128)
    email: str = Field(..., max_length=256, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    message: str = Field(..., max_length=5000)
    business: Optional[str] = Field(default=None, max_length=256)
    phone: Optional[str] = Field(default=None, max_length=64)

    @field_validator("first_name", "last_name", "message")
    @classmethod
    def check_required(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _required_text(value, info)


# Responses


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    metrics: list[MetricModel] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    is_visible: bool
    sort_order: int
    show_on_homepage: bool
    homepage_display_order: Optional[int] = None
    series_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SeriesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    badge_type: Category
    url_slug: str
    description: str = ""
    image_url: str = ""
    sort_order: int
    is_visible: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class VentureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    url_slug: str
    description: str = ""
    image: str = ""
    url: Optional[str] = None
    status: VentureStatus
    is_visible: bool
    sort_order: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ExperienceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    company: str
    location: str = ""
    start_month: int
    start_year: int
    end_month: Optional[int] = None
    end_year: Optional[int] = None
    is_current: bool
    start_date: str
    end_date: Optional[str] = None
    date_range: str = ""
    description: str = ""
    achievements: list[str] = Field(default_factory=list)
    logo_url: Optional[str] = None
    sort_order: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class EducationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    institution: str
    year: str
    emphasis: Optional[str] = None
    logo_url: Optional[str] = None
    sort_order: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str
    title: str
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    is_default: bool = False


class ContactResponse(BaseModel):
    status: Literal["ok"]
    id: Optional[str] = None


class DeleteResponse(BaseModel):
    status: Literal["deleted"]
    id: str


class ListingCard(BaseModel):
    kind: ItemKind
    id: str
    title: str
    url_slug: str
    path: str
    badge: str
    image: str = ""
    summary: str = ""
    sort_order: int
    status: Optional[VentureStatus] = None


class ListingResponse(BaseModel):
    category: Category
    state: LoadingStatus
    items: list[ListingCard]
    error: Optional[str] = None


class RenderedField(BaseModel):
    html: str
    is_html: bool


class DetailResponse(BaseModel):
    kind: ResolutionKind
    category: Category
    project: Optional[ProjectResponse] = None
    venture: Optional[VentureResponse] = None
    series: Optional[SeriesResponse] = None
    series_projects: list[ListingCard] = Field(default_factory=list)
    rendered: dict[str, RenderedField] = Field(default_factory=dict)
    related: list[ListingCard] = Field(default_factory=list)


class HomeResponse(BaseModel):
    state: LoadingStatus
    featured: list[ListingCard]
    profile: ProfileResponse
    error: Optional[str] = None


class ResumeResponse(BaseModel):
    profile: ProfileResponse
    experience: list[ExperienceResponse]
    education: list[EducationResponse]


class SeriesMembersResponse(BaseModel):
    series: SeriesResponse
    projects: list[ProjectResponse]


class CategoryMismatch(BaseModel):
    project_id: str
    project_title: str
    badge_type: BadgeType
    series_id: str
    series_title: str
    series_category: Category


class MigrationModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    version: int
    description: str


class SchemaStatusResponse(BaseModel):
    version: Optional[int] = None
    latest: int
    pending: list[MigrationModel] = Field(default_factory=list)
