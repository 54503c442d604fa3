"""
HTTP routes for the portfolio site: public pages and the admin screens.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ValidationError

from content.rich_text import normalize_project_fields, render_content
from content.types import (
    PROJECT_RICH_TEXT_FIELDS,
    Category,
    Experience,
    Profile,
    Project,
    Series,
    Venture,
)
from portfolio.collections import ContentCollection, SiteContent, page_state
from portfolio.config import get_settings
from portfolio.data_access import ContentRepository
from portfolio.dependencies import get_repository
from portfolio.schemas import (
    CategoryMismatch,
    ContactRequest,
    ContactResponse,
    DeleteResponse,
    DetailResponse,
    EducationCreate,
    EducationResponse,
    EducationUpdate,
    ExperienceCreate,
    ExperienceResponse,
    ExperienceUpdate,
    HomeResponse,
    ListingCard,
    ListingResponse,
    MigrationModel,
    OrderUpdate,
    ProfileResponse,
    ProfileUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RenderedField,
    ResumeResponse,
    SchemaStatusResponse,
    SeriesCreate,
    SeriesMembersResponse,
    SeriesResponse,
    SeriesUpdate,
    VentureCreate,
    VentureResponse,
    VentureUpdate,
    VisibilityUpdate,
)
from portfolio.sitemap import render_sitemap, robots_txt, sitemap_entries
from portfolio.store import LATEST_SCHEMA_VERSION
from portfolio.view_models import (
    ItemKind,
    ListingItem,
    ResolutionKind,
    category_listing,
    category_mismatches,
    detail_path,
    homepage_featured,
    related_items,
    resolve_slug,
    resume_view,
    series_detail,
    series_options,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_failure(repository: ContentRepository, what: str) -> NoReturn:
    """Translate a sentinel result from the repository into an HTTP error."""
    if repository.last_error is None or repository.not_found:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    raise HTTPException(status_code=502, detail=repository.last_error)


def _check_merged(model: type[BaseModel], current, updates: dict) -> None:
    """Validate a partial update against the row it would leave behind."""
    try:
        model.model_validate({**asdict(current), **updates})
    except ValidationError as exc:
        raise RequestValidationError(
            exc.errors(include_url=False, include_context=False)
        ) from exc


def _default_profile() -> Profile:
    settings = get_settings()
    return Profile(
        id=None,
        name=settings.default_profile_name,
        title=settings.default_profile_title,
        bio=settings.default_profile_bio,
        photo_url=settings.default_profile_photo_url,
    )


def _profile_response(profile: Profile, is_default: bool = False) -> ProfileResponse:
    return ProfileResponse(**asdict(profile), is_default=is_default)


def _project_response(project: Project) -> ProjectResponse:
    return ProjectResponse.model_validate(project)


def _series_response(series: Series) -> SeriesResponse:
    return SeriesResponse.model_validate(series)


def _venture_response(venture: Venture) -> VentureResponse:
    return VentureResponse.model_validate(venture)


def _experience_response(experience: Experience) -> ExperienceResponse:
    return ExperienceResponse(
        **asdict(experience),
        start_date=experience.start_date,
        end_date=experience.end_date,
        date_range=experience.date_range(),
    )


def _card(entry: ListingItem) -> ListingCard:
    item = entry.item
    if entry.kind == ItemKind.PROJECT:
        badge, image, summary, status = item.badge_type, item.hero_image, item.summary, None
    elif entry.kind == ItemKind.SERIES:
        badge, image, summary, status = item.badge_type, item.image_url, item.description, None
    else:
        badge, image, summary, status = Category.VENTURES, item.image, item.description, item.status
    return ListingCard(
        kind=entry.kind,
        id=item.id,
        title=item.title,
        url_slug=item.url_slug,
        path=detail_path(item),
        badge=str(badge),
        image=image or "",
        summary=summary or "",
        sort_order=item.sort_order,
        status=status,
    )


def _cards(items) -> list[ListingCard]:
    return [_card(ListingItem.of(item)) for item in items]


def _first_error(collections) -> Optional[str]:
    return next((c.error for c in collections if c.error), None)


# Public pages


@router.get("/home", response_model=HomeResponse)
def home(repository: ContentRepository = Depends(get_repository)):
    settings = get_settings()
    projects = ContentCollection("projects", repository, repository.list_visible_projects)
    projects.refresh()
    featured = homepage_featured(projects.items, settings.homepage_feature_limit)

    profile = repository.get_profile()
    return HomeResponse(
        state=page_state([projects], has_data=bool(featured)),
        featured=_cards(featured),
        profile=_profile_response(profile or _default_profile(), is_default=profile is None),
        error=projects.error,
    )


def _listing(category: Category, repository: ContentRepository) -> ListingResponse:
    content = SiteContent.from_repository(repository).refresh()
    items = category_listing(
        category,
        content.projects.items,
        content.series.items,
        content.ventures.items,
    )
    collections = (content.projects, content.series, content.ventures)
    return ListingResponse(
        category=category,
        state=page_state(collections, has_data=bool(items)),
        items=[_card(entry) for entry in items],
        error=_first_error(collections),
    )


def _detail(category: Category, slug: str, repository: ContentRepository) -> DetailResponse:
    settings = get_settings()
    content = SiteContent.from_repository(repository).refresh()
    resolution = resolve_slug(
        slug, category, content.projects, content.series, content.ventures
    )
    target = resolution.target
    if resolution.kind == ResolutionKind.NOT_FOUND:
        error = _first_error((content.projects, content.series, content.ventures))
        if error:
            raise HTTPException(status_code=502, detail=error)
        raise HTTPException(status_code=404, detail=f"No page at /{category.route}/{slug}")

    response = DetailResponse(kind=resolution.kind, category=category)
    if resolution.kind == ResolutionKind.SERIES:
        members = repository.get_projects_by_series(target.id)
        if repository.last_error:
            raise HTTPException(status_code=502, detail=repository.last_error)
        detail = series_detail(target, members)
        response.series = _series_response(target)
        response.series_projects = _cards(detail.projects)
        response.rendered = {"description": _rendered(target.description)}
    elif resolution.kind == ResolutionKind.VENTURE:
        response.venture = _venture_response(target)
        response.rendered = {"description": _rendered(target.description)}
        response.related = _cards(
            related_items(
                target,
                content.projects.items,
                content.ventures.items,
                settings.related_items_limit,
            )
        )
    else:
        response.project = _project_response(target)
        response.rendered = {
            name: _rendered(getattr(target, name))
            for name in PROJECT_RICH_TEXT_FIELDS
            if getattr(target, name)
        }
        response.related = _cards(
            related_items(
                target,
                content.projects.items,
                content.ventures.items,
                settings.related_items_limit,
            )
        )
    return response


def _rendered(text: Optional[str]) -> RenderedField:
    rendered = render_content(text)
    return RenderedField(html=rendered.html, is_html=rendered.is_html)


@router.get("/design-work", response_model=ListingResponse)
def design_work(repository: ContentRepository = Depends(get_repository)):
    return _listing(Category.DESIGN_WORK, repository)


@router.get("/design-work/{slug}", response_model=DetailResponse)
def design_work_detail(slug: str, repository: ContentRepository = Depends(get_repository)):
    return _detail(Category.DESIGN_WORK, slug, repository)


@router.get("/ventures", response_model=ListingResponse)
def ventures(repository: ContentRepository = Depends(get_repository)):
    return _listing(Category.VENTURES, repository)


@router.get("/ventures/{slug}", response_model=DetailResponse)
def venture_detail(slug: str, repository: ContentRepository = Depends(get_repository)):
    return _detail(Category.VENTURES, slug, repository)


@router.get("/resume", response_model=ResumeResponse)
def resume(repository: ContentRepository = Depends(get_repository)):
    profile = repository.get_profile()
    experience = repository.list_experience()
    education = repository.list_education()
    view = resume_view(profile, experience, education, _default_profile())
    return ResumeResponse(
        profile=_profile_response(view.profile, is_default=profile is None),
        experience=[_experience_response(e) for e in view.experience],
        education=[EducationResponse.model_validate(e) for e in view.education],
    )


@router.post("/contact", response_model=ContactResponse, status_code=201)
def contact(payload: ContactRequest, repository: ContentRepository = Depends(get_repository)):
    submission = repository.create_contact_submission(payload.model_dump())
    if submission is None:
        _raise_failure(repository, "Contact submission")
    logger.info("Stored contact submission %s", submission.id)
    return ContactResponse(status="ok", id=submission.id)


@router.get("/sitemap.xml", response_class=Response)
def sitemap(repository: ContentRepository = Depends(get_repository)):
    content = SiteContent.from_repository(repository).refresh()
    error = _first_error((content.projects, content.series, content.ventures))
    if error:
        raise HTTPException(status_code=502, detail=error)
    entries = sitemap_entries(
        content.projects.items, content.series.items, content.ventures.items
    )
    return Response(
        content=render_sitemap(entries, get_settings().site_url),
        media_type="application/xml",
    )


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    return robots_txt(get_settings().site_url)


# Admin: projects


@router.get("/admin/projects", response_model=list[ProjectResponse])
def list_projects(repository: ContentRepository = Depends(get_repository)):
    projects = repository.list_projects()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [_project_response(p) for p in projects]


@router.post("/admin/projects", response_model=ProjectResponse, status_code=201)
def create_project(payload: ProjectCreate, repository: ContentRepository = Depends(get_repository)):
    project = repository.create_project(payload.model_dump())
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(project)


@router.get("/admin/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, repository: ContentRepository = Depends(get_repository)):
    """Editor view: rich-text fields come back without the legacy wrapper."""
    project = repository.get_project(project_id)
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(normalize_project_fields(project))


@router.patch("/admin/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    project = repository.update_project(project_id, payload.model_dump(exclude_unset=True))
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(project)


@router.put("/admin/projects/{project_id}/visibility", response_model=ProjectResponse)
def update_project_visibility(
    project_id: str,
    payload: VisibilityUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    project = repository.update_project_visibility(project_id, payload.is_visible)
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(project)


@router.put("/admin/projects/{project_id}/order", response_model=ProjectResponse)
def update_project_order(
    project_id: str,
    payload: OrderUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    project = repository.update_project_order(project_id, payload.sort_order)
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(project)


@router.get("/admin/projects/{project_id}/series-options", response_model=list[SeriesResponse])
def project_series_options(
    project_id: str, repository: ContentRepository = Depends(get_repository)
):
    project = repository.get_project(project_id)
    if project is None:
        _raise_failure(repository, "Project")
    series = repository.list_series()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [_series_response(s) for s in series_options(project.badge_type, series)]


@router.delete("/admin/projects/{project_id}", response_model=DeleteResponse)
def delete_project(project_id: str, repository: ContentRepository = Depends(get_repository)):
    if not repository.delete_project(project_id):
        _raise_failure(repository, "Project")
    return DeleteResponse(status="deleted", id=project_id)


# Admin: series


@router.get("/admin/series", response_model=list[SeriesResponse])
def list_series(repository: ContentRepository = Depends(get_repository)):
    series = repository.list_series()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [_series_response(s) for s in series]


@router.post("/admin/series", response_model=SeriesResponse, status_code=201)
def create_series(payload: SeriesCreate, repository: ContentRepository = Depends(get_repository)):
    series = repository.create_series(payload.model_dump())
    if series is None:
        _raise_failure(repository, "Series")
    return _series_response(series)


@router.get("/admin/series/{series_id}", response_model=SeriesMembersResponse)
def get_series(series_id: str, repository: ContentRepository = Depends(get_repository)):
    series = repository.get_series(series_id)
    if series is None:
        _raise_failure(repository, "Series")
    members = repository.get_projects_by_series(series_id)
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return SeriesMembersResponse(
        series=_series_response(series),
        projects=[_project_response(p) for p in members],
    )


@router.patch("/admin/series/{series_id}", response_model=SeriesResponse)
def update_series(
    series_id: str,
    payload: SeriesUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    series = repository.update_series(series_id, payload.model_dump(exclude_unset=True))
    if series is None:
        _raise_failure(repository, "Series")
    return _series_response(series)


@router.delete(
    "/admin/series/{series_id}/projects/{project_id}", response_model=ProjectResponse
)
def remove_series_member(
    series_id: str,
    project_id: str,
    repository: ContentRepository = Depends(get_repository),
):
    project = repository.get_project(project_id)
    if project is None or project.series_id != series_id:
        _raise_failure(repository, "Series member")
    project = repository.remove_project_from_series(project_id)
    if project is None:
        _raise_failure(repository, "Project")
    return _project_response(project)


@router.delete("/admin/series/{series_id}", response_model=DeleteResponse)
def delete_series(series_id: str, repository: ContentRepository = Depends(get_repository)):
    if not repository.delete_series(series_id):
        _raise_failure(repository, "Series")
    return DeleteResponse(status="deleted", id=series_id)


@router.get("/admin/category-mismatches", response_model=list[CategoryMismatch])
def list_category_mismatches(repository: ContentRepository = Depends(get_repository)):
    content = SiteContent.from_repository(repository)
    content.projects.refresh()
    content.series.refresh()
    error = _first_error((content.projects, content.series))
    if error:
        raise HTTPException(status_code=502, detail=error)
    return [
        CategoryMismatch(
            project_id=project.id,
            project_title=project.title,
            badge_type=project.badge_type,
            series_id=series.id,
            series_title=series.title,
            series_category=series.badge_type,
        )
        for project, series in category_mismatches(
            content.projects.items, content.series.items
        )
    ]


# Admin: ventures


@router.get("/admin/ventures", response_model=list[VentureResponse])
def list_ventures(repository: ContentRepository = Depends(get_repository)):
    ventures = repository.list_ventures()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [_venture_response(v) for v in ventures]


@router.post("/admin/ventures", response_model=VentureResponse, status_code=201)
def create_venture(payload: VentureCreate, repository: ContentRepository = Depends(get_repository)):
    venture = repository.create_venture(payload.model_dump())
    if venture is None:
        _raise_failure(repository, "Venture")
    return _venture_response(venture)


@router.get("/admin/ventures/{venture_id}", response_model=VentureResponse)
def get_venture(venture_id: str, repository: ContentRepository = Depends(get_repository)):
    venture = repository.get_venture(venture_id)
    if venture is None:
        _raise_failure(repository, "Venture")
    return _venture_response(venture)


@router.patch("/admin/ventures/{venture_id}", response_model=VentureResponse)
def update_venture(
    venture_id: str,
    payload: VentureUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    venture = repository.update_venture(venture_id, payload.model_dump(exclude_unset=True))
    if venture is None:
        _raise_failure(repository, "Venture")
    return _venture_response(venture)


@router.delete("/admin/ventures/{venture_id}", response_model=DeleteResponse)
def delete_venture(venture_id: str, repository: ContentRepository = Depends(get_repository)):
    if not repository.delete_venture(venture_id):
        _raise_failure(repository, "Venture")
    return DeleteResponse(status="deleted", id=venture_id)


# Admin: resume


@router.get("/admin/experience", response_model=list[ExperienceResponse])
def list_experience(repository: ContentRepository = Depends(get_repository)):
    experience = repository.list_experience()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [_experience_response(e) for e in experience]


@router.post("/admin/experience", response_model=ExperienceResponse, status_code=201)
def create_experience(
    payload: ExperienceCreate, repository: ContentRepository = Depends(get_repository)
):
    experience = repository.create_experience(payload.model_dump())
    if experience is None:
        _raise_failure(repository, "Experience")
    return _experience_response(experience)


@router.patch("/admin/experience/{experience_id}", response_model=ExperienceResponse)
def update_experience(
    experience_id: str,
    payload: ExperienceUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    updates = payload.model_dump(exclude_unset=True)
    current = repository.get_experience(experience_id)
    if current is None:
        _raise_failure(repository, "Experience")
    _check_merged(ExperienceCreate, current, updates)
    experience = repository.update_experience(experience_id, updates)
    if experience is None:
        _raise_failure(repository, "Experience")
    return _experience_response(experience)


@router.delete("/admin/experience/{experience_id}", response_model=DeleteResponse)
def delete_experience(
    experience_id: str, repository: ContentRepository = Depends(get_repository)
):
    if not repository.delete_experience(experience_id):
        _raise_failure(repository, "Experience")
    return DeleteResponse(status="deleted", id=experience_id)


@router.get("/admin/education", response_model=list[EducationResponse])
def list_education(repository: ContentRepository = Depends(get_repository)):
    education = repository.list_education()
    if repository.last_error:
        raise HTTPException(status_code=502, detail=repository.last_error)
    return [EducationResponse.model_validate(e) for e in education]


@router.post("/admin/education", response_model=EducationResponse, status_code=201)
def create_education(
    payload: EducationCreate, repository: ContentRepository = Depends(get_repository)
):
    education = repository.create_education(payload.model_dump())
    if education is None:
        _raise_failure(repository, "Education")
    return EducationResponse.model_validate(education)


@router.patch("/admin/education/{education_id}", response_model=EducationResponse)
def update_education(
    education_id: str,
    payload: EducationUpdate,
    repository: ContentRepository = Depends(get_repository),
):
    education = repository.update_education(
        education_id, payload.model_dump(exclude_unset=True)
    )
    if education is None:
        _raise_failure(repository, "Education")
    return EducationResponse.model_validate(education)


@router.delete("/admin/education/{education_id}", response_model=DeleteResponse)
def delete_education(
    education_id: str, repository: ContentRepository = Depends(get_repository)
):
    if not repository.delete_education(education_id):
        _raise_failure(repository, "Education")
    return DeleteResponse(status="deleted", id=education_id)


@router.get("/admin/profile", response_model=ProfileResponse)
def get_profile(repository: ContentRepository = Depends(get_repository)):
    profile = repository.get_profile()
    if profile is None:
        if repository.last_error:
            raise HTTPException(status_code=502, detail=repository.last_error)
        return _profile_response(_default_profile(), is_default=True)
    return _profile_response(profile)


@router.put("/admin/profile", response_model=ProfileResponse)
def update_profile(payload: ProfileUpdate, repository: ContentRepository = Depends(get_repository)):
    profile = repository.update_profile(
        payload.model_dump(exclude_unset=True), defaults=_default_profile()
    )
    if profile is None:
        _raise_failure(repository, "Profile")
    return _profile_response(profile)


@router.get("/admin/schema", response_model=SchemaStatusResponse)
def schema_status(repository: ContentRepository = Depends(get_repository)):
    """Migration ledger state; ``version`` is null where no ledger is kept."""
    return SchemaStatusResponse(
        version=repository.schema_version(),
        latest=LATEST_SCHEMA_VERSION,
        pending=[
            MigrationModel.model_validate(m) for m in repository.pending_migrations()
        ],
    )
