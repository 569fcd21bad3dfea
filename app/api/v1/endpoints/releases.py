"""Release tracking API.

Endpoints:
- GET    /releases                      → filtered, sorted list with overall status
- GET    /releases/stats                → release counts by overall status
- GET    /releases/export?format=       → JSON / CSV download of the filtered list
- POST   /releases/import               → replace all releases from a JSON export
- GET    /releases/{id}                 → single release
- GET    /releases/{id}/progress        → per-platform rollout view
- POST   /releases                      → create
- PUT    /releases/{id}                 → update (rollout history appended)
- PATCH  /releases/{id}/platforms/{platform}/concept-releases/{cr_id}/rollout
- DELETE /releases/{id}                 → delete
"""
from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.identity import Identity
from app.schemas.release import (
    ImportResult,
    PlatformProgress,
    ReleaseCreate,
    ReleaseFilter,
    ReleaseRead,
    ReleaseSort,
    ReleaseStats,
    ReleaseUpdate,
    RolloutUpdate,
)
from app.services import releases as release_service
from app.services.errors import (
    MalformedInputError,
    ReleaseNotFoundError,
    ReleaseValidationError,
    StoreUnavailableError,
)
from app.services.release_export import export_csv, export_filename, export_json
from app.services.release_status import platform_progress

router = APIRouter()


@contextmanager
def _service_errors() -> Iterator[None]:
    """Translate service errors into HTTP responses."""
    try:
        yield
    except ReleaseNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ReleaseValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except MalformedInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def release_filters(
    platform: Optional[str] = None,
    environment: Optional[str] = None,
    concept: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: ReleaseSort = ReleaseSort.DATE_DESC,
) -> ReleaseFilter:
    return ReleaseFilter(
        platform=platform,
        environment=environment,
        concept=concept,
        status=status,
        search=search,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
    )


@router.get("/", response_model=List[ReleaseRead])
def list_releases(
    filters: ReleaseFilter = Depends(release_filters),
    db: Session = Depends(deps.get_db),
) -> Any:
    with _service_errors():
        return [release_service.to_read(r) for r in release_service.list_releases(db, filters)]


@router.get("/stats", response_model=ReleaseStats)
def get_release_stats(
    filters: ReleaseFilter = Depends(release_filters),
    db: Session = Depends(deps.get_db),
) -> Any:
    with _service_errors():
        return release_service.stats(db, filters)


@router.get("/export")
def export_releases(
    format: str = Query("json", pattern="^(json|csv)$"),
    filters: ReleaseFilter = Depends(release_filters),
    db: Session = Depends(deps.get_db),
) -> Any:
    """Download the filtered release list as JSON or CSV."""
    with _service_errors():
        releases = release_service.list_releases(db, filters)

    if format == "csv":
        content, media_type = export_csv(releases), "text/csv; charset=utf-8"
    else:
        content, media_type = export_json(releases), "application/json"
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={export_filename(format)}"},
    )


@router.post("/import", response_model=ImportResult)
async def import_releases(
    request: Request,
    db: Session = Depends(deps.get_db),
    _: Optional[Identity] = Depends(deps.require_identity),
) -> Any:
    """Replace every stored release with the contents of a JSON export."""
    content = await request.body()
    with _service_errors():
        return release_service.import_releases(db, content)


@router.get("/{release_id}", response_model=ReleaseRead)
def get_release(
    release_id: str,
    db: Session = Depends(deps.get_db),
) -> Any:
    with _service_errors():
        return release_service.to_read(release_service.get_release(db, release_id))


@router.get("/{release_id}/progress", response_model=List[PlatformProgress])
def get_release_progress(
    release_id: str,
    db: Session = Depends(deps.get_db),
) -> Any:
    with _service_errors():
        return platform_progress(release_service.get_release(db, release_id))


@router.post("/", response_model=ReleaseRead, status_code=status.HTTP_201_CREATED)
def create_release(
    body: ReleaseCreate,
    db: Session = Depends(deps.get_db),
    identity: Optional[Identity] = Depends(deps.require_identity),
) -> Any:
    with _service_errors():
        return release_service.to_read(release_service.create_release(db, body, identity))


@router.put("/{release_id}", response_model=ReleaseRead)
def update_release(
    release_id: str,
    body: ReleaseUpdate,
    db: Session = Depends(deps.get_db),
    identity: Optional[Identity] = Depends(deps.require_identity),
) -> Any:
    with _service_errors():
        return release_service.to_read(release_service.update_release(db, release_id, body, identity))


@router.patch(
    "/{release_id}/platforms/{platform}/concept-releases/{concept_release_id}/rollout",
    response_model=ReleaseRead,
)
def update_rollout(
    release_id: str,
    platform: str,
    concept_release_id: str,
    body: RolloutUpdate,
    db: Session = Depends(deps.get_db),
    identity: Optional[Identity] = Depends(deps.require_identity),
) -> Any:
    """Record a single rollout step, with optional notes."""
    with _service_errors():
        release = release_service.update_rollout(
            db, release_id, platform, concept_release_id, body, identity
        )
        return release_service.to_read(release)


@router.delete("/{release_id}")
def delete_release(
    release_id: str,
    db: Session = Depends(deps.get_db),
    _: Optional[Identity] = Depends(deps.require_identity),
) -> Any:
    with _service_errors():
        release_service.delete_release(db, release_id)
    return {"ok": True}
