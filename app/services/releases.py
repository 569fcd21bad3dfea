"""Release service: normalize, merge rollout history, persist.

Every read is normalized to the canonical shape. Every write is normalized,
cleaned of incomplete entries, merged with the stored document by the
rollout history engine and then stored whole.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.crud import crud_release
from app.logging_config import release_context
from app.schemas.identity import Identity
from app.schemas.release import (
    ImportResult,
    PlatformRelease,
    Release,
    ReleaseCreate,
    ReleaseFilter,
    ReleaseRead,
    ReleaseStats,
    RolloutUpdate,
)
from app.services.errors import ReleaseNotFoundError, ReleaseValidationError
from app.services.release_export import import_json
from app.services.release_filters import filter_releases
from app.services.release_model import normalize_release, normalize_releases, release_to_document
from app.services.release_status import overall_status, release_stats
from app.services.rollout_history import apply_rollout_change, apply_update

logger = logging.getLogger("release_tracker.releases")


def to_read(release: Release) -> ReleaseRead:
    return ReleaseRead(**release.model_dump(), overall_status=overall_status(release).value)


def _complete_platforms(release: Release) -> List[PlatformRelease]:
    """Drop concept releases without version or build id, then platforms left empty."""
    platforms = []
    for platform in release.platforms:
        if platform.platform not in settings.platforms:
            raise ReleaseValidationError(f"Unknown platform '{platform.platform}'")
        kept = [cr for cr in platform.concept_releases if cr.version.strip() and cr.build_id.strip()]
        dropped = len(platform.concept_releases) - len(kept)
        if dropped:
            logger.warning(
                "Dropped %d incomplete concept release(s) on %s (missing version or build id)",
                dropped, platform.platform,
            )
        if kept:
            platforms.append(PlatformRelease(platform=platform.platform, concept_releases=kept))
    return platforms


def _prepare_incoming(payload: ReleaseCreate) -> Release:
    release = normalize_release(payload.model_dump(mode="json", by_alias=True))
    if release.environment not in settings.environments:
        raise ReleaseValidationError(
            f"Unknown environment '{release.environment}'. "
            f"Expected one of: {', '.join(settings.environments)}"
        )
    release.concept = None
    release.changes = [change.strip() for change in release.changes if change.strip()]
    release.platforms = _complete_platforms(release)
    return release


def _load(db: Session, release_id: str) -> Release:
    document = crud_release.get_one(db, release_id)
    if document is None:
        raise ReleaseNotFoundError(release_id)
    return normalize_release(document)


def _store(db: Session, release: Release) -> Release:
    crud_release.put(db, release.id, release_to_document(release))
    return release


# ─── Reads ───

def list_releases(db: Session, filters: Optional[ReleaseFilter] = None) -> List[Release]:
    return filter_releases(normalize_releases(crud_release.get_all(db)), filters)


def get_release(db: Session, release_id: str) -> Release:
    return _load(db, release_id)


def stats(db: Session, filters: Optional[ReleaseFilter] = None) -> ReleaseStats:
    return release_stats(list_releases(db, filters))


# ─── Writes ───

def create_release(
    db: Session,
    payload: ReleaseCreate,
    identity: Optional[Identity] = None,
    now: Optional[datetime] = None,
) -> Release:
    incoming = _prepare_incoming(payload)
    incoming.id = uuid.uuid4().hex
    release = _store(db, apply_update(None, incoming, identity=identity, now=now))
    logger.info("Created release %s '%s'", release.id, release.release_name)
    return release


def update_release(
    db: Session,
    release_id: str,
    payload: ReleaseCreate,
    identity: Optional[Identity] = None,
    now: Optional[datetime] = None,
) -> Release:
    with release_context(release_id):
        existing = _load(db, release_id)
        incoming = _prepare_incoming(payload)
        release = _store(db, apply_update(existing, incoming, identity=identity, now=now))
        logger.info("Updated release %s '%s'", release.id, release.release_name)
    return release


def update_rollout(
    db: Session,
    release_id: str,
    platform: str,
    concept_release_id: str,
    change: RolloutUpdate,
    identity: Optional[Identity] = None,
    now: Optional[datetime] = None,
) -> Release:
    with release_context(release_id):
        existing = _load(db, release_id)
        release = apply_rollout_change(
            existing,
            platform,
            concept_release_id,
            change.rollout_percentage,
            identity=identity,
            now=now,
            notes=change.notes,
        )
        logger.info(
            "Rollout step on %s/%s: %d%%", platform, concept_release_id, change.rollout_percentage,
            extra={"platform": platform, "concept_release_id": concept_release_id,
                   "new_percentage": change.rollout_percentage},
        )
        return _store(db, release)


def delete_release(db: Session, release_id: str) -> None:
    if not crud_release.remove(db, release_id):
        raise ReleaseNotFoundError(release_id)
    logger.info("Deleted release %s", release_id)


def import_releases(db: Session, content: str | bytes) -> ImportResult:
    """Replace the whole collection with the releases in a JSON export."""
    releases = import_json(content)
    count = crud_release.replace_all(db, [release_to_document(r) for r in releases])
    logger.info("Imported %d releases", count)
    return ImportResult(success=True, message=f"Successfully imported {count} releases", count=count)
