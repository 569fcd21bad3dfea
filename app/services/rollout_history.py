"""Rollout history maintenance.

Every concept release keeps an append-only, newest-first log of rollout
percentage changes. An edit form never sends that log back, so on update the
log is always rebuilt from the stored document: carried over unchanged, or
carried over with one new entry on top when the percentage moved.

Platforms are paired by platform name and concept releases by their stable
id, so reordering or removing entries in an edit does not shift history onto
the wrong build. Concept releases submitted without an id fall back to the
stored entry at the same position, and so do entries lifted from a flat
(legacy) platform, whose generated `{platform}-legacy` id names no stored build.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from app.schemas.identity import Identity
from app.schemas.release import (
    ConceptRelease,
    PlatformRelease,
    Release,
    RolloutHistoryEntry,
)
from app.services.errors import ReleaseNotFoundError
from app.services.release_model import legacy_concept_release_id, platform_slug, utc_now_iso

logger = logging.getLogger("release_tracker.rollout_history")


def history_entry(
    old_percentage: int,
    new_percentage: int,
    when: str,
    identity: Optional[Identity] = None,
    notes: Optional[str] = None,
) -> RolloutHistoryEntry:
    return RolloutHistoryEntry(
        percentage=new_percentage,
        date=when,
        notes=notes if notes is not None else f"Updated from {old_percentage}% to {new_percentage}%",
        updated_by=identity.email if identity else None,
        updated_by_name=identity.display_name if identity else None,
    )


def _next_concept_release_id(platform: str, taken: set) -> str:
    slug = platform_slug(platform)
    n = len(taken) + 1
    while f"{slug}-{n}" in taken:
        n += 1
    return f"{slug}-{n}"


def _assign_missing_ids(platform: PlatformRelease) -> None:
    taken = {cr.id for cr in platform.concept_releases if cr.id}
    for cr in platform.concept_releases:
        if not cr.id:
            cr.id = _next_concept_release_id(platform.platform, taken)
            taken.add(cr.id)


def _has_own_id(cr: ConceptRelease, platform: str) -> bool:
    return bool(cr.id) and cr.id != legacy_concept_release_id(platform)


def _pair_concept_releases(
    platform: str,
    incoming: List[ConceptRelease],
    stored: List[ConceptRelease],
) -> List[Optional[ConceptRelease]]:
    """For each incoming concept release, the stored one it continues (or None)."""
    available: Dict[int, ConceptRelease] = dict(enumerate(stored))
    pairs: List[Optional[ConceptRelease]] = [None] * len(incoming)

    for i, cr in enumerate(incoming):
        if not cr.id:
            continue
        for j, candidate in available.items():
            if candidate.id == cr.id:
                pairs[i] = available.pop(j)
                break

    for i, cr in enumerate(incoming):
        if pairs[i] is None and not _has_own_id(cr, platform) and i in available:
            pairs[i] = available.pop(i)

    return pairs


def _merge_platform(
    incoming: PlatformRelease,
    stored: Optional[PlatformRelease],
    when: str,
    identity: Optional[Identity],
    notes: Optional[str],
) -> PlatformRelease:
    stored_crs = stored.concept_releases if stored else []
    merged: List[ConceptRelease] = []

    pairs = _pair_concept_releases(incoming.platform, incoming.concept_releases, stored_crs)
    for cr, previous in zip(incoming.concept_releases, pairs):
        if previous is None:
            merged.append(cr.model_copy(update={"rollout_history": []}, deep=True))
            continue

        cr_id = cr.id if _has_own_id(cr, incoming.platform) else previous.id

        history = [entry.model_copy() for entry in previous.rollout_history]
        if previous.rollout_percentage != cr.rollout_percentage:
            history.insert(
                0,
                history_entry(previous.rollout_percentage, cr.rollout_percentage, when, identity, notes),
            )
            logger.info(
                "Rollout of %s/%s moved %d%% -> %d%%",
                incoming.platform, cr_id,
                previous.rollout_percentage, cr.rollout_percentage,
                extra={
                    "platform": incoming.platform,
                    "concept_release_id": cr_id,
                    "old_percentage": previous.rollout_percentage,
                    "new_percentage": cr.rollout_percentage,
                },
            )
        merged.append(
            cr.model_copy(update={"id": cr_id, "rollout_history": history}, deep=True)
        )

    platform = PlatformRelease(platform=incoming.platform, concept_releases=merged)
    _assign_missing_ids(platform)
    return platform


def _take_platform(stored: List[PlatformRelease], name: str) -> Optional[PlatformRelease]:
    for i, platform in enumerate(stored):
        if platform.platform == name:
            return stored.pop(i)
    return None


def apply_update(
    existing: Optional[Release],
    incoming: Release,
    *,
    identity: Optional[Identity] = None,
    now: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> Release:
    """Merge an incoming release into the stored one, appending rollout history.

    ``existing`` is None for a create: the incoming document is kept as-is
    (including any initial history it explicitly carries). Audit fields are
    always assigned here, never taken from ``incoming``.
    """
    when = utc_now_iso(now)
    email = identity.email if identity else None
    name = identity.display_name if identity else None

    if existing is None:
        created = incoming.model_copy(deep=True)
        for platform in created.platforms:
            _assign_missing_ids(platform)
        created.created_at = created.updated_at = when
        created.created_by = created.updated_by = email
        created.created_by_name = created.updated_by_name = name
        return created

    unmatched = list(existing.platforms)
    platforms = [
        _merge_platform(platform, _take_platform(unmatched, platform.platform), when, identity, notes)
        for platform in incoming.platforms
    ]

    return incoming.model_copy(
        update={
            "id": existing.id,
            "platforms": platforms,
            "created_at": existing.created_at,
            "created_by": existing.created_by,
            "created_by_name": existing.created_by_name,
            "updated_at": when,
            "updated_by": email,
            "updated_by_name": name,
        },
        deep=True,
    )


def apply_rollout_change(
    existing: Release,
    platform: str,
    concept_release_id: str,
    rollout_percentage: int,
    *,
    identity: Optional[Identity] = None,
    now: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> Release:
    """Set one concept release's percentage and record it, with optional user notes.

    An entry is appended even when the percentage is unchanged.
    """
    when = utc_now_iso(now)
    updated = existing.model_copy(deep=True)

    target = next(
        (
            cr
            for p in updated.platforms if p.platform == platform
            for cr in p.concept_releases if cr.id == concept_release_id
        ),
        None,
    )
    if target is None:
        raise ReleaseNotFoundError(
            existing.id,
            detail=f"Concept release '{concept_release_id}' on {platform} not found in release '{existing.id}'",
        )

    target.rollout_history.insert(
        0, history_entry(target.rollout_percentage, rollout_percentage, when, identity, notes)
    )
    target.rollout_percentage = rollout_percentage

    updated.updated_at = when
    updated.updated_by = identity.email if identity else None
    updated.updated_by_name = identity.display_name if identity else None
    return updated
