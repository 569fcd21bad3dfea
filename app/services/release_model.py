"""Canonical release shape.

Stored documents come in two vintages. Older ones carry a single build
directly on each platform entry (``version``, ``buildId``,
``rolloutPercentage`` ...); current ones nest one or more concept releases
under ``conceptReleases``. Every read goes through ``normalize_release`` so
the rest of the service only ever sees the nested shape.

Normalization never raises: malformed values degrade to their defaults.
"""
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from app.schemas.release import (
    ALL_CONCEPTS,
    ConceptRelease,
    PlatformRelease,
    Release,
    ReleaseStatus,
    RolloutHistoryEntry,
)


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO 8601 timestamp in UTC with millisecond precision, e.g. 2025-07-30T08:15:00.000Z"""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def platform_slug(platform: str) -> str:
    """'Android GMS' -> 'android-gms'"""
    slug = re.sub(r"[^a-z0-9]+", "-", platform.lower()).strip("-")
    return slug or "platform"


def legacy_concept_release_id(platform: str) -> str:
    return f"{platform}-legacy"


# ─── Scalar coercion ───

def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _percentage(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        pct = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, pct))


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_text(item) for item in value if item is not None]


# ─── Nested entities ───

def _history(value: Any) -> List[RolloutHistoryEntry]:
    if not isinstance(value, list):
        return []
    return [
        RolloutHistoryEntry(
            percentage=_percentage(item.get("percentage")),
            date=_text(item.get("date")),
            notes=_optional_text(item.get("notes")),
            updated_by=_optional_text(item.get("updatedBy")),
            updated_by_name=_optional_text(item.get("updatedByName")),
        )
        for item in value
        if isinstance(item, Mapping)
    ]


def _concept_release(raw: Mapping, default_id: str = "") -> ConceptRelease:
    return ConceptRelease(
        id=_text(raw.get("id")) or default_id,
        concepts=_string_list(raw.get("concepts")) or [ALL_CONCEPTS],
        version=_text(raw.get("version")),
        build_id=_text(raw.get("buildId")),
        rollout_percentage=_percentage(raw.get("rolloutPercentage")),
        status=_text(raw.get("status")) or ReleaseStatus.NOT_STARTED.value,
        notes=_text(raw.get("notes")),
        build_link=_text(raw.get("buildLink")),
        rollout_history=_history(raw.get("rolloutHistory")),
    )


def _platform(raw: Mapping) -> PlatformRelease:
    platform = _text(raw.get("platform"))
    nested = raw.get("conceptReleases")
    concept_releases: List[ConceptRelease] = []
    if isinstance(nested, list):
        concept_releases = [_concept_release(cr) for cr in nested if isinstance(cr, Mapping)]
    if not concept_releases:
        # Legacy entry: the platform itself is the one build
        concept_releases = [_concept_release(raw, legacy_concept_release_id(platform))]
    return PlatformRelease(platform=platform, concept_releases=concept_releases)


def normalize_release(raw: Any) -> Release:
    """Return the canonical form of a stored or submitted release document.

    Accepts a mapping (camelCase keys, as stored) or a ``Release``. Pure and
    idempotent.
    """
    if isinstance(raw, Release):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raw = {}

    platforms = raw.get("platforms")
    if not isinstance(platforms, list):
        platforms = []

    concept = _optional_text(raw.get("concept"))
    return Release(
        id=_text(raw.get("id")),
        release_date=_text(raw.get("releaseDate")),
        release_name=_text(raw.get("releaseName")),
        environment=_text(raw.get("environment")) or concept or "",
        concept=concept,
        platforms=[_platform(p) for p in platforms if isinstance(p, Mapping)],
        changes=_string_list(raw.get("changes")),
        notes=_text(raw.get("notes")),
        created_at=_text(raw.get("createdAt")),
        updated_at=_text(raw.get("updatedAt")),
        created_by=_optional_text(raw.get("createdBy")),
        created_by_name=_optional_text(raw.get("createdByName")),
        updated_by=_optional_text(raw.get("updatedBy")),
        updated_by_name=_optional_text(raw.get("updatedByName")),
    )


def normalize_releases(raws: Iterable[Any]) -> List[Release]:
    return [normalize_release(raw) for raw in raws]


def release_to_document(release: Release) -> dict:
    """Canonical document for the store. The deprecated ``concept`` is never written."""
    return release.model_dump(by_alias=True, exclude_none=True, exclude={"concept"})


def iter_concept_releases(release: Release) -> Iterable[tuple[PlatformRelease, ConceptRelease]]:
    for platform in release.platforms:
        for concept_release in platform.concept_releases:
            yield platform, concept_release
