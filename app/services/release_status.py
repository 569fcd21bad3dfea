"""Derived release status.

A release is only Complete when every concept release on every platform is
Complete, and only Paused when every one of them is paused (On Hold counts
as paused). Any disagreement means something still needs attention, so it
is reported as In Progress.
"""
from typing import Iterable, List

from app.schemas.release import (
    ConceptProgress,
    PlatformProgress,
    Release,
    ReleaseStats,
    ReleaseStatus,
)
from app.services.release_model import iter_concept_releases

_PAUSED_EQUIVALENT = {ReleaseStatus.PAUSED.value, ReleaseStatus.ON_HOLD.value}


def overall_status(release: Release) -> ReleaseStatus:
    statuses = [cr.status for _, cr in iter_concept_releases(release)]
    if not statuses:
        return ReleaseStatus.NOT_STARTED
    if all(s == ReleaseStatus.COMPLETE.value for s in statuses):
        return ReleaseStatus.COMPLETE
    if all(s in _PAUSED_EQUIVALENT for s in statuses):
        return ReleaseStatus.PAUSED
    return ReleaseStatus.IN_PROGRESS


def platform_progress(release: Release) -> List[PlatformProgress]:
    """Per-platform rollout bars. There is no per-platform aggregate status."""
    return [
        PlatformProgress(
            platform=platform.platform,
            concept_releases=[
                ConceptProgress(
                    id=cr.id,
                    concepts=list(cr.concepts),
                    rollout_percentage=cr.rollout_percentage,
                    status=cr.status,
                )
                for cr in platform.concept_releases
            ],
        )
        for platform in release.platforms
    ]


def suggest_status(rollout_percentage: int) -> ReleaseStatus:
    """Status hint for a freshly entered percentage. Never enforced on save."""
    if rollout_percentage >= 100:
        return ReleaseStatus.COMPLETE
    if rollout_percentage <= 0:
        return ReleaseStatus.PAUSED
    return ReleaseStatus.IN_PROGRESS


def release_stats(releases: Iterable[Release]) -> ReleaseStats:
    stats = ReleaseStats()
    for release in releases:
        stats.total_releases += 1
        status = overall_status(release)
        if status is ReleaseStatus.IN_PROGRESS:
            stats.active_releases += 1
        elif status is ReleaseStatus.COMPLETE:
            stats.completed_releases += 1
        elif status is ReleaseStatus.PAUSED:
            stats.paused_releases += 1
    return stats
