"""Unit tests for derived release status."""
import pytest

from app.schemas.release import ReleaseStatus
from app.services.release_model import normalize_release
from app.services.release_status import (
    overall_status,
    platform_progress,
    release_stats,
    suggest_status,
)


def _release(*platforms):
    """platforms: (name, [status, ...]) pairs."""
    return normalize_release({
        "id": "r",
        "platforms": [
            {
                "platform": name,
                "conceptReleases": [
                    {"id": f"{name}-{i}", "status": status, "version": "1", "buildId": "1",
                     "rolloutPercentage": 100 if status == "Complete" else 40}
                    for i, status in enumerate(statuses, start=1)
                ],
            }
            for name, statuses in platforms
        ],
    })


def test_all_complete_across_platforms():
    release = _release(("iOS", ["Complete"]), ("Android GMS", ["Complete"]))
    assert overall_status(release) is ReleaseStatus.COMPLETE


def test_mixed_is_in_progress():
    release = _release(("iOS", ["Complete"]), ("Android GMS", ["In Progress"]))
    assert overall_status(release) is ReleaseStatus.IN_PROGRESS


def test_no_platforms_is_not_started():
    assert overall_status(normalize_release({"platforms": []})) is ReleaseStatus.NOT_STARTED


@pytest.mark.parametrize("statuses", [["Paused"], ["Paused", "On Hold"], ["On Hold", "On Hold"]])
def test_all_paused_or_on_hold_is_paused(statuses):
    assert overall_status(_release(("iOS", statuses))) is ReleaseStatus.PAUSED


def test_complete_and_paused_disagree():
    assert overall_status(_release(("iOS", ["Complete", "Paused"]))) is ReleaseStatus.IN_PROGRESS


def test_all_not_started_reports_in_progress():
    # only unanimous Complete / Paused have their own outcome
    assert overall_status(_release(("iOS", ["Not Started"]))) is ReleaseStatus.IN_PROGRESS


def test_legacy_release_status():
    release = normalize_release({"platforms": [
        {"platform": "iOS", "status": "Complete"},
        {"platform": "Android HMS", "status": "Complete"},
    ]})
    assert overall_status(release) is ReleaseStatus.COMPLETE


def test_platform_progress_groups_by_platform():
    release = _release(("iOS", ["Complete", "In Progress"]), ("Android HMS", ["Paused"]))

    progress = platform_progress(release)

    assert [p.platform for p in progress] == ["iOS", "Android HMS"]
    assert [cr.id for cr in progress[0].concept_releases] == ["iOS-1", "iOS-2"]
    assert progress[0].concept_releases[0].rollout_percentage == 100
    assert progress[1].concept_releases[0].status == "Paused"


@pytest.mark.parametrize(
    "percentage, expected",
    [(0, ReleaseStatus.PAUSED), (1, ReleaseStatus.IN_PROGRESS),
     (99, ReleaseStatus.IN_PROGRESS), (100, ReleaseStatus.COMPLETE)],
)
def test_suggest_status(percentage, expected):
    assert suggest_status(percentage) is expected


def test_release_stats_counts_overall_status():
    releases = [
        _release(("iOS", ["Complete"])),
        _release(("iOS", ["Complete"]), ("Android GMS", ["In Progress"])),
        _release(("iOS", ["On Hold"])),
        normalize_release({"platforms": []}),
    ]

    stats = release_stats(releases)

    assert stats.total_releases == 4
    assert stats.completed_releases == 1
    assert stats.active_releases == 1
    assert stats.paused_releases == 1
