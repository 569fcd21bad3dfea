"""List filtering and sorting for the dashboard table and filtered exports."""
from typing import Iterable, List, Optional

from app.schemas.release import ALL_CONCEPTS, Release, ReleaseFilter, ReleaseSort
from app.services.release_model import iter_concept_releases

# Filter values that mean "no filter"
_ANY = {"", "All", "All Platforms", ALL_CONCEPTS}


def _is_set(value: Optional[str]) -> bool:
    return value is not None and value not in _ANY


def matches(release: Release, filters: ReleaseFilter) -> bool:
    if _is_set(filters.platform):
        if not any(p.platform == filters.platform for p in release.platforms):
            return False

    if _is_set(filters.environment) and release.environment != filters.environment:
        return False

    if _is_set(filters.concept):
        if not any(filters.concept in cr.concepts for _, cr in iter_concept_releases(release)):
            return False

    if _is_set(filters.status):
        if not any(cr.status == filters.status for _, cr in iter_concept_releases(release)):
            return False

    # ISO dates compare correctly as strings
    if filters.start_date and release.release_date < filters.start_date.isoformat():
        return False
    if filters.end_date and release.release_date > filters.end_date.isoformat():
        return False

    if filters.search:
        query = filters.search.lower()
        if not (
            query in release.release_name.lower()
            or query in release.release_date
            or query in release.notes.lower()
        ):
            return False

    return True


def sort_releases(releases: Iterable[Release], sort_by: ReleaseSort) -> List[Release]:
    if sort_by == ReleaseSort.DATE_ASC:
        return sorted(releases, key=lambda r: r.release_date)
    if sort_by == ReleaseSort.NAME:
        return sorted(releases, key=lambda r: r.release_name.lower())
    if sort_by == ReleaseSort.UPDATED:
        return sorted(releases, key=lambda r: r.updated_at, reverse=True)
    return sorted(releases, key=lambda r: r.release_date, reverse=True)


def filter_releases(releases: Iterable[Release], filters: Optional[ReleaseFilter] = None) -> List[Release]:
    filters = filters or ReleaseFilter()
    return sort_releases((r for r in releases if matches(r, filters)), filters.sort_by)
