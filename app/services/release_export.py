"""JSON / CSV export and JSON import of releases."""
import csv
import io
import json
import logging
from datetime import date
from typing import Any, Iterable, List, Optional

from app.schemas.release import Release
from app.services.errors import MalformedInputError
from app.services.release_model import normalize_releases

logger = logging.getLogger("release_tracker.export")

CSV_COLUMNS = [
    "Release ID",
    "Release Date",
    "Release Name",
    "Environment",
    "Platform",
    "Concept Release ID",
    "Concepts",
    "Version",
    "Build ID",
    "Rollout %",
    "Status",
    "Build Link",
    "Platform Notes",
    "Changes",
    "General Notes",
    "Created At",
    "Updated At",
]


def export_filename(extension: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"releases_export_{today.isoformat()}.{extension}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value)
    return str(value)


def export_json(releases: Iterable[Release]) -> str:
    """Lossless dump: every field of every release, rollout history included."""
    data = [r.model_dump(by_alias=True, exclude_none=True) for r in releases]
    return json.dumps(data, indent=2, ensure_ascii=False)


def import_json(content: str | bytes) -> List[Release]:
    try:
        data = json.loads(content)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Failed to parse JSON: {exc}") from exc

    if not isinstance(data, list):
        raise MalformedInputError("JSON file must contain an array of releases")

    seen = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict) or not all(
            item.get(key) for key in ("id", "releaseName", "releaseDate")
        ):
            raise MalformedInputError(f"Invalid release structure at index {index}")
        release_id = str(item["id"])
        if release_id in seen:
            raise MalformedInputError(f"Duplicate release id '{release_id}' at index {index}")
        seen.add(release_id)

    releases = normalize_releases(data)
    logger.info("Parsed %d releases from JSON import", len(releases))
    return releases


def export_csv(releases: Iterable[Release]) -> str:
    """One row per (release, platform, concept release)."""
    output = io.StringIO()
    # BOM for Excel UTF-8 compatibility
    output.write("\ufeff")
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_COLUMNS)
    for release in releases:
        for platform in release.platforms:
            for cr in platform.concept_releases:
                writer.writerow([
                    _cell(release.id),
                    _cell(release.release_date),
                    _cell(release.release_name),
                    _cell(release.environment),
                    _cell(platform.platform),
                    _cell(cr.id),
                    _cell(cr.concepts),
                    _cell(cr.version),
                    _cell(cr.build_id),
                    _cell(cr.rollout_percentage),
                    _cell(cr.status),
                    _cell(cr.build_link),
                    _cell(cr.notes),
                    _cell(release.changes),
                    _cell(release.notes),
                    _cell(release.created_at),
                    _cell(release.updated_at),
                ])
    return output.getvalue()
