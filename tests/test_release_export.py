"""Unit tests for JSON / CSV export and JSON import."""
import csv
import io
import json
from datetime import date

import pytest

from app.services.errors import MalformedInputError
from app.services.release_export import (
    CSV_COLUMNS,
    export_csv,
    export_filename,
    export_json,
    import_json,
)
from app.services.release_model import normalize_releases

RELEASES = normalize_releases([
    {
        "id": "rel-1",
        "releaseDate": "2025-09-01",
        "releaseName": "September release",
        "environment": "PROD",
        "platforms": [
            {
                "platform": "iOS",
                "conceptReleases": [
                    {"id": "ios-1", "concepts": ["centrepoint"], "version": "10.40.0 (1)",
                     "buildId": "7200", "rolloutPercentage": 50, "status": "In Progress",
                     "notes": "Watch \"checkout\" crashes", "buildLink": "https://builds.example.com/7200",
                     "rolloutHistory": [
                         {"percentage": 50, "date": "2025-09-03T09:00:00.000Z",
                          "notes": "Updated from 10% to 50%", "updatedBy": "jane.doe@example.com",
                          "updatedByName": "Jane.doe"},
                         {"percentage": 10, "date": "2025-09-01T09:00:00.000Z"},
                     ]},
                    {"id": "ios-2", "concepts": ["babyshop", "splash"], "version": "10.40.0 (2)",
                     "buildId": "7201", "rolloutPercentage": 100, "status": "Complete"},
                ],
            },
            {"platform": "Android HMS", "version": "8.92", "buildId": "7101",
             "rolloutPercentage": 0, "status": "On Hold"},
        ],
        "changes": ["New loyalty wallet", "Faster search"],
        "notes": "Ünïcödé notes",
        "createdAt": "2025-09-01T08:00:00.000Z",
        "updatedAt": "2025-09-03T09:00:00.000Z",
        "createdBy": "jane.doe@example.com",
        "createdByName": "Jane.doe",
    },
    {
        "id": "rel-2",
        "releaseDate": "2025-07-30",
        "releaseName": "Hotfix",
        "concept": "UAT",
        "platforms": [],
        "changes": [],
    },
])


def _csv_rows(content: str):
    return list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))


def test_json_round_trip_is_lossless():
    assert import_json(export_json(RELEASES)) == RELEASES


def test_json_export_keeps_history_and_camel_case():
    data = json.loads(export_json(RELEASES))

    cr = data[0]["platforms"][0]["conceptReleases"][0]
    assert cr["buildId"] == "7200"
    assert cr["rolloutHistory"][0]["updatedByName"] == "Jane.doe"
    assert len(cr["rolloutHistory"]) == 2
    assert data[0]["notes"] == "Ünïcödé notes"


def test_json_import_accepts_bytes():
    assert import_json(export_json(RELEASES).encode("utf-8")) == RELEASES


@pytest.mark.parametrize(
    "content, message",
    [
        ("{not json", "Failed to parse JSON"),
        ('{"id": "rel-1"}', "must contain an array"),
        ('[{"id": "rel-1", "releaseName": "A"}]', "index 0"),
        ('[{"id": "a", "releaseName": "A", "releaseDate": "2025-01-01"}, 7]', "index 1"),
        ('[{"id": "a", "releaseName": "A", "releaseDate": "2025-01-01"},'
         ' {"id": "a", "releaseName": "B", "releaseDate": "2025-01-02"}]', "Duplicate"),
    ],
)
def test_json_import_rejects_malformed_input(content, message):
    with pytest.raises(MalformedInputError, match=message):
        import_json(content)


def test_csv_one_row_per_concept_release():
    rows = _csv_rows(export_csv(RELEASES))

    assert rows[0] == CSV_COLUMNS
    # rel-1: two iOS builds + one lifted HMS build; rel-2 has no platforms
    assert len(rows) == 4
    assert [row[5] for row in rows[1:]] == ["ios-1", "ios-2", "Android HMS-legacy"]


def test_csv_cells():
    header, first, second, hms = _csv_rows(export_csv(RELEASES))
    row = dict(zip(header, first))

    assert row["Release ID"] == "rel-1"
    assert row["Platform"] == "iOS"
    assert row["Concepts"] == "centrepoint"
    assert row["Rollout %"] == "50"
    assert row["Platform Notes"] == 'Watch "checkout" crashes'
    assert row["Changes"] == "New loyalty wallet; Faster search"
    assert row["Created At"] == "2025-09-01T08:00:00.000Z"
    assert dict(zip(header, second))["Concepts"] == "babyshop; splash"
    assert dict(zip(header, hms))["Status"] == "On Hold"


def test_csv_starts_with_bom_and_quotes_every_cell():
    content = export_csv(RELEASES)
    assert content.startswith("\ufeff")
    assert content.lstrip("\ufeff").startswith('"Release ID","Release Date"')


def test_export_filename():
    assert export_filename("csv", date(2025, 9, 2)) == "releases_export_2025-09-02.csv"
