"""Seed the store with sample releases.

Two of the samples are stored in the legacy single-build platform shape on
purpose, so a fresh install exercises the normalizer on its first read.
"""
import logging

from app.crud import crud_release
from app.db.session import SessionLocal
from app.services.release_model import utc_now_iso

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RELEASES = [
    {
        "id": "sample-legacy-hotfix",
        "releaseDate": "2025-07-30",
        "releaseName": "BL_hotfix_30_July_2025",
        "concept": "UAT",
        "platforms": [
            {
                "platform": "iOS",
                "version": "10.35.1 (3)",
                "buildId": "7065",
                "rolloutPercentage": 100,
                "status": "Complete",
                "notes": "Codepush completed for all concepts",
            },
            {
                "platform": "Android GMS",
                "version": "8.91 (1595)",
                "buildId": "7065",
                "rolloutPercentage": 100,
                "status": "Complete",
            },
        ],
        "changes": ["Hotfix for CP, HC, MX concepts", "UAT environment deployment"],
        "notes": "Hotfix branch: hotfix/BL_hotfix_30_July_2025",
    },
    {
        "id": "sample-legacy-paused",
        "releaseDate": "2025-08-12",
        "releaseName": "Checkout fixes",
        "environment": "PROD",
        "platforms": [
            {"platform": "Android HMS", "version": "8.92 (1602)", "buildId": "7101",
             "rolloutPercentage": 0, "status": "On Hold"},
        ],
        "changes": ["Payment retry fix"],
    },
    {
        "id": "sample-split-rollout",
        "releaseDate": "2025-09-01",
        "releaseName": "September feature release",
        "environment": "PROD",
        "platforms": [
            {
                "platform": "iOS",
                "conceptReleases": [
                    {"id": "ios-1", "concepts": ["centrepoint"], "version": "10.40.0 (1)",
                     "buildId": "7200", "rolloutPercentage": 50, "status": "In Progress",
                     "rolloutHistory": [
                         {"percentage": 50, "date": "2025-09-03T09:00:00.000Z",
                          "notes": "Updated from 10% to 50%"},
                         {"percentage": 10, "date": "2025-09-01T09:00:00.000Z",
                          "notes": "Updated from 0% to 10%"},
                     ]},
                    {"id": "ios-2", "concepts": ["babyshop", "splash"], "version": "10.40.0 (2)",
                     "buildId": "7201", "rolloutPercentage": 100, "status": "Complete"},
                ],
            },
        ],
        "changes": ["New loyalty wallet", "Faster search"],
    },
]


def init_db() -> None:
    db = SessionLocal()
    try:
        if crud_release.get_all(db):
            logger.info("Releases already present, skipping seed")
            return
        now = utc_now_iso()
        for document in SAMPLE_RELEASES:
            logger.info("Seeding release %s", document["id"])
            crud_release.put(db, document["id"], dict(document, createdAt=now, updatedAt=now))
    finally:
        db.close()


def main() -> None:
    logger.info("Creating initial data")
    init_db()
    logger.info("Initial data created")


if __name__ == "__main__":
    main()
