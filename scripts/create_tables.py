"""Create the release store tables (and optionally seed sample releases)

Usage: python -m scripts.create_tables [--seed]
"""
import argparse
import logging

from app.db.base_class import Base
from app.db.session import engine
# Import models so they are registered with Base.metadata
import app.models  # noqa: F401

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_tables() -> None:
    logger.info("Creating release store tables on %s", engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=engine)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert sample releases into an empty store")
    args = parser.parse_args()

    create_tables()
    if args.seed:
        from scripts.initial_data import init_db

        init_db()
