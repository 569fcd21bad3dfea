"""Release document store.

A plain key-value document store: whole documents in, whole documents out.
Any database failure is rolled back and surfaces as StoreUnavailableError,
so a failed write never leaves a partial change behind.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.release import ReleaseDocument
from app.services.errors import StoreUnavailableError

logger = logging.getLogger("release_tracker.store")


@contextmanager
def _store_call(db: Session, operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Release store %s failed: %s", operation, exc)
        raise StoreUnavailableError(f"Release store unavailable during {operation}") from exc


def get_all(db: Session) -> List[Dict]:
    with _store_call(db, "get_all"):
        rows = db.query(ReleaseDocument).order_by(ReleaseDocument.created_at.desc()).all()
        return [dict(row.document or {}, id=row.id) for row in rows]


def get_one(db: Session, release_id: str) -> Optional[Dict]:
    with _store_call(db, "get_one"):
        row = db.get(ReleaseDocument, release_id)
        if row is None:
            return None
        return dict(row.document or {}, id=row.id)


def put(db: Session, release_id: str, document: Dict) -> str:
    """Create the document when the id is absent, replace it when present."""
    with _store_call(db, "put"):
        row = db.get(ReleaseDocument, release_id)
        if row is None:
            db.add(ReleaseDocument(id=release_id, document=dict(document, id=release_id)))
        else:
            row.document = dict(document, id=release_id)
        db.commit()
        return release_id


def remove(db: Session, release_id: str) -> bool:
    with _store_call(db, "remove"):
        row = db.get(ReleaseDocument, release_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
        return True


def replace_all(db: Session, documents: Iterable[Dict]) -> int:
    """Swap the whole collection for *documents* in one transaction."""
    with _store_call(db, "replace_all"):
        db.query(ReleaseDocument).delete()
        count = 0
        for document in documents:
            db.add(ReleaseDocument(id=document["id"], document=dict(document)))
            count += 1
        db.commit()
        return count
