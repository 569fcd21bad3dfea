from sqlalchemy import Column, String, DateTime, JSON, func
from app.db.base_class import Base


class ReleaseDocument(Base):
    """One release, stored whole as its canonical JSON document."""
    __tablename__ = "releases"

    id = Column(String(64), primary_key=True, index=True)
    document = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
