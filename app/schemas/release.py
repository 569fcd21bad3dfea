"""Release schemas.

Stored documents and API payloads use the camelCase field names of the
dashboard (``releaseDate``, ``conceptReleases`` ...); attributes are
snake_case.
"""
from datetime import date
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

ALL_CONCEPTS = "All Concepts"


class ReleaseStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    PAUSED = "Paused"
    ON_HOLD = "On Hold"


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ─── Stored document ───

class RolloutHistoryEntry(CamelModel):
    percentage: int
    date: str
    notes: Optional[str] = None
    updated_by: Optional[str] = None
    updated_by_name: Optional[str] = None


class ConceptRelease(CamelModel):
    id: str = ""
    concepts: List[str] = Field(default_factory=lambda: [ALL_CONCEPTS])
    version: str = ""
    build_id: str = ""
    rollout_percentage: int = 0
    status: str = ReleaseStatus.NOT_STARTED.value  # open-ended, see ReleaseStatus
    notes: str = ""
    build_link: str = ""
    rollout_history: List[RolloutHistoryEntry] = Field(default_factory=list)


class PlatformRelease(CamelModel):
    platform: str
    concept_releases: List[ConceptRelease] = Field(default_factory=list)


class Release(CamelModel):
    id: str = ""
    release_date: str = ""
    release_name: str = ""
    environment: str = ""
    concept: Optional[str] = None  # deprecated grouping, read-only
    platforms: List[PlatformRelease] = Field(default_factory=list)
    changes: List[str] = Field(default_factory=list)
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    updated_by: Optional[str] = None
    updated_by_name: Optional[str] = None


class ReleaseRead(Release):
    overall_status: str


# ─── Input payloads ───

class ReleaseCreate(CamelModel):
    """Form payload. ``platforms`` stays raw so legacy shapes can be submitted;
    anything that is not a list is read as no platforms."""
    release_date: date
    release_name: str = Field(min_length=1)
    environment: str = Field(min_length=1)
    platforms: Any = Field(default_factory=list)
    changes: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("release_name", "environment")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ReleaseUpdate(ReleaseCreate):
    pass


class RolloutUpdate(CamelModel):
    rollout_percentage: int = Field(ge=0, le=100)
    notes: Optional[str] = None


# ─── Derived views ───

class ConceptProgress(CamelModel):
    id: str
    concepts: List[str]
    rollout_percentage: int
    status: str


class PlatformProgress(CamelModel):
    platform: str
    concept_releases: List[ConceptProgress]


class ReleaseStats(CamelModel):
    total_releases: int = 0
    active_releases: int = 0
    completed_releases: int = 0
    paused_releases: int = 0


class ReleaseSort(str, Enum):
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    NAME = "name"
    UPDATED = "updated"


class ReleaseFilter(BaseModel):
    platform: Optional[str] = None
    environment: Optional[str] = None
    concept: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sort_by: ReleaseSort = ReleaseSort.DATE_DESC


class ImportResult(BaseModel):
    success: bool
    message: str
    count: int = 0
