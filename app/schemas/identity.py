from typing import Optional
from pydantic import BaseModel


class Identity(BaseModel):
    """Caller recorded on writes (createdBy / updatedBy / history entries)."""
    email: str
    display_name: Optional[str] = None
