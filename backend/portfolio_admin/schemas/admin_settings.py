"""AdminSettings schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AdminSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""

    github_username: Optional[str] = Field(None, max_length=100)
    repo_filter: Optional[str] = Field(None, max_length=255)
    max_repos: Optional[int] = Field(None, ge=1, le=100)
    bio_override: Optional[str] = None


class AdminSettingsResponse(BaseModel):
    id: int
    github_username: Optional[str] = None
    repo_filter: Optional[str] = None
    max_repos: Optional[int] = None
    bio_override: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True
