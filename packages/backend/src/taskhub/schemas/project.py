"""Pydantic schemas for projects."""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from taskhub.schemas.common import CamelModel


class ProjectCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class ProjectUpdate(CamelModel):
    """Partial update — only non-None fields are applied."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class ProjectRead(CamelModel):
    id: int
    title: str
    description: Optional[str]
    owner_id: int
    created_at: datetime


class ProjectDeleted(CamelModel):
    success: bool = True
    deleted: ProjectRead
