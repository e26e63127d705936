"""Pydantic schemas for tasks.

- TaskCreate: what you POST (projectId required)
- TaskUpdate: what you PUT (all optional; project can't change)
- TaskRead: what the API returns
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from taskhub.schemas.common import CamelModel


class TaskCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    project_id: int = Field(..., ge=1)
    assigned_to_id: Optional[int] = Field(None, ge=1)


class TaskUpdate(CamelModel):
    """Partial update — only non-None fields are applied."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    assigned_to_id: Optional[int] = Field(None, ge=1)


class TaskRead(CamelModel):
    id: int
    title: str
    description: Optional[str]
    project_id: int
    assigned_to_id: Optional[int]
    created_by_id: int
    created_at: datetime


class TaskDeleted(CamelModel):
    success: bool = True
    deleted: TaskRead
