"""Shared schema base.

Learn: the wire format is camelCase (accessToken, ownerId, projectId)
while Python stays snake_case. One alias generator on a base model
handles both directions; populate_by_name lets tests and internal code
use the snake_case names too.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

