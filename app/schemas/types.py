"""
Shared Pydantic types for schema validation.

CamelModel: field clients send camelCase keys (``jobId``, ``completedStep``)
while the Python side uses snake_case. Both spellings are accepted.
"""

from typing import Annotated, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Empty strings from form fields count as missing
OptionalStr = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
