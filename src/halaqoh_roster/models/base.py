'''
Shared base for PATCH payloads.
'''
from typing import ClassVar

from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """
    A partial update. Every field may be left out, but the fields named in
    `non_nullable` map to NOT NULL columns and may not be sent as null.
    """
    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode='before')
    @classmethod
    def refuse_explicit_nulls(cls, data):
        if isinstance(data, dict):
            nulled = [name for name in cls.non_nullable if name in data and data[name] is None]
            if nulled:
                raise ValueError(f"{', '.join(nulled)} cannot be null")
        return data
