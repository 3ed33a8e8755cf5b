"""
Shared base for response schemas.

Responses are read from ORM objects by field name and written out in
camelCase (`maxSeats`, `countryCode`, `createdAt`), the shape existing
clients consume.
"""

from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ResponseModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )
