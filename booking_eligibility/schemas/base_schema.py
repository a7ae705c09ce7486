"""Base model shared by every document and result schema."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case fields in Python, camelCase keys in stored documents and responses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
