"""Shared model config and base types."""
from pydantic import BaseModel, ConfigDict


class OBBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, populate_by_name=True)
