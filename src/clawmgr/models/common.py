"""Pydantic models shared across API responses."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(CamelModel):
    """Standard error body: ``{ok: false, error, code, traceId}``."""

    ok: bool = False
    error: str
    code: str
    trace_id: str | None = None
