"""Shared Pydantic building blocks."""
from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """Base for PATCH-style payloads: omitted fields are left alone, explicit nulls are rejected."""

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class MessageOut(BaseModel):
    message: str
