"""Pydantic schema for the ``modules:`` section of a workspace document."""

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class ModuleEntry(BaseModel):
    """A single ``modules`` list entry.

    Only ``name``, ``uses`` and ``input`` are legal keys.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Module name, unique within its document")
    uses: list[str] = Field(default_factory=list, description="References to documents, directories or packages")
    input: dict[str, Any] | None = Field(None, description="Module input values passed to rules")

    @field_validator("uses", mode="before")
    @classmethod
    def _coerce_uses(cls, value: Any) -> Any:
        # `uses: ./rules` is accepted as shorthand for a one-element list
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ModulesSection(BaseModel):
    """The ``modules`` section of a document (other top-level keys are ignored)."""

    modules: list[ModuleEntry] = Field(default_factory=list)

    @field_validator("modules", mode="before")
    @classmethod
    def _coerce_modules(cls, value: Any) -> Any:
        return [] if value is None else value
