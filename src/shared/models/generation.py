"""Pydantic v2 models for generator options and outcomes."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class EnumStyle(str, Enum):
    """How string enums are rendered."""
    ENUM = "enum"
    UNION = "union"


class GeneratorOptions(BaseModel):
    """Options consumed by the TypeScript generator."""
    enum_type: EnumStyle = EnumStyle.UNION
    use_unknown: bool = True
    export_everything: bool = True

    model_config = {"frozen": True}


class ValidationResult(BaseModel):
    """Result of validating an AsyncAPI document."""
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class GenerationResult(BaseModel):
    """Rendered TypeScript plus the bookkeeping of one generation run."""
    output: str
    declarations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return len(self.output.encode("utf-8"))
