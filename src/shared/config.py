"""Generator configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from src.shared.constants import DEFAULT_OUTPUT_PATH, MAX_FILE_SIZE_BYTES
from src.shared.models.generation import EnumStyle, GeneratorOptions


class SharedConfig(BaseSettings):
    """Base configuration shared by every entry point."""
    log_level: str = Field(default="warning", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class TypeGenConfig(SharedConfig):
    """Configuration for spec loading and TypeScript generation."""
    max_file_size: int = Field(
        default=MAX_FILE_SIZE_BYTES, gt=0, validation_alias="TYPEGEN_MAX_FILE_SIZE"
    )
    default_output: str = Field(
        default=DEFAULT_OUTPUT_PATH, validation_alias="TYPEGEN_DEFAULT_OUTPUT"
    )
    enum_type: EnumStyle = Field(
        default=EnumStyle.UNION, validation_alias="TYPEGEN_ENUM_TYPE"
    )
    use_unknown: bool = Field(default=True, validation_alias="TYPEGEN_USE_UNKNOWN")
    export_everything: bool = Field(
        default=True, validation_alias="TYPEGEN_EXPORT_EVERYTHING"
    )

    def generator_options(self, **overrides: object) -> GeneratorOptions:
        """Build :class:`GeneratorOptions` from settings.

        Keyword overrides whose value is ``None`` are ignored so that unset
        command-line flags fall back to the configured defaults.
        """
        values: dict[str, object] = {
            "enum_type": self.enum_type,
            "use_unknown": self.use_unknown,
            "export_everything": self.export_everything,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GeneratorOptions(**values)
