"""Shared constants used across the generator."""
from __future__ import annotations

# Application version
VERSION: str = "0.1.0"

# Program / logger names
SERVICE_NAME: str = "asyncapi-typegen"
LOGGER_NAMESPACE: str = "src"

# Input limits
MAX_FILE_SIZE_BYTES: int = 10 * 1024 * 1024
MAX_PATH_LENGTH: int = 4096
MAX_DOCUMENT_DEPTH: int = 64

# Supported file extensions
ALLOWED_INPUT_EXTENSIONS: list[str] = [".json", ".yml", ".yaml"]
OUTPUT_EXTENSION: str = ".ts"
DEFAULT_OUTPUT_PATH: str = "generated-types.ts"

# Supported AsyncAPI major version
SUPPORTED_ASYNCAPI_MAJOR: str = "3"

# JSON pointer prefixes
SCHEMA_REF_PREFIX: str = "#/components/schemas/"
MESSAGE_REF_PREFIX: str = "#/components/messages/"
CHANNEL_REF_PREFIX: str = "#/channels/"
