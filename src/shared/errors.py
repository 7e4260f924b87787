"""Custom exception classes for spec loading, validation and generation."""
from __future__ import annotations


class TypeGenError(Exception):
    """Base application error."""

    def __init__(self, detail: str, exit_code: int = 1) -> None:
        self.detail = detail
        self.exit_code = exit_code
        super().__init__(detail)


class InputFileError(TypeGenError):
    """Input file could not be accessed (exit code 2)."""

    def __init__(self, detail: str = "Input file error") -> None:
        super().__init__(detail=detail, exit_code=2)


class SpecFileNotFoundError(InputFileError):
    """Input file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class NotAFileError(InputFileError):
    """Input path exists but is not a regular file."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path is not a file: {path}")


class SpecPermissionError(InputFileError):
    """Input file is not readable."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Permission denied: {path}")


class SpecFileTooLargeError(InputFileError):
    """Input file exceeds the configured size ceiling."""

    def __init__(self, path: str, size: int, max_size: int) -> None:
        self.path = path
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"File too large ({size / 1024 / 1024:.2f}MB). "
            f"Maximum size is {max_size / 1024 / 1024:g}MB"
        )


class SpecParsingError(TypeGenError):
    """Document could not be decoded into a usable root (exit code 3)."""

    def __init__(self, detail: str = "Failed to parse AsyncAPI document") -> None:
        super().__init__(detail=detail, exit_code=3)


class SpecValidationError(TypeGenError):
    """Document failed AsyncAPI validation (exit code 4).

    Every validation error is collected into a single failure.
    """

    def __init__(
        self,
        errors: list[str],
        warnings: list[str] | None = None,
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        lines = [f"Failed to parse AsyncAPI specification ({len(self.errors)} error(s)):"]
        lines.extend(f"  - {error}" for error in self.errors)
        super().__init__(detail="\n".join(lines), exit_code=4)


class ConfigurationError(TypeGenError):
    """Invalid command-line arguments or settings (exit code 2)."""

    def __init__(self, detail: str = "Configuration error") -> None:
        super().__init__(detail=detail, exit_code=2)


class OutputWriteError(TypeGenError):
    """Generated output could not be written (exit code 5)."""

    def __init__(self, detail: str = "Failed to write output") -> None:
        super().__init__(detail=detail, exit_code=5)
