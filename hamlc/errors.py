from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    INDENTATION = 'IndentationError'
    BLOCK_TOO_DEEP = 'BlockTooDeepError'


class CompileError(ValueError):
    """Fatal template error, reported with the 1-based source line."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, line: int):
        super().__init__(f"Haml Compile Error (Line {line}): {message}")
        self.reason = message
        self.line = line


class TemplateIndentationError(CompileError):
    """Leading whitespace is not a multiple of the inferred tab unit."""

    kind = ErrorKind.INDENTATION


class BlockTooDeepError(CompileError):
    """Nesting increased by more than one level between two lines."""

    kind = ErrorKind.BLOCK_TOO_DEEP


class ConfigError(ValueError):
    """Invalid compiler options or project configuration."""


def error_for(kind: ErrorKind):
    """Returns the exception class matching an error kind."""
    return {
        ErrorKind.INDENTATION: TemplateIndentationError,
        ErrorKind.BLOCK_TOO_DEEP: BlockTooDeepError,
    }[kind]
