# ContentSync Errors
# Error values reported by sources, fetches and parsers

from dataclasses import dataclass
from enum import Enum


class SourceErrorKind(str, Enum):
    """Category of a source failure."""

    CONFIG = "config"  # Bad or missing setup
    FETCH = "fetch"  # Network or remote failure
    PARSE = "parse"  # Malformed response or document shape


@dataclass(frozen=True)
class SourceError:
    """A failure reported by a content source."""

    kind: SourceErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value} error: {self.message}"


def config_error(message: str) -> SourceError:
    """Create a configuration error."""
    return SourceError(SourceErrorKind.CONFIG, message)


def fetch_error(message: str) -> SourceError:
    """Create a fetch error."""
    return SourceError(SourceErrorKind.FETCH, message)


def parse_error(message: str) -> SourceError:
    """Create a parse error."""
    return SourceError(SourceErrorKind.PARSE, message)
