"""reqx document - the parsed form of a .reqx file."""

from dataclasses import dataclass
from enum import Enum


class HttpMethod(str, Enum):
    """Supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, name: str) -> "HttpMethod":
        """Case-insensitive lookup. Raises ValueError for unknown names."""
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(f"unsupported HTTP method: {name}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    """``@name = value`` outside of a request."""

    name: str
    value: str
    line: int


@dataclass(frozen=True)
class ExtractRule:
    """``@name = path`` after a request line: binds a response value."""

    name: str
    path: str
    line: int


@dataclass(frozen=True)
class Header:
    key: str
    value: str


@dataclass(frozen=True)
class Request:
    """One request block. All strings are raw templates."""

    method: HttpMethod
    url: str
    line: int
    comment: str | None = None
    headers: tuple[Header, ...] = ()
    body: str | None = None
    extracts: tuple[ExtractRule, ...] = ()


@dataclass(frozen=True)
class Document:
    variables: tuple[Variable, ...] = ()
    requests: tuple[Request, ...] = ()
