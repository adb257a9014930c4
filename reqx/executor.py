"""reqx executor - the transport that actually sends requests."""

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

import requests

from reqx.document import HttpMethod
from reqx.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class HttpResponse:
    """Result of an HTTP request.

    The status class flags are computed once from ``status``.
    """

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""
    elapsed_ms: float = 0
    is_success: bool = field(init=False)
    is_client_error: bool = field(init=False)
    is_server_error: bool = field(init=False)

    def __post_init__(self):
        self.is_success = 200 <= self.status < 300
        self.is_client_error = 400 <= self.status < 500
        self.is_server_error = 500 <= self.status < 600


class Transport(Protocol):
    """Anything that can send one request.

    Implementations raise TransportError on failure.
    """

    def send(
        self,
        method: HttpMethod,
        url: str,
        headers: list[tuple[str, str]],
        body: str | None,
    ) -> HttpResponse: ...


class RequestsTransport:
    """Transport backed by a single requests.Session for the whole run."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(
        self,
        method: HttpMethod,
        url: str,
        headers: list[tuple[str, str]],
        body: str | None,
    ) -> HttpResponse:
        """Send the request and return the response.

        - Follows redirects
        - Encodes the body as UTF-8
        - Joins duplicate header keys with ", " (requests takes a mapping)
        - Maps every requests failure to TransportError
        """
        try:
            start = time.monotonic()
            resp = self.session.request(
                method=str(method),
                url=url,
                headers=_merge_headers(headers),
                data=body.encode("utf-8") if body is not None else None,
                timeout=self.timeout,
                allow_redirects=True,
            )
            elapsed_ms = (time.monotonic() - start) * 1000
        except requests.exceptions.Timeout:
            raise TransportError(f"Request timed out after {self.timeout}s") from None
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        logger.debug("%s %s -> %d (%dms)", method, url, resp.status_code, elapsed_ms)
        return HttpResponse(
            status=resp.status_code,
            headers=list(resp.headers.items()),
            body=resp.text,
            elapsed_ms=elapsed_ms,
        )


def _merge_headers(headers: list[tuple[str, str]]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for key, value in headers:
        if key in merged:
            merged[key] = f"{merged[key]}, {value}"
        else:
            merged[key] = value
    return merged
