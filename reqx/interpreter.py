"""reqx interpreter - resolves variables and drives requests through a transport."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from reqx.display import Reporter
from reqx.document import Document, HttpMethod, Request
from reqx.errors import ExtractionError, InterpolationError, SelectionError
from reqx.executor import HttpResponse, Transport
from reqx.filters import extract_value, stringify

logger = logging.getLogger(__name__)

LOCALHOST = "http://localhost"


@dataclass(frozen=True)
class ResolvedRequest:
    """A request after interpolation and URL expansion."""

    method: HttpMethod
    url: str
    headers: list[tuple[str, str]]
    body: str | None


@dataclass(frozen=True)
class Exchange:
    """One selected request and what happened to it.

    ``position`` is the 0-based index in the document; ``response`` is None
    on a dry run.
    """

    position: int
    request: Request
    resolved: ResolvedRequest
    response: HttpResponse | None


# ── Variables ────────────────────────────────────────────────────────────


def build_environment(
    document: Document,
    variables: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the variable environment for a run.

    Precedence, lowest first:
      1. ``variables`` (config defaults, ``env.*`` entries)
      2. document variables, in document order (last definition wins)
      3. ``overrides`` (--var on the command line)
    """
    env = dict(variables or {})
    for var in document.variables:
        env[var.name] = var.value
    env.update(overrides or {})
    return env


def interpolate(text: str, env: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` spans with values from ``env``.

    The name is the trimmed text up to the next ``}}``. Substituted values
    are not re-scanned, and there is no escape for a literal ``{{``.
    """
    out: list[str] = []
    pos = 0
    while True:
        start = text.find("{{", pos)
        if start == -1:
            out.append(text[pos:])
            break
        out.append(text[pos:start])
        end = text.find("}}", start + 2)
        if end == -1:
            raise InterpolationError(f"Unclosed variable interpolation: {text[start:]}")
        name = text[start + 2 : end].strip()
        if name not in env:
            raise InterpolationError(f"Undefined variable: {name}")
        out.append(env[name])
        pos = end + 2
    return "".join(out)


def expand_url(url: str) -> str:
    """``:3000/x`` → ``http://localhost:3000/x``; anything else unchanged."""
    if url.startswith(":"):
        return LOCALHOST + url
    return url


def resolve_request(request: Request, env: Mapping[str, str]) -> ResolvedRequest:
    """Interpolate URL, then headers (key and value), then body."""
    url = expand_url(interpolate(request.url, env))
    headers = [(interpolate(h.key, env), interpolate(h.value, env)) for h in request.headers]
    body = interpolate(request.body, env) if request.body is not None else None
    return ResolvedRequest(method=request.method, url=url, headers=headers, body=body)


# ── Selection ────────────────────────────────────────────────────────────


def select_requests(
    document: Document,
    request_index: int | None = None,
    method_filter: str | None = None,
) -> list[tuple[int, Request]]:
    """Pick the requests to run as (0-based position, request) pairs.

    ``request_index`` is 1-based. An empty result after method filtering is
    not an error.
    """
    total = len(document.requests)
    if request_index is not None:
        if request_index < 1 or request_index > total:
            raise SelectionError(
                f"Invalid request index: {request_index}. The file has {total} request(s).",
            )
        selected = [(request_index - 1, document.requests[request_index - 1])]
    else:
        selected = list(enumerate(document.requests))

    if method_filter is not None:
        try:
            target = HttpMethod.parse(method_filter)
        except ValueError:
            raise SelectionError(f"Invalid HTTP method filter: {method_filter}") from None
        selected = [(pos, req) for pos, req in selected if req.method is target]

    return selected


# ── Extraction ───────────────────────────────────────────────────────────


def apply_extractions(
    request: Request,
    response: HttpResponse,
    env: dict[str, str],
) -> dict[str, str]:
    """Bind each extraction rule's value from the JSON response into ``env``.

    Returns the bindings that were written.
    """
    if not request.extracts:
        return {}

    try:
        data = json.loads(response.body)
    except ValueError:
        raise ExtractionError(
            f"cannot extract '{request.extracts[0].name}': response body is not valid JSON",
            request.extracts[0].line,
        ) from None

    bound: dict[str, str] = {}
    for rule in request.extracts:
        found, value = extract_value(data, rule.path)
        if not found:
            raise ExtractionError(
                f"cannot extract '{rule.name}': path '{rule.path}' not found in response",
                rule.line,
            )
        bound[rule.name] = stringify(value)
    env.update(bound)
    logger.debug("extracted %s", ", ".join(bound))
    return bound


# ── Execution ────────────────────────────────────────────────────────────


def execute(
    transport: Transport,
    document: Document,
    verbose: bool = False,
    dry_run: bool = False,
    request_index: int | None = None,
    method_filter: str | None = None,
    *,
    variables: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
    reporter: Reporter | None = None,
) -> list[Exchange]:
    """Run the selected requests of ``document`` one after another.

    Stops at the first error (ExecutionError subclasses); nothing after it is
    sent. Returns one Exchange per request that was processed.
    """
    reporter = reporter or Reporter()
    env = build_environment(document, variables, overrides)
    if verbose:
        reporter.variables(env)

    selected = select_requests(document, request_index, method_filter)
    if method_filter is not None and not selected:
        reporter.no_matches(method_filter)
        return []

    total = len(document.requests)
    exchanges: list[Exchange] = []
    for position, request in selected:
        reporter.request_started(position, total, request)
        resolved = resolve_request(request, env)
        reporter.request_resolved(resolved, verbose)

        if dry_run:
            reporter.dry_run()
            for rule in request.extracts:
                env.setdefault(rule.name, "{{" + rule.name + "}}")
            exchanges.append(Exchange(position, request, resolved, None))
            reporter.request_finished()
            continue

        logger.debug("sending request %d/%d: %s %s", position + 1, total, resolved.method, resolved.url)
        response = transport.send(resolved.method, resolved.url, resolved.headers, resolved.body)
        reporter.response(response, verbose)

        for name, value in apply_extractions(request, response, env).items():
            reporter.extracted(name, value, verbose)

        exchanges.append(Exchange(position, request, resolved, response))
        reporter.request_finished()

    return exchanges
