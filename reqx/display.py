"""reqx display - console rendering of a run. Never affects execution."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from reqx.document import Document, Request
    from reqx.executor import HttpResponse
    from reqx.interpreter import ResolvedRequest

MAX_BODY_LINES = 50

METHOD_COLORS = {
    "GET": "green",
    "POST": "yellow",
    "PUT": "blue",
    "PATCH": "magenta",
    "DELETE": "red",
    "HEAD": "cyan",
    "OPTIONS": "white",
}


def format_body(text: str, max_lines: int = MAX_BODY_LINES) -> list[str]:
    """Lines to show for a body.

    JSON is pretty-printed in full. Anything else is cut to ``max_lines``
    with a trailing ``... (N more lines)`` marker.
    """
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False).splitlines()
    except ValueError:
        pass
    lines = text.splitlines()
    if len(lines) <= max_lines:
        return lines
    return lines[:max_lines] + [f"... ({len(lines) - max_lines} more lines)"]


def format_listing(document: Document) -> list[str]:
    """One summary line per request, for --list."""
    lines = []
    for i, req in enumerate(document.requests, start=1):
        label = f"  [{i}] {req.method.value:<7} {req.url}"
        if req.comment:
            label += f"  — {req.comment}"
        lines.append(label)
    return lines


class Reporter:
    """Run observer. The base class shows nothing."""

    def variables(self, env: Mapping[str, str]) -> None:
        pass

    def no_matches(self, method_filter: str) -> None:
        pass

    def request_started(self, position: int, total: int, request: Request) -> None:
        pass

    def request_resolved(self, resolved: ResolvedRequest, verbose: bool) -> None:
        pass

    def dry_run(self) -> None:
        pass

    def response(self, response: HttpResponse, verbose: bool) -> None:
        pass

    def extracted(self, name: str, value: str, verbose: bool) -> None:
        pass

    def request_finished(self) -> None:
        pass


class ConsoleReporter(Reporter):
    """Colored terminal output via click."""

    def variables(self, env):
        # env.* entries mirror the process environment; too noisy to list
        shown = {k: v for k, v in env.items() if not k.startswith("env.")}
        click.echo(click.style("── Variables ──", dim=True))
        for name, value in shown.items():
            click.echo(f"  {click.style(name, fg='cyan')} = {value}")
        click.echo()

    def no_matches(self, method_filter):
        click.echo(click.style(f"No requests matched the method filter: {method_filter}", dim=True))

    def request_started(self, position, total, request):
        banner = f"━━━ Request {position + 1}/{total} ━━━"
        click.echo(click.style(banner, fg="blue", bold=True))
        if request.comment:
            click.echo(f"{click.style('▸', fg='green')} {click.style(request.comment, bold=True)}")

    def request_resolved(self, resolved, verbose):
        method = resolved.method.value
        click.echo(
            f"{click.style(method, fg=METHOD_COLORS.get(method), bold=True)} "
            f"{click.style(resolved.url, underline=True)}",
        )
        if not verbose:
            return
        for key, value in resolved.headers:
            click.echo(f"  {click.style(key, dim=True)}: {value}")
        if resolved.body is not None:
            click.echo(f"  {click.style('Body:', dim=True)}")
            for line in format_body(resolved.body):
                click.echo(f"    {line}")

    def dry_run(self):
        click.echo(click.style("  (dry-run: request not sent)", dim=True, italic=True))

    def response(self, response, verbose):
        click.echo(f"  {click.style('Status:', dim=True)} {_styled_status(response)}")
        if verbose:
            click.echo(f"  {click.style('Response Headers:', dim=True)}")
            for key, value in response.headers:
                click.echo(f"    {click.style(key, dim=True)}: {value}")
        if response.body:
            click.echo(f"  {click.style('Response Body:', dim=True)}")
            for line in format_body(response.body):
                click.echo(f"    {line}")

    def extracted(self, name, value, verbose):
        if verbose:
            click.echo(f"  {click.style('extracted', dim=True)} {click.style(name, fg='cyan')} = {value}")

    def request_finished(self):
        click.echo()


def _styled_status(response: HttpResponse) -> str:
    if response.is_success:
        color = "green"
    elif response.is_client_error:
        color = "yellow"
    elif response.is_server_error:
        color = "red"
    else:
        color = "white"
    return click.style(str(response.status), fg=color, bold=True)
