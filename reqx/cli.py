"""reqx CLI - run the HTTP requests described in a .reqx file."""

import logging
import sys

import click

from reqx.errors import ExecutionError, LexError, ParseError

TOOL_HELP = """\
reqx — Execute HTTP requests defined in .reqx files.

\b
FILE FORMAT
───────────
  @base = https://api.example.com      # variable
  # List users                         # comment (names the next request)
  GET {{base}}/users                   # METHOD url
  Accept: application/json             # headers

  ###                                  # separates request blocks

  :3000/api/items                      # bare URL, :PORT → http://localhost:PORT
  Content-Type: application/json

  {"name": "{{env.USER}}"}             # body after a blank line

  Without a method, a request with a body is POST, otherwise GET.

\b
CHAINING
────────
  Variable lines after a request line capture values from its JSON
  response for later requests:

  \b
  POST {{base}}/login

  {"user": "admin"}

  @token = access_token
  @uid = user.id

  ###

  GET {{base}}/users/{{uid}}
  Authorization: Bearer {{token}}

  Paths: a.b (nested key), a[0] / a.0 (index), a[-1], a[] (every
  element), a[1:3] (slice). Matching is case-insensitive.

\b
VARIABLES
─────────
  Highest priority first:
  \b
  1. --var key=value            (command line)
  2. @name = value              (file; the last definition wins)
  3. defaults.variables         (config file)
  4. {{env.NAME}}               (environment / .env file)

\b
CONFIG FILE (.reqx.yaml)
────────────────────────
  Resolution order:
    1. -c/--config flag (explicit path)
    2. .reqx.yaml / .reqx.yml / reqx.yaml / reqx.yml in CWD
    3. ~/.reqx/config.yaml (global)

  \b
  defaults:
    timeout: 30                   # seconds
    env_file: .env                # relative to the config file
    variables:
      base: ${API_BASE_URL}       # env var resolved at load time
"""


@click.command(
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.argument("file")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show variables, request/response headers and request bodies.",
)
@click.option(
    "-d",
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show requests without sending them.",
)
@click.option(
    "-r",
    "--request",
    "request_index",
    type=int,
    default=None,
    metavar="INDEX",
    help="Run only the request at this 1-based index.",
)
@click.option(
    "-m",
    "--method",
    "method_filter",
    default=None,
    help="Run only requests with this HTTP method (e.g. GET, POST).",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .reqx.yaml in CWD, then ~/.reqx/config.yaml.",
)
@click.option(
    "--var",
    multiple=True,
    help="Variable as key=value. Overrides definitions in the file. Repeatable.",
)
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="Request timeout in seconds. Default: 30.",
)
@click.option(
    "--list",
    "show_list",
    is_flag=True,
    default=False,
    help="List the requests in the file without running them.",
)
@click.option("--debug", is_flag=True, default=False, help="Log pipeline internals to stderr.")
def main(
    file,
    verbose,
    dry_run,
    request_index,
    method_filter,
    config_file,
    var,
    timeout,
    show_list,
    debug,
):
    """Execute HTTP requests defined in a .reqx file."""
    from reqx.core import (
        load_config,
        load_env,
        parse_var_overrides,
        read_document,
        resolve_config_path,
        resolve_timeout,
        seed_variables,
    )
    from reqx.display import ConsoleReporter, format_listing
    from reqx.executor import RequestsTransport
    from reqx.interpreter import execute
    from reqx.lexer import tokenize
    from reqx.parser import parse

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    # --- Load config ---
    config_path = resolve_config_path(config_file)
    config = load_config(config_path)
    defaults = config.get("defaults", {})
    env = load_env(defaults.get("env_file"), config.get("_config_dir"))

    # --- Read and parse ---
    try:
        contents = read_document(file)
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Error reading file '{file}': {e}")

    try:
        tokens = tokenize(contents)
    except LexError as e:
        _fail(f"Lexer error: {e}")

    try:
        document = parse(tokens)
    except ParseError as e:
        _fail(f"Parser error: {e}")

    if show_list:
        _cmd_list(file, document, format_listing)
        return

    # --- Execute ---
    transport = RequestsTransport(timeout=resolve_timeout(timeout, defaults.get("timeout")))
    try:
        execute(
            transport,
            document,
            verbose=verbose,
            dry_run=dry_run,
            request_index=request_index,
            method_filter=method_filter,
            variables=seed_variables(config, env),
            overrides=parse_var_overrides(var),
            reporter=ConsoleReporter(),
        )
    except ExecutionError as e:
        _fail(f"Execution error: {e}")


def _cmd_list(file, document, format_listing):
    if not document.requests:
        click.echo(f"No requests found in: {file}")
        return
    click.echo(f"{len(document.requests)} request(s) in {file}:\n")
    for line in format_listing(document):
        click.echo(line)


def _fail(message):
    click.echo(f"{click.style('✖', fg='red', bold=True)} {message}", err=True)
    sys.exit(1)
