"""reqx lexer - classifies each source line of a .reqx file into tokens."""

import logging
from dataclasses import dataclass
from enum import Enum

from reqx.document import HttpMethod
from reqx.errors import LexError

logger = logging.getLogger(__name__)

SEPARATOR = "###"
URL_PREFIXES = ("http://", "https://", "localhost", ":")
METHOD_NAMES = frozenset(m.value for m in HttpMethod)


class TokenKind(Enum):
    COMMENT = "comment"
    SEPARATOR = "separator"
    VARIABLE = "variable"
    METHOD = "method"
    URL = "url"
    HEADER = "header"
    BODY_LINE = "body_line"
    BLANK = "blank"


@dataclass(frozen=True)
class Token:
    """A classified source line.

    Payload by kind:
      COMMENT    text = comment text after '#'
      VARIABLE   name, value
      METHOD     text = upper-cased method name
      URL        text = raw URL
      HEADER     name = header key, value = header value
      BODY_LINE  text = raw, untrimmed line
    """

    kind: TokenKind
    line: int
    text: str = ""
    name: str = ""
    value: str = ""


class LexerState(Enum):
    DEFAULT = "default"
    IN_BODY = "in_body"


class Lexer:
    """Line-at-a-time state machine.

    ``state`` tracks whether lines are body content; ``seen_request_line``
    tracks whether the current block already has its method/URL line. Both
    reset on a ``###`` separator.
    """

    def __init__(self):
        self.tokens: list[Token] = []
        self.state = LexerState.DEFAULT
        self.seen_request_line = False

    def feed(self, raw_line: str, line: int) -> None:
        """Classify one physical line. First matching rule wins."""
        trimmed = raw_line.strip()

        if trimmed == SEPARATOR:
            self._separator(line)
        elif not trimmed:
            self._blank(line)
        elif trimmed.startswith("@"):
            self._variable(trimmed, line)
        elif self.state is LexerState.IN_BODY:
            self._emit(TokenKind.BODY_LINE, line, text=raw_line)
        elif trimmed.startswith("#"):
            self._emit(TokenKind.COMMENT, line, text=trimmed[1:].strip())
        elif self._request_line(trimmed, line):
            pass
        elif self._header(trimmed, line):
            pass
        elif not self.seen_request_line:
            self._emit(TokenKind.URL, line, text=trimmed)
            self.seen_request_line = True
        else:
            self._emit(TokenKind.BODY_LINE, line, text=raw_line)

    # ── Individual rules ─────────────────────────────────────────────────

    def _separator(self, line: int) -> None:
        self.state = LexerState.DEFAULT
        self.seen_request_line = False
        self._emit(TokenKind.SEPARATOR, line)

    def _blank(self, line: int) -> None:
        # A blank line after headers or a bare URL opens the body region.
        if self.state is LexerState.DEFAULT:
            last = self._last_meaningful()
            if last is not None and last.kind in (TokenKind.HEADER, TokenKind.URL):
                self.state = LexerState.IN_BODY
        self._emit(TokenKind.BLANK, line)

    def _variable(self, trimmed: str, line: int) -> None:
        eq = trimmed.find("=")
        if eq == -1:
            raise LexError(f"invalid variable definition (missing '='): {trimmed}", line)
        name = trimmed[1:eq].strip()
        if not name:
            raise LexError("empty variable name", line)
        self.state = LexerState.DEFAULT
        self._emit(TokenKind.VARIABLE, line, name=name, value=trimmed[eq + 1 :].strip())

    def _request_line(self, trimmed: str, line: int) -> bool:
        if self.seen_request_line:
            return False

        first_word = trimmed.split(maxsplit=1)[0]
        method = first_word.upper()
        if method in METHOD_NAMES:
            self._emit(TokenKind.METHOD, line, text=method)
            url = trimmed[len(first_word) :].strip()
            if url:
                self._emit(TokenKind.URL, line, text=url)
            self.seen_request_line = True
            return True

        if trimmed.startswith(URL_PREFIXES):
            self._emit(TokenKind.URL, line, text=trimmed)
            self.seen_request_line = True
            return True

        return False

    def _header(self, trimmed: str, line: int) -> bool:
        colon = trimmed.find(":")
        if colon == -1:
            return False
        key = trimmed[:colon].strip()
        if not key or " " in key:
            return False
        self._emit(TokenKind.HEADER, line, name=key, value=trimmed[colon + 1 :].strip())
        return True

    # ── Helpers ──────────────────────────────────────────────────────────

    def _emit(self, kind: TokenKind, line: int, **payload: str) -> None:
        self.tokens.append(Token(kind, line, **payload))

    def _last_meaningful(self) -> Token | None:
        for token in reversed(self.tokens):
            if token.kind is not TokenKind.BLANK:
                return token
        return None


def tokenize(text: str) -> list[Token]:
    """Tokenize the contents of a .reqx file.

    Raises LexError on a malformed variable line.
    """
    lexer = Lexer()
    lines = _physical_lines(text)
    for idx, raw_line in enumerate(lines):
        lexer.feed(raw_line, idx + 1)
    logger.debug("tokenized %d lines into %d tokens", len(lines), len(lexer.tokens))
    return lexer.tokens


def _physical_lines(text: str) -> list[str]:
    """Split on "\\n" and "\\r\\n" only; other line-break characters are content."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
