"""reqx parser - builds a Document from the lexer's token stream."""

import logging

from reqx.document import Document, ExtractRule, Header, HttpMethod, Request, Variable
from reqx.errors import ParseError
from reqx.lexer import Token, TokenKind

logger = logging.getLogger(__name__)


class Parser:
    """Single-pass parser over a token list with one-token lookahead.

    Variables written before a block's request line are document variables.
    Variables written after it, up to the next separator, are extraction
    rules for that request.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0
        self.variables: list[Variable] = []
        self.requests: list[Request] = []

    def parse(self) -> Document:
        self._parse_leading()

        while True:
            while self._at(TokenKind.BLANK, TokenKind.SEPARATOR):
                self.pos += 1
            if self._peek() is None:
                break
            self.requests.append(self._parse_request())

        logger.debug(
            "parsed %d variable(s) and %d request(s)",
            len(self.variables),
            len(self.requests),
        )
        return Document(variables=tuple(self.variables), requests=tuple(self.requests))

    # ── Leading region ───────────────────────────────────────────────────

    def _parse_leading(self) -> None:
        while (tok := self._peek()) is not None:
            if tok.kind is TokenKind.VARIABLE:
                self._add_variable(self._next())
            elif tok.kind is TokenKind.BLANK:
                self.pos += 1
            elif tok.kind is TokenKind.COMMENT:
                upcoming = self._next_meaningful(self.pos + 1)
                if upcoming is not None and upcoming.kind is TokenKind.METHOD:
                    return  # belongs to the first request
                self.pos += 1
            elif tok.kind is TokenKind.SEPARATOR:
                self.pos += 1
                return
            else:
                return

    # ── Request blocks ───────────────────────────────────────────────────

    def _parse_request(self) -> Request:
        comment = self._parse_prelude()
        method, url, line = self._parse_request_line()
        headers = self._parse_headers()
        body = self._parse_body()
        extracts = self._parse_extracts()

        if method is None:
            method = HttpMethod.POST if body is not None else HttpMethod.GET

        return Request(
            method=method,
            url=url,
            line=line,
            comment=comment,
            headers=tuple(headers),
            body=body,
            extracts=tuple(extracts),
        )

    def _parse_prelude(self) -> str | None:
        """Consume comments, blanks and variables ahead of the request line.

        The last comment wins.
        """
        comment = None
        while (tok := self._peek()) is not None:
            if tok.kind is TokenKind.COMMENT:
                comment = tok.text
                self.pos += 1
            elif tok.kind is TokenKind.VARIABLE:
                self._add_variable(self._next())
            elif tok.kind is TokenKind.BLANK:
                self.pos += 1
            else:
                break
        return comment

    def _parse_request_line(self) -> tuple[HttpMethod | None, str, int]:
        first = self._next()
        if first is None:
            raise ParseError("Unexpected end of input: expected HTTP method or URL")

        if first.kind is TokenKind.URL:
            return None, first.text, first.line

        if first.kind is not TokenKind.METHOD:
            raise ParseError(
                f"expected HTTP method or URL, found {_describe(first)}",
                first.line,
            )

        try:
            method = HttpMethod.parse(first.text)
        except ValueError as e:
            raise ParseError(str(e), first.line) from None

        url_tok = self._next()
        if url_tok is None or url_tok.kind is not TokenKind.URL:
            raise ParseError("expected URL after method", first.line)
        return method, url_tok.text, first.line

    def _parse_headers(self) -> list[Header]:
        headers: list[Header] = []
        while (tok := self._peek()) is not None:
            if tok.kind is TokenKind.HEADER:
                headers.append(Header(key=tok.name, value=tok.value))
                self.pos += 1
            elif tok.kind is TokenKind.BLANK:
                self.pos += 1
                break
            else:
                break
        return headers

    def _parse_body(self) -> str | None:
        lines: list[str] = []
        while (tok := self._peek()) is not None:
            if tok.kind is TokenKind.BODY_LINE:
                lines.append(tok.text)
                self.pos += 1
            elif tok.kind is TokenKind.BLANK:
                following = self._peek(1)
                if following is None or following.kind is not TokenKind.BODY_LINE:
                    break
                # blank line inside the body
                lines.append("")
                self.pos += 1
            else:
                break
        return "\n".join(lines) if lines else None

    def _parse_extracts(self) -> list[ExtractRule]:
        extracts: list[ExtractRule] = []
        while (tok := self._peek()) is not None:
            if tok.kind is TokenKind.VARIABLE:
                extracts.append(ExtractRule(name=tok.name, path=tok.value, line=tok.line))
                self.pos += 1
            elif tok.kind is TokenKind.BLANK:
                self.pos += 1
            else:
                break
        return extracts

    # ── Cursor helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> Token | None:
        idx = self.pos + offset
        return self.tokens[idx] if idx < len(self.tokens) else None

    def _next(self) -> Token | None:
        tok = self._peek()
        if tok is not None:
            self.pos += 1
        return tok

    def _at(self, *kinds: TokenKind) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind in kinds

    def _next_meaningful(self, start: int) -> Token | None:
        for tok in self.tokens[start:]:
            if tok.kind is not TokenKind.BLANK:
                return tok
        return None

    def _add_variable(self, tok: Token) -> None:
        self.variables.append(Variable(name=tok.name, value=tok.value, line=tok.line))


def _describe(tok: Token) -> str:
    if tok.kind is TokenKind.HEADER:
        return f"header '{tok.name}'"
    if tok.text:
        return f"{tok.kind.value} '{tok.text.strip()}'"
    return tok.kind.value


def parse(tokens: list[Token]) -> Document:
    """Parse a token list into a Document. Raises ParseError."""
    return Parser(tokens).parse()
