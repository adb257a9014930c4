"""reqx errors - one exception family for every pipeline stage."""


class ReqxError(Exception):
    """Base exception for all reqx errors.

    ``line`` is the 1-based source line when the error can be pinned to one.
    """

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.line is not None:
            return f"Line {self.line}: {self.message}"
        return self.message


class LexError(ReqxError):
    """Malformed variable line: missing '=' or empty name."""


class ParseError(ReqxError):
    """Grammar violation: missing URL, unsupported method, early end of input."""


class ExecutionError(ReqxError):
    """Raised while running a parsed document."""


class InterpolationError(ExecutionError):
    """Undefined variable or unclosed ``{{...}}`` span."""


class SelectionError(ExecutionError):
    """Out-of-range request index or unknown method filter."""


class TransportError(ExecutionError):
    """The transport could not complete a request."""


class ExtractionError(ExecutionError):
    """A response value could not be bound to a variable."""
