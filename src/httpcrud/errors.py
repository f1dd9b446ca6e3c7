"""
Error kinds raised by the handler lifecycle helpers.

    HandlerError
    ├── ReadError        decoding the request failed
    ├── WriteError       encoding/writing the response failed
    └── NoTemplateError  an HTML template name is not registered

``ReadError`` and ``WriteError`` wrap the exception that caused them. The
wrapped exception is available as ``.err`` and, because the helpers raise
them with ``raise ReadError(e) from e``, also as ``__cause__``.
"""


class HandlerError(Exception):
    """Base class for errors raised by the request/response helpers."""


class ReadError(HandlerError):
    """
    Raised when reading the request (typically decoding its body) fails.

    Attributes:
        err: The original exception.
    """

    def __init__(self, err: Exception):
        super().__init__(str(err))
        self.err = err

    def __repr__(self) -> str:
        return f"ReadError({self.err!r})"


class WriteError(HandlerError):
    """
    Raised when writing the response (typically encoding its body) fails.

    Attributes:
        err: The original exception.
    """

    def __init__(self, err: Exception):
        super().__init__(str(err))
        self.err = err

    def __repr__(self) -> str:
        return f"WriteError({self.err!r})"


class NoTemplateError(HandlerError):
    """
    Raised when an HTML body names a template that is not registered.

    Attributes:
        name: The requested template name.
    """

    def __init__(self, name: str):
        super().__init__(f'httpcrud: template "{name}" not found')
        self.name = name
