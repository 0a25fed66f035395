"""
Error taxonomy of the record store.

A single exception type, `DaoError`, carries an `ErrorKind` tag. Callers match
on ``error.kind`` instead of catching a family of subclasses:

.. code-block:: python

    try:
        dao.findUniqueByField("email", "roman@tribalchief.com")
    except DaoError as e:
        if e.kind is ErrorKind.CONFLICT:
            ...

Each kind maps to the numeric code used in the structured `ErrorMessage`
payload. ``NOT_FOUND`` is mostly used for payloads ("no data available");
absent rows are otherwise reported as ``None``/``False``/``[]`` results.
"""

from enum import Enum

from recordstore.api.models import ErrorMessage


class ErrorKind(Enum):
    """Kinds of DAO failures, valued by their payload code."""

    NOT_FOUND = 7
    VALIDATION = 8
    INFRASTRUCTURE = 9
    CONFLICT = 10

    @property
    def code(self) -> int:
        return self.value


class DaoError(Exception):
    """
    Tagged DAO failure.

    Attributes
    ----------
    kind : ErrorKind
        What went wrong; decides the payload code.
    description : str
        Human readable message. For infrastructure errors it embeds the
        underlying engine message.
    """

    def __init__(self, kind: ErrorKind, description: str):
        super().__init__(description)
        self.kind = kind
        self.description = description

    @property
    def code(self) -> int:
        return self.kind.code

    def toErrorMessage(self) -> ErrorMessage:
        """Convert the error into its structured payload."""
        return ErrorMessage(error_code=self.code, error_description=self.description)

    @classmethod
    def validation(cls, description: str) -> "DaoError":
        return cls(ErrorKind.VALIDATION, description)

    @classmethod
    def notFound(cls, description: str) -> "DaoError":
        return cls(ErrorKind.NOT_FOUND, description)

    @classmethod
    def conflict(cls, description: str) -> "DaoError":
        return cls(ErrorKind.CONFLICT, description)

    @classmethod
    def infrastructure(cls, cause: Exception, context: str = "") -> "DaoError":
        message = str(cause)
        if context:
            message = f"{context}: {message}"
        return cls(ErrorKind.INFRASTRUCTURE, message)

    def __repr__(self) -> str:
        return f"DaoError(kind={self.kind.name}, description={self.description!r})"
