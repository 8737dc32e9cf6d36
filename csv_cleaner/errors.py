from __future__ import annotations


class CleanerError(Exception):
    """Base error for recoverable pipeline failures."""

    code = "CLEANER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ParseFailure(CleanerError):
    """The tokenizer could not make sense of the decoded text."""

    code = "PARSE_FAILURE"


class EmptyInput(CleanerError):
    code = "EMPTY_INPUT"


class EmptyAfterCleaning(CleanerError):
    code = "EMPTY_AFTER_CLEANING"


class InvalidState(CleanerError):
    """An operation was requested before the step it depends on succeeded."""

    code = "INVALID_STATE"
