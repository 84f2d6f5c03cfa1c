# app/documents/errors.py
from __future__ import annotations

from dataclasses import dataclass


class DocumentError(Exception):
    """Base class for every failure raised by the document core."""


class DocumentValidationError(DocumentError, ValueError):
    """Malformed document payload (unknown type, negative quantity, bad number...)."""


class InvalidTransition(DocumentError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move document from '{current}' to '{target}'.")
        self.current = current
        self.target = target


class PersistenceError(DocumentError):
    """The document store rejected a write/delete. Local edits are preserved."""


class RenderError(DocumentError):
    """PDF generation failed. No partial file is ever returned."""


class DeliveryError(DocumentError):
    """Email composition could not be produced. Logged, never fatal."""


class BlobNotFound(DocumentError, KeyError):
    def __init__(self, path: str):
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"No stored object at '{self.path}'"


@dataclass(frozen=True)
class ValidationGap:
    """
    A required field is missing for the requested action.

    Gaps block the action before anything is written; they are returned,
    not raised.
    """

    field: str
    message: str
