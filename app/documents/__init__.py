# app/documents/__init__.py
"""
Framework-free document core: records, totals, layout, PDF, lifecycle.

Nothing in this package imports Flask; the web layer wires it up in
create_app and reaches it through app.extensions["documents"].
"""

from .errors import (
    BlobNotFound,
    DeliveryError,
    DocumentError,
    DocumentValidationError,
    InvalidTransition,
    PersistenceError,
    RenderError,
    ValidationGap,
)
from .lifecycle import LifecycleController, SendOutcome, send_readiness
from .records import DocumentRecord, DocumentStatus, DocumentType, LineItem
from .renderer import DocumentRenderer
from .totals import Totals, compute_totals

__all__ = [
    "BlobNotFound",
    "DeliveryError",
    "DocumentError",
    "DocumentRecord",
    "DocumentRenderer",
    "DocumentStatus",
    "DocumentType",
    "DocumentValidationError",
    "InvalidTransition",
    "LifecycleController",
    "LineItem",
    "PersistenceError",
    "RenderError",
    "SendOutcome",
    "Totals",
    "ValidationGap",
    "compute_totals",
    "send_readiness",
]
