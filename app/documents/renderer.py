# app/documents/renderer.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from app.config.company import DEFAULT_COMPANY, CompanyProfile

from .errors import RenderError
from .layout import Page, layout_document
from .pdf import render_pdf
from .records import DocumentRecord
from .view import DocumentView, build_view

log = logging.getLogger(__name__)

SignatureLoaderFn = Callable[[Optional[str]], Optional[bytes]]


class DocumentRenderer:
    """
    Record -> view -> pages -> PDF bytes.

    The record is never mutated; totals are derived from its current fields
    on every call, so a stale persisted total can't reach the output.
    """

    def __init__(self, company: CompanyProfile = DEFAULT_COMPANY,
                 signature_loader: Optional[SignatureLoaderFn] = None):
        self.company = company
        self.signature_loader = signature_loader

    def view(self, record: DocumentRecord) -> DocumentView:
        return build_view(record.copy(), self.company)

    def layout(self, record: DocumentRecord) -> list[Page]:
        view = self.view(record)
        return layout_document(view, self._signature_image(view.signature_data))

    def pdf(self, record: DocumentRecord) -> bytes:
        try:
            view = self.view(record)
            pages = layout_document(view, self._signature_image(view.signature_data))
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"PDF layout failed: {exc}") from exc
        return render_pdf(pages, title=view.title, author=self.company.name)

    @staticmethod
    def filename(record: DocumentRecord) -> str:
        number = (record.number or "").strip() or "document"
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in number)
        return f"{record.type.value}-{safe}.pdf"

    def _signature_image(self, signature_data: Optional[str]) -> Optional[bytes]:
        if not signature_data or self.signature_loader is None:
            return None
        try:
            return self.signature_loader(signature_data)
        except Exception as exc:
            raise RenderError(f"Signature image could not be loaded: {exc}") from exc
