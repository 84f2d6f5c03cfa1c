# app/documents/email.py
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .errors import DeliveryError


@dataclass(frozen=True)
class EmailComposition:
    to: str
    subject: str
    body: str
    mailto_url: str


class MailtoComposer:
    """
    Builds a pre-filled message the operator opens in their own mail client.

    Nothing is dispatched from here: the operator attaches the PDF and
    presses send, so delivery is never confirmed.
    """

    def compose(self, to: str, subject: str, body: str) -> EmailComposition:
        to = (to or "").strip()
        if not to:
            raise DeliveryError("No recipient address.")
        if any(ch in to for ch in "\r\n"):
            raise DeliveryError("Recipient address contains a line break.")

        url = f"mailto:{quote(to, safe='@.+')}?subject={quote(subject or '', safe='')}&body={quote(body or '', safe='')}"
        return EmailComposition(to=to, subject=subject or "", body=body or "", mailto_url=url)
