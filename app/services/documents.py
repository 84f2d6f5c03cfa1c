# app/services/documents.py
from __future__ import annotations

import os
from dataclasses import dataclass

from flask import Flask, current_app

from app.config.company import DEFAULT_COMPANY
from app.documents.email import MailtoComposer
from app.documents.lifecycle import LifecycleController
from app.documents.renderer import DocumentRenderer

from .blob_store import LocalBlobStore
from .gateway import SqlDocumentGateway
from .signatures import SignatureLoader


@dataclass
class DocumentServices:
    gateway: SqlDocumentGateway
    blob_store: LocalBlobStore
    renderer: DocumentRenderer
    controller: LifecycleController


def build_document_services(app: Flask, db) -> DocumentServices:
    """Explicit wiring, done once in create_app. No lazy globals."""
    base_dir = app.config.get("BLOB_STORAGE_DIR") or os.path.join(app.instance_path, "blobs")
    os.makedirs(base_dir, exist_ok=True)

    blob_store = LocalBlobStore(base_dir, app.config.get("BLOB_PUBLIC_PREFIX") or "/admin/files")
    gateway = SqlDocumentGateway(db)
    renderer = DocumentRenderer(DEFAULT_COMPANY, SignatureLoader(blob_store))
    controller = LifecycleController(
        gateway=gateway,
        blob_store=blob_store,
        renderer=renderer,
        composer=MailtoComposer(),
        logger=app.logger,
    )
    return DocumentServices(gateway=gateway, blob_store=blob_store, renderer=renderer, controller=controller)


def document_services() -> DocumentServices:
    return current_app.extensions["documents"]
