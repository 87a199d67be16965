"""The one editing session: current document, history, and persistence."""

from __future__ import annotations

import logging
from typing import Optional

from .config import GeneratorSettings, load_settings
from .document import Document, GenerationRequest, HistorySnapshot
from .errors import GenerationInProgressError
from .export import ExportAssembler
from .genai import GenAIClient
from .history import HistoryManager
from .persistence import DebouncedSaver, StateStore, load_document
from .pipeline import AssetPipeline, ModelClient, ProgressCallback
from .preview import render_document

LOGGER = logging.getLogger(__name__)


class SiteSession:
    """Owns the current Document and its HistoryManager.

    Each collaborator only sees its slice: history gets editor text, the
    saver gets whole documents, the export assembler gets the document on
    demand. A generation is published only after every stage succeeded.
    """

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        *,
        client: Optional[ModelClient] = None,
        store: Optional[StateStore] = None,
        saver: Optional[DebouncedSaver] = None,
        exporter: Optional[ExportAssembler] = None,
    ):
        self.settings = settings or load_settings()
        self.client = client or GenAIClient(self.settings)
        self.store = store or StateStore(
            self.settings.state_file, quota_bytes=self.settings.state_quota
        )
        self.saver = saver or DebouncedSaver(self.store, delay=self.settings.save_delay)
        self.exporter = exporter or ExportAssembler()
        self.history = HistoryManager(max_entries=self.settings.history_limit)
        self.document: Optional[Document] = None
        self.generating = False

    @property
    def has_site(self) -> bool:
        return self.document is not None and self.document.has_markup

    async def generate(
        self, request: GenerationRequest, progress: Optional[ProgressCallback] = None
    ) -> Document:
        """Run the pipeline and publish its document.

        On failure the previous document and history are left untouched.
        """
        if self.generating:
            raise GenerationInProgressError("A website is already being generated.")
        self.generating = True
        try:
            document = await AssetPipeline(self.client, progress=progress).generate(request)
        finally:
            self.generating = False

        self.document = document
        self.history.reset(document.html_body, document.css)
        self.saver.schedule(document)
        return document

    def preview(self) -> Optional[str]:
        if self.document is None:
            return None
        return render_document(self.document)

    def apply_edit(self, html: str, css: str) -> str:
        """Accept editor text, record it in history, and re-render."""
        if self.document is None:
            self.document = Document(html_body=html, css=css)
        else:
            self.document = self.document.with_text(html, css)
        self.history.push(html, css)
        self.saver.schedule(self.document)
        return render_document(self.document)

    def _load_snapshot(self, snapshot: Optional[HistorySnapshot]) -> Optional[str]:
        if snapshot is None or self.document is None:
            return None
        self.document = self.document.with_text(snapshot.html, snapshot.css)
        self.saver.schedule(self.document)
        return render_document(self.document)

    def undo(self) -> Optional[str]:
        """Step back; None when there is nothing to undo."""
        return self._load_snapshot(self.history.undo())

    def redo(self) -> Optional[str]:
        """Step forward; None when there is nothing to redo."""
        return self._load_snapshot(self.history.redo())

    async def export(self) -> bytes:
        return await self.exporter.export(self.document)

    def restore(self) -> bool:
        """Load the saved document at startup; True when a site was restored."""
        document = load_document(self.store)
        if document is None:
            return False
        self.document = document
        self.history.reset(document.html_body, document.css)
        LOGGER.info("Restored saved site (%d image(s))", len(document.images))
        return True

    async def close(self) -> None:
        """Write any pending save before shutting down."""
        if self.saver.pending:
            self.saver.flush()
