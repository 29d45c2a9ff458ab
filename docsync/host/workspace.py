"""
The host's collection of live documents.

Observers see every live document once when they subscribe and every new
document as it is opened. Destroyed documents drop out of the workspace.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterator

from docsync.host.document import TextDocumentBuffer
from docsync.host.events import Disposable, Emitter


class DocumentWorkspace:
    def __init__(self) -> None:
        self._documents: list[TextDocumentBuffer] = []
        self._did_add: Emitter[TextDocumentBuffer] = Emitter()

    def __iter__(self) -> Iterator[TextDocumentBuffer]:
        return iter(list(self._documents))

    def __len__(self) -> int:
        return len(self._documents)

    def open(
        self,
        text: str = "",
        path: Path | str | None = None,
        grammar: str = "Plain Text",
    ) -> TextDocumentBuffer:
        """Create a document and announce it to observers."""
        return self.add(TextDocumentBuffer(text, path, grammar))

    def add(self, document: TextDocumentBuffer) -> TextDocumentBuffer:
        if document in self._documents:
            return document

        self._documents.append(document)
        document.on_did_destroy(self._remove)
        self._did_add.emit(document)
        return document

    def observe_documents(
        self, callback: Callable[[TextDocumentBuffer], Any]
    ) -> Disposable:
        """Call back with each current document now, then with each new one."""
        for document in list(self._documents):
            callback(document)
        return self._did_add.on(callback)

    def on_did_add_document(
        self, callback: Callable[[TextDocumentBuffer], Any]
    ) -> Disposable:
        return self._did_add.on(callback)

    def close_all(self) -> None:
        for document in list(self._documents):
            document.destroy()

    def _remove(self, document: TextDocumentBuffer) -> None:
        if document in self._documents:
            self._documents.remove(document)
