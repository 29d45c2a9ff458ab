"""
Document synchronization.

Keeps the server's view of every tracked host document in step with the
host: one DocumentSyncSession per document sends didOpen, didChange, didSave
and didClose for it, while the DocumentSyncAdapter decides which documents
are tracked and owns their sessions.

Design Principles:
- The sync mode is decided once, from the server capabilities
- Every notification is sent synchronously from the host callback
- Send failures propagate to the host, nothing is retried
- A session unsubscribes from its document before it sends didClose
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence

from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidChangeWatchedFilesParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    FileChangeType,
    FileEvent,
    ServerCapabilities,
    TextDocumentContentChangeEvent,
    TextDocumentContentChangePartial,
    TextDocumentContentChangeWholeDocument,
    TextDocumentIdentifier,
    TextDocumentItem,
    TextDocumentSyncKind,
    VersionedTextDocumentIdentifier,
)

from docsync.host.document import TextEdit
from docsync.host.events import CompositeDisposable, Disposable
from docsync.lsp.connection import LanguageClientConnection
from docsync.lsp.convert import edit_range_to_lsp_range, path_to_uri, text_length

logger = logging.getLogger(__name__)


class DocumentHandle(Protocol):
    """What the synchronizer needs from a host document."""

    def get_text(self) -> str: ...

    def get_path(self) -> Path | str | None: ...

    def get_grammar(self) -> str: ...

    def on_did_change(
        self, callback: Callable[[Sequence[TextEdit]], Any]
    ) -> Disposable: ...

    def on_did_save(self, callback: Callable[[Any], Any]) -> Disposable: ...

    def on_did_destroy(self, callback: Callable[[Any], Any]) -> Disposable: ...


class DocumentSource(Protocol):
    def observe_documents(
        self, callback: Callable[[DocumentHandle], Any]
    ) -> Disposable: ...


DocumentSelector = Callable[[DocumentHandle], bool]
LanguageIdTransform = Callable[[str], str]


class UnsupportedSyncError(ValueError):
    """The server does not support Full or Incremental text document sync."""


class SyncMode(Enum):
    """How document changes are sent, fixed for the life of an adapter."""

    FULL = TextDocumentSyncKind.Full
    INCREMENTAL = TextDocumentSyncKind.Incremental

    @classmethod
    def from_capabilities(cls, capabilities: ServerCapabilities) -> SyncMode:
        sync = capabilities.text_document_sync
        if sync == TextDocumentSyncKind.Incremental:
            return cls.INCREMENTAL
        if sync == TextDocumentSyncKind.Full:
            return cls.FULL
        raise UnsupportedSyncError(f"Unsupported textDocumentSync: {sync!r}")


class SessionState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class DocumentSyncAdapter:
    """
    Tracks host documents and owns one DocumentSyncSession per document.

    Usage:
        if DocumentSyncAdapter.can_adapt(result.capabilities):
            adapter = DocumentSyncAdapter(
                connection,
                SyncMode.from_capabilities(result.capabilities),
                settings.selector(),
                settings.language_id_transform(),
                workspace=workspace,
            )
        ...
        adapter.dispose()
    """

    def __init__(
        self,
        connection: LanguageClientConnection,
        sync_mode: SyncMode,
        document_selector: DocumentSelector,
        language_id_transform: LanguageIdTransform | None = None,
        *,
        workspace: DocumentSource | None = None,
    ) -> None:
        self.connection = connection
        self.sync_mode = sync_mode
        self._document_selector = document_selector
        self._language_id_transform = language_id_transform
        self._sessions: dict[DocumentHandle, DocumentSyncSession] = {}
        self._destroy_hooks: dict[DocumentHandle, Disposable] = {}
        self._disposable = CompositeDisposable()

        logger.info(
            "Starting %s document sync%s",
            sync_mode.name.lower(),
            "" if workspace is not None else " (manual observation)",
        )
        if workspace is not None:
            self._disposable.add(workspace.observe_documents(self.observe_document))

    @staticmethod
    def can_adapt(capabilities: ServerCapabilities) -> bool:
        return capabilities.text_document_sync in (
            TextDocumentSyncKind.Incremental,
            TextDocumentSyncKind.Full,
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, handle: object) -> bool:
        return handle in self._sessions

    def get_session(self, handle: DocumentHandle) -> DocumentSyncSession | None:
        return self._sessions.get(handle)

    def observe_document(self, handle: DocumentHandle) -> None:
        """
        Start tracking a document if it is new and accepted by the selector.

        Selector errors propagate and leave the document untracked.
        """
        if self._disposable.disposed:
            return
        if handle in self._sessions or not self._document_selector(handle):
            return

        # Registered before the session subscribes so the entry is gone
        # before didClose goes out.
        hook = handle.on_did_destroy(lambda _handle: self._release(handle))
        try:
            session = DocumentSyncSession(
                handle, self.connection, self.sync_mode, self._language_id_transform
            )
        except Exception:
            hook.dispose()
            raise
        self._sessions[handle] = session
        self._destroy_hooks[handle] = hook
        self._disposable.add(session, hook)

    def dispose(self) -> None:
        """Stop observing and unsubscribe every session. No didClose is sent."""
        if self._disposable.disposed:
            return
        logger.debug("Disposing document sync for %d document(s)", len(self._sessions))
        self._disposable.dispose()
        self._sessions.clear()
        self._destroy_hooks.clear()

    def _release(self, handle: DocumentHandle) -> None:
        session = self._sessions.pop(handle, None)
        hook = self._destroy_hooks.pop(handle, None)
        if hook is not None:
            self._disposable.remove(hook)
            hook.dispose()
        if session is not None:
            self._disposable.remove(session)
            session.did_destroy()


class DocumentSyncSession(Disposable):
    """
    Synchronizes a single document.

    The document is opened on the server as soon as the session is created
    if it already has a path. A document without a path stays UNOPENED; the
    first change or save after it gains one opens it with its current text.
    """

    def __init__(
        self,
        handle: DocumentHandle,
        connection: LanguageClientConnection,
        sync_mode: SyncMode,
        language_id_transform: LanguageIdTransform | None = None,
    ) -> None:
        super().__init__()
        self.handle = handle
        self.connection = connection
        self.sync_mode = sync_mode
        self.state = SessionState.UNOPENED
        self.version = 1
        self._language_id_transform = language_id_transform

        if sync_mode is SyncMode.FULL:
            on_change = self.send_full_changes
        else:
            on_change = self.send_incremental_changes

        self._subscriptions = CompositeDisposable(
            handle.on_did_change(on_change),
            handle.on_did_save(self.did_save),
            handle.on_did_destroy(self.did_destroy),
        )

        try:
            self.did_open()
        except Exception:
            self.dispose()
            raise

    def dispose(self) -> None:
        """Unsubscribe from the document. The session is CLOSED afterwards."""
        if self.disposed:
            return
        self.disposed = True
        self.state = SessionState.CLOSED
        self._subscriptions.dispose()

    def get_document_uri(self) -> str | None:
        path = self.handle.get_path()
        if path is None or path == "":
            return None
        return path_to_uri(path)

    def get_language_id(self) -> str:
        name = self.handle.get_grammar()
        if self._language_id_transform is not None:
            name = self._language_id_transform(name)
        return name.lower()

    def get_versioned_text_document_identifier(
        self, uri: str
    ) -> VersionedTextDocumentIdentifier:
        return VersionedTextDocumentIdentifier(uri=uri, version=self.version)

    def did_open(self) -> None:
        if self.state is not SessionState.UNOPENED:
            return
        uri = self.get_document_uri()
        if uri is None:
            # Not yet saved
            return

        self.state = SessionState.OPEN
        self.connection.did_open_text_document(
            DidOpenTextDocumentParams(
                text_document=TextDocumentItem(
                    uri=uri,
                    language_id=self.get_language_id(),
                    version=self.version,
                    text=self.handle.get_text(),
                )
            )
        )
        logger.debug("Opened %s at version %d", uri, self.version)

    def send_full_changes(self, changes: Sequence[TextEdit]) -> None:
        if not changes or not self._ready_for_changes():
            return
        self._send_changes(
            [TextDocumentContentChangeWholeDocument(text=self.handle.get_text())]
        )

    def send_incremental_changes(self, changes: Sequence[TextEdit]) -> None:
        if not changes or not self._ready_for_changes():
            return
        self._send_changes([text_edit_to_content_change(edit) for edit in changes])

    def did_save(self, _path: Any = None) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.did_open()
        uri = self.get_document_uri()
        if self.state is not SessionState.OPEN or uri is None:
            logger.debug("Ignoring save of %r: document has no path", self.handle)
            return

        self.connection.did_save_text_document(
            DidSaveTextDocumentParams(text_document=TextDocumentIdentifier(uri=uri))
        )
        # Stands in for a file watcher
        self.connection.did_change_watched_files(
            DidChangeWatchedFilesParams(
                changes=[FileEvent(uri=uri, type=FileChangeType.Changed)]
            )
        )

    def did_destroy(self, _handle: Any = None) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.dispose()

        uri = self.get_document_uri()
        if uri is None:
            # Not yet saved
            return
        self.connection.did_close_text_document(
            DidCloseTextDocumentParams(text_document=TextDocumentIdentifier(uri=uri))
        )
        logger.debug("Closed %s at version %d", uri, self.version)

    def _ready_for_changes(self) -> bool:
        """
        Whether a change batch should be sent.

        An UNOPENED document that has gained a path is opened here instead;
        the didOpen already carries the text the batch produced.
        """
        if self.state is SessionState.OPEN:
            return True
        if self.state is SessionState.UNOPENED:
            self.did_open()
        return False

    def _send_changes(
        self, content_changes: list[TextDocumentContentChangeEvent]
    ) -> None:
        uri = self.get_document_uri()
        if uri is None:
            # Path was taken away after open
            return
        self.version += 1
        self.connection.did_change_text_document(
            DidChangeTextDocumentParams(
                text_document=self.get_versioned_text_document_identifier(uri),
                content_changes=content_changes,
            )
        )


def text_edit_to_content_change(edit: TextEdit) -> TextDocumentContentChangePartial:
    return TextDocumentContentChangePartial(
        range=edit_range_to_lsp_range(edit),
        range_length=text_length(edit.old_text),
        text=edit.new_text,
    )
