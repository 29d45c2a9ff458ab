"""
Connection to the language server.

Thin notification layer over a pygls LanguageClient. These are
NOTIFICATIONS: nothing is awaited and nothing comes back. A failed send
raises out of the call unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidChangeWatchedFilesParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
)

if TYPE_CHECKING:
    from pygls.lsp.client import LanguageClient

logger = logging.getLogger(__name__)


class LanguageClientConnection:
    """
    Sends text document synchronization notifications to the server.

    Usage:
        client = create_client()
        await client.start_io("pylsp")
        connection = LanguageClientConnection(client)
        connection.did_open_text_document(params)
    """

    def __init__(self, client: LanguageClient) -> None:
        self.client = client

    def did_open_text_document(self, params: DidOpenTextDocumentParams) -> None:
        logger.debug(
            "textDocument/didOpen %s (version %d)",
            params.text_document.uri,
            params.text_document.version,
        )
        self.client.text_document_did_open(params)

    def did_change_text_document(self, params: DidChangeTextDocumentParams) -> None:
        logger.debug(
            "textDocument/didChange %s (version %d, %d change(s))",
            params.text_document.uri,
            params.text_document.version,
            len(params.content_changes),
        )
        self.client.text_document_did_change(params)

    def did_close_text_document(self, params: DidCloseTextDocumentParams) -> None:
        logger.debug("textDocument/didClose %s", params.text_document.uri)
        self.client.text_document_did_close(params)

    def did_save_text_document(self, params: DidSaveTextDocumentParams) -> None:
        logger.debug("textDocument/didSave %s", params.text_document.uri)
        self.client.text_document_did_save(params)

    def did_change_watched_files(self, params: DidChangeWatchedFilesParams) -> None:
        logger.debug(
            "workspace/didChangeWatchedFiles %s",
            ", ".join(change.uri for change in params.changes),
        )
        self.client.workspace_did_change_watched_files(params)
