"""
Language client wiring.

Creates the pygls client, performs the initialize handshake and starts
document synchronization with the sync mode the server asked for.
"""

from __future__ import annotations

import logging
import os

from lsprotocol.types import (
    WINDOW_LOG_MESSAGE,
    ClientCapabilities,
    DidChangeWatchedFilesClientCapabilities,
    InitializedParams,
    InitializeParams,
    InitializeResult,
    LogMessageParams,
    MessageType,
    TextDocumentClientCapabilities,
    TextDocumentSyncClientCapabilities,
    WorkspaceClientCapabilities,
)
from pygls.lsp.client import LanguageClient

from docsync.config import SyncSettings
from docsync.lsp.connection import LanguageClientConnection
from docsync.lsp.document_sync import (
    DocumentSource,
    DocumentSyncAdapter,
    SyncMode,
    UnsupportedSyncError,
)

logger = logging.getLogger(__name__)
server_logger = logging.getLogger("docsync.server")

_LOG_LEVELS = {
    MessageType.Error: logging.ERROR,
    MessageType.Warning: logging.WARNING,
    MessageType.Info: logging.INFO,
    MessageType.Log: logging.DEBUG,
}


class DocSyncLanguageClient(LanguageClient):
    """
    Language client that keeps host documents synchronized.

    Attributes:
        document_sync: Adapter created once the server is initialized
        server_capabilities: Capabilities from the initialize result
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.document_sync: DocumentSyncAdapter | None = None
        self.server_capabilities = None


def create_client() -> DocSyncLanguageClient:
    """
    Creates and returns a configured language client.

    Server log messages are forwarded to the "docsync.server" logger.
    """
    client = DocSyncLanguageClient("docsync", "0.1.0")

    @client.feature(WINDOW_LOG_MESSAGE)
    def window_log_message(ls: DocSyncLanguageClient, params: LogMessageParams):
        server_logger.log(_LOG_LEVELS.get(params.type, logging.INFO), params.message)

    return client


def client_capabilities() -> ClientCapabilities:
    return ClientCapabilities(
        text_document=TextDocumentClientCapabilities(
            synchronization=TextDocumentSyncClientCapabilities(did_save=True)
        ),
        workspace=WorkspaceClientCapabilities(
            did_change_watched_files=DidChangeWatchedFilesClientCapabilities(
                dynamic_registration=False
            )
        ),
    )


async def connect(settings: SyncSettings) -> DocSyncLanguageClient:
    """Start the configured language server and attach a client to its stdio."""
    if not settings.server_command:
        raise ValueError("No server_command configured")

    settings.configure_logging()
    client = create_client()
    logger.info("Starting language server: %s", " ".join(settings.server_command))
    await client.start_io(*settings.server_command)
    return client


async def start_document_sync(
    client: DocSyncLanguageClient,
    workspace: DocumentSource,
    settings: SyncSettings | None = None,
    root_uri: str | None = None,
) -> DocumentSyncAdapter:
    """
    Initialize the server and begin synchronizing the workspace's documents.

    Raises UnsupportedSyncError when the server supports neither Full nor
    Incremental sync; the connection is left running for the caller.
    """
    settings = settings or SyncSettings.from_env()

    result: InitializeResult = await client.initialize_async(
        InitializeParams(
            process_id=os.getpid(),
            root_uri=root_uri,
            capabilities=client_capabilities(),
        )
    )
    client.initialized(InitializedParams())
    client.server_capabilities = result.capabilities

    try:
        sync_mode = SyncMode.from_capabilities(result.capabilities)
    except UnsupportedSyncError:
        logger.error(
            "Server does not support document sync: %r",
            result.capabilities.text_document_sync,
        )
        raise

    logger.info("Document sync mode: %s", sync_mode.name)
    client.document_sync = DocumentSyncAdapter(
        LanguageClientConnection(client),
        sync_mode,
        settings.selector(),
        settings.language_id_transform(),
        workspace=workspace,
    )
    return client.document_sync


async def stop_document_sync(client: DocSyncLanguageClient) -> None:
    """Stop synchronizing, then shut the server down."""
    if client.document_sync is not None:
        client.document_sync.dispose()
        client.document_sync = None

    await client.shutdown_async(None)
    client.exit(None)
    await client.stop()
