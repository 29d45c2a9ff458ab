"""LSP side of document synchronization."""
from .connection import LanguageClientConnection
from .document_sync import (
    DocumentSyncAdapter,
    DocumentSyncSession,
    SessionState,
    SyncMode,
    UnsupportedSyncError,
)

__all__ = [
    'DocumentSyncAdapter',
    'DocumentSyncSession',
    'LanguageClientConnection',
    'SessionState',
    'SyncMode',
    'UnsupportedSyncError',
]
