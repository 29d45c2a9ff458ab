"""Host-side documents and event sources for docsync."""
from .document import Point, Range, TextDocumentBuffer, TextEdit
from .events import CompositeDisposable, Disposable, Emitter
from .workspace import DocumentWorkspace

__all__ = [
    'CompositeDisposable',
    'Disposable',
    'DocumentWorkspace',
    'Emitter',
    'Point',
    'Range',
    'TextDocumentBuffer',
    'TextEdit',
]
