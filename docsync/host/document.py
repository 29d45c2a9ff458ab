"""
In-memory text documents as the editing host sees them.

A TextDocumentBuffer owns its text, an optional on-disk path (absent until the
first save of a new document) and a grammar name. It reports edits in
batches: every call that mutates the text emits exactly one batch on the
change emitter, listing the edits in the order they were applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

from docsync.host.events import Disposable, Emitter


@dataclass(frozen=True, order=True)
class Point:
    """Zero-based row/column location in a buffer."""

    row: int
    column: int


@dataclass(frozen=True)
class Range:
    start: Point
    end: Point

    @classmethod
    def from_tuples(cls, start: tuple[int, int], end: tuple[int, int]) -> Range:
        return cls(Point(*start), Point(*end))

    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class TextEdit:
    """
    One edit inside a change batch.

    old_range is expressed in the coordinates of the text as it was just
    before this edit was applied; columns count Python characters.
    start_line and end_line hold that text's rows at old_range.start and
    old_range.end, so columns can be re-counted in other units.
    """

    old_range: Range
    old_text: str
    new_text: str
    start_line: str | None = None
    end_line: str | None = None


ChangeBatch = Sequence[TextEdit]


class TextDocumentBuffer:
    """Mutable host document with change/save/destroy event sources."""

    def __init__(
        self,
        text: str = "",
        path: Path | str | None = None,
        grammar: str = "Plain Text",
    ) -> None:
        self._text = text
        self._path = Path(path) if path is not None else None
        self._grammar = grammar
        self._destroyed = False

        self._did_change: Emitter[ChangeBatch] = Emitter()
        self._did_save: Emitter[Path] = Emitter()
        self._did_destroy: Emitter[TextDocumentBuffer] = Emitter()

    def __repr__(self) -> str:
        return f"TextDocumentBuffer(path={self._path!r}, grammar={self._grammar!r})"

    # ===== Accessors =====

    def get_text(self) -> str:
        return self._text

    def get_path(self) -> Path | None:
        return self._path

    def get_grammar(self) -> str:
        return self._grammar

    def set_grammar(self, grammar: str) -> None:
        self._grammar = grammar

    def is_destroyed(self) -> bool:
        return self._destroyed

    # ===== Subscriptions =====

    def on_did_change(self, callback: Callable[[ChangeBatch], Any]) -> Disposable:
        return self._did_change.on(callback)

    def on_did_save(self, callback: Callable[[Path], Any]) -> Disposable:
        return self._did_save.on(callback)

    def on_did_destroy(
        self, callback: Callable[[TextDocumentBuffer], Any]
    ) -> Disposable:
        return self._did_destroy.on(callback)

    # ===== Mutations =====

    def set_text(self, text: str) -> None:
        """Replace the whole text. Emits a batch with a single edit."""
        self.apply_edits([(self.full_range(), text)])

    def set_text_in_range(self, range: Range, text: str) -> None:
        self.apply_edits([(range, text)])

    def apply_edits(self, edits: Sequence[tuple[Range, str]]) -> list[TextEdit]:
        """
        Apply edits in order and report them as one batch.

        Each range refers to the text produced by the previous edit and is
        clipped to it. An empty edit list still emits an (empty) batch.
        """
        self._check_alive()

        applied: list[TextEdit] = []
        for range, new_text in edits:
            start = self.offset_for(range.start)
            end = self.offset_for(range.end)
            if end < start:
                raise ValueError(f"Range end precedes start: {range}")
            old_range = Range(self.point_for(start), self.point_for(end))
            lines = self._text.split("\n")
            old_text = self._text[start:end]
            self._text = self._text[:start] + new_text + self._text[end:]
            applied.append(
                TextEdit(
                    old_range,
                    old_text,
                    new_text,
                    start_line=lines[old_range.start.row],
                    end_line=lines[old_range.end.row],
                )
            )

        self._did_change.emit(applied)
        return applied

    def save(self, path: Path | str | None = None) -> None:
        self._check_alive()
        if path is not None:
            self._path = Path(path)
        if self._path is None:
            raise ValueError("Cannot save a document that has no path")
        self._did_save.emit(self._path)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._did_destroy.emit(self)
        self._did_change.clear()
        self._did_save.clear()
        self._did_destroy.clear()

    # ===== Coordinates =====

    def full_range(self) -> Range:
        return Range(Point(0, 0), self.point_for(len(self._text)))

    def offset_for(self, point: Point) -> int:
        """Convert a point to a character offset, clipping to the text."""
        lines = self._text.split("\n")
        row = min(max(point.row, 0), len(lines) - 1)
        column = min(max(point.column, 0), len(lines[row]))
        return sum(len(line) + 1 for line in lines[:row]) + column

    def point_for(self, offset: int) -> Point:
        offset = min(max(offset, 0), len(self._text))
        before = self._text[:offset]
        row = before.count("\n")
        return Point(row, offset - (before.rfind("\n") + 1))

    def _check_alive(self) -> None:
        if self._destroyed:
            raise RuntimeError(f"{self!r} has been destroyed")
