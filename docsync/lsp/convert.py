"""
Conversions between host coordinates/paths and LSP protocol types.

Host columns count Python characters. The protocol counts UTF-16 code units
unless another position encoding was negotiated, so columns and lengths are
re-counted with pygls' PositionCodec whenever the line text is known.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol.types import Position, PositionEncodingKind
from lsprotocol.types import Range as LspRange
from pygls.workspace import PositionCodec

from docsync.host.document import Point, Range, TextEdit

UTF16_CODEC = PositionCodec(encoding=PositionEncodingKind.Utf16)


def path_to_uri(path: Path | str) -> str:
    """
    Convert a filesystem path to a file:// URI.

    Relative paths are made absolute against the current directory. Symlinks
    are not followed, so a document keeps its URI if a link is retargeted.
    """
    return Path(path).expanduser().absolute().as_uri()


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        raise ValueError(f"Not a file URI: {uri}")
    return Path(unquote(parsed.path))


def text_length(text: str, codec: PositionCodec = UTF16_CODEC) -> int:
    """Length of text in the codec's units."""
    return codec.client_num_units(text)


def point_to_position(
    point: Point,
    line: str | None = None,
    codec: PositionCodec = UTF16_CODEC,
) -> Position:
    """
    Convert a host point to a protocol position.

    Without the text of the point's row the column is passed through as is.
    """
    character = point.column
    if line is not None:
        character = codec.client_num_units(line[: point.column])
    return Position(line=point.row, character=character)


def position_to_point(position: Position) -> Point:
    return Point(position.line, position.character)


def range_to_lsp_range(
    range: Range,
    start_line: str | None = None,
    end_line: str | None = None,
    codec: PositionCodec = UTF16_CODEC,
) -> LspRange:
    return LspRange(
        start=point_to_position(range.start, start_line, codec),
        end=point_to_position(range.end, end_line, codec),
    )


def edit_range_to_lsp_range(
    edit: TextEdit, codec: PositionCodec = UTF16_CODEC
) -> LspRange:
    return range_to_lsp_range(edit.old_range, edit.start_line, edit.end_line, codec)


def lsp_range_to_range(range: LspRange) -> Range:
    return Range(position_to_point(range.start), position_to_point(range.end))
