"""
Settings for document synchronization.

Settings come from the environment and, optionally, a YAML file:

    DOCSYNC_DEBUG=1             log at DEBUG level
    DOCSYNC_CONFIG=docsync.yml  load the file below

    server_command: [pylsp]
    grammar_tags: [Python, "Python Console"]
    language_ids:
      Python Console: python
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from docsync.lsp.document_sync import DocumentHandle, DocumentSelector, LanguageIdTransform

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class SyncSettings:
    """
    Attributes:
        grammar_tags: Grammars whose documents are synchronized. Empty means all.
        language_ids: Grammar name -> languageId overrides.
        server_command: Command line that starts the language server.
        debug: Log every notification at DEBUG level.
    """

    grammar_tags: tuple[str, ...] = ()
    language_ids: dict[str, str] = field(default_factory=dict)
    server_command: list[str] = field(default_factory=list)
    debug: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> SyncSettings:
        grammar_tags = data.get("grammar_tags") or ()
        language_ids = data.get("language_ids") or {}
        server_command = data.get("server_command") or []

        if not isinstance(grammar_tags, (list, tuple)):
            raise ValueError("grammar_tags must be a list")
        if not isinstance(language_ids, dict):
            raise ValueError("language_ids must be a mapping")
        if isinstance(server_command, str):
            server_command = shlex.split(server_command)
        if not isinstance(server_command, list):
            raise ValueError("server_command must be a list or a string")

        return cls(
            grammar_tags=tuple(str(tag) for tag in grammar_tags),
            language_ids={str(k): str(v) for k, v in language_ids.items()},
            server_command=[str(arg) for arg in server_command],
            debug=bool(data.get("debug", False)),
        )

    @classmethod
    def from_file(cls, path: Path) -> SyncSettings:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping at the top of {path}")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SyncSettings:
        environ = os.environ if environ is None else environ

        config_path = environ.get("DOCSYNC_CONFIG")
        settings = cls.from_file(Path(config_path)) if config_path else cls()

        if environ.get("DOCSYNC_DEBUG", "").strip().lower() in _TRUE_VALUES:
            settings.debug = True
        return settings

    def selector(self) -> DocumentSelector:
        tags = set(self.grammar_tags)

        def select(handle: DocumentHandle) -> bool:
            return not tags or handle.get_grammar() in tags

        return select

    def language_id_transform(self) -> LanguageIdTransform | None:
        if not self.language_ids:
            return None
        language_ids = dict(self.language_ids)
        return lambda name: language_ids.get(name, name)

    def configure_logging(self) -> None:
        logging.getLogger("docsync").setLevel(
            logging.DEBUG if self.debug else logging.INFO
        )
