# Copyright (c) Microsoft. All rights reserved.

"""Wizard document stores.

The engine only needs ``load``; ``save`` and ``list_names`` exist for the tools that
author documents. Two implementations are provided: an in-memory store for tests and
embedding, and a directory of JSON/YAML files.
"""

import json
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

from ._logging import get_logger
from ._models import Wizard, load_wizard
from ._settings import WizardEngineSettings
from .exceptions import DocumentNotFoundError, DocumentValidationError

__all__ = ["FileWizardStore", "InMemoryWizardStore", "WizardStore"]

logger = get_logger("wizard_engine.store")

_DOCUMENT_NAME = re.compile(r"^[A-Za-z0-9_-]+$")
_SUFFIXES = (".json", ".yaml", ".yml")


def _check_name(name: str) -> str:
    if not isinstance(name, str) or not _DOCUMENT_NAME.match(name):
        raise DocumentNotFoundError(f"Invalid wizard name: {name!r}")
    return name


@runtime_checkable
class WizardStore(Protocol):
    """Loads and saves validated wizard documents by name."""

    def load(self, name: str) -> Wizard: ...

    def save(self, name: str, wizard: Wizard) -> None: ...

    def list_names(self) -> list[str]: ...


class InMemoryWizardStore:
    """Keeps wizards in a dict."""

    def __init__(self, wizards: dict[str, Wizard] | None = None):
        self._wizards: dict[str, Wizard] = dict(wizards or {})

    def load(self, name: str) -> Wizard:
        try:
            return self._wizards[name]
        except KeyError as ex:
            raise DocumentNotFoundError(f"Wizard '{name}' not found", inner_exception=ex) from ex

    def save(self, name: str, wizard: Wizard) -> None:
        self._wizards[_check_name(name)] = wizard

    def list_names(self) -> list[str]:
        return sorted(self._wizards)


class FileWizardStore:
    """Stores each wizard as ``<name>.json`` (or ``.yaml`` / ``.yml``) in a directory.

    Documents are read with PyYAML, which also accepts JSON, and always written back
    as pretty-printed JSON.

    Examples:
        .. code-block:: python

            from wizard_engine import FileWizardStore

            store = FileWizardStore("wizards")
            wizard = store.load("onboarding")  # wizards/onboarding.json or .yaml
    """

    def __init__(self, directory: str | Path | None = None, *, settings: WizardEngineSettings | None = None):
        """Create a FileWizardStore.

        Args:
            directory: The document directory. Falls back to the ``wizards_dir`` setting.

        Keyword Args:
            settings: Engine settings, see ``load_engine_settings``.
        """
        directory = directory or (settings or {}).get("wizards_dir") or "wizards"
        self.directory = Path(directory)

    def _find(self, name: str) -> Path | None:
        for suffix in _SUFFIXES:
            path = self.directory / f"{name}{suffix}"
            if path.is_file():
                return path
        return None

    def load(self, name: str) -> Wizard:
        """Load and validate a wizard.

        Raises:
            DocumentNotFoundError: If the name is invalid or no file exists for it.
            DocumentValidationError: If the file cannot be parsed or fails validation.
        """
        path = self._find(_check_name(name))
        if path is None:
            raise DocumentNotFoundError(f"Wizard '{name}' not found in {self.directory}")

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as ex:
                raise DocumentValidationError(f"Failed to parse {path}: {ex}", inner_exception=ex) from ex
        if not isinstance(data, dict):
            raise DocumentValidationError(f"Wizard document {path} must be an object")
        logger.debug(f"Loaded wizard '{name}' from {path}")
        return load_wizard(data)

    def save(self, name: str, wizard: Wizard) -> None:
        _check_name(name)
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{name}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(wizard.to_document(), f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved wizard '{name}' to {path}")

    def list_names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            {path.stem for path in self.directory.iterdir() if path.suffix in _SUFFIXES and path.is_file()}
        )
