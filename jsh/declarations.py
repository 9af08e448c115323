"""Declared packages, stored in a taskfile under vars.formulae / vars.casks."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from .errors import DeclarationError
from .tui.models import PackageKind

_logging = logging.getLogger(__name__)


class DeclarationStore:
    """Read and extend the package lists of one taskfile.

    Layout:

        vars:
          formulae:
            - jq
          casks:
            - slack
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DeclarationError(f"Invalid YAML in {self.path}: {e}") from e
        except OSError as e:
            raise DeclarationError(f"Cannot read {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise DeclarationError(f"{self.path}: top level must be a mapping")
        variables = data.get("vars")
        if variables is not None and not isinstance(variables, dict):
            raise DeclarationError(f"{self.path}: 'vars' must be a mapping")
        return data

    def declared(self, kind: PackageKind) -> list[str]:
        """Packages of this kind listed in the taskfile; empty if it does not exist."""
        if not self.path.exists():
            _logging.debug(f"taskfile {self.path} not found, nothing declared")
            return []
        data = self._load()
        entries = (data.get("vars") or {}).get(kind.plural) or []
        if not isinstance(entries, list):
            raise DeclarationError(f"{self.path}: vars.{kind.plural} must be a list")
        return [str(entry).strip() for entry in entries if str(entry).strip()]

    def declare(self, name: str, kind: PackageKind) -> bool:
        """Add name to the list for kind. Declaring twice is a no-op."""
        if not self.path.exists():
            raise DeclarationError(f"taskfile {self.path} not found; cannot declare {name}")

        data = self._load()
        variables = data.setdefault("vars", {})
        if variables is None:
            variables = data["vars"] = {}
        entries = variables.get(kind.plural)
        if entries is None:
            entries = variables[kind.plural] = []
        if not isinstance(entries, list):
            raise DeclarationError(f"{self.path}: vars.{kind.plural} must be a list")

        if name in entries:
            _logging.debug(f"{name} already declared in {self.path}")
            return True

        entries.append(name)
        self._write(data)
        _logging.debug(f"declared {kind.value} {name} in {self.path}")
        return True

    def _write(self, data: dict[str, Any]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise DeclarationError(f"Cannot write {self.path}: {e}") from e


__all__ = [
    "DeclarationStore",
]
