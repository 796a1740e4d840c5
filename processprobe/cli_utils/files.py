"""Reading and writing the files the CLI works on."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from processprobe.tracking import LedgerSnapshot


def _read_document(path: Path) -> Dict[str, Any]:
    """Load a JSON or YAML mapping from ``path``."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a mapping")
    return data


def _read_ledger(path: Path) -> LedgerSnapshot:
    return LedgerSnapshot.from_json(path.read_text(encoding="utf-8"))


def _write_ledger(path: Path, snapshot: LedgerSnapshot) -> None:
    path.write_text(snapshot.to_json(), encoding="utf-8")
