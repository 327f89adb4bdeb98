"""Armazenamento local chave/valor em arquivo JSON (modo offline)."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from ..demo import MOCK_DATA

logger = logging.getLogger(__name__)

MOCK_KEY_PREFIX = "estoque_let_"


class LocalStorage:
    """Chave/valor persistido em um arquivo JSON.

    Valores são armazenados como JSON serializado, como no ``localStorage``
    do navegador. Com ``path=None`` fica apenas em memória.
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._items: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Armazenamento local ilegível em {self.path}: {e}")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items, ensure_ascii=False, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value
            self._save()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is not None:
                self._save()

    def keys(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items = {}
            self._save()

    # Conveniências JSON

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Valor inválido na chave {key!r}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))


def initialize_mock_data(storage: LocalStorage) -> list[str]:
    """Grava os dados de demonstração nas chaves ausentes.

    Retorna as chaves gravadas; chaves já presentes não são sobrescritas.
    """
    written = []
    for key, data in MOCK_DATA.items():
        storage_key = f"{MOCK_KEY_PREFIX}{key}"
        if storage.get_item(storage_key) is None:
            storage.set_json(storage_key, data)
            written.append(storage_key)
    if written:
        logger.info(f"Dados de demonstração inicializados: {', '.join(written)}")
    return written
