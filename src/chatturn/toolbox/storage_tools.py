"""
Key/value persistence tool.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..tools import Tool, tool

logger = logging.getLogger(__name__)

STORAGE_AREAS = ["local", "sync"]


class KeyValueStore:
    """
    Small string key/value store with ``local`` and ``sync`` areas.

    Kept in memory; when ``path`` is given the whole store is loaded from and
    written back to that JSON file on every change.

    Example:
        >>> store = KeyValueStore("~/.chatturn/storage.json")
        >>> store.set("last_fix", "added null check", area="local")
        >>> store.get("last_fix")
        'added null check'
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path).expanduser() if path else None
        self._areas: Dict[str, Dict[str, Any]] = {area: {} for area in STORAGE_AREAS}
        if self.path is not None and self.path.exists():
            self._load()

    def set(self, key: str, value: Any, area: str = "local") -> None:
        self._area(area)[key] = value
        self._save()

    def get(self, key: str, area: str = "local", default: Any = None) -> Any:
        return self._area(area).get(key, default)

    def delete(self, key: str, area: str = "local") -> bool:
        removed = self._area(area).pop(key, None) is not None
        if removed:
            self._save()
        return removed

    def keys(self, area: str = "local") -> List[str]:
        return list(self._area(area))

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {area: dict(values) for area, values in self._areas.items()}

    def _area(self, area: str) -> Dict[str, Any]:
        if area not in self._areas:
            raise ValueError(f"Unknown storage area '{area}'. Valid areas: {', '.join(STORAGE_AREAS)}")
        return self._areas[area]

    def _load(self) -> None:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} must contain a JSON object")
        for area in STORAGE_AREAS:
            values = data.get(area)
            if isinstance(values, dict):
                self._areas[area].update(values)

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._areas, f, indent=2, ensure_ascii=False)


def _save_to_storage(
    key: str,
    value: str,
    storage_type: str = "local",
    storage: Optional[KeyValueStore] = None,
) -> Dict[str, Any]:
    if storage is None:
        return {"success": False, "key": key, "error": "No storage configured"}
    try:
        storage.set(key, value, area=storage_type)
    except (OSError, ValueError) as exc:
        logger.warning("save_to_storage failed for key %r: %s", key, exc)
        return {"success": False, "key": key, "error": str(exc)}
    return {"success": True, "key": key}


def save_to_storage_tool(storage: KeyValueStore) -> Tool:
    """Build the ``save_to_storage`` tool bound to ``storage``."""
    return tool(
        name="save_to_storage",
        description="Save data to browser storage for persistence",
        param_metadata={
            "key": {"description": "Storage key"},
            "value": {"description": "Value to store; JSON-encode objects into a string first"},
            "storage_type": {
                "description": "Storage area: 'local' for this device, 'sync' to sync across devices",
                "enum": STORAGE_AREAS,
            },
        },
        injected_kwargs={"storage": storage},
    )(_save_to_storage)


__all__ = ["KeyValueStore", "save_to_storage_tool", "STORAGE_AREAS"]
