"""JSON-file state store, one file per map, rewritten after every mutation."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading

logger = logging.getLogger(__name__)


def _write_json(path: str, data: dict) -> None:
    """Serialize ``data`` to ``path`` via a temp file so readers never see a partial map."""
    directory = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _read_json(path: str) -> dict:
    """Load a persisted map; a missing file is an empty map."""
    if not os.path.exists(path):
        return {}
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


class JsonFileStateStore:
    """Keeps both maps in memory and persists each one to its own JSON file.

    Persistence is best-effort: a failed write is logged and the in-memory
    change stands.
    """

    def __init__(self, data_path: str, instances_file: str, keys_file: str):
        os.makedirs(data_path, exist_ok=True)
        self._instances_path = os.path.join(data_path, instances_file)
        self._keys_path = os.path.join(data_path, keys_file)
        self._lock = threading.RLock()
        self._instances: dict[str, dict] = _read_json(self._instances_path)
        self._keys: dict[str, dict] = _read_json(self._keys_path)
        logger.info(
            "Loaded %d service instance(s) and %d service key(s) from %s",
            len(self._instances),
            len(self._keys),
            data_path,
        )

    def _persist(self, path: str, data: dict) -> None:
        try:
            _write_json(path, data)
        except (OSError, TypeError, ValueError):
            logger.exception("save to file %s failed", path)

    # --- Service instances ---

    def get_instance(self, instance_id: str) -> dict | None:
        with self._lock:
            return self._instances.get(instance_id)

    def put_instance(self, instance: dict) -> None:
        with self._lock:
            self._instances[instance["id"]] = instance
            self._persist(self._instances_path, self._instances)

    def update_instance(self, instance_id: str, **fields) -> None:
        with self._lock:
            inst = self._instances.get(instance_id)
            if inst is None:
                raise KeyError(f"Service instance {instance_id} not found")
            inst.update(fields)
            self._persist(self._instances_path, self._instances)

    def delete_instance(self, instance_id: str) -> None:
        with self._lock:
            if self._instances.pop(instance_id, None) is not None:
                self._persist(self._instances_path, self._instances)

    # --- Service keys ---

    def get_key(self, key_id: str) -> dict | None:
        with self._lock:
            return self._keys.get(key_id)

    def put_key(self, key: dict) -> None:
        with self._lock:
            self._keys[key["id"]] = key
            self._persist(self._keys_path, self._keys)

    def delete_key(self, key_id: str) -> None:
        with self._lock:
            if self._keys.pop(key_id, None) is not None:
                self._persist(self._keys_path, self._keys)
