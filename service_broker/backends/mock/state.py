"""In-memory state store for testing."""

from __future__ import annotations


class InMemoryStateStore:
    def __init__(self):
        self._instances: dict[str, dict] = {}
        self._keys: dict[str, dict] = {}

    # --- Service instances ---

    def get_instance(self, instance_id: str) -> dict | None:
        return self._instances.get(instance_id)

    def put_instance(self, instance: dict) -> None:
        self._instances[instance["id"]] = instance

    def update_instance(self, instance_id: str, **fields) -> None:
        inst = self._instances.get(instance_id)
        if inst is None:
            raise KeyError(f"Service instance {instance_id} not found")
        inst.update(fields)

    def delete_instance(self, instance_id: str) -> None:
        self._instances.pop(instance_id, None)

    # --- Service keys ---

    def get_key(self, key_id: str) -> dict | None:
        return self._keys.get(key_id)

    def put_key(self, key: dict) -> None:
        self._keys[key["id"]] = key

    def delete_key(self, key_id: str) -> None:
        self._keys.pop(key_id, None)
