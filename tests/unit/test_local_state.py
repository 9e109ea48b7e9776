"""Unit tests for the JSON-file state store."""

from __future__ import annotations

import json

import pytest

from service_broker.backends.local import state as local_state
from service_broker.backends.local.state import JsonFileStateStore
from service_broker.core import bindings, instances


def _store(path) -> JsonFileStateStore:
    return JsonFileStateStore(str(path), "service_instances.json", "service_keys.json")


def _read(path):
    return json.loads(path.read_text())


def test_missing_files_start_empty(tmp_path):
    store = _store(tmp_path / "data")

    assert store.get_instance("guid-1") is None
    assert store.get_key("bind-1") is None
    assert not (tmp_path / "data" / "service_instances.json").exists()


def test_every_mutation_rewrites_the_whole_map(tmp_path, cloud, provision_request):
    store = _store(tmp_path)

    instances.create_instance("guid-1", provision_request, store, cloud)
    instances.create_instance("guid-2", provision_request, store, cloud)
    assert _read(tmp_path / "service_instances.json") == {
        "guid-1": store.get_instance("guid-1"),
        "guid-2": store.get_instance("guid-2"),
    }

    bindings.bind("guid-1", "bind-1", store, cloud)
    assert _read(tmp_path / "service_keys.json") == {"bind-1": store.get_key("bind-1")}

    cloud.set_state(store.get_instance("guid-1")["internal_id"], "running")
    instances.get_instance("guid-1", store, cloud)
    persisted = _read(tmp_path / "service_instances.json")
    assert persisted["guid-1"]["last_operation"]["state"] == "succeeded"

    bindings.unbind("guid-1", "bind-1", store, cloud)
    assert _read(tmp_path / "service_keys.json") == {}

    instances.delete_instance("guid-2", store, cloud)
    assert list(_read(tmp_path / "service_instances.json")) == ["guid-1"]


def test_reload_restores_persisted_maps(tmp_path, cloud, provision_request):
    store = _store(tmp_path)
    instances.create_instance("guid-1", provision_request, store, cloud)
    bindings.bind("guid-1", "bind-1", store, cloud)

    reloaded = _store(tmp_path)

    assert reloaded.get_instance("guid-1") == store.get_instance("guid-1")
    assert reloaded.get_key("bind-1") == store.get_key("bind-1")
    assert reloaded.get_key("bind-1")["service_instance_id"] == "guid-1"


def test_malformed_file_fails_at_startup(tmp_path):
    (tmp_path / "service_instances.json").write_text("[1, 2]")

    with pytest.raises(ValueError):
        _store(tmp_path)


def test_persistence_failure_does_not_block_response(tmp_path, cloud, provision_request, monkeypatch):
    store = _store(tmp_path)

    def broken_write(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(local_state, "_write_json", broken_write)

    created = instances.create_instance("guid-1", provision_request, store, cloud)
    bound = bindings.bind("guid-1", "bind-1", store, cloud)

    assert created["status_code"] == 200
    assert bound["status_code"] == 201
    assert store.get_instance("guid-1") is not None
    assert store.get_key("bind-1") is not None
    assert not (tmp_path / "service_instances.json").exists()


def test_update_missing_instance_raises(tmp_path):
    with pytest.raises(KeyError):
        _store(tmp_path).update_instance("nope", last_operation={})


def test_write_leaves_no_temp_files(tmp_path, cloud, provision_request):
    store = _store(tmp_path)
    instances.create_instance("guid-1", provision_request, store, cloud)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["service_instances.json"]
