"""
Tests for record storage backends.
"""
import json
from unittest.mock import Mock

import pytest
import requests
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

import services.record_store as record_store
from config import Config
from services.record_store import (
    CosmosStorage,
    LivingAppsStorage,
    LocalJsonStorage,
    RecordNotFoundError,
    RecordStoreError,
    get_storage,
)


@pytest.fixture
def local_storage(tmp_path):
    return LocalJsonStorage(str(tmp_path / "data" / "records.json"))


class TestLocalJsonStorage:
    def test_new_file_has_all_collections(self, local_storage):
        with open(local_storage.filepath, encoding='utf-8') as f:
            data = json.load(f)
        assert set(data) == {'dozenten', 'teilnehmer', 'raeume', 'kurse', 'anmeldungen'}
        assert local_storage.list_records('kurse') == []

    def test_create_update_delete(self, local_storage):
        created = local_storage.create_record('raeume', {'raumname': 'A1', 'kapazitaet': 10})
        assert len(created.record_id) == 24

        local_storage.update_record('raeume', created.record_id, {'kapazitaet': 12})
        records = local_storage.list_records('raeume')
        assert len(records) == 1
        assert records[0].fields == {'raumname': 'A1', 'kapazitaet': 12}

        local_storage.delete_record('raeume', created.record_id)
        assert local_storage.list_records('raeume') == []

    def test_missing_record(self, local_storage):
        with pytest.raises(RecordNotFoundError):
            local_storage.update_record('kurse', 'nope', {})
        with pytest.raises(RecordNotFoundError):
            local_storage.delete_record('kurse', 'nope')

    def test_unknown_collection(self, local_storage):
        with pytest.raises(RecordStoreError):
            local_storage.list_records('unbekannt')

    def test_corrupt_file_reads_as_empty(self, local_storage):
        with open(local_storage.filepath, 'w', encoding='utf-8') as f:
            f.write("{kaputt")
        assert local_storage.list_records('dozenten') == []


def _response(status=200, payload=None):
    resp = Mock()
    resp.status_code = status
    resp.ok = status < 400
    resp.content = b'' if payload is None else json.dumps(payload).encode()
    resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    s = Mock()
    s.headers = {}
    return s


@pytest.fixture
def remote(session):
    return LivingAppsStorage(base_url="https://store.example", api_key="secret", session=session)


class TestLivingAppsStorage:
    def test_api_key_header(self, remote, session):
        assert session.headers['X-API-Key'] == 'secret'

    def test_list_records_from_mapping(self, remote, session):
        session.request.return_value = _response(payload={
            'r1': {'fields': {'name': 'Anna'}, 'createdat': '2026-01-01T10:00:00'},
            'r2': {'fields': {'name': 'Ben'}},
        })
        records = remote.list_records('dozenten')
        assert [r.record_id for r in records] == ['r1', 'r2']
        assert records[0].fields == {'name': 'Anna'}

        method, url = session.request.call_args[0]
        assert method == 'GET'
        assert url == f"https://store.example/rest/apps/{Config.app_id('dozenten')}/records"

    def test_create_and_update_send_fields(self, remote, session):
        session.request.return_value = _response(payload={'id': 'new1', 'fields': {'raumname': 'A'}})
        record = remote.create_record('raeume', {'raumname': 'A'})
        assert record.record_id == 'new1'
        assert session.request.call_args[1]['json'] == {'fields': {'raumname': 'A'}}

        session.request.return_value = _response(payload=None)
        updated = remote.update_record('raeume', 'new1', {'raumname': 'B'})
        assert updated.record_id == 'new1'
        assert session.request.call_args[0][0] == 'PATCH'
        assert session.request.call_args[0][1].endswith('/records/new1')

    def test_delete(self, remote, session):
        session.request.return_value = _response(status=204)
        remote.delete_record('kurse', 'k1')
        assert session.request.call_args[0][0] == 'DELETE'

    def test_http_errors_raise(self, remote, session):
        session.request.return_value = _response(status=500)
        with pytest.raises(RecordStoreError):
            remote.list_records('kurse')
        session.request.return_value = _response(status=404)
        with pytest.raises(RecordNotFoundError):
            remote.delete_record('kurse', 'weg')

    def test_transport_errors_raise(self, remote, session):
        session.request.side_effect = requests.ConnectionError("offline")
        with pytest.raises(RecordStoreError):
            remote.list_records('kurse')


@pytest.fixture
def cosmos():
    storage = CosmosStorage.__new__(CosmosStorage)
    storage.container = Mock()
    return storage


class TestCosmosStorage:
    def test_list_records_queries_one_partition(self, cosmos):
        cosmos.container.query_items.return_value = [
            {'id': 'k1', 'collection': 'kurse', 'fields': {'titel': 'Python'}, 'createdat': '2026-01-01T10:00:00'},
        ]
        records = cosmos.list_records('kurse')
        assert [r.record_id for r in records] == ['k1']
        assert records[0].fields == {'titel': 'Python'}
        kwargs = cosmos.container.query_items.call_args[1]
        assert kwargs['partition_key'] == 'kurse'
        assert kwargs['parameters'] == [{'name': '@collection', 'value': 'kurse'}]

    def test_list_error_is_wrapped(self, cosmos):
        cosmos.container.query_items.side_effect = CosmosHttpResponseError(status_code=503, message='down')
        with pytest.raises(RecordStoreError):
            cosmos.list_records('kurse')

    def test_create_record(self, cosmos):
        record = cosmos.create_record('raeume', {'raumname': 'A1'})
        body = cosmos.container.create_item.call_args[1]['body']
        assert body['id'] == record.record_id
        assert body['collection'] == 'raeume'
        assert body['fields'] == {'raumname': 'A1'}
        assert record.fields == {'raumname': 'A1'}

    def test_create_error_is_wrapped(self, cosmos):
        cosmos.container.create_item.side_effect = CosmosHttpResponseError(status_code=409, message='conflict')
        with pytest.raises(RecordStoreError):
            cosmos.create_record('raeume', {})

    def test_update_merges_fields(self, cosmos):
        cosmos.container.read_item.return_value = {
            'id': 'r1', 'collection': 'raeume', 'fields': {'raumname': 'A1', 'kapazitaet': 10},
        }
        record = cosmos.update_record('raeume', 'r1', {'kapazitaet': 12})
        assert record.fields == {'raumname': 'A1', 'kapazitaet': 12}
        assert cosmos.container.read_item.call_args[1] == {'item': 'r1', 'partition_key': 'raeume'}
        assert cosmos.container.replace_item.call_args[1]['body']['fields']['kapazitaet'] == 12

    def test_update_missing_record(self, cosmos):
        cosmos.container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message='missing')
        with pytest.raises(RecordNotFoundError):
            cosmos.update_record('raeume', 'nope', {})
        cosmos.container.replace_item.assert_not_called()

    def test_update_replace_error_is_wrapped(self, cosmos):
        cosmos.container.read_item.return_value = {'id': 'r1', 'fields': {}}
        cosmos.container.replace_item.side_effect = CosmosHttpResponseError(status_code=412, message='etag')
        with pytest.raises(RecordStoreError):
            cosmos.update_record('raeume', 'r1', {'kapazitaet': 1})

    def test_delete(self, cosmos):
        cosmos.delete_record('kurse', 'k1')
        assert cosmos.container.delete_item.call_args[1] == {'item': 'k1', 'partition_key': 'kurse'}

    def test_delete_missing_record(self, cosmos):
        cosmos.container.delete_item.side_effect = CosmosResourceNotFoundError(status_code=404, message='missing')
        with pytest.raises(RecordNotFoundError):
            cosmos.delete_record('kurse', 'nope')

    def test_delete_error_is_wrapped(self, cosmos):
        cosmos.container.delete_item.side_effect = CosmosHttpResponseError(status_code=500, message='boom')
        with pytest.raises(RecordStoreError) as exc_info:
            cosmos.delete_record('kurse', 'k1')
        assert not isinstance(exc_info.value, RecordNotFoundError)

    def test_unknown_collection(self, cosmos):
        with pytest.raises(RecordStoreError):
            cosmos.list_records('unbekannt')
        cosmos.container.query_items.assert_not_called()


class TestGetStorage:
    def test_falls_back_to_local_json(self, tmp_path, monkeypatch):
        monkeypatch.setattr(record_store, '_storage_instance', None)
        monkeypatch.setattr(Config, 'LIVINGAPPS_API_KEY', None)
        monkeypatch.setattr(Config, 'COSMOS_DB_ENDPOINT', None)
        monkeypatch.setattr(Config, 'RECORDS_FILE', str(tmp_path / 'records.json'))
        storage = get_storage()
        assert isinstance(storage, LocalJsonStorage)
        assert get_storage() is storage

    def test_prefers_living_apps(self, monkeypatch):
        monkeypatch.setattr(record_store, '_storage_instance', None)
        monkeypatch.setattr(Config, 'LIVINGAPPS_API_KEY', 'key')
        assert isinstance(get_storage(), LivingAppsStorage)
