"""
Pytest configuration and shared fixtures: in-memory record store and sample data.
"""
import pytest

from config import Config
from models import Record, TABS
from services.record_store import RecordNotFoundError, RecordStoreError
from services.references import create_record_url


def ref(collection, record_id):
    return create_record_url(Config.app_id(collection), record_id)


class FakeStorage:
    """In-memory record store. Adding (op, collection) to fail_on makes that call raise."""

    def __init__(self, data=None):
        self.data = {tab: list((data or {}).get(tab, [])) for tab in TABS}
        self.calls = []
        self.fail_on = set()
        self._counter = 0

    def _call(self, op, collection, *args):
        self.calls.append((op, collection) + args)
        if (op, collection) in self.fail_on:
            raise RecordStoreError(f"{op} {collection} failed")

    def list_records(self, collection):
        self._call('list', collection)
        return [Record(r.record_id, dict(r.fields)) for r in self.data[collection]]

    def create_record(self, collection, fields):
        self._call('create', collection, dict(fields))
        self._counter += 1
        record = Record(f"{collection}-new-{self._counter}", dict(fields))
        self.data[collection].append(record)
        return record

    def update_record(self, collection, record_id, fields):
        self._call('update', collection, record_id, dict(fields))
        for record in self.data[collection]:
            if record.record_id == record_id:
                record.fields.update(fields)
                return record
        raise RecordNotFoundError(record_id)

    def delete_record(self, collection, record_id):
        self._call('delete', collection, record_id)
        before = len(self.data[collection])
        self.data[collection] = [r for r in self.data[collection] if r.record_id != record_id]
        if len(self.data[collection]) == before:
            raise RecordNotFoundError(record_id)


@pytest.fixture
def sample_data():
    return {
        'dozenten': [
            Record('d1', {'name': 'Anna Schmidt', 'email': 'anna@example.de', 'telefon': '0301234', 'fachgebiet': 'Python'}),
        ],
        'teilnehmer': [
            Record('t1', {'name': 'Max Muster', 'email': 'max@example.de', 'geburtsdatum': '1990-05-01'}),
            Record('t2', {'name': 'Erika Beispiel', 'email': 'erika@example.de'}),
        ],
        'raeume': [
            Record('r1', {'raumname': 'A101', 'gebaeude': 'Hauptgebäude', 'kapazitaet': 25}),
        ],
        'kurse': [
            Record('k1', {
                'titel': 'Python Grundlagen',
                'beschreibung': 'Einstieg',
                'startdatum': '2026-01-10',
                'enddatum': '2026-02-10',
                'max_teilnehmer': 20,
                'preis': 199.5,
                'dozent': ref('dozenten', 'd1'),
                'raum': ref('raeume', 'r1'),
            }),
            Record('k2', {'titel': 'Datenbanken', 'max_teilnehmer': 30, 'preis': 99}),
        ],
        'anmeldungen': [
            Record('a1', {'teilnehmer': ref('teilnehmer', 't1'), 'kurs': ref('kurse', 'k1'),
                          'anmeldedatum': '2025-12-01', 'bezahlt': True}),
            Record('a2', {'teilnehmer': ref('teilnehmer', 't2'), 'kurs': ref('kurse', 'k1'),
                          'anmeldedatum': '2025-12-02', 'bezahlt': False}),
        ],
    }


@pytest.fixture
def storage(sample_data):
    return FakeStorage(sample_data)


@pytest.fixture
def controller(storage):
    from services.dashboard_controller import DashboardController
    ctrl = DashboardController(storage)
    assert ctrl.load_all()
    storage.calls.clear()
    return ctrl


@pytest.fixture
def app(storage, monkeypatch):
    from collections import OrderedDict

    import routes
    import services.record_store as record_store
    from app import create_app

    monkeypatch.setattr(record_store, '_storage_instance', storage)
    monkeypatch.setattr(routes, '_controllers', OrderedDict())
    return create_app({'TESTING': True})


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
