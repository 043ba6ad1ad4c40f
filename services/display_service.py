"""
표시용 데이터 변환 서비스 - 참조 이름 해석 및 탭별 테이블 행
"""
from models import ENTITIES, get_entity
from services.references import extract_record_id
from services.stats_service import enrollment_badge

MISSING = '-'


def find_record(records, record_id):
    """레코드 ID로 선형 탐색"""
    if not record_id:
        return None
    for record in records:
        if record.record_id == record_id:
            return record
    return None


def display_name(entity_key, record):
    """레코드의 표시 이름"""
    if record is None:
        return MISSING
    if entity_key == 'raum':
        return f"{record.fields.get('raumname') or ''} ({record.fields.get('gebaeude') or MISSING})"
    entity = ENTITIES[entity_key]
    return record.fields.get(entity.display_field) or MISSING


def resolve_display(entity_key, reference, collections):
    """참조 URL → 대상 레코드 표시 이름 (없으면 "-")"""
    if not reference:
        return MISSING
    entity = ENTITIES[entity_key]
    record = find_record(collections.get(entity.collection, []), extract_record_id(reference))
    return display_name(entity_key, record)


def _format_price(value):
    if value is None or value == '':
        return ''
    return f"{float(value):.2f} €"


def _kurs_row(record, collections, stats):
    f = record.fields
    enrolled = stats["enrollments_by_course"].get(record.record_id, 0)
    return {
        "titel": f.get('titel') or '',
        "dozent": resolve_display('dozent', f.get('dozent'), collections),
        "raum": resolve_display('raum', f.get('raum'), collections),
        "startdatum": f.get('startdatum') or MISSING,
        "enddatum": f.get('enddatum') or MISSING,
        "enrollment": enrollment_badge(enrolled, f.get('max_teilnehmer') or 0),
        "preis": _format_price(f.get('preis')),
        "delete_label": f.get('titel') or '',
    }


def _dozent_row(record, collections, stats):
    f = record.fields
    return {
        "name": f.get('name') or '',
        "email": f.get('email') or '',
        "telefon": f.get('telefon') or MISSING,
        "fachgebiet": f.get('fachgebiet') or '',
        "delete_label": f.get('name') or '',
    }


def _teilnehmer_row(record, collections, stats):
    f = record.fields
    return {
        "name": f.get('name') or '',
        "email": f.get('email') or '',
        "telefon": f.get('telefon') or MISSING,
        "geburtsdatum": f.get('geburtsdatum') or MISSING,
        "delete_label": f.get('name') or '',
    }


def _raum_row(record, collections, stats):
    f = record.fields
    return {
        "raumname": f.get('raumname') or '',
        "gebaeude": f.get('gebaeude') or MISSING,
        "kapazitaet": f.get('kapazitaet') or 0,
        "delete_label": f.get('raumname') or '',
    }


def _anmeldung_row(record, collections, stats):
    f = record.fields
    teilnehmer = resolve_display('teilnehmer', f.get('teilnehmer'), collections)
    kurs = resolve_display('kurs', f.get('kurs'), collections)
    return {
        "teilnehmer": teilnehmer,
        "kurs": kurs,
        "anmeldedatum": f.get('anmeldedatum') or MISSING,
        "bezahlt": bool(f.get('bezahlt')),
        "status": "Bezahlt" if f.get('bezahlt') else "Offen",
        "delete_label": f"{teilnehmer} - {kurs}",
    }


ROW_BUILDERS = {
    'kurs': _kurs_row,
    'dozent': _dozent_row,
    'teilnehmer': _teilnehmer_row,
    'raum': _raum_row,
    'anmeldung': _anmeldung_row,
}


def build_rows(entity_name, collections, stats):
    """탭 하나의 테이블 행 목록"""
    entity = get_entity(entity_name)
    builder = ROW_BUILDERS[entity.key]
    rows = []
    for record in collections.get(entity.collection, []):
        row = builder(record, collections, stats)
        row["record_id"] = record.record_id
        rows.append(row)
    return rows
