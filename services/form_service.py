"""
폼 버퍼 변환 서비스 - 레코드 ↔ 폼 ↔ 저장 페이로드
"""
import math
import re

from config import Config
from models import ENTITIES
from services.references import create_record_url, extract_record_id

INT_PREFIX_RE = re.compile(r'^\s*([+-]?\d+)')
FLOAT_PREFIX_RE = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


def parse_int(text):
    """앞부분 정수만 읽음. 실패하면 0 ("42abc" → 42, "3.7" → 3)"""
    if isinstance(text, bool):
        return 0
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return int(text) if math.isfinite(text) else 0
    if not isinstance(text, str):
        return 0
    match = INT_PREFIX_RE.match(text)
    return int(match.group(1)) if match else 0


def parse_float(text):
    """앞부분 실수만 읽음. 실패하면 0 ("199.5" → 199.5)"""
    if isinstance(text, bool):
        return 0
    if isinstance(text, (int, float)):
        return text if math.isfinite(text) else 0
    if not isinstance(text, str):
        return 0
    match = FLOAT_PREFIX_RE.match(text)
    if not match:
        return 0
    value = float(match.group(1))
    return value if math.isfinite(value) else 0


def empty_form(entity):
    """엔티티 유형의 빈 폼 (bool은 False, 나머지는 빈 문자열)"""
    return {f.name: (False if f.kind == 'bool' else '') for f in entity.fields}


def empty_forms():
    return {key: empty_form(entity) for key, entity in ENTITIES.items()}


def form_from_record(entity, record):
    """레코드 → 폼 버퍼 (숫자는 문자열, 참조는 레코드 ID)"""
    form = {}
    for f in entity.fields:
        value = record.fields.get(f.name)
        if f.kind == 'ref':
            form[f.name] = extract_record_id(value) or ''
        elif f.kind == 'bool':
            form[f.name] = bool(value)
        elif f.is_numeric:
            form[f.name] = '' if value is None else str(value)
        else:
            form[f.name] = value or ''
    return form


def payload_from_form(entity, form):
    """폼 버퍼 → 저장 페이로드 (선택 안 된 참조는 제외)"""
    payload = {}
    for f in entity.fields:
        value = form.get(f.name)
        if f.kind == 'int':
            payload[f.name] = parse_int(value)
        elif f.kind == 'float':
            payload[f.name] = parse_float(value)
        elif f.kind == 'bool':
            payload[f.name] = bool(value)
        elif f.kind == 'ref':
            if value:
                target = ENTITIES[f.ref]
                payload[f.name] = create_record_url(Config.app_id(target.collection), value)
        else:
            payload[f.name] = value if value is not None else ''
    return payload
