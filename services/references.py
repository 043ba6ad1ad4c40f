"""
레코드 참조 URL 변환 - 참조 문자열 ↔ 레코드 ID
"""
import re

from config import Config

# <base>/rest/apps/<app_id>/records/<record_id>
RECORD_URL_RE = re.compile(r'/rest/apps/[^/]+/records/([^/?#\s]+)/?$')


def extract_record_id(reference):
    """참조 URL에서 레코드 ID 추출 (없거나 해석 불가하면 None)"""
    if not reference or not isinstance(reference, str):
        return None
    match = RECORD_URL_RE.search(reference.strip())
    return match.group(1) if match else None


def create_record_url(app_id, record_id, base_url=None):
    """앱 ID + 레코드 ID → 참조 URL"""
    base = (base_url if base_url is not None else Config.LIVINGAPPS_BASE_URL).rstrip('/')
    return f"{base}/rest/apps/{app_id}/records/{record_id}"
