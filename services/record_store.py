"""
레코드 저장소 서비스 - Living Apps REST API, Azure Cosmos DB 또는 로컬 JSON fallback
"""
import os
import json
import uuid
import logging
from datetime import datetime

import requests

from config import Config
from models import Record, ENTITIES_BY_COLLECTION

logger = logging.getLogger(__name__)

_storage_instance = None


class RecordStoreError(Exception):
    """저장소 요청 실패"""


class RecordNotFoundError(RecordStoreError):
    """레코드를 찾을 수 없음"""


def _generate_record_id():
    """고유 레코드 ID 생성 (24자리 hex)"""
    return uuid.uuid4().hex[:24]


def _now():
    return datetime.now().isoformat(timespec='seconds')


def _check_collection(collection):
    if collection not in ENTITIES_BY_COLLECTION:
        raise RecordStoreError(f"알 수 없는 컬렉션: {collection}")


def get_storage():
    """저장소 싱글턴 인스턴스 반환"""
    global _storage_instance
    if _storage_instance is None:
        if Config.use_living_apps():
            _storage_instance = LivingAppsStorage()
        elif Config.use_cosmos_db():
            _storage_instance = CosmosStorage()
        else:
            _storage_instance = LocalJsonStorage()
    return _storage_instance


class LocalJsonStorage:
    """로컬 JSON 파일 기반 저장소 (개발용 fallback)"""

    def __init__(self, filepath=None):
        self.filepath = filepath or Config.RECORDS_FILE
        os.makedirs(os.path.dirname(self.filepath), exist_ok=True)
        if not os.path.exists(self.filepath):
            self._save_data(self._empty_data())
        logger.info("로컬 JSON 저장소 초기화 완료")

    @staticmethod
    def _empty_data():
        return {collection: [] for collection in ENTITIES_BY_COLLECTION}

    def _load_data(self):
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            return self._empty_data()
        for collection in ENTITIES_BY_COLLECTION:
            data.setdefault(collection, [])
        return data

    def _save_data(self, data):
        with open(self.filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def list_records(self, collection):
        """컬렉션 전체 레코드 반환"""
        _check_collection(collection)
        data = self._load_data()
        return [Record.from_dict(doc) for doc in data[collection]]

    def create_record(self, collection, fields):
        """레코드 생성"""
        _check_collection(collection)
        data = self._load_data()
        now = _now()
        record = Record(
            record_id=_generate_record_id(),
            fields=dict(fields),
            createdat=now,
            updatedat=now,
        )
        data[collection].append(record.to_dict())
        self._save_data(data)
        logger.info(f"레코드 생성: {collection}/{record.record_id}")
        return record

    def update_record(self, collection, record_id, fields):
        """레코드 필드 수정"""
        _check_collection(collection)
        data = self._load_data()
        for doc in data[collection]:
            if doc.get('record_id') == record_id:
                doc.setdefault('fields', {}).update(fields)
                doc['updatedat'] = _now()
                self._save_data(data)
                logger.info(f"레코드 수정: {collection}/{record_id}")
                return Record.from_dict(doc)
        raise RecordNotFoundError(f"레코드를 찾을 수 없습니다: {collection}/{record_id}")

    def delete_record(self, collection, record_id):
        """레코드 삭제"""
        _check_collection(collection)
        data = self._load_data()
        original_len = len(data[collection])
        data[collection] = [d for d in data[collection] if d.get('record_id') != record_id]
        if len(data[collection]) == original_len:
            raise RecordNotFoundError(f"레코드를 찾을 수 없습니다: {collection}/{record_id}")
        self._save_data(data)
        logger.info(f"레코드 삭제: {collection}/{record_id}")


class LivingAppsStorage:
    """Living Apps REST API 기반 저장소"""

    def __init__(self, base_url=None, api_key=None, session=None):
        self.base_url = (base_url or Config.LIVINGAPPS_BASE_URL).rstrip('/')
        self.timeout = Config.LIVINGAPPS_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            'X-API-Key': api_key or Config.LIVINGAPPS_API_KEY or '',
            'Accept': 'application/json',
        })
        logger.info(f"Living Apps 저장소 초기화 완료 ({self.base_url})")

    def _records_url(self, collection, record_id=None):
        _check_collection(collection)
        url = f"{self.base_url}/rest/apps/{Config.app_id(collection)}/records"
        return f"{url}/{record_id}" if record_id else url

    def _request(self, method, url, **kwargs):
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RecordStoreError(f"{method} {url} 요청 실패: {e}") from e
        if resp.status_code == 404:
            raise RecordNotFoundError(f"{method} {url}: 404")
        if not resp.ok:
            raise RecordStoreError(f"{method} {url}: HTTP {resp.status_code}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RecordStoreError(f"{method} {url}: 잘못된 JSON 응답") from e

    @staticmethod
    def _to_records(payload):
        # 응답은 {record_id: {...}} 또는 [{record_id, ...}] 형식
        if isinstance(payload, dict):
            return [Record.from_dict(doc, record_id=rid) for rid, doc in payload.items()]
        return [Record.from_dict(doc) for doc in payload or []]

    def list_records(self, collection):
        """컬렉션 전체 레코드 반환"""
        payload = self._request('GET', self._records_url(collection))
        records = self._to_records(payload)
        logger.debug(f"레코드 조회: {collection} ({len(records)}건)")
        return records

    def create_record(self, collection, fields):
        """레코드 생성"""
        payload = self._request('POST', self._records_url(collection), json={"fields": fields})
        record = Record.from_dict(payload or {"fields": fields})
        logger.info(f"레코드 생성: {collection}/{record.record_id}")
        return record

    def update_record(self, collection, record_id, fields):
        """레코드 필드 수정"""
        payload = self._request('PATCH', self._records_url(collection, record_id), json={"fields": fields})
        logger.info(f"레코드 수정: {collection}/{record_id}")
        return Record.from_dict(payload or {"fields": fields}, record_id=record_id)

    def delete_record(self, collection, record_id):
        """레코드 삭제"""
        self._request('DELETE', self._records_url(collection, record_id))
        logger.info(f"레코드 삭제: {collection}/{record_id}")


class CosmosStorage:
    """Azure Cosmos DB 기반 저장소"""

    def __init__(self):
        from azure.cosmos import CosmosClient, PartitionKey
        self.client = CosmosClient(Config.COSMOS_DB_ENDPOINT, Config.COSMOS_DB_KEY)
        self.database = self.client.create_database_if_not_exists(id=Config.COSMOS_DATABASE_NAME)
        self.container = self.database.create_container_if_not_exists(
            id=Config.COSMOS_CONTAINER_NAME,
            partition_key=PartitionKey(path="/collection")
        )
        logger.info("Azure Cosmos DB 저장소 초기화 완료")

    @staticmethod
    def _to_record(doc):
        return Record(
            record_id=doc['id'],
            fields=dict(doc.get('fields') or {}),
            createdat=doc.get('createdat', ''),
            updatedat=doc.get('updatedat', ''),
        )

    def _read(self, collection, record_id):
        from azure.cosmos.exceptions import CosmosResourceNotFoundError
        try:
            return self.container.read_item(item=record_id, partition_key=collection)
        except CosmosResourceNotFoundError as e:
            raise RecordNotFoundError(f"레코드를 찾을 수 없습니다: {collection}/{record_id}") from e

    def list_records(self, collection):
        """컬렉션 전체 레코드 반환"""
        from azure.cosmos.exceptions import CosmosHttpResponseError
        _check_collection(collection)
        query = "SELECT * FROM c WHERE c.collection = @collection ORDER BY c.createdat"
        try:
            docs = list(self.container.query_items(
                query=query,
                parameters=[{"name": "@collection", "value": collection}],
                partition_key=collection,
            ))
        except CosmosHttpResponseError as e:
            raise RecordStoreError(f"레코드 조회 실패: {collection}: {e}") from e
        return [self._to_record(doc) for doc in docs]

    def create_record(self, collection, fields):
        """레코드 생성"""
        from azure.cosmos.exceptions import CosmosHttpResponseError
        _check_collection(collection)
        now = _now()
        doc = {
            "id": _generate_record_id(),
            "collection": collection,
            "fields": dict(fields),
            "createdat": now,
            "updatedat": now,
        }
        try:
            self.container.create_item(body=doc)
        except CosmosHttpResponseError as e:
            raise RecordStoreError(f"레코드 생성 실패: {collection}: {e}") from e
        logger.info(f"레코드 생성: {collection}/{doc['id']}")
        return self._to_record(doc)

    def update_record(self, collection, record_id, fields):
        """레코드 필드 수정"""
        from azure.cosmos.exceptions import CosmosHttpResponseError
        _check_collection(collection)
        doc = self._read(collection, record_id)
        doc.setdefault('fields', {}).update(fields)
        doc['updatedat'] = _now()
        try:
            self.container.replace_item(item=doc['id'], body=doc)
        except CosmosHttpResponseError as e:
            raise RecordStoreError(f"레코드 수정 실패: {collection}/{record_id}: {e}") from e
        logger.info(f"레코드 수정: {collection}/{record_id}")
        return self._to_record(doc)

    def delete_record(self, collection, record_id):
        """레코드 삭제"""
        from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
        _check_collection(collection)
        try:
            self.container.delete_item(item=record_id, partition_key=collection)
        except CosmosResourceNotFoundError as e:
            raise RecordNotFoundError(f"레코드를 찾을 수 없습니다: {collection}/{record_id}") from e
        except CosmosHttpResponseError as e:
            raise RecordStoreError(f"레코드 삭제 실패: {collection}/{record_id}: {e}") from e
        logger.info(f"레코드 삭제: {collection}/{record_id}")
