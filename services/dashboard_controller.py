"""
대시보드 컨트롤러 - 컬렉션 로딩, 다이얼로그/폼 상태, 저장 및 삭제 흐름
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional

from config import Config
from models import ENTITIES, TABS, get_entity
from services.display_service import build_rows, find_record
from services.form_service import empty_form, empty_forms, form_from_record, payload_from_form
from services.stats_service import compute_stats

logger = logging.getLogger(__name__)

STATUS_IDLE = 'idle'
STATUS_LOADING = 'loading'
STATUS_LOADED = 'loaded'
STATUS_FAILED = 'failed'

MODE_CREATE = 'create'
MODE_EDIT = 'edit'


@dataclass
class DialogState:
    """생성/수정 다이얼로그 상태"""
    open: bool = False
    mode: str = MODE_CREATE
    entity: str = 'kurs'
    editing_id: Optional[str] = None
    saving: bool = False


@dataclass
class DeleteTarget:
    """삭제 확인 대기 중인 레코드"""
    entity: str
    record_id: str
    name: str = ''


@dataclass
class DashboardState:
    status: str = STATUS_IDLE
    active_tab: str = Config.DEFAULT_TAB
    collections: Dict[str, list] = field(default_factory=lambda: {tab: [] for tab in TABS})
    forms: Dict[str, dict] = field(default_factory=empty_forms)
    dialog: DialogState = field(default_factory=DialogState)
    delete_target: Optional[DeleteTarget] = None
    delete_confirm_open: bool = False
    last_error: Optional[str] = None


class DashboardController:
    """브라우저 세션 하나의 대시보드 상태와 CRUD 흐름"""

    def __init__(self, storage):
        self.storage = storage
        self.state = DashboardState()
        self.lock = threading.RLock()
        self._stats_source = None
        self._stats = None

    # ===== 로딩 =====

    @property
    def status(self):
        return self.state.status

    @property
    def collections(self):
        return self.state.collections

    def load_all(self):
        """다섯 컬렉션을 동시에 조회. 하나라도 실패하면 전체 실패 (부분 반영 없음)"""
        self.state.status = STATUS_LOADING
        with ThreadPoolExecutor(max_workers=len(TABS)) as executor:
            futures = {tab: executor.submit(self.storage.list_records, tab) for tab in TABS}
            wait(futures.values())

        errors = {tab: f.exception() for tab, f in futures.items() if f.exception() is not None}
        if errors:
            for tab, error in errors.items():
                logger.error(f"데이터 로딩 실패: {tab}: {error}", exc_info=error)
            self.state.status = STATUS_FAILED
            self.state.last_error = "Daten konnten nicht geladen werden."
            return False

        self.state.collections = {tab: f.result() for tab, f in futures.items()}
        self.state.status = STATUS_LOADED
        self.state.last_error = None
        logger.info("데이터 로딩 완료: " + ", ".join(
            f"{tab}={len(records)}" for tab, records in self.state.collections.items()
        ))
        return True

    def reload(self, entity_name):
        """컬렉션 하나만 다시 조회"""
        entity = get_entity(entity_name)
        records = self.storage.list_records(entity.collection)
        collections = dict(self.state.collections)
        collections[entity.collection] = records
        self.state.collections = collections

    # ===== 통계 =====

    @property
    def stats(self):
        """컬렉션 리스트 identity가 바뀔 때만 다시 계산"""
        source = tuple(self.state.collections.get(tab) for tab in TABS)
        cached = self._stats_source
        if cached is None or any(a is not b for a, b in zip(source, cached)):
            self._stats = compute_stats(self.state.collections)
            self._stats_source = source
        return self._stats

    # ===== 탭 =====

    def set_active_tab(self, tab):
        if tab not in TABS:
            raise ValueError(f"알 수 없는 탭: {tab}")
        self.state.active_tab = tab

    # ===== 다이얼로그 =====

    @property
    def dialog(self):
        return self.state.dialog

    def current_form(self):
        return self.state.forms[self.state.dialog.entity]

    def reset_forms(self):
        self.state.forms = empty_forms()

    def open_create(self, entity_name):
        entity = get_entity(entity_name)
        self.state.dialog = DialogState(open=True, mode=MODE_CREATE, entity=entity.key)
        self.reset_forms()

    def open_create_for_active_tab(self):
        self.open_create(self.state.active_tab)

    def open_edit(self, entity_name, record_id):
        """레코드를 찾으면 폼에 채움. 못 찾으면 폼은 이전 값 그대로"""
        entity = get_entity(entity_name)
        self.state.dialog = DialogState(
            open=True, mode=MODE_EDIT, entity=entity.key, editing_id=record_id,
        )
        record = find_record(self.state.collections.get(entity.collection, []), record_id)
        if record is None:
            logger.warning(f"수정할 레코드 없음: {entity.collection}/{record_id}")
            return
        self.state.forms[entity.key] = form_from_record(entity, record)

    def update_form(self, values):
        """열린 다이얼로그의 폼 버퍼에 입력값 반영 (모르는 키는 무시)"""
        entity = ENTITIES[self.state.dialog.entity]
        form = self.state.forms.setdefault(entity.key, empty_form(entity))
        for name, value in (values or {}).items():
            if entity.get_field(name) is not None:
                form[name] = value
        return form

    def close_dialog(self):
        self.state.dialog.open = False

    def dialog_title(self):
        action = 'Neue/r' if self.state.dialog.mode == MODE_CREATE else 'Bearbeiten:'
        return f"{action} {ENTITIES[self.state.dialog.entity].label}"

    def save(self):
        """폼 저장 → 해당 컬렉션 재조회 → 다이얼로그 닫기. 실패 시 다이얼로그 유지"""
        dialog = self.state.dialog
        entity = ENTITIES[dialog.entity]
        dialog.saving = True
        try:
            payload = payload_from_form(entity, self.state.forms[entity.key])
            if dialog.mode == MODE_CREATE:
                self.storage.create_record(entity.collection, payload)
            elif dialog.editing_id:
                self.storage.update_record(entity.collection, dialog.editing_id, payload)
            self.reload(entity.key)
            dialog.open = False
            self.reset_forms()
            self.state.last_error = None
            logger.info(f"저장 완료: {entity.collection} ({dialog.mode})")
            return True
        except Exception as e:
            logger.error(f"저장 실패: {entity.collection}: {e}", exc_info=True)
            self.state.last_error = "Speichern fehlgeschlagen."
            return False
        finally:
            dialog.saving = False

    # ===== 삭제 =====

    def request_delete(self, entity_name, record_id, name=''):
        entity = get_entity(entity_name)
        self.state.delete_target = DeleteTarget(entity=entity.key, record_id=record_id, name=name or '')
        self.state.delete_confirm_open = True

    def cancel_delete(self):
        self.state.delete_target = None
        self.state.delete_confirm_open = False

    def confirm_delete(self):
        """대기 중인 삭제 실행. 대상이 없으면 아무것도 하지 않음"""
        target = self.state.delete_target
        if target is None:
            return False
        entity = ENTITIES[target.entity]
        try:
            self.storage.delete_record(entity.collection, target.record_id)
            self.reload(entity.key)
            self.state.last_error = None
            logger.info(f"삭제 완료: {entity.collection}/{target.record_id}")
            return True
        except Exception as e:
            logger.error(f"삭제 실패: {entity.collection}/{target.record_id}: {e}", exc_info=True)
            self.state.last_error = "Löschen fehlgeschlagen."
            return False
        finally:
            self.cancel_delete()

    # ===== 직렬화 =====

    def rows(self, entity_name):
        return build_rows(entity_name, self.state.collections, self.stats)

    def snapshot(self):
        """화면 렌더링/JSON 응답용 전체 상태"""
        stats = self.stats
        dialog = asdict(self.state.dialog)
        dialog["title"] = self.dialog_title()
        dialog["form"] = self.current_form()
        dialog["fields"] = [asdict(f) for f in ENTITIES[self.state.dialog.entity].fields]
        return {
            "status": self.state.status,
            "loading": self.state.status in (STATUS_IDLE, STATUS_LOADING),
            "active_tab": self.state.active_tab,
            "stats": stats,
            "tables": {tab: build_rows(tab, self.state.collections, stats) for tab in TABS},
            "dialog": dialog,
            "delete_target": asdict(self.state.delete_target) if self.state.delete_target else None,
            "delete_confirm_open": self.state.delete_confirm_open,
            "last_error": self.state.last_error,
        }
