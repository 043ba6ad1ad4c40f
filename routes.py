"""
Kursverwaltung Dashboard - 라우트 정의
"""
import uuid
import logging
import threading
from collections import OrderedDict
from functools import wraps
from flask import Blueprint, render_template, jsonify, request, session

from config import Config
from models import TABS, get_entity
from utils.error_handlers import handle_errors

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__)
api_bp = Blueprint('api', __name__, url_prefix='/api')

# 세션 ID → 대시보드 컨트롤러 (최근 사용 순, 최대 Config.MAX_SESSIONS개)
_controllers = OrderedDict()
_controllers_lock = threading.Lock()


def get_controller():
    """현재 브라우저 세션의 컨트롤러 반환 (없으면 생성, 오래된 세션은 제거)"""
    from services.record_store import get_storage
    from services.dashboard_controller import DashboardController

    sid = session.get('sid')
    with _controllers_lock:
        controller = _controllers.get(sid) if sid else None
        if controller is not None:
            _controllers.move_to_end(sid)
            return controller

        sid = sid or uuid.uuid4().hex
        session['sid'] = sid
        controller = DashboardController(get_storage())
        _controllers[sid] = controller
        logger.info(f"대시보드 세션 생성: {sid[:8]}")
        while len(_controllers) > Config.MAX_SESSIONS:
            evicted, _ = _controllers.popitem(last=False)
            logger.info(f"대시보드 세션 제거: {evicted[:8]}")
        return controller


def with_controller(f):
    """세션 컨트롤러를 첫 인자로 넘김. 같은 세션의 요청은 컨트롤러 락으로 직렬화"""
    @wraps(f)
    def decorated(*args, **kwargs):
        controller = get_controller()
        with controller.lock:
            return f(controller, *args, **kwargs)
    return decorated


def _ensure_loaded(controller):
    from services.dashboard_controller import STATUS_IDLE
    if controller.status == STATUS_IDLE:
        controller.load_all()


def _json_body():
    return request.get_json(silent=True) or {}


def _state_response(controller, status=200, success=True, **extra):
    body = {"success": success, "state": controller.snapshot()}
    body.update(extra)
    return jsonify(body), status


# ===== 페이지 라우트 =====

@main_bp.route('/')
@main_bp.route('/dashboard')
@with_controller
def index(controller):
    tab = request.args.get('tab')
    if tab in TABS:
        controller.set_active_tab(tab)
    _ensure_loaded(controller)
    return render_template('dashboard.html', state=controller.snapshot(), tabs=TABS)


# ===== API 라우트 =====

@api_bp.route('/state', methods=['GET'])
@handle_errors
@with_controller
def get_state(controller):
    """전체 대시보드 상태 (첫 요청 시 로딩)"""
    _ensure_loaded(controller)
    return _state_response(controller)


@api_bp.route('/reload', methods=['POST'])
@handle_errors
@with_controller
def reload_all(controller):
    """다섯 컬렉션 전체 재조회"""
    if controller.load_all():
        return _state_response(controller)
    return _state_response(controller, status=502, success=False, error=controller.state.last_error)


@api_bp.route('/tab', methods=['POST'])
@handle_errors
@with_controller
def set_tab(controller):
    controller.set_active_tab(_json_body().get('tab', ''))
    return _state_response(controller)


@api_bp.route('/dialog/create', methods=['POST'])
@handle_errors
@with_controller
def open_create_dialog(controller):
    """생성 다이얼로그 열기 (entity 생략 시 현재 탭 기준)"""
    entity = _json_body().get('entity')
    if entity:
        controller.open_create(entity)
    else:
        controller.open_create_for_active_tab()
    return _state_response(controller)


@api_bp.route('/dialog/edit', methods=['POST'])
@handle_errors
@with_controller
def open_edit_dialog(controller):
    data = _json_body()
    record_id = data.get('record_id')
    if not record_id:
        raise ValueError("record_id fehlt.")
    controller.open_edit(data.get('entity', ''), record_id)
    return _state_response(controller)


@api_bp.route('/dialog/form', methods=['PATCH'])
@handle_errors
@with_controller
def update_dialog_form(controller):
    if not controller.dialog.open:
        raise ValueError("Kein Dialog geöffnet.")
    controller.update_form(_json_body().get('fields', {}))
    return _state_response(controller)


@api_bp.route('/dialog/save', methods=['POST'])
@handle_errors
@with_controller
def save_dialog(controller):
    """폼 저장. 실패하면 다이얼로그는 열린 채로 502"""
    if not controller.dialog.open:
        raise ValueError("Kein Dialog geöffnet.")
    if controller.save():
        return _state_response(controller)
    return _state_response(controller, status=502, success=False, error=controller.state.last_error)


@api_bp.route('/dialog/close', methods=['POST'])
@handle_errors
@with_controller
def close_dialog(controller):
    controller.close_dialog()
    return _state_response(controller)


@api_bp.route('/delete/request', methods=['POST'])
@handle_errors
@with_controller
def request_delete(controller):
    data = _json_body()
    record_id = data.get('record_id')
    if not record_id:
        raise ValueError("record_id fehlt.")
    controller.request_delete(data.get('entity', ''), record_id, data.get('name', ''))
    return _state_response(controller)


@api_bp.route('/delete/confirm', methods=['POST'])
@handle_errors
@with_controller
def confirm_delete(controller):
    """대기 중인 삭제 실행 (대상이 없으면 변화 없음)"""
    pending = controller.state.delete_target is not None
    deleted = controller.confirm_delete()
    if pending and not deleted:
        return _state_response(controller, status=502, success=False, error=controller.state.last_error)
    return _state_response(controller, deleted=deleted)


@api_bp.route('/delete/cancel', methods=['POST'])
@handle_errors
@with_controller
def cancel_delete(controller):
    controller.cancel_delete()
    return _state_response(controller)


@api_bp.route('/<collection>', methods=['GET'])
@handle_errors
@with_controller
def list_rows(controller, collection):
    """탭 하나의 테이블 행"""
    entity = get_entity(collection)
    _ensure_loaded(controller)
    return jsonify({"success": True, "rows": controller.rows(entity.collection)})
