"""
Kursverwaltung Dashboard - 강좌/강사/수강생/강의실/수강신청 관리 대시보드
"""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

from flask import Flask
from config import Config
from routes import main_bp, api_bp


_logging_configured = False


def configure_logging():
    """콘솔 + 파일 로그 설정 (한 번만)"""
    global _logging_configured
    if _logging_configured:
        return
    os.makedirs(Config.LOG_DIR, exist_ok=True)
    root = logging.getLogger()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    file_handler = logging.FileHandler(os.path.join(Config.LOG_DIR, 'dashboard.log'), encoding='utf-8')
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(Config.LOG_LEVEL)
    _logging_configured = True


def create_app(overrides=None):
    """Flask 애플리케이션 팩토리"""
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # 필수 디렉토리 생성
    os.makedirs(Config.DATA_DIR, exist_ok=True)
    configure_logging()

    # Blueprint 등록
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    # 보안 헤더
    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Content-Security-Policy'] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self'"
        )
        return response

    return app


# Azure WebApp 호환을 위한 전역 인스턴스
app = create_app()


def main():
    """메인 실행 함수"""
    print("=" * 50)
    print("  Kursverwaltung Dashboard")
    print("=" * 50)
    print(f"  http://localhost:{Config.PORT}/")
    if Config.use_living_apps():
        storage = f"Living Apps ({Config.LIVINGAPPS_BASE_URL})"
    elif Config.use_cosmos_db():
        storage = "Azure Cosmos DB"
    else:
        storage = "로컬 JSON 파일"
    print(f"  저장소: {storage}")
    print("=" * 50)

    if Config.DEBUG:
        app.run(debug=True, host=Config.HOST, port=Config.PORT)
    else:
        try:
            from waitress import serve
            print(f"Waitress 서버 시작 (포트: {Config.PORT})")
            serve(app, host=Config.HOST, port=Config.PORT)
        except Exception as e:
            print(f"서버 시작 오류: {e}")


if __name__ == '__main__':
    main()
