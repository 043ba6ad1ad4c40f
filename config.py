import os


class Config:
    """애플리케이션 설정"""

    # 보안
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'kursverwaltung-dashboard-secret-key'

    # 로컬 JSON 저장 (원격 저장소 fallback)
    DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')
    RECORDS_FILE = os.path.join(DATA_DIR, 'records.json')

    # Living Apps REST API
    LIVINGAPPS_BASE_URL = os.environ.get('LIVINGAPPS_BASE_URL', 'https://my.living-apps.de').rstrip('/')
    LIVINGAPPS_API_KEY = os.environ.get('LIVINGAPPS_API_KEY')
    LIVINGAPPS_TIMEOUT = int(os.environ.get('LIVINGAPPS_TIMEOUT', 30))

    # 컬렉션별 앱 ID (참조 URL 생성에도 사용)
    APP_IDS = {
        'dozenten': os.environ.get('APP_ID_DOZENTEN', 'dozenten'),
        'teilnehmer': os.environ.get('APP_ID_TEILNEHMER', 'teilnehmer'),
        'raeume': os.environ.get('APP_ID_RAEUME', 'raeume'),
        'kurse': os.environ.get('APP_ID_KURSE', 'kurse'),
        'anmeldungen': os.environ.get('APP_ID_ANMELDUNGEN', 'anmeldungen'),
    }

    # Azure Cosmos DB
    COSMOS_DB_ENDPOINT = os.environ.get('COSMOS_DB_ENDPOINT')
    COSMOS_DB_KEY = os.environ.get('COSMOS_DB_KEY')
    COSMOS_DATABASE_NAME = 'KursverwaltungDB'
    COSMOS_CONTAINER_NAME = 'Records'

    # 대시보드
    DEFAULT_TAB = 'kurse'
    UTILIZATION_FULL_THRESHOLD = 80  # % 이상이면 "만석" 표시
    MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS', 500))  # 메모리에 유지할 브라우저 세션 수

    # 로그
    LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # 서버
    HOST = '0.0.0.0'
    PORT = int(os.environ.get('PORT', 5000))
    DEBUG = os.environ.get('FLASK_ENV') == 'development'

    @classmethod
    def use_living_apps(cls):
        """Living Apps API 사용 여부 판단"""
        return bool(cls.LIVINGAPPS_API_KEY)

    @classmethod
    def use_cosmos_db(cls):
        """Cosmos DB 사용 여부 판단"""
        return bool(cls.COSMOS_DB_ENDPOINT and cls.COSMOS_DB_KEY)

    @classmethod
    def app_id(cls, collection):
        """컬렉션 이름 → 앱 ID"""
        return cls.APP_IDS[collection]
