import os
import threading

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.DATABASE_URL = os.environ.get("DATABASE_URL",None)
        # Session cache, "redis" or "memory"
        self.CACHE_BACKEND = os.environ.get("CACHE_BACKEND","redis").lower()
        self.SESSION_TTL = int(os.environ.get("SESSION_TTL", str(8 * 60 * 60)))
        self.SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME","campus_session")
        self.SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() in ["true", "1", "yes", "on"]
        # Public page unauthenticated navigations are sent to
        self.LANDING_PATH = os.environ.get("LANDING_PATH","/login")
        self.PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL","http://localhost:8000")
        # Minutes a QR check-in token stays valid unless the caller says otherwise
        self.QR_DEFAULT_VALIDITY = int(os.environ.get("QR_DEFAULT_VALIDITY","15"))
        self.ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL",None)
        self.ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD",None)

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
