from pydantic_settings import BaseSettings
from typing import List, Any
import json


def parse_csv_list(v: Any) -> List[str]:
    """Parse a list setting from a JSON array string, a comma-separated string or a list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Hindustan Founders Network"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./hfn.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 1 week, same as the session cookie
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod

    # Session cookie carrying the access token
    SESSION_COOKIE_NAME: str = "hfn_session"
    SESSION_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 7
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = "lax"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_csv_list(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # ==========================================
    # File Upload
    # ==========================================
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_UPLOAD_EXTENSIONS_STR: str = "png,jpg,jpeg,gif,webp,mp4,pdf,doc,docx"

    @property
    def ALLOWED_UPLOAD_EXTENSIONS(self) -> List[str]:
        """Parse allowed upload extensions from comma-separated string"""
        return [ext.lower().lstrip('.') for ext in parse_csv_list(self.ALLOWED_UPLOAD_EXTENSIONS_STR)]

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # ==========================================
    # Feed, Network & Search
    # ==========================================
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    SEARCH_RESULTS_PER_TYPE: int = 5
    SEARCH_MIN_QUERY_LENGTH: int = 2
    CONNECTION_SUGGESTION_LIMIT: int = 10

    # ==========================================
    # Site defaults (copied into the settings row on first use)
    # ==========================================
    DEFAULT_CONTACT_EMAIL: str = "admin@hindustanfounders.com"

    # ==========================================
    # Demo Data
    # ==========================================
    SEED_DEMO_DATA: bool = False
    DEMO_PASSWORD: str = ""  # Empty means a random password per demo account

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
