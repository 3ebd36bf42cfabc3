from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # 🎯 Application
    APP_NAME: str = "MiniFlix API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # 🌐 Server
    HOST: str = '0.0.0.0'
    PORT: int = 8000

    # 🗄️ Database
    DATABASE_URL: str  # postgresql://... or sqlite+aiosqlite:///...
    DB_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = False

    # 🔴 Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    CONTENT_CACHE_EXPIRATION: int = 600

    # 🔒 CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # 🎬 Media
    MEDIA_BASE_URL: Optional[str] = None  # prefix for relative video paths

    # ⏯️ Playback progress
    CONTINUE_WATCHING_DEFAULT_LIMIT: int = 20
    CONTINUE_WATCHING_MAX_LIMIT: int = 100

    # 📊 Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = 'ignore'

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',') if origin.strip()]

settings = Settings()
