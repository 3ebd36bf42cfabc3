from pydantic_settings import BaseSettings


class PlayerSettings(BaseSettings):
    """Player-side settings, read from PLAYER_* environment variables"""

    # 🌐 API
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # ⏯️ Progress reporting
    HEARTBEAT_INTERVAL_SECONDS: float = 30.0
    COMPLETION_THRESHOLD: float = 0.9
    MAX_PENDING_WRITES: int = 8

    class Config:
        env_prefix = "PLAYER_"
        env_file = ".env"
        extra = 'ignore'


player_settings = PlayerSettings()
