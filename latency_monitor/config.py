from pydantic_settings import BaseSettings, SettingsConfigDict

from latency_monitor import __version__

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False)

    APP_TITLE: str = "latency-monitor"
    APP_VERSION: str = __version__
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Probe
    PROBE_TIMEOUT_MS: int = 8000
    PROBE_MAX_BYTES: int = 1_000_000
    PROBE_MAX_REDIRECTS: int = 10
    PROBE_REVALIDATE_REDIRECTS: bool = False
    PROBE_USER_AGENT: str = f"latency-monitor/{__version__}"

    # History
    HISTORY_ENABLED: bool = True
    HISTORY_DEFAULT_LIMIT: int = 25

settings = Settings()
