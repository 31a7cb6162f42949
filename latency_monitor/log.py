import logging

from latency_monitor.config import settings

def setup_logging(level: str | None = None) -> None:
    # basicConfig no hace nada si el root logger ya tiene handlers (uvicorn, pytest)
    effective_level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
