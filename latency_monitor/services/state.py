import time

from latency_monitor.config import settings
from .history import HistoryRecorder, HistoryStore
from .prober import Prober

# url canónica -> deque[Sample]; None si el historial está deshabilitado
history = HistoryStore() if settings.HISTORY_ENABLED else None
recorder = HistoryRecorder(history) if history is not None else None
prober = Prober()

def now_ms() -> int:
    return int(time.time() * 1000)

# ---- dependencias FastAPI (se sustituyen en tests con dependency_overrides)
def get_prober() -> Prober:
    return prober

def get_history() -> HistoryStore | None:
    return history

def get_recorder() -> HistoryRecorder | None:
    return recorder
