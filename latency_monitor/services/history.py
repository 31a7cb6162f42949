import asyncio
import logging
import threading
from collections import deque
from typing import Dict, List, Set

from latency_monitor.models import Sample

logger = logging.getLogger(__name__)

MAX_HISTORY = 200  # muestras por URL

def clamp_limit(limit: int, maximum: int = MAX_HISTORY) -> int:
    return min(max(int(limit), 1), maximum)

class _Record:
    # un lock por URL; nunca se comparte entre claves
    __slots__ = ("lock", "samples")

    def __init__(self, maxlen: int):
        self.lock = threading.Lock()
        self.samples: deque = deque(maxlen=maxlen)

class HistoryStore:
    """
    Historial acotado por URL canónica, el más antiguo primero.

    Cada clave tiene su propio lock y su deque; dos escrituras sobre la misma
    URL se serializan y URLs distintas no se bloquean entre sí. El lock nunca
    se mantiene a través de un ``await``.
    """

    def __init__(self, max_history: int = MAX_HISTORY):
        if not 1 <= max_history <= MAX_HISTORY:
            raise ValueError(f"max_history debe estar entre 1 y {MAX_HISTORY}")
        self.max_history = max_history
        self._records: Dict[str, _Record] = {}

    def _record(self, key: str) -> _Record:
        rec = self._records.get(key)
        if rec is None:
            # setdefault es atómico: si dos hilos compiten gana un solo _Record
            rec = self._records.setdefault(key, _Record(self.max_history))
        return rec

    def append(self, key: str, sample: Sample) -> int:
        rec = self._record(key)
        with rec.lock:
            rec.samples.append(sample)  # deque(maxlen) descarta el más antiguo
            return len(rec.samples)

    def read(self, key: str, limit: int) -> List[Sample]:
        rec = self._records.get(key)
        if rec is None:
            return []
        n = clamp_limit(limit, self.max_history)
        with rec.lock:
            snapshot = list(rec.samples)
        return snapshot[-n:]

    def keys(self) -> List[str]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

class HistoryRecorder:
    """Escrituras en segundo plano: quien llama no espera a que terminen."""

    def __init__(self, store: HistoryStore):
        self.store = store
        self._tasks: Set[asyncio.Task] = set()

    async def _write(self, key: str, sample: Sample) -> None:
        try:
            self.store.append(key, sample)
        except Exception:
            # un fallo del historial nunca debe romper la respuesta del probe
            logger.exception("No se pudo guardar la muestra de %s", key)

    def record(self, key: str, sample: Sample) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._write(key, sample))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
