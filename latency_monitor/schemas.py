from typing import List, Literal

from pydantic import BaseModel, ConfigDict

from latency_monitor.models import Sample

class ProbeIn(BaseModel):
    model_config = ConfigDict(extra="ignore")
    url: str | None = None

class HistoryOut(BaseModel):
    ok: Literal[True] = True
    url: str
    history: List[Sample]

class ErrorOut(BaseModel):
    ok: Literal[False] = False
    error: str
