from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

class Reason(str, Enum):
    INVALID_URL = "invalid_url"
    TIMEOUT = "timeout"
    FETCH_FAILED = "fetch_failed"
    RESPONSE_TOO_LARGE = "response_too_large"

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

# ---- validation
class Accepted(_Frozen):
    canonical_url: str

    @property
    def ok(self) -> bool:
        return True

class Rejected(_Frozen):
    reason: Reason = Reason.INVALID_URL
    detail: str = ""  # solo para logs, nunca se expone por HTTP

    @property
    def ok(self) -> bool:
        return False

ValidationResult = Accepted | Rejected

# ---- history
class Sample(_Frozen):
    ts: int          # epoch ms
    status: int
    ttfb_ms: int
    total_ms: int

# ---- probe
class ProbeSuccess(_Frozen):
    ok: Literal[True] = True
    url: str
    status: int
    ttfb_ms: int
    total_ms: int

    def to_sample(self, ts: int) -> Sample:
        return Sample(ts=ts, status=self.status, ttfb_ms=self.ttfb_ms, total_ms=self.total_ms)

class ProbeFailure(_Frozen):
    ok: Literal[False] = False
    error: Reason

ProbeOutcome = ProbeSuccess | ProbeFailure
