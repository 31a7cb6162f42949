from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from latency_monitor.config import settings
from latency_monitor.models import ProbeSuccess, Reason
from latency_monitor.schemas import ErrorOut, HistoryOut, ProbeIn
from latency_monitor.services import state
from latency_monitor.services.history import HistoryRecorder, HistoryStore
from latency_monitor.services.prober import Prober

router = APIRouter()

STATUS_BY_REASON = {
    Reason.INVALID_URL: 400,
    Reason.TIMEOUT: 408,
    Reason.RESPONSE_TOO_LARGE: 413,
    Reason.FETCH_FAILED: 502,
}

BODY_ERROR_TYPES = {"json_invalid", "json_type", "model_type", "model_attributes_type"}

def error_response(error: str, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorOut(error=error).model_dump(mode="json"), status_code=status_code)

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/api/ok")
def api_ok():
    return {"ok": True}

@router.post("/probe")
async def probe(
    request: Request,
    prober: Prober = Depends(state.get_prober),
    recorder: HistoryRecorder | None = Depends(state.get_recorder),
):
    try:
        payload = ProbeIn.model_validate_json(await request.body())
    except ValidationError as ex:
        # errores sobre el cuerpo entero (JSON roto, no es un objeto) frente a errores del campo url
        if any(e["type"] in BODY_ERROR_TYPES or not e["loc"] for e in ex.errors()):
            return error_response("invalid_json", 400)
        return error_response(Reason.INVALID_URL.value, 400)
    except ValueError:
        return error_response("invalid_json", 400)
    if not payload.url or not payload.url.strip():
        return error_response(Reason.INVALID_URL.value, 400)

    outcome = await prober.probe(payload.url)
    if not isinstance(outcome, ProbeSuccess):
        return error_response(outcome.error, STATUS_BY_REASON[Reason(outcome.error)])

    # la respuesta ya está decidida; el historial se escribe sin esperarlo
    if recorder is not None:
        recorder.record(outcome.url, outcome.to_sample(state.now_ms()))
    return JSONResponse(outcome.model_dump(mode="json"))

@router.get("/history")
def history(
    key: str | None = None,
    url: str | None = None,
    limit: str | None = None,
    store: HistoryStore | None = Depends(state.get_history),
):
    if store is None:
        return error_response("do_not_configured", 501)
    target = key if key is not None else url
    if not target or not target.strip():
        return error_response("missing_url", 400)

    try:
        n = int(float(limit)) if limit is not None else settings.HISTORY_DEFAULT_LIMIT
    except (ValueError, OverflowError):
        # NaN, inf o texto
        n = settings.HISTORY_DEFAULT_LIMIT
    out = HistoryOut(url=target, history=store.read(target, n))
    return JSONResponse(out.model_dump(mode="json"))
