import asyncio
import logging
import time

import httpx

from latency_monitor.config import settings
from latency_monitor.models import ProbeFailure, ProbeOutcome, ProbeSuccess, Reason
from . import validator

logger = logging.getLogger(__name__)

class RedirectRejected(Exception):
    """Un salto de redirección apunta a un host no permitido."""

    def __init__(self, url: str, detail: str):
        super().__init__(f"redirect a {url} rechazado ({detail})")
        self.url = url
        self.detail = detail

def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)

class Prober:
    def __init__(
        self,
        timeout_ms: int | None = None,
        max_bytes: int | None = None,
        max_redirects: int | None = None,
        revalidate_redirects: bool | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.PROBE_TIMEOUT_MS
        self.max_bytes = max_bytes if max_bytes is not None else settings.PROBE_MAX_BYTES
        self.max_redirects = max_redirects if max_redirects is not None else settings.PROBE_MAX_REDIRECTS
        self.revalidate_redirects = (
            revalidate_redirects if revalidate_redirects is not None else settings.PROBE_REVALIDATE_REDIRECTS
        )
        self.user_agent = user_agent or settings.PROBE_USER_AGENT
        self.transport = transport

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        # las redirecciones se siguen a mano en _fetch
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=timeout_s,
            follow_redirects=False,
            headers={"User-Agent": self.user_agent, "Accept-Encoding": "identity"},
        )

    async def probe(self, raw_url: str, timeout_ms: int | None = None) -> ProbeOutcome:
        checked = validator.validate(raw_url)
        if not checked.ok:
            return ProbeFailure(error=Reason.INVALID_URL)
        url = checked.canonical_url

        timeout_s = (timeout_ms if timeout_ms is not None else self.timeout_ms) / 1000
        try:
            # el deadline cancela tanto la espera de cabeceras como la lectura del cuerpo
            async with asyncio.timeout(timeout_s):
                return await self._fetch(url, timeout_s)
        except (TimeoutError, httpx.TimeoutException):
            logger.info("Probe a %s excedió %.0f ms", url, timeout_s * 1000)
            return ProbeFailure(error=Reason.TIMEOUT)
        except RedirectRejected as ex:
            logger.info("Probe a %s bloqueado: %s", url, ex)
            return ProbeFailure(error=Reason.INVALID_URL)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as ex:
            logger.info("Probe a %s falló: %s: %s", url, type(ex).__name__, ex)
            return ProbeFailure(error=Reason.FETCH_FAILED)

    def _next_hop(self, resp: httpx.Response, hops: int) -> httpx.URL:
        if hops > self.max_redirects:
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=resp.request)
        target = resp.url.join(resp.headers["Location"])
        if self.revalidate_redirects:
            checked = validator.validate(str(target))
            if not checked.ok:
                raise RedirectRejected(str(target), checked.detail)
        return target

    async def _fetch(self, url: str, timeout_s: float) -> ProbeOutcome:
        async with self._client(timeout_s) as client:
            started = time.monotonic()
            target = httpx.URL(url)
            hops = 0
            while True:
                async with client.stream("GET", target) as resp:
                    if not resp.has_redirect_location:
                        ttfb_ms = _elapsed_ms(started)
                        if not await self._read_capped(resp):
                            logger.info("Probe a %s superó %d bytes", url, self.max_bytes)
                            return ProbeFailure(error=Reason.RESPONSE_TOO_LARGE)
                        total_ms = _elapsed_ms(started)
                        return ProbeSuccess(url=url, status=resp.status_code, ttfb_ms=ttfb_ms, total_ms=total_ms)
                # el cuerpo del 3xx no se lee: el stream se cierra al salir del bloque
                hops += 1
                target = self._next_hop(resp, hops)

    async def _read_capped(self, resp: httpx.Response) -> bool:
        if resp.is_stream_consumed:
            # el transporte ya entregó el cuerpo completo (p. ej. httpx.MockTransport)
            return len(resp.content) <= self.max_bytes
        received = 0
        # se cuenta lo que llega por el socket; Content-Length no es fiable
        async for chunk in resp.aiter_raw():
            received += len(chunk)
            if received > self.max_bytes:
                return False
        return True

async def probe(raw_url: str, timeout_ms: int | None = None) -> ProbeOutcome:
    return await Prober().probe(raw_url, timeout_ms)
