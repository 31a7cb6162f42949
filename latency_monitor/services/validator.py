import ipaddress
import logging
import re
from urllib.parse import urlsplit

import httpx

from latency_monitor.models import Accepted, Rejected, ValidationResult

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}
DEFAULT_PORTS = {"http": 80, "https": 443}

BLOCKED_HOSTS = {"localhost", "127.0.0.1", "::1", "169.254.169.254"}
BLOCKED_SUFFIXES = (".local", ".internal")

PRIVATE_V4_NETS = [
    ipaddress.IPv4Network(n)
    for n in ("0.0.0.0/8", "10.0.0.0/8", "127.0.0.0/8", "169.254.0.0/16", "172.16.0.0/12", "192.168.0.0/16")
]

DOTTED_QUAD_RE = re.compile(r"^[0-9.]+$")
# formas que inet_aton también acepta: 0x7f.1, 017700000001, 2130706433
NUMERIC_HOST_RE = re.compile(r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+)){0,3}\.?$")
BAD_HOST_CHARS_RE = re.compile(r"[\s\x00-\x1f\x7f/\\?#@%]")

def classify_ipv4(host: str) -> str:
    """'malformed', 'private' o 'public' para un host con forma de IPv4."""
    parts = host.split(".")
    if len(parts) != 4 or any(not p.isdigit() or int(p) > 255 for p in parts):
        return "malformed"
    addr = ipaddress.IPv4Address(".".join(str(int(p)) for p in parts))
    if any(addr in net for net in PRIVATE_V4_NETS):
        return "private"
    return "public"

def _reject(raw_url: str, detail: str) -> Rejected:
    logger.debug("URL rechazada (%s): %r", detail, raw_url)
    return Rejected(detail=detail)

def _host_rule(host: str) -> str | None:
    if host in BLOCKED_HOSTS or host.endswith(BLOCKED_SUFFIXES):
        return "blocked_host"
    if DOTTED_QUAD_RE.match(host):
        # malformada o privada se distinguen solo para el log; toda IPv4 literal se rechaza
        return f"ipv4_literal:{classify_ipv4(host)}"
    if NUMERIC_HOST_RE.match(host):
        return "ipv4_literal:numeric"
    if ":" in host:
        try:
            addr = ipaddress.IPv6Address(host.split("%", 1)[0])
        except ValueError:
            return "unparseable"
        if not addr.is_global or addr.ipv4_mapped is not None:
            return "ipv6_literal"
    return None

def canonicalize(url: httpx.URL, host: str) -> str:
    scheme = url.scheme.lower()
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if url.port is not None and url.port != DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{url.port}"
    if url.userinfo:
        netloc = f"{url.userinfo.decode('ascii')}@{netloc}"
    # raw_path ya viene percent-encoded por httpx (ruta + query, sin fragmento)
    return f"{scheme}://{netloc}{url.raw_path.decode('ascii')}"

def validate(raw_url: str) -> ValidationResult:
    if not isinstance(raw_url, str) or not raw_url.strip():
        return _reject(raw_url, "unparseable")
    candidate = raw_url.strip()
    try:
        urlsplit(candidate).port  # puerto o IPv6 mal formados -> ValueError
        # mismo parser que usa el prober: el host queda en ASCII (IDNA, puntos Unicode)
        url = httpx.URL(candidate)
    except (ValueError, httpx.InvalidURL):
        return _reject(raw_url, "unparseable")

    if url.scheme.lower() not in ALLOWED_SCHEMES:
        return _reject(raw_url, "scheme")

    try:
        host = url.raw_host.decode("ascii")
    except UnicodeDecodeError:
        return _reject(raw_url, "unparseable")
    if not host or BAD_HOST_CHARS_RE.search(host):
        return _reject(raw_url, "unparseable")
    host = host.lower().rstrip(".")
    if not host:
        return _reject(raw_url, "unparseable")

    rule = _host_rule(host)
    if rule:
        return _reject(raw_url, rule)

    return Accepted(canonical_url=canonicalize(url, host))
