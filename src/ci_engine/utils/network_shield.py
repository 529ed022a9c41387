"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence
from urllib.parse import urljoin, urlparse

import certifi
import urllib3

_REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})
_MAX_ERROR_CHARS = 240
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class NetworkShieldError(RuntimeError):
    """Fail-closed error for blocked or unsafe outbound fetches."""


@dataclass(frozen=True)
class SafeGetResult:
    text: str
    status_code: int
    final_url: str
    bytes_len: int


def _clip(text: str, *, limit: int = _MAX_ERROR_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _blocked_ip_reason(ip: IPAddress) -> Optional[str]:
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        return _blocked_ip_reason(mapped)
    if ip.is_loopback:
        return "loopback"
    if ip.is_private:
        return "private"
    if ip.is_link_local:
        return "link-local"
    if ip.is_multicast:
        return "multicast"
    if ip.is_reserved:
        return "reserved"
    if ip.is_unspecified:
        return "unspecified"
    return None


def _resolved_ips(hostname: str, port: int) -> Iterator[IPAddress]:
    try:
        infos = socket.getaddrinfo(hostname, port, type=socket.SOCK_STREAM, proto=socket.IPPROTO_TCP)
    except socket.gaierror as exc:
        raise NetworkShieldError(f"dns resolution failed for host={hostname}") from exc
    if not infos:
        raise NetworkShieldError(f"dns resolution returned no records for host={hostname}")
    for info in infos:
        sockaddr = info[4]
        if not sockaddr:
            continue
        try:
            yield ipaddress.ip_address(str(sockaddr[0]))
        except ValueError as exc:
            raise NetworkShieldError(f"invalid ip resolved for host={hostname}") from exc


@dataclass(frozen=True)
class _PinnedHop:
    url: str
    scheme: str
    host: str
    port: int
    host_header: str
    connect_ip: IPAddress
    request_target: str


def _matches_domain(host: str, domain: str) -> bool:
    domain = domain.lstrip(".")
    return host == domain or host.endswith(f".{domain}")


def _host_header(host: str, *, scheme: str, explicit_port: Optional[int]) -> str:
    authority = host
    try:
        if isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address):
            authority = f"[{host}]"
    except ValueError:
        pass
    default_port = 443 if scheme == "https" else 80
    if explicit_port is None or explicit_port == default_port:
        return authority
    return f"{authority}:{explicit_port}"


def _request_target(parsed) -> str:
    path = parsed.path or "/"
    if parsed.params:
        path = f"{path};{parsed.params}"
    if parsed.query:
        return f"{path}?{parsed.query}"
    return path


def _pin_hop(
    url: str,
    *,
    allow_schemes: Sequence[str],
    allow_domains: Optional[Sequence[str]],
) -> _PinnedHop:
    parsed = urlparse(url)
    scheme = (parsed.scheme or "").lower()
    if scheme not in {s.lower() for s in allow_schemes}:
        raise NetworkShieldError(f"scheme not allowed: {scheme or 'missing'}")
    if parsed.username or parsed.password:
        raise NetworkShieldError("credentials in url are not allowed")

    host = (parsed.hostname or "").strip().lower()
    if not host:
        raise NetworkShieldError("url host is missing")
    if host == "localhost":
        raise NetworkShieldError("blocked host: localhost")

    domains = [d.strip().lower() for d in allow_domains or () if d and d.strip()]
    if domains and not any(_matches_domain(host, d) for d in domains):
        raise NetworkShieldError(f"host not in allow_domains policy: {host}")

    try:
        explicit_port = parsed.port
    except ValueError as exc:
        raise NetworkShieldError("invalid url port") from exc
    port = explicit_port or (443 if scheme == "https" else 80)

    try:
        literal: Optional[IPAddress] = ipaddress.ip_address(host)
    except ValueError:
        literal = None
    candidates = [literal] if literal is not None else list(_resolved_ips(host, port))
    for ip in candidates:
        reason = _blocked_ip_reason(ip)
        if reason:
            raise NetworkShieldError(f"blocked ip: {ip} ({reason})")
    if not candidates:
        raise NetworkShieldError(f"dns resolution returned no records for host={host}")

    return _PinnedHop(
        url=parsed._replace(fragment="").geturl(),
        scheme=scheme,
        host=host,
        port=port,
        host_header=_host_header(host, scheme=scheme, explicit_port=explicit_port),
        connect_ip=candidates[0],
        request_target=_request_target(parsed),
    )


def validate_url_destination(
    url: str,
    *,
    allow_schemes: Sequence[str] = ("https",),
    allow_domains: Optional[Sequence[str]] = None,
) -> str:
    """Check scheme, host policy and resolved addresses; return the url without fragment."""
    return _pin_hop(url, allow_schemes=allow_schemes, allow_domains=allow_domains).url


def _read_limited_bytes(response: urllib3.response.BaseHTTPResponse, *, max_bytes: int) -> bytes:
    payload = bytearray()
    try:
        for chunk in response.stream(amt=8192, decode_content=True):
            if not chunk:
                continue
            if len(payload) + len(chunk) > max_bytes:
                raise NetworkShieldError(f"response exceeds max_bytes={max_bytes}")
            payload.extend(chunk)
    except urllib3.exceptions.HTTPError as exc:
        raise NetworkShieldError(f"stream read failed: {_clip(str(exc))}") from exc
    return bytes(payload)


def safe_get_text(
    url: str,
    *,
    headers: Optional[dict[str, str]] = None,
    timeout_s: float,
    max_bytes: int,
    allow_schemes: Sequence[str] = ("https",),
    allow_domains: Optional[Sequence[str]] = None,
    max_redirects: int = 5,
) -> SafeGetResult:
    if timeout_s <= 0 or timeout_s > 120:
        raise NetworkShieldError("timeout_s must be in (0, 120]")
    if max_bytes <= 0:
        raise NetworkShieldError("max_bytes must be > 0")
    if max_redirects < 0:
        raise NetworkShieldError("max_redirects must be >= 0")

    current_url = url
    redirects = 0
    pool_manager = urllib3.PoolManager(cert_reqs="CERT_REQUIRED", ca_certs=certifi.where(), retries=False)
    try:
        while True:
            # Every hop is re-validated so a redirect cannot escape the policy.
            hop = _pin_hop(current_url, allow_schemes=allow_schemes, allow_domains=allow_domains)
            current_url = hop.url
            response: Optional[urllib3.response.BaseHTTPResponse] = None
            try:
                pool_kwargs = None
                if hop.scheme == "https":
                    # Connect to the validated IP; SNI and cert checks stay on the hostname.
                    pool_kwargs = {"assert_hostname": hop.host, "server_hostname": hop.host}
                pool = pool_manager.connection_from_host(
                    host=str(hop.connect_ip),
                    port=hop.port,
                    scheme=hop.scheme,
                    pool_kwargs=pool_kwargs,
                )
                request_headers = dict(headers or {})
                request_headers["Host"] = hop.host_header
                response = pool.urlopen(
                    method="GET",
                    url=hop.request_target,
                    headers=request_headers,
                    redirect=False,
                    retries=False,
                    assert_same_host=False,
                    timeout=urllib3.Timeout(connect=timeout_s, read=timeout_s),
                    preload_content=False,
                )
                status_code = int(getattr(response, "status", 0) or 0)
                location = response.headers.get("Location") if getattr(response, "headers", None) else None
                if status_code in _REDIRECT_STATUS_CODES and location:
                    redirects += 1
                    if redirects > max_redirects:
                        raise NetworkShieldError(f"max_redirects exceeded: {max_redirects}")
                    current_url = urljoin(current_url, location)
                    continue

                payload = _read_limited_bytes(response, max_bytes=max_bytes)
                return SafeGetResult(
                    text=payload.decode("utf-8", errors="replace"),
                    status_code=status_code,
                    final_url=current_url,
                    bytes_len=len(payload),
                )
            except urllib3.exceptions.HTTPError as exc:
                raise NetworkShieldError(f"transport error: {_clip(str(exc))}") from exc
            finally:
                if response is not None:
                    response.close()
    finally:
        pool_manager.clear()
