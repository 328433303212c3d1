"""Rate limiting for the LocalPro API.

Client IPs come from X-Forwarded-For only when the direct peer is a
trusted proxy (``TRUSTED_PROXY_CIDRS``), so the header cannot be spoofed.
"""

import ipaddress
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings
from .logging_config import get_logger

logger = get_logger("localpro.rate_limit")

_DEFAULT_TRUSTED_CIDRS = [
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "127.0.0.0/8",
    "::1/128",
]

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_cidrs(raw: str) -> list[Network]:
    """Parse a comma-separated CIDR list, falling back to private ranges."""
    cidrs = [s.strip() for s in raw.split(",") if s.strip()] or _DEFAULT_TRUSTED_CIDRS
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr}")
    return networks


@lru_cache
def trusted_networks() -> tuple[Network, ...]:
    return tuple(parse_cidrs(get_settings().trusted_proxy_cidrs))


def is_trusted_proxy(ip_str: str, networks: tuple[Network, ...] | None = None) -> bool:
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in network for network in (networks or trusted_networks()))


def get_client_ip(request) -> str:
    """Resolve the client IP, honoring X-Forwarded-For only from trusted proxies."""
    direct_ip = get_remote_address(request)
    if is_trusted_proxy(direct_ip):
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()
            if client_ip:
                return client_ip
    return direct_ip


limiter = Limiter(key_func=get_client_ip)
