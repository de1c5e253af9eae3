"""Host blocklist for HTTP clients.

The public OSM-community Nominatim and Valhalla instances are not meant to
back an application; requests to them are refused so a misconfigured base URL
fails loudly instead of violating their usage policies.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

DEFAULT_FORBIDDEN_HOSTS = {
    "nominatim.openstreetmap.org",
    "valhalla1.openstreetmap.de",
    "valhalla.openstreetmap.de",
}


def is_forbidden_host(
    url: str, forbidden_hosts: Iterable[str] = DEFAULT_FORBIDDEN_HOSTS
) -> bool:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        return False
    forbidden = {item.lower() for item in forbidden_hosts}
    if host in forbidden:
        return True
    return any(host.endswith(f".{item}") for item in forbidden)
