"""
Client IP extraction and country lookup.

The lookup uses ip-api.com (free, no key). It never raises and never
blocks signup/login: any failure returns "".
"""
import ipaddress
import logging
from typing import Optional

import requests
from fastapi import Request

from app.config import settings

logger = logging.getLogger(__name__)

GEOIP_URL = "http://ip-api.com/json/{ip}"


def get_peer_ip(request: Request) -> str:
    """
    Socket peer address. Behind a proxy uvicorn rewrites it from forwarded
    headers only for hosts listed in FORWARDED_ALLOW_IPS.
    """
    return request.client.host if request.client else ""


def get_client_ip(request: Request) -> str:
    """
    First X-Forwarded-For entry, else the socket peer.

    Client controlled: use it for the country tag only, never as a
    security key.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_peer_ip(request)


def is_public_ip(ip: str) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_global


def get_country_from_ip(ip: Optional[str]) -> str:
    """Country name for a public IP, "" when unknown or the lookup fails."""
    if not settings.GEOIP_ENABLED or not ip or not is_public_ip(ip):
        return ""

    try:
        response = requests.get(
            GEOIP_URL.format(ip=ip),
            params={"fields": "status,country"},
            timeout=settings.GEOIP_TIMEOUT_SECONDS,
        )
        if not response.ok:
            return ""
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Geo lookup failed for {ip}: {e}")
        return ""

    return data.get("country", "") if data.get("status") == "success" else ""
