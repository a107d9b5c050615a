"""Access recorder — writes one AccessLog row per public-link request.

Header values are truncated to column limits; empty headers are stored as NULL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from nullvault.config import settings
from nullvault.geo import GeoResult, geo_client
from nullvault.models.access_log import AccessLog
from nullvault.models.base import unix_now
from nullvault.models.secret import Secret

logger = logging.getLogger(__name__)

MAX_IP_LEN = 45
MAX_UA_LEN = 512
MAX_REF_LEN = 512
MAX_LANG_LEN = 128
MAX_CH_LEN = 256
MAX_FETCH_LEN = 32
MAX_PATH_LEN = 512


@dataclass(frozen=True)
class AccessRecord:
    """What the recorder learned about the caller."""

    ip: str
    geo: GeoResult | None


def extract_ip(request: Request) -> str:
    """Client IP, preferring Cloudflare's header when the proxy is trusted."""
    if settings.security.trust_proxy:
        cf = request.headers.get("cf-connecting-ip")
        if cf:
            return cf.strip()[:MAX_IP_LEN]
    host = request.client.host if request.client else ""
    return (host or "")[:MAX_IP_LEN]


def _header(request: Request, name: str, limit: int) -> str | None:
    return request.headers.get(name, "")[:limit] or None


async def record_access(
    db: AsyncSession,
    request: Request,
    secret: Secret,
    *,
    reveal_attempted: bool = False,
    reveal_succeeded: bool = False,
) -> AccessRecord:
    """Insert an access row for `secret` and return the caller's IP and geo."""
    ip = extract_ip(request)
    geo = geo_client.lookup(ip)

    referer = request.headers.get("referer") or request.headers.get("referrer") or ""

    db.add(AccessLog(
        secret_id=secret.id,
        accessed_at=unix_now(),
        ip_address=ip or None,
        location=geo.display if geo else None,
        org=geo.org if geo else None,
        timezone=geo.timezone if geo else None,
        user_agent=_header(request, "user-agent", MAX_UA_LEN),
        accept_language=_header(request, "accept-language", MAX_LANG_LEN),
        # Sec-CH-UA: "Google Chrome";v="125", "Chromium";v="125", "Not.A/Brand";v="24"
        sec_ch_ua=_header(request, "sec-ch-ua", MAX_CH_LEN),
        # Sec-Fetch-Site: none | same-origin | same-site | cross-site
        sec_fetch_site=_header(request, "sec-fetch-site", MAX_FETCH_LEN),
        referer=referer[:MAX_REF_LEN] or None,
        request_path=request.url.path[:MAX_PATH_LEN],
        reveal_attempted=reveal_attempted,
        reveal_succeeded=reveal_succeeded,
    ))
    await db.flush()

    logger.debug("Access recorded: secret=%s reveal=%s/%s", secret.id, reveal_attempted, reveal_succeeded)
    return AccessRecord(ip=ip, geo=geo)
