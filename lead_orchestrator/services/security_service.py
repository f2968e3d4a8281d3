"""Per-IP request throttling for the public webhook routes.

Each intake can trigger LLM, WhatsApp and email calls, so requests are
counted per client IP over a sliding window held in process memory.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import HTTPException, Request

from lead_orchestrator.core.config import settings

logger = logging.getLogger(__name__)

# Structure: {ip_address: [timestamp, ...]}
recent_requests: dict[str, list[datetime]] = {}


def get_client_ip(request: Request) -> str:
    """Extract client IP, honouring X-Forwarded-For only behind a trusted proxy."""
    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def cleanup_old_requests(ip: str, now: datetime):
    """Drop timestamps that have left the window."""
    if ip not in recent_requests:
        return

    cutoff = now - timedelta(minutes=settings.RATE_LIMIT_WINDOW_MINUTES)
    recent_requests[ip] = [ts for ts in recent_requests[ip] if ts > cutoff]

    if not recent_requests[ip]:
        del recent_requests[ip]


def check_rate_limit(request: Request) -> Optional[HTTPException]:
    """Count this request against its IP.

    Returns HTTPException if the IP is over the limit, None otherwise.
    Rejected requests are not counted.
    """
    ip = get_client_ip(request)
    now = datetime.utcnow()
    cleanup_old_requests(ip, now)

    timestamps = recent_requests.setdefault(ip, [])
    if len(timestamps) >= settings.RATE_LIMIT_REQUESTS:
        unlock_time = min(timestamps) + timedelta(minutes=settings.RATE_LIMIT_WINDOW_MINUTES)
        minutes_remaining = int((unlock_time - now).total_seconds() / 60) + 1

        logger.warning(
            "Rate limit exceeded for IP %s (%d requests in %d minutes)",
            ip,
            len(timestamps),
            settings.RATE_LIMIT_WINDOW_MINUTES,
        )
        return HTTPException(
            status_code=429,
            detail=f"Too many requests. Try again in {minutes_remaining} minutes.",
        )

    timestamps.append(now)
    return None


async def rate_limit(request: Request):
    """FastAPI dependency wrapping check_rate_limit."""
    error = check_rate_limit(request)
    if error:
        raise error
