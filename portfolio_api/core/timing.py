"""
Request timing middleware using the Server-Timing header.

Endpoints can attach extra metrics with ``record_timing``; the contact
endpoint reports its mail delivery leg that way, so the time spent waiting
on the SMTP server shows up next to the total in browser dev tools.
"""

import time
from typing import List, Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

Metric = Tuple[str, float, Optional[str]]


def record_timing(
    request: Request, name: str, duration_ms: float, description: Optional[str] = None
) -> None:
    """Attach a named Server-Timing metric to the current request."""
    timings: Optional[List[Metric]] = getattr(request.state, "server_timings", None)
    if timings is None:
        timings = []
        request.state.server_timings = timings
    timings.append((name, duration_ms, description))


def format_metric(name: str, duration_ms: float, description: Optional[str]) -> str:
    """
    Render one Server-Timing metric.

    Format: ``mail;dur=123.45;desc="Mail delivery"``
    """
    metric = f"{name};dur={duration_ms:.2f}"
    if description:
        metric += f';desc="{description}"'
    return metric


class TimingMiddleware(BaseHTTPMiddleware):
    """Add the total request duration and any recorded metrics to responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        # Shared with the endpoint through the request scope
        timings: List[Metric] = []
        request.state.server_timings = timings

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        metrics = [format_metric("total", duration_ms, "Total Request Time")]
        metrics.extend(format_metric(*metric) for metric in timings)
        response.headers["Server-Timing"] = ", ".join(metrics)
        response.headers["X-Request-Duration"] = f"{duration_ms:.2f}ms"

        return response
