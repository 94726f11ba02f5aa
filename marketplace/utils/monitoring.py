"""Request timing for the marketplace API"""

import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog

logger = structlog.get_logger(__name__)

RECENT_WINDOW = 1000


class PerformanceMonitor:
    """Per-route response times, with slow requests flagged in the log"""

    def __init__(self, alert_threshold_seconds: float = 2.0):
        self.alert_threshold = alert_threshold_seconds
        self.recent = deque(maxlen=RECENT_WINDOW)
        self._lock = threading.Lock()
        self.totals = {"requests": 0, "slow": 0, "client_errors": 0, "server_errors": 0, "seconds": 0.0}

    def record_request(self, endpoint: str, method: str, response_time: float, status_code: int):
        slow = response_time > self.alert_threshold
        with self._lock:
            self.totals["requests"] += 1
            self.totals["seconds"] += response_time
            self.totals["slow"] += slow
            if status_code >= 500:
                self.totals["server_errors"] += 1
            elif status_code >= 400:
                self.totals["client_errors"] += 1
            self.recent.append((endpoint, method, response_time, slow))

        if slow:
            logger.warning("Slow request", endpoint=endpoint, method=method,
                           response_time=round(response_time, 3), threshold=self.alert_threshold)

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            totals = dict(self.totals)
        count = totals["requests"]
        if count == 0:
            return {"status": "no requests yet"}

        slow_percentage = totals["slow"] / count * 100
        error_rate = totals["server_errors"] / count * 100
        return {
            "total_requests": count,
            "average_response_time": round(totals["seconds"] / count, 3),
            "slow_requests": totals["slow"],
            "slow_percentage": round(slow_percentage, 2),
            "client_errors": totals["client_errors"],
            "error_rate": round(error_rate, 2),
            "alert_threshold": self.alert_threshold,
            "health_status": health_label(slow_percentage, error_rate),
        }

    def get_slow_endpoints(self) -> List[Dict]:
        """Routes in the recent window averaging over 80% of the threshold"""
        with self._lock:
            recent = list(self.recent)

        per_route: Dict[tuple, List] = {}
        for endpoint, method, response_time, slow in recent:
            per_route.setdefault((method, endpoint), []).append((response_time, slow))

        flagged = []
        for (method, endpoint), samples in per_route.items():
            average = sum(t for t, _ in samples) / len(samples)
            if average > self.alert_threshold * 0.8:
                flagged.append({
                    "endpoint": endpoint,
                    "method": method,
                    "average_time": round(average, 3),
                    "request_count": len(samples),
                    "slow_count": sum(1 for _, slow in samples if slow),
                })
        return sorted(flagged, key=lambda item: item["average_time"], reverse=True)


def health_label(slow_percentage: float, error_rate: float) -> str:
    if error_rate > 5 or slow_percentage > 20:
        return "unhealthy"
    if error_rate > 2 or slow_percentage > 10:
        return "degraded"
    return "healthy"


def add_performance_monitoring(app, monitor: PerformanceMonitor):
    """Time every request and attach an X-Response-Time header"""
    from flask import g, request

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def record_timing(response):
        started = g.pop("request_started", None)
        if started is not None:
            elapsed = time.perf_counter() - started
            monitor.record_request(request.endpoint or request.path, request.method,
                                   elapsed, response.status_code)
            response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response


def get_performance_report(monitor: PerformanceMonitor) -> Dict[str, Any]:
    return {
        "metrics": monitor.get_metrics(),
        "slow_endpoints": monitor.get_slow_endpoints(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
