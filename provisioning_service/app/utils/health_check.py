"""
Provisioning Service Health Check Utilities
===========================================
"""

import time
from typing import Any, Dict

from ..core.events import health_check_events

_START_TIME = time.time()


async def _broker_check() -> Dict[str, Any]:
    started = time.time()
    try:
        result = await health_check_events()
    except Exception as e:
        result = {"status": "error", "error": str(e), "component": "broker"}
    result["duration_ms"] = round((time.time() - started) * 1000, 2)
    return result


async def create_provisioning_service_health_check_async(
    service_name: str = "provisioning_service", version: str = "1.0.0"
) -> Dict[str, Any]:
    """Report process liveness and broker connectivity.

    The service is healthy only while the broker check is healthy.
    """
    checks = {
        "basic": {
            "status": "healthy",
            "message": "Provisioning Service is running",
            "version": version,
            "component": "core",
        },
        "broker": await _broker_check(),
    }

    return {
        "service": service_name,
        "status": "healthy"
        if all(check.get("status") == "healthy" for check in checks.values())
        else "unhealthy",
        "checks": checks,
        "uptime_seconds": round(time.time() - _START_TIME, 2),
        "timestamp": time.time(),
    }
