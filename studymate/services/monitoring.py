"""
Health checks and monitoring with Prometheus metrics
"""
from datetime import datetime, timezone
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
import time
import psutil
import structlog
from studymate.services.cache import cache

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
TOTAL_USERS = Gauge('total_users', 'Total number of registered users')
RETAINED_SESSIONS = Gauge('retained_study_sessions', 'Number of study sessions currently retained')
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
STUDY_SESSIONS_CREATED = Counter('study_sessions_created_total', 'Study sessions created', ['input_type'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_store(self, store) -> dict:
        """Check that a file-backed store is readable and not running from memory"""
        try:
            records = store.read_all()
        except Exception as e:
            logger.error("store_health_check_failed", path=str(store.path), error=str(e))
            return {"status": "unhealthy", "message": f"Store read failed: {e}"}

        if store.degraded:
            return {
                "status": "degraded",
                "message": "Serving from in-memory mirror; changes are not durable",
                "records": len(records),
            }
        return {"status": "healthy", "message": "Store readable", "records": len(records)}

    def check_cache(self) -> dict:
        """Check cache connectivity"""
        test_key = "health_check_test"
        cache.set(test_key, "test_value", expire=10)
        value = cache.get(test_key)
        cache.delete(test_key)

        if value == "test_value":
            return {"status": "healthy", "message": "Cache operations successful", "backend": cache.backend}
        return {"status": "unhealthy", "message": "Cache operations failed", "backend": cache.backend}

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "disk_percent": disk.percent,
                "disk_free_gb": round(disk.free / (1024**3), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except (OSError, psutil.Error) as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self, accounts, sessions) -> dict:
        """Liveness payload with component checks"""
        checks = {
            "accounts": self.check_store(accounts),
            "sessions": self.check_store(sessions),
            "cache": self.check_cache(),
        }
        TOTAL_USERS.set(checks["accounts"].get("records", 0))
        RETAINED_SESSIONS.set(checks["sessions"].get("records", 0))

        unhealthy = [name for name, check in checks.items() if check["status"] != "healthy"]

        return {
            "status": "OK",
            "message": "AI Study Mate API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
            "unhealthy_components": unhealthy,
            "system": self.get_system_metrics(),
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
