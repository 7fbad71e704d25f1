"""
Health checks and monitoring with Prometheus metrics
"""
from typing import List

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
from sqlmodel import Session, select
import time
import psutil
import structlog

from studyai.models import Document
from studyai.schemas import HealthReport, ModelDescriptor
from studyai.services.errors import EndpointUnavailable
from studyai.services.inference import InferenceClient

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
QUIZ_SUBMISSIONS = Counter('quiz_submissions_total', 'Total quiz submissions', ['status'])


def _base_model_name(name: str) -> str:
    return name.split(":", 1)[0]


def check_health(client: InferenceClient) -> HealthReport:
    """Probe the inference endpoint through its model catalog only."""
    model = client.model
    try:
        models = client.list_models(timeout=client.settings.health_timeout)
    except EndpointUnavailable as e:
        logger.warning("inference_health_error", base_url=client.settings.base_url, error=str(e))
        return HealthReport(
            status="error",
            message="Ollama is not running. Start it with: ollama serve",
        )

    wanted = _base_model_name(model)
    if not any(_base_model_name(m.name) == wanted for m in models):
        logger.warning("inference_model_missing", model=model, available=[m.name for m in models])
        return HealthReport(
            status="warning",
            message=f'Model "{model}" not found. Pull it with: ollama pull {model}',
            model=model,
        )

    return HealthReport(status="ok", message="Ollama is running", model=model)


def list_models(client: InferenceClient) -> List[ModelDescriptor]:
    return client.list_models(timeout=client.settings.health_timeout)


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_database(self, session: Session) -> dict:
        """Check database connectivity and health"""
        try:
            documents = session.exec(select(Document.id).limit(1)).all()
            return {
                "status": "healthy",
                "message": "Database connection successful",
                "documents_sampled": len(documents)
            }
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": "Database connection failed"
            }

    def check_inference(self, client: InferenceClient) -> dict:
        """Check the inference endpoint without generating anything"""
        report = check_health(client)
        return {
            "status": "healthy" if report.status == "ok" else "unhealthy",
            "message": report.message,
            "model": report.model,
        }

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
        except Exception as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self, session: Session, client: InferenceClient) -> dict:
        """Get overall health status"""
        checks = {
            "database": self.check_database(session),
            "inference": self.check_inference(client),
        }

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks
        }


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
