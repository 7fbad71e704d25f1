from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlmodel import Session
import time
import structlog

from studyai.config import InferenceSettings
from studyai.db import init_db, get_session
from studyai.deps import get_inference_client
from studyai.routers import ai as ai_router
from studyai.routers import documents as documents_router
from studyai.routers import flashcards as flashcards_router
from studyai.routers import quizzes as quizzes_router
from studyai.services.errors import (
    AlreadyCompleted, EndpointUnavailable, GenerationFailed, InvalidInput, ModelNotFound,
)
from studyai.services.inference import InferenceClient
from studyai.services.logging import configure_logging, log_api_request
from studyai.services.monitoring import HealthChecker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from studyai.services.singleflight import SingleFlight
from studyai.middleware.rate_limit import limiter

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="StudyAI",
    description="PDF study assistant: chat, summaries, explanations, flashcards and quizzes from a local LLM",
    version="1.0.0"
)

# Endpoint address and model are read once, at process start
settings = InferenceSettings.from_env()
app.state.inference_client = InferenceClient(settings)
app.state.summary_flight = SingleFlight()
health_checker = HealthChecker()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ----------------- Error mapping -----------------
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(AlreadyCompleted)
async def already_completed_handler(request: Request, exc: AlreadyCompleted):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(GenerationFailed)
async def generation_failed_handler(request: Request, exc: GenerationFailed):
    # Detail was logged where it happened; only the safe message leaves the process
    status_code = 503 if isinstance(exc, (EndpointUnavailable, ModelNotFound)) else 502
    log_api_request(request, error=exc, status_code=status_code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    response.response_time = process_time
    log_api_request(request, response)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
def health_check(
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
):
    """Health check endpoint"""
    return health_checker.get_health_status(session, client)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("startup", ollama_url=settings.base_url, model=settings.model)


# ----------------- Routers -----------------
app.include_router(documents_router.router)
app.include_router(ai_router.router)
app.include_router(flashcards_router.router)
app.include_router(quizzes_router.router)
