import os
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import structlog

from studymate.db import init_db
from studymate.errors import StudyMateError
from studymate.routers import auth as auth_router
from studymate.routers import study as study_router
from studymate.services.logging import configure_logging, log_api_request
from studymate.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from studymate.middleware.rate_limit import limiter, rate_limit_exceeded_handler

# Configure logging
configure_logging()
logger = structlog.get_logger()

CLIENT_ORIGIN = os.getenv("CLIENT_ORIGIN", "*")
PORT = int(os.getenv("PORT", "3000"))

app = FastAPI(
    title="AI Study Mate",
    description="Summaries, quizzes, flashcards and key points generated from study material",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in CLIENT_ORIGIN.split(",")],
    allow_credentials=CLIENT_ORIGIN != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# ----------------- Error handling -----------------
@app.exception_handler(StudyMateError)
async def studymate_error_handler(request: Request, exc: StudyMateError):
    if exc.status_code >= 500:
        log_api_request(request, error=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content={"success": False, "error": message})


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    log_api_request(request)

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(process_time)

    log_api_request(request, status_code=response.status_code, duration=process_time)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/api/health")
def health_check(request: Request):
    """Health check endpoint"""
    return health_checker.get_health_status(request.app.state.accounts, request.app.state.sessions)


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db(app)
    logger.info("server_started", port=PORT, health=f"http://localhost:{PORT}/api/health")


# ----------------- Routers -----------------
app.include_router(auth_router.router)
app.include_router(study_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("studymate.main:app", host="0.0.0.0", port=PORT)
