# learnhub/main.py
import time
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from learnhub.config import settings
from learnhub.database import Base, engine
from learnhub.exceptions import ConflictException, BadRequestException
from learnhub.logging_config import setup_logging
from learnhub import models  # noqa: F401  registers every table on Base.metadata
from learnhub.routers import students, mentors, dashboard
from learnhub.routers.qa import consultation_router, forum_router


setup_logging()
logger = logging.getLogger("learnhub")


# create tables if missing
Base.metadata.create_all(bind=engine)

app = FastAPI(title="LearnHub Backend", version="1.0.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
        return response
    except Exception:
        ms = int((time.time() - start) * 1000)
        logger.exception("Unhandled error %s %s (%dms)", request.method, request.url.path, ms)
        raise


@app.exception_handler(ConflictException)
@app.exception_handler(BadRequestException)
async def reasoned_error(request: Request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "reason": exc.reason},
        headers=exc.headers,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(students.router)
app.include_router(mentors.router)
app.include_router(consultation_router)
app.include_router(forum_router)
app.include_router(dashboard.router)


@app.get("/")
def root():
    return {"message": "LearnHub backend is running!"}
