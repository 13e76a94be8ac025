from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request

from academy.config import settings
from academy.db import Base, SessionLocal, engine
from academy.route_logging import EndpointNameRoute
from academy.routers import (
    applicants,
    attendance,
    evaluations,
    exclusions,
    grades,
    leaves,
    payments,
    requests,
    schedule,
    semesters,
    students,
)
from academy.services.payment_service import get_payment_settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        get_payment_settings(db)
    finally:
        db.close()
    yield


app = FastAPI(title=settings.app_name, version='0.1.0', lifespan=lifespan)
app.router.route_class = EndpointNameRoute


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.metrics_slow_ms:
        logging.getLogger('academy.request').info(
            'request_slow path=%s method=%s status_code=%s duration_ms=%.2f',
            request.url.path,
            request.method,
            response.status_code,
            duration_ms,
        )
    return response

app.include_router(semesters.router)
app.include_router(schedule.router)
app.include_router(attendance.router)
app.include_router(leaves.router)
app.include_router(requests.router)
app.include_router(payments.router)
app.include_router(students.router)
app.include_router(applicants.router)
app.include_router(exclusions.router)
app.include_router(grades.router)
app.include_router(evaluations.router)


@app.get('/')
def health():
    return {'app': settings.app_name, 'status': 'ok'}


@app.get('/health')
def healthcheck():
    return {'status': 'ok'}
