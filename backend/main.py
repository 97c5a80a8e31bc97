import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.exceptions import DomainException
from backend.database import create_tables, ensure_appointment_schema
from backend.models import appointment, notification, user  # noqa: F401
from backend.routes import appointment_routes, notification_routes


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


setup_logging(config.LOG_LEVEL)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.exception_handler(DomainException)
async def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
    logger.info('%s %s rejected: %s', request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.to_dict()})


@app.on_event('startup')
async def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        await create_tables()
        await ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Booking API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(notification_routes.router, prefix='/notifications')
