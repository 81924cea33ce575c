import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from medbook.core import config
from medbook.database import Base, SessionLocal, engine, ensure_booking_schema
from medbook.models import appointment, availability, directory, id_counter  # noqa: F401
from medbook.routes import appointment_routes, availability_routes, directory_routes
from medbook.routes.dependencies import id_allocator

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='medbook')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()

        db = SessionLocal()
        try:
            id_allocator.ensure_counter(db)
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Medical Booking API Running'}


app.include_router(directory_routes.doctor_router, prefix='/doctors')
app.include_router(directory_routes.patient_router, prefix='/patients')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
