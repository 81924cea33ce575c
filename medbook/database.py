from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from medbook.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith('sqlite'):
        return {'check_same_thread': False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.SQL_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def _create_booking_indexes(bind) -> None:
    table_names = set(inspect(bind).get_table_names())

    with bind.begin() as connection:
        if 'availability' in table_names:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_availability_doctor_start ON availability(doctor_id, start_time)')
            )
        if 'appointments' in table_names:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor ON appointments(doctor_id)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient ON appointments(patient_id)')
            )


def ensure_booking_schema(bind=None) -> None:
    """Create the slot lookup indexes on tables that predate them."""
    global _booking_schema_checked

    if bind is not None:
        _create_booking_indexes(bind)
        return

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        _create_booking_indexes(engine)
        _booking_schema_checked = True
