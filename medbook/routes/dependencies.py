from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medbook.core.errors import AlreadyExistsError, BookingError, InvalidInputError, NotFoundError
from medbook.core.ids import IdAllocator
from medbook.database import SessionLocal, ensure_booking_schema
from medbook.services.availability_store import AvailabilityStore
from medbook.services.booking_manager import BookingManager
from medbook.services.directory import Directory

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    AlreadyExistsError: status.HTTP_409_CONFLICT,
}

id_allocator = IdAllocator()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def to_http_exception(exc: BookingError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=exc.msg)


@contextmanager
def service_errors(db: Session) -> Iterator[None]:
    try:
        yield
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def directory_for(db: Session) -> Directory:
    return Directory(db, id_allocator)


def availability_store_for(db: Session) -> AvailabilityStore:
    return AvailabilityStore(db, id_allocator, directory_for(db))


def booking_manager_for(db: Session) -> BookingManager:
    directory = directory_for(db)
    return BookingManager(
        db,
        AvailabilityStore(db, id_allocator, directory),
        id_allocator,
        doctors=directory,
        patients=directory,
    )
