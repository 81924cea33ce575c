import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from medbook.core.ids import IdAllocator  # noqa: E402
from medbook.core.locks import SlotLockRegistry  # noqa: E402
from medbook.database import Base  # noqa: E402
from medbook.models import appointment, availability, directory as directory_models, id_counter  # noqa: E402,F401
from medbook.services.availability_store import AvailabilityStore  # noqa: E402
from medbook.services.booking_manager import BookingManager  # noqa: E402
from medbook.services.directory import Directory  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ids() -> IdAllocator:
    return IdAllocator('test')


@pytest.fixture
def directory(db, ids) -> Directory:
    return Directory(db, ids)


@pytest.fixture
def doctor(directory):
    return directory.add_doctor('doctor-principal', 'Grace', 'Hopper', 'cardiology')


@pytest.fixture
def patient(directory):
    return directory.register_patient('patient-one')


@pytest.fixture
def availability_store(db, ids, directory) -> AvailabilityStore:
    return AvailabilityStore(db, ids, directory)


@pytest.fixture
def booking_manager(db, ids, directory, availability_store) -> BookingManager:
    return BookingManager(
        db,
        availability_store,
        ids,
        doctors=directory,
        patients=directory,
        locks=SlotLockRegistry(),
    )
