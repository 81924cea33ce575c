"""Availability store.

Owns doctors' bookable time windows and their single mutable flag,
``is_available``. ``start_time`` and ``end_time`` are opaque tokens: they are
only checked for emptiness and compared for exact equality.

``claim_free_slot``, ``set_slot_availability`` and ``set_availability_flag``
belong to the booking manager. They never commit, so the slot flip
lands in the same transaction as the appointment write.
"""

import logging

from sqlalchemy.orm import Session

from medbook.core.errors import InvalidInputError, NotFoundError
from medbook.core.ids import IdAllocator, id_in_range, require_id_in_range
from medbook.models.availability import Availability
from medbook.services.directory import DoctorLookup

logger = logging.getLogger(__name__)

MIN_DAY_OF_WEEK = 0
MAX_DAY_OF_WEEK = 6
SLOT_NOT_AVAILABLE = 'Selected slot is not available'


def validate_availability_fields(day_of_week: int, start_time: str, end_time: str) -> None:
    if day_of_week < MIN_DAY_OF_WEEK or day_of_week > MAX_DAY_OF_WEEK:
        raise InvalidInputError('Invalid day of the week')

    if not start_time or not end_time:
        raise InvalidInputError('Start time or end time cannot be empty')


class AvailabilityStore:
    def __init__(self, db: Session, ids: IdAllocator, doctors: DoctorLookup):
        self.db = db
        self.ids = ids
        self.doctors = doctors

    def create(
        self,
        doctor_id: int,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> Availability:
        validate_availability_fields(day_of_week, start_time, end_time)

        if not self.doctors.doctor_exists(doctor_id):
            raise NotFoundError(f'Doctor with id={doctor_id} not found')

        try:
            availability = Availability(
                id=self.ids.next_id(self.db),
                doctor_id=doctor_id,
                day_of_week=day_of_week,
                start_time=start_time,
                end_time=end_time,
                is_available=is_available,
            )
            self.db.add(availability)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(availability)
        logger.info(
            'Published availability id=%s doctor_id=%s start_time=%r',
            availability.id, doctor_id, start_time,
        )
        return availability

    def get(self, availability_id: int) -> Availability:
        availability = self.db.get(Availability, availability_id) if id_in_range(availability_id) else None
        if availability is None:
            raise NotFoundError(f'Availability with id={availability_id} not found')
        return availability

    def update(
        self,
        availability_id: int,
        doctor_id: int,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> Availability:
        validate_availability_fields(day_of_week, start_time, end_time)

        availability = self.get(availability_id)

        # doctor_id is replaced as given; only create checks the directory.
        require_id_in_range('doctor_id', doctor_id)
        try:
            availability.doctor_id = doctor_id
            availability.day_of_week = day_of_week
            availability.start_time = start_time
            availability.end_time = end_time
            availability.is_available = is_available
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(availability)
        return availability

    def delete(self, availability_id: int) -> None:
        availability = self.get(availability_id)

        try:
            self.db.delete(availability)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info('Deleted availability id=%s', availability_id)

    def list_all(self) -> list[Availability]:
        return self.db.query(Availability).order_by(Availability.id.asc()).all()

    def filter_by_doctor(self, doctor_id: int) -> list[Availability]:
        if not id_in_range(doctor_id):
            return []
        return self.db.query(Availability).filter(
            Availability.doctor_id == doctor_id,
        ).order_by(Availability.id.asc()).all()

    def filter_free_slots_by_doctor(self, doctor_id: int) -> list[Availability]:
        if not id_in_range(doctor_id):
            return []
        return self.db.query(Availability).filter(
            Availability.doctor_id == doctor_id,
            Availability.is_available.is_(True),
        ).order_by(Availability.id.asc()).all()

    def find_slot(self, doctor_id: int, slot: str, free_only: bool = False) -> Availability | None:
        if not id_in_range(doctor_id):
            return None
        query = self.db.query(Availability).filter(
            Availability.doctor_id == doctor_id,
            Availability.start_time == slot,
        )
        if free_only:
            query = query.filter(Availability.is_available.is_(True))
        return query.order_by(Availability.id.asc()).first()

    def claim_free_slot(self, doctor_id: int, slot: str) -> Availability:
        candidate = self.find_slot(doctor_id, slot, free_only=True)
        if candidate is None:
            logger.warning('Rejected claim doctor_id=%s slot=%r: no free slot', doctor_id, slot)
            raise InvalidInputError(SLOT_NOT_AVAILABLE)

        # Only one conditional update can flip a free slot.
        claimed = self.db.query(Availability).filter(
            Availability.id == candidate.id,
            Availability.is_available.is_(True),
        ).update({Availability.is_available: False}, synchronize_session=False)

        if claimed != 1:
            logger.warning('Rejected claim doctor_id=%s slot=%r: lost race', doctor_id, slot)
            raise InvalidInputError(SLOT_NOT_AVAILABLE)

        self.db.refresh(candidate)
        logger.info('Claimed availability id=%s doctor_id=%s slot=%r', candidate.id, doctor_id, slot)
        return candidate

    def set_slot_availability(self, doctor_id: int, slot: str, is_available: bool) -> Availability | None:
        availability = self.find_slot(doctor_id, slot)
        if availability is None:
            logger.info('No availability matches doctor_id=%s slot=%r', doctor_id, slot)
            return None

        self.set_availability_flag(availability.id, is_available)
        return availability

    def set_availability_flag(self, availability_id: int, is_available: bool) -> bool:
        updated = self.db.query(Availability).filter(
            Availability.id == availability_id,
        ).update({Availability.is_available: is_available})

        if updated:
            logger.info('Set availability id=%s is_available=%s', availability_id, is_available)
        return bool(updated)
