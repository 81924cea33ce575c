"""Booking manager.

Owns appointments and keeps each one consistent with the availability slot it
occupies. An appointment is linked to its slot by value: ``slot`` equals the
``start_time`` of an availability record of the same doctor.

Status lifecycle::

    create               -> pending     (claims the slot)
    pending  -- cancel   -> cancelled   (releases the slot)
    pending  -- complete -> confirmed   (releases the slot)
    update(status=cancelled|confirmed)  (releases the slot named in the update)
    delete                              (slot stays claimed)
"""

import logging
from contextlib import nullcontext

from sqlalchemy.orm import Session

from medbook.core.errors import InvalidInputError, NotFoundError
from medbook.core.ids import IdAllocator, id_in_range, require_id_in_range
from medbook.core.locks import SlotLockRegistry, slot_locks
from medbook.models.appointment import Appointment
from medbook.services.availability_store import AvailabilityStore
from medbook.services.directory import DoctorLookup, PatientLookup

logger = logging.getLogger(__name__)

PENDING = 'pending'
CONFIRMED = 'confirmed'
CANCELLED = 'cancelled'
RELEASING_STATUSES = frozenset({CANCELLED, CONFIRMED})


class BookingManager:
    def __init__(
        self,
        db: Session,
        availability: AvailabilityStore,
        ids: IdAllocator,
        doctors: DoctorLookup,
        patients: PatientLookup,
        locks: SlotLockRegistry = slot_locks,
    ):
        self.db = db
        self.availability = availability
        self.ids = ids
        self.doctors = doctors
        self.patients = patients
        self.locks = locks

    def create(
        self,
        patient_id: int,
        doctor_id: int,
        phone_no: str,
        slot: str,
        reason: str = '',
        symptoms: str = '',
        status: str = PENDING,
        appointment_type: str = '',
    ) -> Appointment:
        """Book ``slot`` with ``doctor_id``.

        The caller's ``status`` is ignored; new appointments always start out
        pending. Raises ``InvalidInputError`` when the phone number is empty or
        no free availability matches the slot, and ``NotFoundError`` when the
        doctor or patient is unknown.
        """
        if not phone_no:
            raise InvalidInputError('phone_no cannot be empty')

        if not self.doctors.doctor_exists(doctor_id):
            raise NotFoundError(f'Doctor with id={doctor_id} not found')
        if not self.patients.patient_exists(patient_id):
            raise NotFoundError(f'Patient with id={patient_id} not found')

        with self.locks.hold(doctor_id, slot):
            try:
                availability = self.availability.claim_free_slot(doctor_id, slot)
                appointment = Appointment(
                    id=self.ids.next_id(self.db),
                    patient_id=patient_id,
                    doctor_id=doctor_id,
                    phone_no=phone_no,
                    slot=slot,
                    reason=reason,
                    symptoms=symptoms,
                    status=PENDING,
                    appointment_type=appointment_type,
                    availability_id=availability.id,
                )
                self.db.add(appointment)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(appointment)
        logger.info(
            'Booked appointment id=%s patient_id=%s doctor_id=%s slot=%r',
            appointment.id, patient_id, doctor_id, slot,
        )
        return appointment

    def update(
        self,
        appointment_id: int,
        patient_id: int,
        doctor_id: int,
        phone_no: str,
        slot: str,
        reason: str,
        symptoms: str,
        status: str,
        appointment_type: str,
    ) -> Appointment:
        """Replace every field of an appointment.

        A terminal ``status`` releases the slot named by the *new*
        ``doctor_id`` and ``slot``, not the ones currently stored.
        """
        if not phone_no:
            raise InvalidInputError('Phone number cannot be empty')

        appointment = self.get(appointment_id)
        require_id_in_range('patient_id', patient_id)
        require_id_in_range('doctor_id', doctor_id)
        releases_slot = status in RELEASING_STATUSES

        if releases_slot and (appointment.doctor_id, appointment.slot) != (doctor_id, slot):
            logger.warning(
                'Appointment id=%s update releases doctor_id=%s slot=%r instead of stored doctor_id=%s slot=%r',
                appointment_id, doctor_id, slot, appointment.doctor_id, appointment.slot,
            )

        guard = self.locks.hold(doctor_id, slot) if releases_slot else nullcontext()
        with guard:
            try:
                if releases_slot:
                    self.availability.set_slot_availability(doctor_id, slot, True)

                appointment.patient_id = patient_id
                appointment.doctor_id = doctor_id
                appointment.phone_no = phone_no
                appointment.slot = slot
                appointment.reason = reason
                appointment.symptoms = symptoms
                appointment.status = status
                appointment.appointment_type = appointment_type
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(appointment)
        return appointment

    def cancel(self, appointment_id: int) -> Appointment:
        return self._leave_pending(appointment_id, CANCELLED)

    def complete(self, appointment_id: int) -> Appointment:
        return self._leave_pending(appointment_id, CONFIRMED)

    def _leave_pending(self, appointment_id: int, new_status: str) -> Appointment:
        appointment = self.get(appointment_id)

        with self.locks.hold(appointment.doctor_id, appointment.slot):
            try:
                # Re-read under the lock; a concurrent cancel may have won.
                appointment = self.db.get(
                    Appointment,
                    appointment_id,
                    populate_existing=True,
                    with_for_update=True,
                )
                if appointment is None:
                    raise NotFoundError(f'Appointment with id={appointment_id} not found')

                if appointment.status != PENDING:
                    raise InvalidInputError(
                        f'Appointment with id={appointment_id} is already {appointment.status}'
                    )

                self._release_slot(appointment)
                appointment.status = new_status
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(appointment)
        logger.info('Appointment id=%s is now %s', appointment_id, new_status)
        return appointment

    def _release_slot(self, appointment: Appointment) -> None:
        if appointment.availability_id is not None:
            if self.availability.set_availability_flag(appointment.availability_id, True):
                return

        self.availability.set_slot_availability(appointment.doctor_id, appointment.slot, True)

    def delete(self, appointment_id: int) -> None:
        """Remove an appointment. Its slot is left claimed."""
        appointment = self.get(appointment_id)
        slot = appointment.slot

        try:
            self.db.delete(appointment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info('Deleted appointment id=%s; slot %r stays claimed', appointment_id, slot)

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.db.get(Appointment, appointment_id) if id_in_range(appointment_id) else None
        if appointment is None:
            raise NotFoundError(f'Appointment with id={appointment_id} not found')
        return appointment

    def list_all(self) -> list[Appointment]:
        return self.db.query(Appointment).order_by(Appointment.id.asc()).all()

    def filter_by_doctor(self, doctor_id: int) -> list[Appointment]:
        if not id_in_range(doctor_id):
            return []
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
        ).order_by(Appointment.id.asc()).all()

    def filter_by_patient(self, patient_id: int) -> list[Appointment]:
        if not id_in_range(patient_id):
            return []
        return self.db.query(Appointment).filter(
            Appointment.patient_id == patient_id,
        ).order_by(Appointment.id.asc()).all()
