"""Doctor and patient directory.

The booking services only ever ask whether a doctor or patient exists; the
``DoctorLookup`` and ``PatientLookup`` protocols are that whole contract.
``Directory`` is the SQL-backed implementation, with just enough registration
support to populate it.
"""

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from medbook.core.errors import AlreadyExistsError, InvalidInputError, NotFoundError
from medbook.core.ids import IdAllocator, id_in_range
from medbook.models.directory import Doctor, Patient

logger = logging.getLogger(__name__)


class DoctorLookup(Protocol):
    def doctor_exists(self, doctor_id: int) -> bool:
        ...


class PatientLookup(Protocol):
    def patient_exists(self, patient_id: int) -> bool:
        ...


class Directory:
    def __init__(self, db: Session, ids: IdAllocator):
        self.db = db
        self.ids = ids

    def doctor_exists(self, doctor_id: int) -> bool:
        if not id_in_range(doctor_id):
            return False
        return self.db.query(Doctor.id).filter(Doctor.id == doctor_id).first() is not None

    def patient_exists(self, patient_id: int) -> bool:
        if not id_in_range(patient_id):
            return False
        return self.db.query(Patient.id).filter(Patient.id == patient_id).first() is not None

    def add_doctor(self, principal: str, first_name: str, last_name: str, specialism: str) -> Doctor:
        if not all([principal, first_name, last_name, specialism]):
            raise InvalidInputError('All fields must be filled')

        if self.db.query(Doctor.id).filter(Doctor.principal == principal).first() is not None:
            raise AlreadyExistsError('Principal already exists')

        try:
            doctor = Doctor(
                id=self.ids.next_id(self.db),
                principal=principal,
                first_name=first_name,
                last_name=last_name,
                specialism=specialism,
            )
            self.db.add(doctor)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(doctor)
        logger.info('Registered doctor id=%s', doctor.id)
        return doctor

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.get(Doctor, doctor_id) if id_in_range(doctor_id) else None
        if doctor is None:
            raise NotFoundError(f'Doctor with id={doctor_id} not found')
        return doctor

    def list_doctors(self) -> list[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id.asc()).all()

    def register_patient(self, username: str) -> Patient:
        if not username:
            raise InvalidInputError('Name cannot be empty')

        if self.db.query(Patient.id).filter(Patient.username == username).first() is not None:
            raise AlreadyExistsError('Username already exists')

        try:
            patient = Patient(id=self.ids.next_id(self.db), username=username)
            self.db.add(patient)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(patient)
        logger.info('Registered patient id=%s', patient.id)
        return patient

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.db.get(Patient, patient_id) if id_in_range(patient_id) else None
        if patient is None:
            raise NotFoundError(f'Patient with id={patient_id} not found')
        return patient

    def list_patients(self) -> list[Patient]:
        return self.db.query(Patient).order_by(Patient.id.asc()).all()
