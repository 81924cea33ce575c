from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from medbook.routes.dependencies import (
    booking_manager_for,
    ensure_database_ready,
    get_db,
    service_errors,
)
from medbook.services.booking_manager import PENDING

router = APIRouter(tags=['appointments'])

# Older clients send the misspelled "symtoms".
SYMPTOMS_ALIASES = AliasChoices('symptoms', 'symtoms')


class CreateAppointmentRequest(BaseModel):
    patient_id: int
    doctor_id: int
    phone_no: str
    slot: str
    reason: str = ''
    symptoms: str = Field(default='', validation_alias=SYMPTOMS_ALIASES)
    status: str = PENDING
    appointment_type: str = ''


class UpdateAppointmentRequest(BaseModel):
    patient_id: int
    doctor_id: int
    phone_no: str
    slot: str
    reason: str = ''
    symptoms: str = Field(default='', validation_alias=SYMPTOMS_ALIASES)
    status: str
    appointment_type: str = ''


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    phone_no: str
    slot: str
    reason: str
    symptoms: str
    status: str
    appointment_type: str

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def add_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).create(
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            phone_no=data.phone_no,
            slot=data.slot,
            reason=data.reason,
            symptoms=data.symptoms,
            status=data.status,
            appointment_type=data.appointment_type,
        )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).list_all()


@router.get('/doctors/{doctor_id}', response_model=list[AppointmentResponse])
def filter_appointments_by_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).filter_by_doctor(doctor_id)


@router.get('/patients/{patient_id}', response_model=list[AppointmentResponse])
def filter_appointments_by_patient(patient_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).filter_by_patient(patient_id)


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).get(appointment_id)


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).update(
            appointment_id,
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            phone_no=data.phone_no,
            slot=data.slot,
            reason=data.reason,
            symptoms=data.symptoms,
            status=data.status,
            appointment_type=data.appointment_type,
        )


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).cancel(appointment_id)


@router.post('/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return booking_manager_for(db).complete(appointment_id)


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        booking_manager_for(db).delete(appointment_id)
