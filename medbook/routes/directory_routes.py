from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from medbook.routes.dependencies import directory_for, ensure_database_ready, get_db, service_errors

doctor_router = APIRouter(tags=['doctors'])
patient_router = APIRouter(tags=['patients'])


class CreateDoctorRequest(BaseModel):
    principal: str
    first_name: str
    last_name: str
    specialism: str


class DoctorResponse(BaseModel):
    id: int
    principal: str
    first_name: str
    last_name: str
    specialism: str

    class Config:
        from_attributes = True


class CreatePatientRequest(BaseModel):
    username: str


class PatientResponse(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


@doctor_router.post('', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def add_doctor(data: CreateDoctorRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).add_doctor(
            principal=data.principal,
            first_name=data.first_name,
            last_name=data.last_name,
            specialism=data.specialism,
        )


@doctor_router.get('', response_model=list[DoctorResponse])
def list_doctors(db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).list_doctors()


@doctor_router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).get_doctor(doctor_id)


@patient_router.post('', response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def register_patient(data: CreatePatientRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).register_patient(data.username)


@patient_router.get('', response_model=list[PatientResponse])
def list_patients(db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).list_patients()


@patient_router.get('/{patient_id}', response_model=PatientResponse)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return directory_for(db).get_patient(patient_id)
