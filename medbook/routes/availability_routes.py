from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from medbook.routes.dependencies import (
    availability_store_for,
    ensure_database_ready,
    get_db,
    service_errors,
)

router = APIRouter(tags=['availability'])


class CreateAvailabilityRequest(BaseModel):
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


class UpdateAvailabilityRequest(BaseModel):
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool


class AvailabilityResponse(BaseModel):
    id: int
    doctor_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool

    class Config:
        from_attributes = True


@router.post('', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def add_availability(data: CreateAvailabilityRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).create(
            doctor_id=data.doctor_id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_available=data.is_available,
        )


@router.get('', response_model=list[AvailabilityResponse])
def list_availabilities(db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).list_all()


@router.get('/doctors/{doctor_id}', response_model=list[AvailabilityResponse])
def filter_availability_by_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).filter_by_doctor(doctor_id)


@router.get('/doctors/{doctor_id}/free', response_model=list[AvailabilityResponse])
def filter_free_slots_by_doctor(doctor_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).filter_free_slots_by_doctor(doctor_id)


@router.get('/{availability_id}', response_model=AvailabilityResponse)
def get_availability(availability_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).get(availability_id)


@router.put('/{availability_id}', response_model=AvailabilityResponse)
def update_availability(
    availability_id: int,
    data: UpdateAvailabilityRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        return availability_store_for(db).update(
            availability_id,
            doctor_id=data.doctor_id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_available=data.is_available,
        )


@router.delete('/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(availability_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        availability_store_for(db).delete(availability_id)
