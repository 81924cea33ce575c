import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from medbook.routes import appointment_routes, availability_routes, directory_routes
from medbook.routes.appointment_routes import (
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
    add_appointment,
    cancel_appointment,
    complete_appointment,
    delete_appointment,
    filter_appointments_by_doctor,
    filter_appointments_by_patient,
    get_appointment,
    list_appointments,
    update_appointment,
)
from medbook.routes.availability_routes import (
    CreateAvailabilityRequest,
    UpdateAvailabilityRequest,
    add_availability,
    delete_availability,
    filter_availability_by_doctor,
    filter_free_slots_by_doctor,
    get_availability,
    list_availabilities,
    update_availability,
)
from medbook.routes.directory_routes import (
    CreateDoctorRequest,
    CreatePatientRequest,
    add_doctor,
    get_doctor,
    get_patient,
    list_doctors,
    list_patients,
    register_patient,
)


@pytest.fixture(autouse=True)
def skip_schema_bootstrap(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in (appointment_routes, availability_routes, directory_routes):
        monkeypatch.setattr(module, 'ensure_database_ready', lambda: None)


@pytest.fixture
def registered(db):
    doctor = add_doctor(
        CreateDoctorRequest(principal='dr-hopper', first_name='Grace', last_name='Hopper', specialism='cardiology'),
        db=db,
    )
    patient = register_patient(CreatePatientRequest(username='patient-one'), db=db)
    return doctor.id, patient.id


@pytest.fixture
def published_slot(db, registered):
    doctor_id, _ = registered
    return add_availability(
        CreateAvailabilityRequest(doctor_id=doctor_id, day_of_week=1, start_time='09:00', end_time='09:30'),
        db=db,
    )


def _booking_request(doctor_id: int, patient_id: int, **overrides) -> CreateAppointmentRequest:
    payload = {
        'patient_id': patient_id,
        'doctor_id': doctor_id,
        'phone_no': '555',
        'slot': '09:00',
        'reason': 'checkup',
        'symptoms': 'none',
        'appointment_type': 'in-person',
    }
    payload.update(overrides)
    return CreateAppointmentRequest(**payload)


def test_create_appointment_request_accepts_legacy_symptoms_field() -> None:
    request = CreateAppointmentRequest(patient_id=1, doctor_id=2, phone_no='555', slot='09:00', symtoms='cough')

    assert request.symptoms == 'cough'
    assert request.status == 'pending'


def test_add_availability_defaults_to_free(published_slot) -> None:
    assert published_slot.is_available is True


def test_add_availability_rejects_unknown_doctor(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        add_availability(
            CreateAvailabilityRequest(doctor_id=404, day_of_week=1, start_time='09:00', end_time='09:30'),
            db=db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor with id=404 not found'


def test_add_availability_rejects_invalid_day(db, registered) -> None:
    doctor_id, _ = registered

    with pytest.raises(HTTPException) as exception_info:
        add_availability(
            CreateAvailabilityRequest(doctor_id=doctor_id, day_of_week=7, start_time='09:00', end_time='09:30'),
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Invalid day of the week'


def test_availability_read_update_and_delete(db, registered, published_slot) -> None:
    doctor_id, _ = registered

    assert get_availability(published_slot.id, db=db).start_time == '09:00'
    assert [a.id for a in list_availabilities(db=db)] == [published_slot.id]
    assert [a.id for a in filter_availability_by_doctor(doctor_id, db=db)] == [published_slot.id]

    updated = update_availability(
        published_slot.id,
        UpdateAvailabilityRequest(
            doctor_id=doctor_id,
            day_of_week=2,
            start_time='10:00',
            end_time='10:30',
            is_available=False,
        ),
        db=db,
    )
    assert (updated.day_of_week, updated.start_time, updated.is_available) == (2, '10:00', False)
    assert filter_free_slots_by_doctor(doctor_id, db=db) == []

    slot_id = published_slot.id
    delete_availability(slot_id, db=db)

    with pytest.raises(HTTPException) as exception_info:
        get_availability(slot_id, db=db)
    assert exception_info.value.status_code == 404


def test_booking_the_same_slot_twice_is_rejected(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered

    appointment = add_appointment(_booking_request(doctor_id, patient_id, status='confirmed'), db=db)
    assert appointment.status == 'pending'

    with pytest.raises(HTTPException) as exception_info:
        add_appointment(_booking_request(doctor_id, patient_id), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Selected slot is not available'


def test_add_appointment_rejects_empty_phone(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered

    with pytest.raises(HTTPException) as exception_info:
        add_appointment(_booking_request(doctor_id, patient_id, phone_no=''), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'phone_no cannot be empty'


def test_cancel_appointment_frees_slot(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered
    appointment = add_appointment(_booking_request(doctor_id, patient_id), db=db)

    cancelled = cancel_appointment(appointment.id, db=db)

    assert cancelled.status == 'cancelled'
    assert [slot.start_time for slot in filter_free_slots_by_doctor(doctor_id, db=db)] == ['09:00']

    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment.id, db=db)
    assert exception_info.value.status_code == 400


def test_complete_appointment_confirms(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered
    appointment = add_appointment(_booking_request(doctor_id, patient_id), db=db)

    completed = complete_appointment(appointment.id, db=db)

    assert completed.status == 'confirmed'
    assert len(filter_free_slots_by_doctor(doctor_id, db=db)) == 1


def test_update_appointment_to_cancelled_releases_slot(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered
    appointment = add_appointment(_booking_request(doctor_id, patient_id), db=db)

    updated = update_appointment(
        appointment.id,
        UpdateAppointmentRequest(
            patient_id=patient_id,
            doctor_id=doctor_id,
            phone_no='555',
            slot='09:00',
            status='cancelled',
        ),
        db=db,
    )

    assert updated.status == 'cancelled'
    assert len(filter_free_slots_by_doctor(doctor_id, db=db)) == 1


def test_delete_appointment_keeps_slot_claimed(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered
    appointment = add_appointment(_booking_request(doctor_id, patient_id), db=db)

    appointment_id = appointment.id
    delete_appointment(appointment_id, db=db)

    with pytest.raises(HTTPException) as exception_info:
        get_appointment(appointment_id, db=db)
    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == f"Appointment with id={appointment_id} not found"
    assert filter_free_slots_by_doctor(doctor_id, db=db) == []


def test_appointment_listing_and_filters(db, registered, published_slot) -> None:
    doctor_id, patient_id = registered
    appointment = add_appointment(_booking_request(doctor_id, patient_id), db=db)

    assert [a.id for a in list_appointments(db=db)] == [appointment.id]
    assert [a.id for a in filter_appointments_by_doctor(doctor_id, db=db)] == [appointment.id]
    assert [a.id for a in filter_appointments_by_patient(patient_id, db=db)] == [appointment.id]
    assert filter_appointments_by_patient(patient_id + 1000, db=db) == []


def test_directory_routes(db, registered) -> None:
    doctor_id, patient_id = registered

    assert get_doctor(doctor_id, db=db).principal == 'dr-hopper'
    assert get_patient(patient_id, db=db).username == 'patient-one'
    assert [d.id for d in list_doctors(db=db)] == [doctor_id]
    assert [p.id for p in list_patients(db=db)] == [patient_id]


def test_duplicate_patient_username_conflicts(db, registered) -> None:
    with pytest.raises(HTTPException) as exception_info:
        register_patient(CreatePatientRequest(username='patient-one'), db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Username already exists'


def test_database_errors_become_service_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenManager:
        def list_all(self):
            raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    class RecordingSession:
        rolled_back = False

        def rollback(self) -> None:
            self.rolled_back = True

    session = RecordingSession()
    monkeypatch.setattr(appointment_routes, 'booking_manager_for', lambda db: BrokenManager())

    with pytest.raises(HTTPException) as exception_info:
        list_appointments(db=session)

    assert exception_info.value.status_code == 503
    assert exception_info.value.detail == 'Database unavailable. Verify DATABASE_URL and database credentials.'
    assert session.rolled_back is True
