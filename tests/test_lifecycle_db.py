"""Tests for lifecycle events driven through a SQLAlchemy session (in-memory SQLite)."""

import pytest

from fieldsync.core.funcs import destroy_source, edit_container, link_source, unlink_source, update_source
from fieldsync.helpers.transactionManagement import SessionFactory, db_session_context, transactional
from fieldsync.sync.errors import FieldWriteError

from models import VISIT_DATE, Appointment, AppointmentInfo, Doctor


def _stored_infos():
    with SessionFactory() as session:
        return [(i.appointment_id, i.date, i.status) for i in session.query(AppointmentInfo).all()]


def _stored_status(appointment_id):
    with SessionFactory() as session:
        return session.get(Appointment, appointment_id).status


# --- direct session use ---


def test_destroying_source_removes_containers(mirror, db, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    db.add_all([doctor, appointment])
    doctor.appointments.append(appointment)
    db.commit()
    assert db.query(AppointmentInfo).count() == 1

    db.delete(appointment)
    db.commit()

    assert db.query(AppointmentInfo).count() == 0
    assert doctor.appointment_infos == []


def test_destroying_target_cascades(mirror, db, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    db.add_all([doctor, appointment])
    doctor.appointments.append(appointment)
    db.commit()

    db.delete(doctor)
    db.commit()

    assert db.query(AppointmentInfo).count() == 0
    assert db.query(Appointment).count() == 1


def test_update_of_loaded_source(mirror, db, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    db.add_all([doctor, appointment])
    doctor.appointments.append(appointment)
    db.commit()
    db.expire_all()

    loaded = db.get(Appointment, appointment.id)
    loaded.status = "on_time"
    db.commit()

    assert _stored_infos() == [(appointment.id, VISIT_DATE, "on_time")]


def test_push_through_session(mirror, db, doctor, appointment):
    mirror(Appointment, "doctors", "appointment_infos", "push")
    db.add_all([doctor, appointment])
    appointment.doctors.append(doctor)
    db.commit()

    appointment.status = "on_time"
    db.commit()

    assert _stored_infos() == [(appointment.id, VISIT_DATE, "on_time")]


# --- service operations ---


def test_link_update_unlink(mirror, tables, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")

    link_source(doctor, "appointments", appointment)
    assert _stored_infos() == [(appointment.id, VISIT_DATE, "late")]

    update_source(appointment, status="on_time")
    assert _stored_infos() == [(appointment.id, VISIT_DATE, "on_time")]

    unlink_source(doctor, "appointments", appointment)
    assert _stored_infos() == []


def test_link_is_idempotent(mirror, tables, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")

    link_source(doctor, "appointments", appointment)
    link_source(doctor, "appointments", appointment)

    assert len(_stored_infos()) == 1


def test_edit_container_bidirectional(mirror, tables, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "bidirectional")
    link_source(doctor, "appointments", appointment)

    edit_container(doctor.appointment_infos[0], status="cancelled")

    assert _stored_status(appointment.id) == "cancelled"
    assert _stored_infos() == [(appointment.id, VISIT_DATE, "cancelled")]


def test_destroy_source(mirror, tables, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    link_source(doctor, "appointments", appointment)

    destroy_source(appointment)

    assert _stored_infos() == []
    with SessionFactory() as session:
        assert session.query(Appointment).count() == 0
        assert session.query(Doctor).count() == 1


def test_failed_copy_rolls_back_event(mirror, tables, doctor, appointment):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    link_source(doctor, "appointments", appointment)
    appointment_id = appointment.id

    with pytest.raises(FieldWriteError):
        update_source(appointment, status=42)

    assert _stored_status(appointment_id) == "late"
    assert _stored_infos() == [(appointment_id, VISIT_DATE, "late")]


def test_failed_link_stores_nothing(mirror, tables, doctor):
    mirror(Doctor, "appointments", "appointment_infos", "pull")
    broken = Appointment(date=VISIT_DATE, status=42)

    with pytest.raises(FieldWriteError):
        link_source(doctor, "appointments", broken)

    assert _stored_infos() == []
    with SessionFactory() as session:
        assert session.query(Doctor).count() == 0


# --- transaction management ---


def test_transactional_reuses_active_session(tables):
    @transactional
    def inner(session=None):
        return session

    @transactional
    def outer(session=None):
        return session, inner()

    outer_session, inner_session = outer()

    assert outer_session is inner_session
    assert db_session_context.get() is None


def test_transactional_rolls_back(tables):
    @transactional
    def add_then_fail(session=None):
        session.add(Doctor(name="Cuddy"))
        session.flush()
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        add_then_fail()

    with SessionFactory() as session:
        assert session.query(Doctor).count() == 0
    assert db_session_context.get() is None
