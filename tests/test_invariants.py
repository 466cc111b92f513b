"""Randomised add/remove/update sequences: one container per linked pair, always in sync."""

import datetime
import random

import pytest

from models import Appointment, Doctor, infos_for

STATUSES = ["late", "on_time", "cancelled", "early", None]


def _check_settled(doctors, appointments, unused_marks):
    for doctor in doctors:
        linked = list(doctor.appointments)
        for appointment in appointments:
            infos = infos_for(doctor, appointment)
            if appointment in linked:
                assert len(infos) == 1
                assert infos[0].date == appointment.date
                assert infos[0].status == appointment.status
            else:
                assert infos == []
        assert len(doctor.appointment_infos) == len(set(map(id, linked)))
        for info in doctor.appointment_infos:
            assert info.unused == unused_marks.get(id(info), (None, None))[1]


@pytest.mark.parametrize("mode", ["pull", "bidirectional", "push"])
@pytest.mark.parametrize("seed", range(12))
def test_random_event_sequences(mirror, mode, seed):
    if mode == "push":
        mirror(Appointment, "doctors", "appointment_infos", mode)
    else:
        mirror(Doctor, "appointments", "appointment_infos", mode)

    rng = random.Random(seed)
    doctors = [Doctor(name=f"doctor-{i}") for i in range(3)]
    appointments = [
        Appointment(date=datetime.date(2026, 1, 1 + i), status=rng.choice(STATUSES)) for i in range(4)
    ]
    unused_marks = {}

    for step in range(60):
        doctor = rng.choice(doctors)
        appointment = rng.choice(appointments)
        action = rng.choice(["add", "add_reverse", "remove", "status", "date", "mark", "edit"])

        if action == "add" and appointment not in doctor.appointments:
            doctor.appointments.append(appointment)
        elif action == "add_reverse" and doctor not in appointment.doctors:
            appointment.doctors.append(doctor)
        elif action == "remove" and appointment in doctor.appointments:
            doctor.appointments.remove(appointment)
        elif action == "status":
            appointment.status = rng.choice(STATUSES)
        elif action == "date":
            appointment.date = datetime.date(2026, 2, 1) + datetime.timedelta(days=step)
        elif action == "mark" and doctor.appointment_infos:
            info = rng.choice(list(doctor.appointment_infos))
            info.unused = f"mark-{step}"
            unused_marks[id(info)] = (info, info.unused)
        elif action == "edit" and mode == "bidirectional" and doctor.appointment_infos:
            info = rng.choice(list(doctor.appointment_infos))
            info.status = rng.choice(STATUSES)
            assert info.appointment.status == info.status

        _check_settled(doctors, appointments, unused_marks)
