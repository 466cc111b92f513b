"""Tests for field matching and schema introspection."""

from fieldsync.sync.field_matcher import column_schema, match_fields, matched_fields_for

from models import Appointment, AppointmentInfo, Ticket, TicketNote


def test_match_fields_intersection():
    source = {"date": "date", "status": "str", "reason": "str"}
    container = {"date": "date", "status": "str", "unused": "str"}
    assert match_fields(source, container) == ("date", "status")


def test_match_fields_follows_source_order():
    source = {"status": str, "date": str}
    container = {"date": str, "unused": str, "status": str}
    assert match_fields(source, container) == ("status", "date")
    assert match_fields(source, dict(reversed(list(container.items())))) == ("status", "date")


def test_match_fields_is_case_sensitive():
    assert match_fields({"Status": str}, {"status": str}) == ()


def test_match_fields_ignores_types():
    assert match_fields({"status": int}, {"status": str}) == ("status",)


def test_column_schema_skips_keys():
    schema = column_schema(AppointmentInfo)
    assert list(schema) == ["date", "status", "unused"]


def test_column_schema_of_source():
    assert list(column_schema(Appointment)) == ["date", "status", "reason"]


def test_matched_fields_for_models():
    assert matched_fields_for(Appointment, AppointmentInfo) == ("date", "status")
    assert matched_fields_for(Ticket, TicketNote) == ("title", "priority")


def test_matched_fields_for_is_cached():
    first = matched_fields_for(Appointment, AppointmentInfo)
    assert matched_fields_for(Appointment, AppointmentInfo) is first
