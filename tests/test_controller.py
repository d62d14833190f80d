from __future__ import annotations

import json
from unittest.mock import patch

import pytest
import requests

from conftest import FakeResponse
from slot_booking_form.controller import (
    MSG_CONNECTION,
    MSG_HTML_RESPONSE,
    MSG_INVALID_EMAIL,
    MSG_MALFORMED,
    MSG_MISSING_FIELDS,
    MSG_SUBMIT_FAILED,
    MSG_WRONG_PASSWORD,
    BookingController,
)
from slot_booking_form.models import Reservation, Slot, ViewMode
from slot_booking_form.store import format_date_label

RAW_SLOTS = [
    {"date": "4/22", "timeSlot": "09:00", "isBooked": False},
    {"date": "4/22", "timeSlot": "10:00", "isBooked": True, "companyName": "Acme"},
    {"date": "4/22", "timeSlot": "14:00", "isBooked": False},
    {"date": "4/23", "timeSlot": "09:00", "isBooked": False},
]


@pytest.fixture
def controller(config, session) -> BookingController:
    session.queue_json(RAW_SLOTS)
    ctrl = BookingController(config, session)
    ctrl.load_slots()
    return ctrl


def _fill(ctrl: BookingController) -> None:
    ctrl.update_form(company_name="Funtech", contact_person="Lin", email="lin@funtech.tw", product="AI")


def test_load_populates_store_and_default_date(controller) -> None:
    assert [s.to_dict() for s in controller.store.slots] == RAW_SLOTS
    assert controller.dates == ["4/22", "4/23"]
    assert controller.selected_date == "4/22"
    assert controller.is_loading is False
    assert controller.diagnostic is None


def test_single_slot_scenario(config, session) -> None:
    session.queue_json([{"date": "4/22", "timeSlot": "09:00", "isBooked": False}])
    ctrl = BookingController(config, session)
    ctrl.load_slots()

    assert [format_date_label(d, config.default_year) for d in ctrl.dates] == ["2026/04/22(三)"]
    assert ctrl.morning_slots == [Slot("4/22", "09:00")]
    assert ctrl.afternoon_slots == []
    assert ctrl.available_count == 1


def test_available_count_ignores_selected_date(controller) -> None:
    controller.select_date("4/23")
    assert controller.available_count == 3
    assert [s.time_slot for s in controller.morning_slots] == ["09:00"]
    assert controller.afternoon_slots == []


@pytest.mark.parametrize(
    ("response", "message"),
    [
        (FakeResponse("<html></html>", content_type="text/html"), MSG_HTML_RESPONSE),
        (FakeResponse("oops", content_type="text/plain"), MSG_MALFORMED),
        (FakeResponse('{"error": "x"}'), MSG_MALFORMED),
        (requests.ConnectionError("down"), MSG_CONNECTION),
    ],
)
def test_failed_load_empties_store(controller, session, response, message) -> None:
    session.queue(response)

    controller.load_slots()

    assert controller.store.slots == ()
    assert controller.diagnostic == message
    assert controller.is_loading is False
    assert session.get_calls[-1]["params"] == {"action": "read"}


def test_selecting_date_clears_slot_and_is_idempotent(controller) -> None:
    controller.select_slot("09:00")
    assert controller.selected_slot == "09:00"

    controller.select_date("4/23")
    assert controller.selected_slot is None
    controller.select_date("4/23")
    assert controller.selected_slot is None
    assert controller.selected_date == "4/23"


def test_booked_slot_click_is_ignored(controller) -> None:
    controller.select_slot("09:00")
    controller.select_slot("10:00")
    assert controller.selected_slot == "09:00"

    controller.select_slot("14:00")
    assert controller.selected_slot == "14:00"


def test_open_form_requires_a_slot(controller) -> None:
    controller.open_form()
    assert controller.show_form is False

    controller.select_slot("09:00")
    controller.open_form()
    assert controller.show_form is True


def test_close_form_keeps_fields(controller) -> None:
    controller.select_slot("09:00")
    controller.open_form()
    controller.update_form(company_name="Funtech")
    controller.close_form()

    assert controller.show_form is False
    assert controller.form.company_name == "Funtech"
    assert controller.mode is ViewMode.BOOKING


def test_update_form_rejects_unknown_fields(controller) -> None:
    with pytest.raises(AttributeError):
        controller.update_form(phone="123")


def test_submit_then_complete_flow(controller, session) -> None:
    controller.select_slot("09:00")
    controller.open_form()
    _fill(controller)

    with patch("slot_booking_form.controller.time.monotonic", return_value=100.0):
        assert controller.submit() is True
        assert controller.show_success is True
        assert controller.success_remaining() == 2.0

    (call,) = session.post_calls
    payload = json.loads(call["data"].decode("utf-8"))
    assert payload["date"] == "4/22"
    assert payload["timeSlot"] == "09:00"
    assert payload["companyName"] == "Funtech"
    assert controller.is_submitting is False

    with patch("slot_booking_form.controller.time.monotonic", return_value=102.5):
        assert controller.success_remaining() == 0.0

    reads_before = len(session.get_calls)
    session.queue_json([dict(RAW_SLOTS[0], isBooked=True, companyName="Funtech")])
    controller.complete_submission()

    assert controller.show_success is False
    assert controller.show_form is False
    assert controller.form == Reservation()
    assert controller.selected_slot is None
    assert controller.selected_date == "4/22"
    assert len(session.get_calls) == reads_before + 1
    assert controller.booked_slots == [Slot("4/22", "09:00", True, "Funtech")]


def test_submit_transport_failure_keeps_form(controller, session) -> None:
    controller.select_slot("09:00")
    controller.open_form()
    _fill(controller)
    session.post_error = requests.ConnectionError("down")

    assert controller.submit() is False

    assert controller.diagnostic == MSG_SUBMIT_FAILED
    assert controller.show_form is True
    assert controller.show_success is False
    assert controller.form.company_name == "Funtech"
    assert controller.is_submitting is False


def test_submit_requires_fields_and_valid_email(controller, session) -> None:
    controller.select_slot("09:00")
    controller.open_form()
    controller.update_form(company_name="Funtech")

    assert controller.submit() is False
    assert controller.diagnostic == MSG_MISSING_FIELDS

    controller.update_form(contact_person="Lin", email="not-an-email")
    assert controller.submit() is False
    assert controller.diagnostic == MSG_INVALID_EMAIL
    assert session.post_calls == []


def test_submit_is_ignored_while_in_flight(controller, session) -> None:
    controller.select_slot("09:00")
    _fill(controller)
    controller.is_submitting = True

    assert controller.submit() is False
    assert session.post_calls == []


def test_password_flow(controller) -> None:
    controller.request_buyer_list()
    assert controller.mode is ViewMode.PASSWORD_PROMPT

    controller.password_input = "abc"
    assert controller.submit_password() is False
    assert controller.mode is ViewMode.PASSWORD_PROMPT
    assert controller.password_input == ""
    assert controller.diagnostic == MSG_WRONG_PASSWORD

    controller.dismiss_diagnostic()
    assert controller.submit_password("123") is True
    assert controller.mode is ViewMode.BUYER_LIST
    assert controller.password_input == ""
    assert controller.diagnostic is None
    assert [s.display_name for s in controller.booked_slots] == ["Acme"]

    controller.back_to_booking()
    assert controller.mode is ViewMode.BOOKING


def test_cancel_password_returns_to_booking(controller) -> None:
    controller.request_buyer_list()
    controller.password_input = "12"
    controller.cancel_password()

    assert controller.mode is ViewMode.BOOKING
    assert controller.password_input == ""


def test_html_error_page_shows_permission_message(controller, session) -> None:
    session.queue(FakeResponse("<html>denied</html>", content_type="text/html", status_code=403))

    controller.load_slots()

    assert controller.diagnostic == MSG_HTML_RESPONSE
    assert controller.store.slots == ()
