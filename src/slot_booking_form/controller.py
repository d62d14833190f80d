from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from .models import Reservation, Slot, ViewMode
from .remote import RemoteHtmlResponseError, SlotFetchError, fetch_slots, submit_reservation
from .settings import BookingConfig
from .store import (
    SlotStore,
    available_count,
    booked_slots,
    slots_for_date,
    split_by_period,
    unique_dates,
)

logger = logging.getLogger(__name__)

MSG_HTML_RESPONSE = "⚠️ 無法讀取資料：Google Apps Script 權限設定錯誤，請確保「誰可以存取」設定為「所有人」。"
MSG_MALFORMED = "API 回傳的資料格式錯誤，請檢查 Console。"
MSG_CONNECTION = "無法連線至資料庫，請檢查網路或 API 網址。"
MSG_SUBMIT_FAILED = "報名失敗，請檢查網路連線或 API 網址是否正確。"
MSG_WRONG_PASSWORD = "密碼錯誤！"
MSG_MISSING_FIELDS = "請填寫所有必填欄位。"
MSG_INVALID_EMAIL = "請輸入有效的電子郵件地址。"


class BookingController:
    """View state for the booking form.

    Holds the slot store plus everything the user has selected or typed. The derived
    views are recomputed on each access, so they always follow the store.
    """

    def __init__(self, config: BookingConfig, session: requests.Session) -> None:
        self.config = config
        self.session = session
        self.store = SlotStore()

        self.mode = ViewMode.BOOKING
        self.selected_date: Optional[str] = None
        self.selected_slot: Optional[str] = None
        self.form = Reservation()
        self.password_input = ""

        self.show_form = False
        self.show_success = False
        self.success_shown_at: Optional[float] = None
        self.is_loading = False
        self.is_submitting = False
        self.diagnostic: Optional[str] = None

    # Slot store

    def load_slots(self) -> None:
        self.is_loading = True
        try:
            slots = fetch_slots(
                session=self.session,
                endpoint=self.config.endpoint_url,
                timeout=self.config.timeout,
            )
        except RemoteHtmlResponseError as exc:
            logger.error("Endpoint returned HTML, access is probably not set to anyone: %s", exc)
            self.store.clear()
            self.diagnostic = MSG_HTML_RESPONSE
            return
        except SlotFetchError as exc:
            logger.error("Failed to parse slots: %s", exc)
            self.store.clear()
            self.diagnostic = MSG_MALFORMED
            return
        except requests.RequestException as exc:
            logger.error("Error fetching slots: %s", exc)
            self.store.clear()
            self.diagnostic = MSG_CONNECTION
            return
        finally:
            self.is_loading = False

        self.store.replace(slots)
        dates = unique_dates(self.store.slots)
        if dates and self.selected_date is None:
            self.selected_date = dates[0]

    @property
    def dates(self) -> list[str]:
        return unique_dates(self.store.slots)

    @property
    def slots_for_selected_date(self) -> list[Slot]:
        return slots_for_date(self.store.slots, self.selected_date)

    @property
    def morning_slots(self) -> list[Slot]:
        return split_by_period(self.slots_for_selected_date)[0]

    @property
    def afternoon_slots(self) -> list[Slot]:
        return split_by_period(self.slots_for_selected_date)[1]

    @property
    def available_count(self) -> int:
        return available_count(self.store.slots)

    @property
    def booked_slots(self) -> list[Slot]:
        return booked_slots(self.store.slots)

    # Selection

    def select_date(self, date: str) -> None:
        self.selected_date = date
        self.selected_slot = None

    def select_slot(self, time_slot: str) -> None:
        for slot in self.slots_for_selected_date:
            if slot.time_slot == time_slot:
                if not slot.is_booked:
                    self.selected_slot = time_slot
                return

    # Registration form

    def open_form(self) -> None:
        if self.selected_slot is not None:
            self.show_form = True

    def close_form(self) -> None:
        self.show_form = False

    def update_form(self, **fields: str) -> None:
        for name, value in fields.items():
            if not hasattr(self.form, name):
                raise AttributeError(f"Unknown form field: {name}")
            setattr(self.form, name, value)

    def submit(self) -> bool:
        """Dispatch the reservation. Returns True once the write has left."""

        if self.is_submitting or not self.selected_slot or not self.selected_date:
            return False

        if self.form.missing_fields():
            self.diagnostic = MSG_MISSING_FIELDS
            return False
        if not self.form.has_valid_email():
            self.diagnostic = MSG_INVALID_EMAIL
            return False

        self.is_submitting = True
        try:
            submit_reservation(
                session=self.session,
                endpoint=self.config.endpoint_url,
                reservation=self.form,
                date=self.selected_date,
                time_slot=self.selected_slot,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Error submitting reservation: %s", exc)
            self.diagnostic = MSG_SUBMIT_FAILED
            return False
        finally:
            self.is_submitting = False

        self.show_success = True
        self.success_shown_at = time.monotonic()
        return True

    def success_remaining(self) -> float:
        if not self.show_success or self.success_shown_at is None:
            return 0.0
        elapsed = time.monotonic() - self.success_shown_at
        return max(0.0, self.config.success_display_seconds - elapsed)

    def complete_submission(self) -> None:
        """Close the success modal and form, reset the fields, then re-read the sheet."""

        self.show_success = False
        self.success_shown_at = None
        self.show_form = False
        self.form = Reservation()
        self.selected_slot = None
        self.load_slots()

    # Buyer list gate

    def request_buyer_list(self) -> None:
        self.mode = ViewMode.PASSWORD_PROMPT

    def submit_password(self, password: Optional[str] = None) -> bool:
        if password is not None:
            self.password_input = password

        matched = self.password_input == self.config.shared_secret
        self.password_input = ""
        if matched:
            self.mode = ViewMode.BUYER_LIST
            return True

        logger.info("Rejected buyer list password")
        self.diagnostic = MSG_WRONG_PASSWORD
        return False

    def cancel_password(self) -> None:
        self.password_input = ""
        self.mode = ViewMode.BOOKING

    def back_to_booking(self) -> None:
        self.mode = ViewMode.BOOKING

    def dismiss_diagnostic(self) -> None:
        self.diagnostic = None
