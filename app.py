from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import requests
import streamlit as st

sys.path.append(str(Path(__file__).resolve().parent.joinpath("src")))

from slot_booking_form.controller import BookingController
from slot_booking_form.models import Slot, ViewMode
from slot_booking_form.settings import USER_AGENT, load_config
from slot_booking_form.store import format_date_label

# Configure logging to show warnings and errors
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)

FORM_FIELDS: dict[str, tuple[str, str, bool]] = {
    "company_name": ("廠商名稱 *", "請輸入公司名稱", False),
    "contact_person": ("聯絡人 *", "請輸入聯絡人姓名", False),
    "email": ("信箱 *", "example@company.com", False),
    "product": ("想要商品", "請輸入感興趣的商品", False),
    "notes": ("備註", "其他需求或備註事項", True),
}


st.set_page_config(page_title="Funtech 報名系統", layout="centered")


@st.cache_resource
def get_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def get_controller() -> BookingController:
    """Return this browser session's controller, loading slots on first use."""

    if "controller" not in st.session_state:
        controller = BookingController(load_config(), get_session())
        with st.spinner("載入中…"):
            controller.load_slots()
        st.session_state["controller"] = controller
    return st.session_state["controller"]


def _sync_field(controller: BookingController, field: str) -> None:
    controller.update_form(**{field: st.session_state[f"form_{field}"]})


def _submit_form(controller: BookingController) -> None:
    controller.update_form(
        **{field: st.session_state.get(f"form_{field}", "") for field in FORM_FIELDS}
    )
    controller.submit()


def _select_date(controller: BookingController) -> None:
    controller.select_date(st.session_state["date_tab"])


def _submit_password(controller: BookingController) -> None:
    controller.submit_password(st.session_state.get("password_input", ""))
    st.session_state["password_input"] = ""


def _cancel_password(controller: BookingController) -> None:
    controller.cancel_password()
    st.session_state["password_input"] = ""


def render_slot_group(controller: BookingController, heading: str, slots: list[Slot]) -> None:
    if not slots:
        return

    st.markdown(f"**{heading}**")
    columns = st.columns(3)
    for index, slot in enumerate(slots):
        selected = controller.selected_slot == slot.time_slot
        columns[index % 3].button(
            slot.time_slot,
            key=f"slot_{slot.date}_{slot.time_slot}",
            disabled=slot.is_booked,
            type="primary" if selected else "secondary",
            use_container_width=True,
            on_click=controller.select_slot,
            args=(slot.time_slot,),
        )


def render_booking(controller: BookingController) -> None:
    if not controller.store.slots:
        st.info("目前沒有可預約的時段")
        st.caption("請確認 Google Sheet 中是否已填寫日期與時段")
        return

    dates = controller.dates
    year = controller.config.default_year
    current = controller.selected_date if controller.selected_date in dates else dates[0]
    st.radio(
        "日期",
        options=dates,
        index=dates.index(current),
        format_func=lambda raw: format_date_label(raw, year),
        horizontal=True,
        label_visibility="collapsed",
        key="date_tab",
        on_change=_select_date,
        args=(controller,),
    )

    render_slot_group(controller, "上午", controller.morning_slots)
    render_slot_group(controller, "下午", controller.afternoon_slots)

    st.divider()
    st.button(
        "填寫報名表",
        type="primary",
        disabled=controller.selected_slot is None,
        use_container_width=True,
        on_click=controller.open_form,
    )
    st.caption(f"此活動尚可預約 {controller.available_count} 次")


def render_form(controller: BookingController) -> None:
    year = controller.config.default_year
    with st.container(border=True):
        header, close = st.columns([5, 1])
        header.subheader("填寫報名資料")
        date_label = format_date_label(controller.selected_date or "", year)
        header.caption(f"{date_label} {controller.selected_slot or ''}")
        close.button("✕", key="close_form", on_click=controller.close_form)

        for field, (label, placeholder, multiline) in FORM_FIELDS.items():
            widget = st.text_area if multiline else st.text_input
            widget(
                label,
                value=getattr(controller.form, field),
                placeholder=placeholder,
                key=f"form_{field}",
                on_change=_sync_field,
                args=(controller, field),
            )

        st.button(
            "送出中..." if controller.is_submitting else "確認送出",
            type="primary",
            disabled=controller.is_submitting,
            use_container_width=True,
            on_click=_submit_form,
            args=(controller,),
        )


def render_password_prompt(controller: BookingController) -> None:
    with st.container(border=True):
        st.subheader("請輸入密碼")
        st.text_input(
            "密碼",
            type="password",
            placeholder="請輸入密碼",
            key="password_input",
            label_visibility="collapsed",
        )
        cancel, confirm = st.columns(2)
        cancel.button("取消", use_container_width=True, on_click=_cancel_password, args=(controller,))
        confirm.button(
            "確認",
            type="primary",
            use_container_width=True,
            on_click=_submit_password,
            args=(controller,),
        )


def render_buyer_list(controller: BookingController) -> None:
    booked = controller.booked_slots
    if not booked:
        st.info("目前尚無買主報名")
        return

    year = controller.config.default_year
    for slot in booked:
        with st.container(border=True):
            st.caption(f"{format_date_label(slot.date, year)} {slot.time_slot}")
            st.markdown(f"**{slot.display_name}** · 已報名")


def render_success(controller: BookingController) -> None:
    st.success("報名成功！您的資料已成功送出，畫面將自動返回首頁")
    time.sleep(controller.success_remaining())
    controller.complete_submission()
    st.rerun()


def main() -> None:
    controller = get_controller()

    st.title("Funtech 報名系統")

    if controller.diagnostic:
        st.error(controller.diagnostic)
        controller.dismiss_diagnostic()

    if controller.show_success:
        render_success(controller)
        return

    showing_buyers = controller.mode is ViewMode.BUYER_LIST
    title, toggle = st.columns([3, 2])
    title.subheader("已報名買主" if showing_buyers else "報名時段選擇")
    toggle.button(
        "返回報名" if showing_buyers else "顯示目前報名買主",
        on_click=controller.back_to_booking if showing_buyers else controller.request_buyer_list,
    )

    if controller.mode is ViewMode.PASSWORD_PROMPT:
        render_password_prompt(controller)
    elif showing_buyers:
        render_buyer_list(controller)
    elif controller.show_form:
        render_form(controller)
    else:
        render_booking(controller)


if __name__ == "__main__":
    main()
