"""
Streamlit Frontend for Intime

A thin view over IntimeSession: one balance field, a register button, the
live countdown and the history list. All ledger rules live in the session;
this file only renders its state and forwards clicks.

The countdown tick is driven by a fragment that re-runs every tick interval
and fires the session's ManualTickSource. Full-page reruns (typing, clicks)
do not tick: a tick only fires once a whole interval has passed on the
monotonic clock.
"""

import logging
import time

import streamlit as st

from intime.config import get_settings
from intime.orchestrator import IntimeSession, create_session
from intime.scheduler import ManualTickSource
from intime.services.storage import StorageError


settings = get_settings()
logging.basicConfig(level="DEBUG" if settings.app.debug_mode else settings.app.log_level)
TICK_INTERVAL = settings.app.tick_interval_seconds

# Page configuration
st.set_page_config(
    page_title="Intime",
    page_icon="⏳",
    layout="centered",
)


def get_session() -> tuple[IntimeSession, ManualTickSource]:
    """Get or create this browser session's ledger (started once)."""
    if "intime_session" not in st.session_state:
        tick_source = ManualTickSource()
        session = create_session(settings=settings, tick_source=tick_source)
        session.start()
        session.install_exit_hook()
        st.session_state.intime_session = session
        st.session_state.tick_source = tick_source
        st.session_state.last_tick_at = time.monotonic()
    return st.session_state.intime_session, st.session_state.tick_source


def advance_countdown(tick_source: ManualTickSource) -> None:
    """Fire one tick per whole interval elapsed since the last one."""
    now = time.monotonic()
    due = int((now - st.session_state.last_tick_at) // TICK_INTERVAL)
    for _ in range(due):
        tick_source.fire()
    st.session_state.last_tick_at += due * TICK_INTERVAL


def on_balance_change() -> None:
    """Keep the field digits-only, clamped and thousands-separated."""
    session = st.session_state.intime_session
    amount = session.engine.sanitize_amount_input(st.session_state.balance_raw)
    st.session_state.balance_raw = session.engine.format_amount(amount) if amount else ""


def on_register() -> None:
    session = st.session_state.intime_session
    try:
        session.register(st.session_state.get("balance_raw", ""))
    except StorageError as e:
        st.session_state.flash_error = f"저장에 실패했습니다: {e}"


def on_delete(key: str) -> None:
    session = st.session_state.intime_session
    try:
        session.delete(key)
    except StorageError as e:
        st.session_state.flash_error = f"삭제를 저장하지 못했습니다: {e}"


@st.fragment(run_every=TICK_INTERVAL)
def render_live(session: IntimeSession, tick_source: ManualTickSource) -> None:
    """Countdown and history; re-runs on its own every tick interval."""
    advance_countdown(tick_source)

    # Last minute shows in red
    text = f"`{session.display_text}`"
    if session.engine.is_final_minute(session.live_seconds):
        text = f":red[{session.display_text}]"
    st.markdown(f"### 남은 수명: {text}")
    st.caption(
        f"* 최저시급 {session.engine.format_amount(session.engine.wage_per_hour)}원, "
        f"하루 {session.engine.hours_per_day:g}시간 근무 기준"
    )

    st.markdown("---")
    for entry in session.entries():
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"{entry.key} - `{entry.text}` "
                f"(₩{session.engine.format_amount(entry.amount)})"
            )
        with col2:
            st.button(
                "삭제",
                key=f"delete_{entry.key}",
                disabled=entry.is_active,
                on_click=on_delete,
                args=(entry.key,),
            )


def main():
    """Main application entry point."""
    session, tick_source = get_session()

    st.title("Intime: 남은 수명 환산기")

    st.text_input(
        "통장 잔액 (₩):",
        key="balance_raw",
        placeholder="예: 1,000,000",
        on_change=on_balance_change,
    )
    st.caption(f"최대 입력 가능 금액: ₩{session.engine.format_amount(session.engine.max_amount)}")

    preview = session.engine.sanitize_amount_input(st.session_state.get("balance_raw", ""))
    if preview:
        st.caption(
            "환산: " + session.engine.format_list_text(session.engine.amount_to_seconds(preview))
        )

    st.button("등록하기", type="primary", use_container_width=True, on_click=on_register)

    error = st.session_state.pop("flash_error", None)
    if error:
        st.error(error)

    render_live(session, tick_source)

    if settings.app.debug_mode:
        with st.expander("Debug: session state"):
            st.json(session.state.model_dump(mode="json"))


if __name__ == "__main__":
    main()
