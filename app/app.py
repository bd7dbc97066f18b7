"""
UI layer
Purpose: Streamlit-only glue. Renders widgets/tabs, collects user inputs, and delegates
all work to the controller. Keeps UI concerns (layout/state widgets) separate from
business logic so logic can be unit tested without Streamlit.
"""

import hashlib
import logging

import streamlit as st
from audio_recorder_streamlit import audio_recorder

from core.bootstrap import build_authenticator, create_controller
from core.config import get_settings
from core.errors import AuthError, TaskApiError, TaskbotError
from core.logging_setup import setup_logging
from core.models import Sender, StorageBackend
from core.task_view import (
    CATEGORY_OPTIONS,
    PRIORITY_OPTIONS,
    TaskForm,
    build_filter,
    category_badge,
    due_label,
    option_label,
    priority_badge,
    submit_form,
)

settings = get_settings()

# ---------------------------
# Page config
# ---------------------------
st.set_page_config(
    page_title=settings.app_name,
    page_icon="✅",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource(show_spinner=False)
def _init_logging() -> bool:
    setup_logging(log_dir=settings.log_dir, console_level=settings.log_level)
    return True


_init_logging()
logger = logging.getLogger("core.app")

# ---------------------------
# UI constants
# ---------------------------
CATEGORY_VALUES = CATEGORY_OPTIONS[1:]
PRIORITY_VALUES = PRIORITY_OPTIONS[1:]
REMOTE = settings.storage_backend == StorageBackend.REMOTE

# ---------------------------
# Session state init
# ---------------------------
st_session = st.session_state
st_session.setdefault("controller", None)
st_session.setdefault("authenticator", None)
st_session.setdefault("signed_in_as", None)
st_session.setdefault("search_term", "")
st_session.setdefault("filter_category", CATEGORY_OPTIONS[0])
st_session.setdefault("filter_priority", PRIORITY_OPTIONS[0])
st_session.setdefault("task_form", TaskForm())
st_session.setdefault("form_version", 0)
st_session.setdefault("last_voice_sig", None)


# ---------------------------
# Helpers
# ---------------------------
def get_controller():
    """Return the controller object."""
    return st_session.get("controller")


def get_ready_controller():
    """Return controller only if it's initialized and not closed."""
    controller = get_controller()
    if not controller or controller.closed:
        return None
    return controller


def start_session(authenticator=None) -> bool:
    """Build the controller once per browser session and load tasks."""
    try:
        controller = create_controller(settings, authenticator=authenticator)
        controller.tasks.load()
    except TaskbotError as e:
        logger.warning("Session start failed: %s", e)
        st.error(f"Could not start the session: {e}")
        return False
    st_session.controller = controller
    return True


def end_session() -> None:
    """Tear down the controller and sign out."""
    controller = get_controller()
    if controller:
        controller.close()
    st_session.controller = None
    authenticator = st_session.get("authenticator")
    if authenticator:
        authenticator.sign_out()
    st_session.signed_in_as = None
    reset_task_form()


def reset_task_form() -> None:
    st_session.task_form = TaskForm()
    st_session.form_version += 1


def start_edit_task(task) -> None:
    """Load a task into the form for editing."""
    st_session.task_form = TaskForm.from_task(task)
    st_session.form_version += 1


def run_task_action(action, *args) -> None:
    """Call a TaskStore mutation and surface failures as toasts."""
    try:
        action(*args)
    except TaskApiError as e:
        logger.warning("Task action failed: %s", e)
        st.toast(f"Task update failed: {e}", icon="⚠️")
    except KeyError:
        st.toast("That task no longer exists.", icon="⚠️")


def render_message(msg) -> None:
    role = "user" if msg.sender == Sender.USER else "assistant"
    with st.chat_message(role):
        st.markdown(msg.text)
        st.caption(f"{msg.timestamp:%H:%M}")


# ---------------------------
# SIDEBAR: account & session
# ---------------------------
with st.sidebar:
    st.markdown("# Settings")
    st.caption(
        f"Storage: **{'Cloud (AppSync)' if REMOTE else 'This device'}** · "
        f"Assistant: **{settings.nlu_backend.value}**"
    )

    if REMOTE:
        st.markdown("## Account")
        if st_session.authenticator is None:
            try:
                st_session.authenticator = build_authenticator(settings)
            except AuthError as e:
                st.error(str(e))
        authenticator = st_session.authenticator

        if authenticator is None:
            st.warning("Cognito is not configured. Set the TASKBOT_* pool ids.")
            st.stop()

        if not st_session.signed_in_as:
            with st.form("sign_in"):
                username = st.text_input("Username")
                password = st.text_input("Password", type="password")
                signed = st.form_submit_button("Sign in", type="primary")
            if signed:
                try:
                    authenticator.sign_in(username.strip(), password)
                    if start_session(authenticator):
                        st_session.signed_in_as = username.strip()
                        st.rerun()
                except AuthError as e:
                    st.error(str(e))
            st.info("Please sign in to see your tasks.")
            st.stop()

        st.write(f"Signed in as **{st_session.signed_in_as}**")
        st.button("Sign out", on_click=end_session)
    elif get_controller() is None:
        start_session()

    st.divider()
    st.markdown("## Session Controls")
    controller = get_ready_controller()
    if controller:
        if st.button("Clear chat"):
            controller.reset_chat()
            st.toast("Chat cleared.")
        if st.button("Reload tasks"):
            run_task_action(controller.tasks.load)

controller = get_ready_controller()
if controller is None:
    st.stop()

# ---------------------------
# Header
# ---------------------------
st.title(settings.app_name)

tasks_tab, assistant_tab, voice_tab = st.tabs(["Tasks", "Assistant", "Voice"])

with tasks_tab:
    f1, f2, f3 = st.columns([3, 1, 1])
    with f1:
        st.text_input("Search tasks", key="search_term", placeholder="Search tasks")
    with f2:
        st.selectbox(
            "Category",
            CATEGORY_OPTIONS,
            key="filter_category",
            format_func=lambda v: option_label(v, "Categories"),
        )
    with f3:
        st.selectbox(
            "Priority",
            PRIORITY_OPTIONS,
            key="filter_priority",
            format_func=lambda v: option_label(v, "Priorities"),
        )

    form: TaskForm = st_session.task_form
    with st.expander(
        "Edit Task" if form.is_editing else "Add New Task", expanded=form.is_editing
    ):
        with st.form(f"task_form_{st_session.form_version}"):
            text = st.text_input("Task description", value=form.text)
            category = st.selectbox(
                "Category",
                CATEGORY_VALUES,
                index=CATEGORY_VALUES.index(form.category),
                format_func=str.capitalize,
            )
            due_date = st.date_input("Due date", value=form.due_date)
            priority = st.selectbox(
                "Priority",
                PRIORITY_VALUES,
                index=PRIORITY_VALUES.index(form.priority),
                format_func=str.capitalize,
            )
            c1, c2 = st.columns([1, 1])
            submitted = c1.form_submit_button(
                "Update Task" if form.is_editing else "Add Task", type="primary"
            )
            cancelled = c2.form_submit_button("Cancel")

        if cancelled:
            reset_task_form()
            st.rerun()
        if submitted:
            form.text = text
            form.category = category
            form.due_date = due_date
            form.priority = priority
            try:
                submit_form(controller.tasks, form)
                reset_task_form()
                st.rerun()
            except ValueError as e:
                st.error(str(e))
            except TaskApiError as e:
                st.toast(f"Could not save the task: {e}", icon="⚠️")

    visible = controller.tasks.list(
        build_filter(
            st_session.search_term,
            st_session.filter_category,
            st_session.filter_priority,
        )
    )
    if not visible:
        st.caption("No tasks match.")

    for task in visible:
        with st.container(border=True):
            c_toggle, c_body, c_edit, c_delete = st.columns([1, 10, 1, 1])
            with c_toggle:
                st.button(
                    "✅" if task.completed else "⬜",
                    key=f"toggle_{task.id}",
                    help="Toggle completed",
                    on_click=run_task_action,
                    args=(controller.tasks.toggle, task.id),
                )
            with c_body:
                title = f"~~{task.text}~~" if task.completed else task.text
                st.markdown(f"**{title}**")
                st.markdown(
                    f"{category_badge(task.category)} &nbsp; 📅 {due_label(task)} "
                    f"&nbsp; {priority_badge(task.priority)}",
                    unsafe_allow_html=True,
                )
            with c_edit:
                st.button(
                    "✏️",
                    key=f"edit_{task.id}",
                    help="Edit",
                    on_click=start_edit_task,
                    args=(task,),
                )
            with c_delete:
                st.button(
                    "🗑️",
                    key=f"delete_{task.id}",
                    help="Delete",
                    on_click=run_task_action,
                    args=(controller.tasks.delete, task.id),
                )

with assistant_tab:
    st.subheader("Task Assistant")
    if not controller.is_ready():
        st.info("Chat service is initializing. Check the assistant configuration.")

    transcript = st.container(height=420, border=True)
    with transcript:
        for msg in controller.history():
            render_message(msg)

    raw = st.chat_input("Type a message...")
    if raw is not None:
        try:
            with st.spinner("Thinking..."):
                controller.send_text(raw)
        except ValueError as e:
            st.toast(str(e), icon="⚠️")
        st.rerun()

with voice_tab:
    st.subheader("Voice Assistant")
    if not controller.voice_enabled:
        st.info("Voice input is not configured (set TASKBOT_AUDIO_BUCKET).")
    else:
        st.caption("Press the microphone, speak your task, and pause to finish.")
        wav_bytes = audio_recorder(
            pause_threshold=2,
            sample_rate=16_000,
            text="Press to record",
            icon_size="2x",
        )
        if wav_bytes:
            sig = hashlib.sha1(wav_bytes).hexdigest()
            if sig != st_session.get("last_voice_sig"):
                st_session.last_voice_sig = sig
                with st.spinner("Transcribing… this can take up to a few minutes."):
                    reply = controller.send_voice(wav_bytes)
                st.toast(reply.text)
                st.rerun()

        for msg in controller.history()[-6:]:
            render_message(msg)

st.divider()
st.caption("Tasks created by the assistant appear in the Tasks tab.")
