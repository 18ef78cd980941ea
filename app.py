"""
Apollo - Interactive Lesson Viewer

Streamlit application for working through a topic's lessons: rendered
content sections, exercises with progressive hints, review questions,
progress tracking and notes.

Usage:
    streamlit run app.py
"""

import asyncio
import logging

import streamlit as st

from apollo.classroom import CourseApiClient, CourseSession, ProgressViews, SaveState
from apollo.config import LOG_FORMAT, load_settings
from apollo.errors import ApiError
from apollo.schemas import LessonDetail, LessonStatus
from apollo.utils import get_background_loop
from apollo.viewer import (
    SectionRenderer,
    exercise_markdown,
    get_content_css,
    get_exercise_css,
    hint_button_label,
    render_exercise,
    render_review_questions,
)

settings = load_settings()
logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

STATUS_INDICATORS = {
    LessonStatus.COMPLETED: "✓",
    LessonStatus.IN_PROGRESS: "→",
    LessonStatus.NOT_STARTED: "○",
}

st.set_page_config(
    page_title="Apollo",
    page_icon="📘",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "loop" not in st.session_state:
        st.session_state.loop = get_background_loop()

    if "client" not in st.session_state:
        st.session_state.client = CourseApiClient.from_settings(settings)
        st.session_state.views = ProgressViews(st.session_state.client)

    if "renderer" not in st.session_state:
        st.session_state.renderer = SectionRenderer()

    if "topics" not in st.session_state:
        try:
            st.session_state.topics = run(st.session_state.client.fetch_topics())
            st.session_state.load_error = None
        except ApiError as e:
            logger.error(f"Could not load topics: {e}")
            st.session_state.topics = []
            st.session_state.load_error = str(e)

    if "course" not in st.session_state:
        st.session_state.course = None


def run(coro):
    """Run a coroutine on the background loop and wait for it."""
    return st.session_state.loop.run(coro)


def open_topic(topic_id: str):
    course = CourseSession(st.session_state.client, topic_id, views=st.session_state.views)
    try:
        run(course.load())
    except ApiError as e:
        logger.error(f"Could not load topic {topic_id}: {e}")
        st.session_state.load_error = str(e)
        st.session_state.course = None
        return
    st.session_state.load_error = None
    st.session_state.course = course


# -----------------------------------------------------------------------------
# Sidebar: Module Tree
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with topic picker, module tree and progress."""
    st.sidebar.title("📘 Apollo")

    topics = st.session_state.topics
    if not topics:
        st.sidebar.error("No topics available. Is the course API running?")
        return

    titles = {t.id: t.title for t in topics}
    current = st.session_state.course.topic_id if st.session_state.course else None
    ids = list(titles)
    topic_id = st.sidebar.selectbox(
        "Topic",
        ids,
        index=ids.index(current) if current in titles else 0,
        format_func=lambda tid: titles[tid],
    )
    if topic_id != current:
        open_topic(topic_id)

    render_progress_summary()

    if st.session_state.course:
        render_module_tree()


def render_progress_summary():
    try:
        summary = run(st.session_state.views.summary())
    except ApiError as e:
        st.sidebar.caption(f"Progress unavailable: {e}")
        return

    st.sidebar.markdown(
        f"**Progress:** {summary.completed_lessons}/{summary.total_lessons} lessons "
        f"({summary.completion_percentage:.0f}%)"
    )
    st.sidebar.progress(min(max(summary.completion_percentage / 100, 0.0), 1.0))
    st.sidebar.divider()


def render_module_tree():
    """Render modules and lessons with status indicators."""
    course = st.session_state.course
    active_module = course.index.module_of(course.active_lesson_id or "")

    for mod in course.index.modules:
        completed, total = course.module_progress(mod.id)
        with st.sidebar.expander(f"**{mod.title}** ({completed}/{total})", expanded=mod.id == active_module):
            for lesson in mod.lessons:
                indicator = STATUS_INDICATORS[course.lesson_status(lesson.id)]
                is_active = lesson.id == course.active_lesson_id
                label = lesson.title[:30] + "..." if len(lesson.title) > 30 else lesson.title
                if st.button(
                    f"{indicator} {label}",
                    key=f"lesson_{lesson.id}",
                    type="primary" if is_active else "secondary",
                    use_container_width=True,
                ):
                    select_lesson(lesson.id)


def select_lesson(lesson_id: str):
    """Select a lesson and update state."""
    st.session_state.course.select_lesson(lesson_id)
    st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Lesson View
# -----------------------------------------------------------------------------

async def prepare_lesson(renderer: SectionRenderer, lesson: LessonDetail):
    await asyncio.gather(
        *(renderer.prepare(section) for section in lesson.content),
        *(renderer.prepare_markdown(text) for text in exercise_markdown(lesson)),
    )


def render_lesson_view():
    """Render the main lesson content."""
    if st.session_state.load_error:
        st.error(st.session_state.load_error)
        return

    course = st.session_state.course
    if not course:
        st.info("Select a topic from the sidebar to begin.")
        return

    lesson_id = course.active_lesson_id
    if not lesson_id:
        st.info("This topic has no lessons yet.")
        return

    try:
        lesson = run(course.lesson(lesson_id))
        run(course.refresh_progress())
    except ApiError as e:
        st.error(f"Could not load lesson: {e}")
        return

    renderer = st.session_state.renderer
    # Whatever is not rendered in time shows as plain code or a loading panel
    st.session_state.loop.wait(prepare_lesson(renderer, lesson), timeout=settings.render_wait)

    render_navigation_bar(lesson_id)

    st.title(lesson.title)
    if lesson.estimated_minutes:
        st.caption(f"{lesson.estimated_minutes} min")

    concepts = course.index.concepts_for(lesson_id)
    if concepts:
        st.caption("Concepts: " + ", ".join(c.name for c in concepts))

    st.markdown(get_content_css(), unsafe_allow_html=True)
    views = [renderer.render_cached(section) for section in lesson.content]
    for view in views:
        st.markdown(view.html, unsafe_allow_html=True)

    if any(view.is_loading for view in views):
        if st.button("Content still rendering, refresh"):
            st.rerun()

    render_exercise_section(lesson)
    render_review_section(lesson)
    render_progress_section()


def render_navigation_bar(lesson_id: str):
    """Render navigation bar with prev/next buttons."""
    course = st.session_state.course
    pos, total = course.index.position(lesson_id)
    nav = course.navigation()

    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if nav.prev:
            if st.button(f"← {nav.prev.title}", use_container_width=True):
                select_lesson(nav.prev.id)

    with col2:
        st.markdown(f"<center>Lesson {pos} of {total}</center>", unsafe_allow_html=True)

    with col3:
        if nav.next:
            if st.button(f"{nav.next.title} →", use_container_width=True):
                select_lesson(nav.next.id)

    st.divider()


def render_exercise_section(lesson: LessonDetail):
    """Render exercises with one-at-a-time hints."""
    if not lesson.exercises:
        return

    course = st.session_state.course
    renderer = st.session_state.renderer

    st.divider()
    st.subheader("Exercises")
    st.markdown(get_exercise_css(), unsafe_allow_html=True)

    for i, exercise in enumerate(lesson.exercises):
        state = course.hints.state_for(i, len(exercise.hints))
        st.markdown(
            render_exercise(exercise, i, state, code_lookup=renderer.code_lookup),
            unsafe_allow_html=True,
        )
        if state.has_more:
            if st.button(hint_button_label(state), key=f"hint_{lesson.id}_{i}"):
                state.reveal()
                st.rerun()


def render_review_section(lesson: LessonDetail):
    if not lesson.review_questions:
        return
    st.divider()
    st.markdown(render_review_questions(lesson.review_questions), unsafe_allow_html=True)


def render_progress_section():
    """Render completion status and notes of the active lesson."""
    controller = st.session_state.course.controller
    if controller is None:
        return

    st.divider()
    st.subheader("Progress")

    current = controller.current()
    if current.is_completed:
        st.success("Completed")
        if st.button("Mark as incomplete"):
            run(controller.set_status(LessonStatus.IN_PROGRESS))
            st.rerun()
    else:
        if st.button("Mark Complete", type="primary", use_container_width=True):
            run(controller.mark_complete())
            st.rerun()

    notes = st.text_area(
        "Notes",
        value=current.notes,
        placeholder="Add your notes for this lesson...",
        key=f"notes_{controller.lesson_id}",
    )
    if notes != current.notes:
        controller.edit_notes(notes)

    col1, col2 = st.columns([1, 4])
    with col1:
        if st.button("Save Notes", disabled=controller.save_state == SaveState.SAVING):
            run(controller.save_notes(notes))
            st.rerun()
    with col2:
        if controller.save_state == SaveState.SAVED:
            st.markdown("Saved")

    if controller.error:
        st.error(controller.error)
        if st.button("Dismiss"):
            controller.dismiss_error()
            st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    render_lesson_view()


if __name__ == "__main__":
    main()
