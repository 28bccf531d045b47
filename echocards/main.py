"""
Main Streamlit application entry point with navigation and session state management.
"""

import os
from typing import Optional

import streamlit as st

from echocards.services.backup.backup_service import BackupService
from echocards.services.config_service import ConfigService
from echocards.services.storage.json_store import JSONFileStorage
from echocards.utils.error_handler import error_handler, handle_exceptions, safe_execute
from echocards.utils.logging_config import get_log_summary, get_logger, setup_application_logging
from echocards.utils.notifications import get_notification_manager, render_notifications

# Initialize logging system
data_path = os.getenv("DATA_PATH", "data")
setup_application_logging(data_path=data_path)
logger = get_logger(__name__)


class AppState:
    """Manages application state and session data."""

    def __init__(self):
        """Initialize application state."""
        self.config_service: Optional[ConfigService] = None
        self.storage: Optional[JSONFileStorage] = None
        self.backup_service: Optional[BackupService] = None
        self.initialization_error: Optional[str] = None

        self.notification_manager = get_notification_manager()

    @handle_exceptions(context="Service Initialization", show_to_user=True)
    def initialize_services(self, data_path: str = "data") -> None:
        """Initialize all application services."""
        try:
            self.config_service = ConfigService(data_path)
            self.storage = JSONFileStorage(data_path)
            self.backup_service = BackupService(self.storage, self.config_service)

            # Initialize default configuration if needed
            self.config_service.initialize_default_config()

            logger.info("Application services initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize services: {e}")
            self.initialization_error = str(e)
            self.notification_manager.error(f"Failed to initialize application: {e}")
            raise

    def has_initialization_error(self) -> bool:
        """Check if there was an initialization error."""
        return self.initialization_error is not None


def get_app_state() -> AppState:
    """Get or create application state from session state."""
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()
        st.session_state.app_state.initialize_services(data_path)

    return st.session_state.app_state


def setup_page_config() -> None:
    """Configure Streamlit page settings."""
    st.set_page_config(
        page_title="EchoCards",
        page_icon="🗂️",
        layout="centered",
        initial_sidebar_state="expanded",
    )


def render_sidebar() -> None:
    """Render a summary of the stored data set in the sidebar."""
    st.sidebar.title("🗂️ EchoCards")

    app_state = get_app_state()
    if not app_state.storage:
        return

    st.sidebar.subheader("📊 Stored Data")
    counts = safe_execute(
        lambda: (len(app_state.storage.get_decks()), len(app_state.storage.get_cards())),
        context="Stored Data",
        show_to_user=False,
    )
    if counts is None:
        st.sidebar.caption("Stored data could not be read")
        return

    st.sidebar.metric("Decks", counts[0])
    st.sidebar.metric("Cards", counts[1])


def render_log_summary() -> None:
    """Show log file sizes in the sidebar."""
    summary = get_log_summary()
    if not summary:
        return

    with st.sidebar.expander("🪵 Logs"):
        st.caption(summary["log_directory"])
        for name, size in summary["files"].items():
            st.text(f"{name}: {size / 1024:.1f} KB")
        st.text(f"Total: {summary['total_size'] / 1024:.1f} KB")


def render_messages() -> None:
    """Render notifications and initialization errors."""
    app_state = get_app_state()

    render_notifications()

    if app_state.has_initialization_error():
        st.error(f"Application initialization failed: {app_state.initialization_error}")
        st.info("Please check the logs and try refreshing the page.")


@handle_exceptions(context="Main Application", show_to_user=True)
def main() -> None:
    """Main application entry point."""
    try:
        setup_page_config()
        get_app_state()
        render_sidebar()
        render_log_summary()
        render_messages()

        from echocards.pages.backup import show_backup_page

        show_backup_page()

    except Exception as e:
        logger.error(f"Application error: {e}")
        st.error("A critical application error occurred. Please check the logs for details.")

        # Show error statistics in sidebar for debugging
        if st.sidebar.button("Show Error Details"):
            st.sidebar.json(error_handler.get_error_stats())


if __name__ == "__main__":
    main()
