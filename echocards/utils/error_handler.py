"""
Centralized error handling for the EchoCards backup application.
Provides consistent error handling, logging, and user-friendly error messages.
"""

import functools
import logging
from datetime import datetime
from typing import Any, Callable, Dict

import streamlit as st


class EchoCardsError(Exception):
    """Base exception class for the EchoCards application."""

    def __init__(self, message: str, error_code: str = None, recovery_suggestion: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "GENERAL_ERROR"
        self.recovery_suggestion = recovery_suggestion
        self.timestamp = datetime.now()


class ConfigurationError(EchoCardsError):
    """Raised when there are configuration-related issues."""
    pass


class DataValidationError(EchoCardsError):
    """Raised when data validation fails."""
    pass


class DataPersistenceError(EchoCardsError):
    """Raised when data storage/retrieval operations fail."""
    pass


class ExportError(EchoCardsError):
    """Raised when the data set cannot be exported."""
    pass


class ImportParseError(EchoCardsError):
    """Raised when an import file cannot be read or parsed."""

    def __init__(self, message: str = "Invalid JSON format", error_code: str = "INVALID_FORMAT",
                 recovery_suggestion: str = None):
        super().__init__(
            message,
            error_code,
            recovery_suggestion or "Select a valid EchoCards backup file (.json).",
        )


class ChecksumMismatchError(EchoCardsError):
    """Raised when a snapshot's embedded checksum does not match its content."""

    def __init__(self, message: str = "Checksum verification failed - data may be corrupted",
                 error_code: str = "CHECKSUM_MISMATCH", recovery_suggestion: str = None):
        super().__init__(
            message,
            error_code,
            recovery_suggestion or "Re-export the backup or import without checksum verification.",
        )


class OperationInProgressError(EchoCardsError):
    """Raised when a backup or restore is started while another one is running."""
    pass


class ErrorHandler:
    """Centralized error handler with logging and user notification capabilities."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._error_counts = {}
        self._last_errors = {}

    def handle_error(
        self,
        error: Exception,
        context: str = None,
        show_to_user: bool = True,
        log_level: int = logging.ERROR,
    ) -> None:
        """
        Handle an error with logging and optional user notification.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred
            show_to_user: Whether to show the error to the user in the UI
            log_level: Logging level for the error
        """
        error_key = f"{type(error).__name__}:{str(error)}"
        self._error_counts[error_key] = self._error_counts.get(error_key, 0) + 1
        self._last_errors[error_key] = datetime.now()

        log_message = f"Error in {context}: {str(error)}" if context else str(error)

        if isinstance(error, EchoCardsError):
            log_message += f" [Code: {error.error_code}]"
            if error.recovery_suggestion:
                log_message += f" [Recovery: {error.recovery_suggestion}]"

        self.logger.log(log_level, log_message, exc_info=True)

        if show_to_user:
            self._show_error_to_user(error, context)

    def _show_error_to_user(self, error: Exception, context: str = None) -> None:
        """Display error message to user in Streamlit interface."""
        if isinstance(error, EchoCardsError):
            error_message = error.message
            if error.recovery_suggestion:
                error_message += f"\n\n**Suggestion:** {error.recovery_suggestion}"
        else:
            error_message = f"An unexpected error occurred: {str(error)}"

        if context:
            error_message = f"**{context}:** {error_message}"

        st.error(error_message)

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics for monitoring."""
        return {
            "error_counts": self._error_counts.copy(),
            "last_errors": self._last_errors.copy(),
            "total_errors": sum(self._error_counts.values()),
        }

    def clear_error_stats(self) -> None:
        """Clear error statistics."""
        self._error_counts.clear()
        self._last_errors.clear()


# Global error handler instance
error_handler = ErrorHandler()


def handle_exceptions(
    context: str = None,
    show_to_user: bool = True,
    log_level: int = logging.ERROR,
    reraise: bool = False,
):
    """
    Decorator to handle exceptions in functions.

    Args:
        context: Context description for the error
        show_to_user: Whether to show error to user
        log_level: Logging level for the error
        reraise: Whether to reraise the exception after handling
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                func_context = context or f"{func.__module__}.{func.__name__}"
                error_handler.handle_error(e, func_context, show_to_user, log_level)
                if reraise:
                    raise
                return None
        return wrapper
    return decorator


def safe_execute(
    func: Callable,
    *args,
    context: str = None,
    default_return: Any = None,
    show_to_user: bool = True,
    **kwargs,
) -> Any:
    """
    Safely execute a function with error handling.

    Returns:
        Function result or default_return if function fails
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        func_context = context or f"{func.__module__}.{func.__name__}"
        error_handler.handle_error(e, func_context, show_to_user)
        return default_return

