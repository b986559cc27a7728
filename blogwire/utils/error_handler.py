"""
Error types and logging utilities shared by every blog dialect.

Every failure the library reports carries one of the ErrorType kinds:
- TRANSPORT: the remote call itself failed (network, HTTP status, RPC fault)
- PARSING: a response arrived but did not have the expected shape
- AUTHENTICATION: credentials were rejected or could not be obtained
- NOT_SUPPORTED: the dialect does not implement the requested operation
- OTHER: anything else, including completions for unknown call tokens
"""

import logging
import time
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, Optional
import requests
from requests.exceptions import RequestException, Timeout, ConnectionError, HTTPError


class ErrorType(Enum):
    """Kinds of error reported through the error notifications."""

    TRANSPORT = "TransportError"
    PARSING = "ParsingError"
    AUTHENTICATION = "AuthenticationError"
    NOT_SUPPORTED = "NotSupported"
    OTHER = "Other"


class BlogError(Exception):
    """Base exception for blog client errors."""

    error_type = ErrorType.OTHER

    def __init__(
        self,
        message: str,
        dialect: str = None,
        title: str = None,
        error_code: str = None,
        retry_after: int = None,
    ):
        super().__init__(message)
        self.message = message
        self.dialect = dialect
        self.title = title
        self.error_code = error_code
        self.retry_after = retry_after


class TransportError(BlogError):
    """Exception raised when a remote call fails on the wire or with a fault."""

    error_type = ErrorType.TRANSPORT


class RateLimitError(TransportError):
    """Exception raised when the server asks us to slow down."""

    pass


class ParsingError(BlogError):
    """Exception raised when a response does not have the expected shape."""

    error_type = ErrorType.PARSING


class AuthenticationError(BlogError):
    """Exception raised for authentication-related errors."""

    error_type = ErrorType.AUTHENTICATION


class NotSupportedError(BlogError):
    """Exception raised for operations a dialect does not implement."""

    error_type = ErrorType.NOT_SUPPORTED


class UnknownTokenError(BlogError):
    """Exception raised when a completion arrives for a token with no call record."""

    pass


class DuplicateCallError(BlogError):
    """Exception raised when an object already has an outstanding call of the same kind."""

    pass


class ErrorHandler:
    """
    Logs call failures and successes for a blog client in a uniform format.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance. If None, creates a new logger.
        """
        self.logger = logger or logging.getLogger(__name__)

    def log_call_error(
        self,
        error: Exception,
        dialect: str,
        title: str = None,
        operation: str = None,
        additional_context: Dict = None,
    ) -> None:
        """
        Log detailed information about a failed remote call.

        Args:
            error: The exception that occurred
            dialect: Dialect name of the client that issued the call
            title: Title of the post, media or comment involved (if any)
            operation: The operation being performed (create, fetch, ...)
            additional_context: Additional context information
        """
        error_details = {
            "dialect": dialect,
            "title": title or "Unknown",
            "operation": operation or "Unknown",
            "error_type": getattr(error, "error_type", ErrorType.OTHER).value,
            "error_message": str(error),
        }

        if additional_context:
            error_details.update(additional_context)

        if getattr(error, "error_code", None):
            error_details["error_code"] = error.error_code

        self.logger.error(
            f"Call error on {dialect}: {operation} failed for '{title}' - {str(error)}",
            extra={"error_details": error_details},
        )

    def log_authentication_error(
        self, dialect: str, error_message: str = None
    ) -> None:
        """
        Log authentication errors with guidance on which settings to check.

        Args:
            dialect: Dialect name where authentication failed
            error_message: Optional specific error message
        """
        base_message = f"Authentication failed for {dialect}"

        if error_message:
            full_message = f"{base_message}: {error_message}"
        else:
            full_message = base_message

        guidance = self._get_authentication_guidance(dialect)

        self.logger.error(f"{full_message}. {guidance}")

    def log_rate_limit_error(
        self, dialect: str, retry_after: int = None, title: str = None
    ) -> None:
        """
        Log rate limiting errors with retry information.

        Args:
            dialect: Dialect name where rate limiting occurred
            retry_after: Seconds to wait before retrying (if provided by the server)
            title: Title of the object being processed
        """
        if retry_after:
            message = f"Rate limit exceeded on {dialect} for '{title}'. Retry after {retry_after} seconds."
        else:
            message = f"Rate limit exceeded on {dialect} for '{title}'. Using exponential backoff."

        self.logger.warning(message)

    def log_success(
        self,
        dialect: str,
        title: str,
        action: str,
        object_id: str = None,
        additional_info: Dict = None,
    ) -> None:
        """
        Log a successfully completed operation.

        Args:
            dialect: Dialect name where the operation succeeded
            title: Title of the post, media or comment
            action: Action performed (created, modified, fetched, removed)
            object_id: Server-side id of the object (if available)
            additional_info: Additional information to log
        """
        base_message = f"SUCCESS: {action.capitalize()} '{title}' on {dialect}"

        if object_id:
            base_message += f" (ID: {object_id})"

        if additional_info:
            details = ", ".join([f"{k}: {v}" for k, v in additional_info.items()])
            base_message += f" - {details}"

        self.logger.info(base_message)

    def _get_authentication_guidance(self, dialect: str) -> str:
        """
        Get dialect-specific authentication guidance.

        Args:
            dialect: Dialect name

        Returns:
            Guidance message for authentication setup
        """
        guidance_map = {
            "gdata": (
                "Please check BLOGWIRE_USERNAME and BLOGWIRE_PASSWORD. "
                "GData expects the full Google account e-mail address as username"
            ),
            "livejournal": (
                "Please check BLOGWIRE_USERNAME and BLOGWIRE_PASSWORD "
                "for your LiveJournal account"
            ),
        }

        return guidance_map.get(
            dialect.lower(),
            f"Please check the username, password and XML-RPC endpoint for {dialect}",
        )


def error_for_status(
    status: int,
    reason: str,
    dialect: str,
    title: str = None,
    retry_after: str = None,
) -> BlogError:
    """
    Build the exception matching an unsuccessful HTTP status.

    Args:
        status: HTTP status code (400 or above)
        reason: Reason phrase or short response excerpt
        dialect: Dialect name
        title: Title of the object being processed
        retry_after: Raw Retry-After header value, if any

    Returns:
        AuthenticationError for 401/403, RateLimitError for 429,
        TransportError otherwise
    """
    if status in [401, 403]:
        return AuthenticationError(
            f"Authentication failed for {dialect}: {reason}",
            dialect=dialect,
            title=title,
            error_code=str(status),
        )

    if status == 429:
        retry_seconds = None
        if retry_after:
            try:
                retry_seconds = int(retry_after)
            except ValueError:
                pass
        return RateLimitError(
            f"Rate limit exceeded on {dialect}",
            dialect=dialect,
            title=title,
            error_code=str(status),
            retry_after=retry_seconds,
        )

    return TransportError(
        f"HTTP error on {dialect}: {status} {reason}".rstrip(),
        dialect=dialect,
        title=title,
        error_code=str(status),
    )


def with_retry_and_rate_limiting(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
):
    """
    Decorator for retrying synchronous requests with exponential backoff.

    Only used around blocking helper requests (such as obtaining an
    authentication token); remote blog operations are never retried.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        backoff_factor: Multiplier for exponential backoff
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            error_handler = ErrorHandler()
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except RateLimitError as e:
                    last_exception = e

                    if attempt == max_retries:
                        break

                    if e.retry_after:
                        delay = min(e.retry_after, max_delay)
                    else:
                        delay = min(base_delay * (backoff_factor**attempt), max_delay)

                    error_handler.logger.info(
                        f"Rate limit hit, retrying in {delay} seconds (attempt {attempt + 1}/{max_retries + 1})"
                    )
                    time.sleep(delay)

                except (ConnectionError, Timeout) as e:
                    last_exception = e

                    if attempt == max_retries:
                        break

                    delay = min(base_delay * (backoff_factor**attempt), max_delay)
                    error_handler.logger.info(
                        f"Network error, retrying in {delay} seconds (attempt {attempt + 1}/{max_retries + 1}): {str(e)}"
                    )
                    time.sleep(delay)

            raise last_exception

        return wrapper

    return decorator


def handle_api_response(
    response: requests.Response,
    dialect: str,
    operation: str,
    title: str = None,
) -> str:
    """
    Check a synchronous HTTP response and return its body text.

    Args:
        response: HTTP response object
        dialect: Dialect name
        operation: Operation being performed
        title: Title of the object being processed

    Returns:
        The response body as text

    Raises:
        AuthenticationError: For authentication-related errors (401, 403)
        RateLimitError: For rate limiting errors (429)
        TransportError: For other HTTP errors
    """
    error_handler = ErrorHandler()

    try:
        response.raise_for_status()
        return response.text

    except HTTPError:
        error = error_for_status(
            response.status_code,
            (response.text or response.reason or "")[:200],
            dialect,
            title,
            response.headers.get("Retry-After"),
        )

        if isinstance(error, AuthenticationError):
            error_handler.log_authentication_error(dialect, str(error))
        elif isinstance(error, RateLimitError):
            error_handler.log_rate_limit_error(dialect, error.retry_after, title)
        else:
            error_handler.log_call_error(error, dialect, title, operation)

        raise error


def wrap_request_exception(
    error: RequestException, dialect: str, title: str = None
) -> TransportError:
    """Convert a requests exception into a TransportError."""
    return TransportError(
        f"Request to {dialect} failed: {str(error)}", dialect=dialect, title=title
    )
