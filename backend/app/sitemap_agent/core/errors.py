"""
Error taxonomy for the site map agent.

Resolution misses are never exceptions; these are raised only by
caller-facing operations once every fallback has been exhausted.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorType(str, Enum):
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    NAVIGATION_FAILED = "NAVIGATION_FAILED"
    ASSERTION_FAILED = "ASSERTION_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


ERROR_MESSAGES = {
    ErrorType.ELEMENT_NOT_FOUND: "Element not found: {}",
    ErrorType.TIMEOUT: "Timed out: {}",
    ErrorType.NAVIGATION_FAILED: "Navigation failed: {}",
    ErrorType.ASSERTION_FAILED: "Assertion failed: {}",
    ErrorType.NETWORK_ERROR: "Network error: {}",
    ErrorType.VALIDATION_ERROR: "Validation error: {}",
}


def create_error_message(
    error_type: ErrorType,
    details: str,
    context: Optional[Dict[str, Any]] = None
) -> str:
    """Build a user-facing message, with optional key: value context"""
    message = ERROR_MESSAGES.get(error_type, "{}").format(details)
    if context:
        context_str = ", ".join(f"{key}: {value}" for key, value in context.items())
        message += f" ({context_str})"
    return message


class SiteMapAgentError(Exception):
    """Base error carrying an ErrorType code and context"""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorType] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context or {}


class LocatorError(SiteMapAgentError):
    """An element could not be located or acted upon"""


class LocatorNotFoundError(LocatorError):
    """A natural-language description never resolved to an element"""

    def __init__(self, description: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            create_error_message(ErrorType.ELEMENT_NOT_FOUND, description),
            code=ErrorType.ELEMENT_NOT_FOUND,
            context=context
        )
        self.description = description


class SiteMapNotFoundError(SiteMapAgentError):
    """No persisted site map exists"""

    def __init__(self, path: Optional[str] = None):
        message = "Site map has not been generated. Build it before running tests"
        if path:
            message += f" (expected at {path})"
        super().__init__(message, code=ErrorType.VALIDATION_ERROR, context={"path": path})


class MenuPathNotFoundError(SiteMapAgentError):
    """A menu label sequence does not resolve to a path"""

    def __init__(self, labels):
        super().__init__(
            create_error_message(ErrorType.NAVIGATION_FAILED, " > ".join(labels)),
            code=ErrorType.NAVIGATION_FAILED,
            context={"labels": list(labels)}
        )
        self.labels = list(labels)


class NavigationFailedError(SiteMapAgentError):
    """Navigation succeeded but a post-condition did not hold"""

    def __init__(self, details: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            create_error_message(ErrorType.NAVIGATION_FAILED, details, context),
            code=ErrorType.NAVIGATION_FAILED,
            context=context
        )


class ConfigurationError(SiteMapAgentError):
    """Required configuration is missing"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=ErrorType.VALIDATION_ERROR, context=context)


async def execute_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay_ms: int = 1000,
    error_message: Optional[str] = None
) -> T:
    """
    Run an async callable until it succeeds or max_retries is reached.

    The delay between attempts is fixed. The last error is attached
    to the raised LocatorError's context.
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            last_error = e
            logger.warning(f"Retry {attempt}/{max_retries} failed: {e}")
            if attempt < max_retries:
                await asyncio.sleep(delay_ms / 1000)

    message = error_message or f"Exceeded maximum retries ({max_retries})"
    raise LocatorError(
        message,
        code=ErrorType.TIMEOUT,
        context={"last_error": str(last_error) if last_error else None}
    )
