"""Session decorators for function protection.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from passgate.common.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)


def _resolve_session(source: Any, func: Callable, args: tuple) -> Any:
    """Turn a session, a session factory or an attribute name into a session."""
    if isinstance(source, str):
        # Attribute name - get from self
        if not args:
            error_msg = f"Cannot get session attribute '{source}' without self"
            raise ValueError(error_msg)
        return getattr(args[0], source)
    if hasattr(source, "is_authenticated"):
        return source
    if callable(source):
        if args and hasattr(args[0], func.__name__):
            try:
                return source(args[0])
            except TypeError:
                return source()
        return source()
    return source


def requires_authenticated(
    auth_session: Any | Callable[..., Any] | str,
    error_message: str = "Session is not authenticated",
    *,
    raise_exception: bool = True,
) -> Callable:
    """Decorator that runs the function only while the session is authenticated.

    Args:
        auth_session: AuthSession instance, callable returning one, or the
            name of an attribute on ``self`` holding one
        error_message: Message to use when the session is not authenticated
        raise_exception: Whether to raise NotAuthenticated or return None

    Returns:
        Decorated function
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            session = _resolve_session(auth_session, func, args)
            if not session.is_authenticated():
                if raise_exception:
                    raise NotAuthenticated(error_message)
                logger.warning("Session check failed: %s", error_message)
                return None
            return func(*args, **kwargs)

        return wrapper

    return decorator
