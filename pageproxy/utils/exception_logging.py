"""
Helpers for logging and formatting exceptions without ever raising from the
logging path itself. Exception groups are expanded into their sub-exceptions.
"""

import logging


def _safe_str(obj) -> str:
    """
    Convert an object to string, falling back to repr and then to the type
    name when __str__ or __repr__ are broken.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            try:
                return f"<{type(obj).__name__} object (string conversion failed)>"
            except Exception:
                return "<object (all string conversions failed)>"


def _safe_get_exceptions(exception_group) -> list:
    try:
        return list(exception_group.exceptions)
    except Exception:
        return []


def _sub_exceptions(exception) -> list:
    try:
        if exception is not None and hasattr(exception, "exceptions"):
            return _safe_get_exceptions(exception)
    except Exception:
        pass
    return []


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its details, one line per sub-exception for
    exception groups.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]", "[Fetch]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        safe_prefix = _safe_str(prefix) if prefix is not None else ""
        safe_exception_str = "None" if exception is None else _safe_str(exception)
        sub_exceptions = _sub_exceptions(exception)

        if sub_exceptions:
            try:
                logger.log(
                    level,
                    f"{safe_prefix} Exception with {len(sub_exceptions)} sub-exceptions: {safe_exception_str}",
                )
            except Exception:
                pass
            for i, sub_exc in enumerate(sub_exceptions):
                try:
                    sub_type = type(sub_exc).__name__
                    logger.log(
                        level,
                        f"{safe_prefix} Sub-exception {i+1}: {sub_type}: {_safe_str(sub_exc)}",
                        exc_info=sub_exc,
                    )
                except Exception:
                    continue
            return

        try:
            logger.log(
                level,
                f"{safe_prefix} Exception: {safe_exception_str}",
                exc_info=exception if exception is not None else False,
            )
        except Exception:
            # exc_info can fail on exotic exception objects
            try:
                logger.log(level, f"{safe_prefix} Exception: {safe_exception_str}")
            except Exception:
                pass
    except Exception:
        try:
            if logger is not None:
                logger.log(logging.ERROR, "Exception logging failed")
        except Exception:
            pass


def format_exception_message(exception: Exception) -> str:
    """
    Format an exception message for a client-facing error detail.

    An empty message falls back to the exception class name, so transport
    errors such as timeouts still produce something readable.
    """
    try:
        if exception is None:
            return "None"

        message = _safe_str(exception).strip()
        if not message:
            message = type(exception).__name__

        sub_exceptions = _sub_exceptions(exception)
        if sub_exceptions:
            parts = []
            for sub_exc in sub_exceptions:
                try:
                    parts.append(f"{type(sub_exc).__name__}: {_safe_str(sub_exc)}")
                except Exception:
                    parts.append("(formatting failed)")
            return f"{message} (Sub-exceptions: {'; '.join(parts)})"

        return message
    except Exception:
        try:
            return f"<{type(exception).__name__} (formatting failed)>"
        except Exception:
            return "<exception (all formatting failed)>"
