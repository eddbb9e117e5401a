"""
Event logger utility for authentication events.
"""
from datetime import datetime, timezone
from typing import Optional
import sys
import logging
import os

logger = logging.getLogger("auth_events")


ALLOWED_EVENT_TYPES = {
    "register_success",
    "register_conflict",
    "register_failure",
    "login_success",
    "login_failure",
    "refresh_success",
    "refresh_failure",
}


def configure_event_logging(log_dir: Optional[str] = None) -> None:
    """
    Attach stdout and file handlers to the auth event logger.

    Args:
        log_dir: Directory for auth_events.log; file logging is skipped
                 if it cannot be created
    """
    log_dir = log_dir or os.getenv("LOG_DIR", "/app/logs")
    formatter = logging.Formatter("%(asctime)s %(levelname)s:%(message)s")

    # Create handlers list
    handlers = [logging.StreamHandler(sys.stdout)]

    # Try to add file handler, but continue without it if directory creation fails
    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, "auth_events.log")))
    except (OSError, PermissionError) as e:
        print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


def log_auth_event(
    event_type: str,
    subject: Optional[str] = None,
    metadata: Optional[dict] = None
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of ALLOWED_EVENT_TYPES
        subject: User id the event refers to, when known
        metadata: Optional dictionary of additional context (never credentials)

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    extra = " ".join(f"{key}={value}" for key, value in sorted((metadata or {}).items()))
    logger.info(
        "AUTH %s subject=%s timestamp=%s%s",
        event_type,
        subject or "-",
        datetime.now(timezone.utc).isoformat(),
        f" {extra}" if extra else "",
    )
