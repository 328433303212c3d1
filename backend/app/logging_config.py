"""Logging setup for the LocalPro backend."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once (safe to call repeatedly)."""
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level.upper())
    # Third-party clients are chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


_auth_logger = logging.getLogger("localpro.auth")
_action_logger = logging.getLogger("localpro.actions")


def log_auth_event(event: str, user_id: str | None, success: bool, detail: str | None = None) -> None:
    """Log an authentication outcome."""
    outcome = "ok" if success else "failed"
    msg = f"AUTH {event} | user={user_id} | {outcome}"
    if detail:
        msg += f" | {detail}"
    if success:
        _auth_logger.info(msg)
    else:
        _auth_logger.warning(msg)


def log_action_event(action: str, actor_id: str, success: bool, detail: str | None = None) -> None:
    """Log the outcome of a marketplace action invoked over HTTP."""
    outcome = "ok" if success else "failed"
    msg = f"ACTION {action} | actor={actor_id} | {outcome}"
    if detail:
        msg += f" | {detail}"
    if success:
        _action_logger.info(msg)
    else:
        _action_logger.warning(msg)
