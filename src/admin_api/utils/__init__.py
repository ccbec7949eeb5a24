"""Utility functions."""

from admin_api.utils.logging import (
    get_logger,
    get_request_id,
    log_error,
    log_lead_event,
    log_request,
    set_request_id,
    set_source_table,
    set_staff_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "set_staff_id",
    "set_source_table",
    "log_request",
    "log_error",
    "log_lead_event",
]
