"""FastAPI dependencies (composition root)."""

from fixlify.api.v1.dependencies.automation import (
    build_workflow_runner,
    get_email_dispatcher,
    get_email_layout,
    get_http_client,
    get_poll_use_case,
    get_process_trigger_use_case,
    get_sms_dispatcher,
    get_uow_factory,
    get_workflow_runner,
)
from fixlify.api.v1.dependencies.owner import Owner, get_owner, require_owner

__all__ = [
    "Owner",
    "build_workflow_runner",
    "get_email_dispatcher",
    "get_email_layout",
    "get_http_client",
    "get_owner",
    "get_poll_use_case",
    "get_process_trigger_use_case",
    "get_sms_dispatcher",
    "get_uow_factory",
    "get_workflow_runner",
    "require_owner",
]
