"""Shared enumerations for the Fixlify automation service.

Cross-cutting enums used by application and infrastructure (communication
log rows). Workflow-specific enums live in fixlify.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class CommunicationChannel(_ValuesMixin, str, Enum):
    """Channel of an outbound message recorded in the communication log."""

    SMS = "sms"
    EMAIL = "email"


class CommunicationDirection(_ValuesMixin, str, Enum):
    """Direction of a logged communication."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"


class CommunicationStatus(_ValuesMixin, str, Enum):
    """Outcome of one dispatch attempt."""

    SENT = "sent"
    FAILED = "failed"
    SIMULATED = "simulated"
