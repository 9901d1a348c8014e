"""Core data models."""

from tokenprism.core.models.events import NotificationEvent, TokenUpdateEvent, VolumeSpikeEvent
from tokenprism.core.models.page import PageResult
from tokenprism.core.models.token import NormalizedObservation, TokenRecord

__all__ = [
    "NormalizedObservation",
    "TokenRecord",
    "TokenUpdateEvent",
    "VolumeSpikeEvent",
    "NotificationEvent",
    "PageResult",
]
