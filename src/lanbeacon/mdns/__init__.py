"""Multicast DNS service discovery engine."""

from .agent import Agent, MappedEndpoints, SharedEndpoints
from .catalog import DNS_ENUMERATION_SERVICE_NAME, get_service_description
from .channel import Channel, ChannelError
from .fingerprint import Fingerprint
from .models import Endpoint, Service
from .question import Question
from .records import Properties

__all__ = [
    "Agent",
    "Channel",
    "ChannelError",
    "DNS_ENUMERATION_SERVICE_NAME",
    "Endpoint",
    "Fingerprint",
    "MappedEndpoints",
    "Properties",
    "Question",
    "Service",
    "SharedEndpoints",
    "get_service_description",
]
