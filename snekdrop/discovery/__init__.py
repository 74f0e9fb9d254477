"""
Discovery Module - Locating the server on the LAN

A UDP broadcast handshake: the client asks, exactly one server answers.
"""

from .broadcast import (
    BroadcastDiscovery,
    DiscoveryMessage,
    DiscoveryResponder,
    answer_discovery,
)

__all__ = [
    'BroadcastDiscovery',
    'DiscoveryMessage',
    'DiscoveryResponder',
    'answer_discovery',
]
