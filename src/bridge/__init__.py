"""
Message bridge between the UI process and the host process.

UI side: UIBridge (1:N handler fan-out, request/timeout correlation).
Host side: HostChannel (1:1 command dispatch, error envelopes).
"""

from .host_channel import HostChannel, UnknownMessageTypeError
from .server import HostServer, connect_ui
from .transport import InProcessChannel, Transport, TransportClosed, WebSocketTransport
from .ui_bridge import UIBridge

__all__ = [
    "HostChannel",
    "HostServer",
    "InProcessChannel",
    "Transport",
    "TransportClosed",
    "UIBridge",
    "UnknownMessageTypeError",
    "WebSocketTransport",
    "connect_ui",
]
