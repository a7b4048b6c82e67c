__version__ = "0.1.0"

# Server
from .server.app_factory import create_app  # FastAPI app with the shared poller
from .server.container import ApprovalContainer, build_container

# Core bridge
from .services.approval.gateway import ApprovalGateway
from .services.channel.cursor import EventCursor
from .services.channel.poller import ChannelPoller
from .services.continuations.registry import CorrelationRegistry
from .services.continuations.sequencer import SideEffectSequencer

# Contracts
from .contracts.services.channel import ApprovalChannel, Button, Decision, ExternalEvent, Timeout
from .contracts.errors.errors import (
    ChannelFetchError,
    DuplicateKey,
    InvalidCursorMove,
    SequencerStepError,
)

# Client
from .server.clients.approval_client import ApprovalClient

__all__ = [
    # Server
    "create_app", "ApprovalContainer", "build_container",
    # Core bridge
    "ApprovalGateway", "EventCursor", "ChannelPoller", "CorrelationRegistry", "SideEffectSequencer",
    # Contracts
    "ApprovalChannel", "Button", "Decision", "ExternalEvent", "Timeout",
    "ChannelFetchError", "DuplicateKey", "InvalidCursorMove", "SequencerStepError",
    # Client
    "ApprovalClient",
]
