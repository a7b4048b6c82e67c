# shortcuts for the bridge services
from approvalbridge.services.approval.gateway import ApprovalGateway
from approvalbridge.services.channel.poller import ChannelPoller
from approvalbridge.services.continuations.registry import CorrelationRegistry
from approvalbridge.services.continuations.sequencer import SideEffectSequencer

__all__ = ["ApprovalGateway", "ChannelPoller", "CorrelationRegistry", "SideEffectSequencer"]
