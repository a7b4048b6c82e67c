from __future__ import annotations

from dataclasses import dataclass

from approvalbridge.config.config import AppSettings
from approvalbridge.contracts.services.channel import ApprovalChannel
from approvalbridge.plugins.billing.lookup import BillingLookupClient
from approvalbridge.plugins.channel.adapters.telegram import TelegramChannelAdapter
from approvalbridge.services.approval.gateway import ApprovalGateway
from approvalbridge.services.channel.cursor import EventCursor
from approvalbridge.services.channel.poller import ChannelPoller
from approvalbridge.services.continuations.registry import CorrelationRegistry
from approvalbridge.services.continuations.sequencer import SideEffectSequencer
from approvalbridge.services.logger.std import LoggingConfig, StdLoggerService


@dataclass
class ApprovalContainer:
    """
    Everything one process shares across requests.

    The cursor and the registry are the only mutable shared state; both live
    here instead of at module level so tests can build isolated containers
    around a fake channel. `channel` (and everything that needs it) is None
    when Telegram credentials are not configured.
    """

    settings: AppSettings
    logger: StdLoggerService
    registry: CorrelationRegistry
    cursor: EventCursor
    channel: ApprovalChannel | None = None
    sequencer: SideEffectSequencer | None = None
    poller: ChannelPoller | None = None
    gateway: ApprovalGateway | None = None
    billing: BillingLookupClient | None = None

    async def start(self) -> None:
        if self.poller is not None and not self.poller.running:
            self.poller.start()

    async def aclose(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
        # release anyone still waiting; their waits return Timeout
        for key in self.registry.pending_keys():
            self.registry.unregister(key)
        if self.channel is not None:
            await self.channel.aclose()
        if self.billing is not None:
            await self.billing.aclose()
        self.logger.shutdown()


def build_container(
    cfg: AppSettings,
    *,
    channel: ApprovalChannel | None = None,
    logger: StdLoggerService | None = None,
    billing: BillingLookupClient | None = None,
) -> ApprovalContainer:
    """
    Wire the bridge. Pass `channel` / `billing` to override the real clients (tests, dev).
    """
    logger = logger or StdLoggerService.build(LoggingConfig.from_cfg(cfg))

    if channel is None and cfg.telegram.configured:
        channel = TelegramChannelAdapter(
            cfg.telegram.bot_token.get_secret_value(),
            cfg.telegram.chat_id,
            api_base=cfg.telegram.api_base,
            request_timeout_s=cfg.telegram.request_timeout_s,
        )

    registry = CorrelationRegistry()
    cursor = EventCursor()
    container = ApprovalContainer(
        settings=cfg,
        logger=logger,
        registry=registry,
        cursor=cursor,
        billing=billing
        or BillingLookupClient(
            cfg.billing.lookup_url,
            timeout_seconds=cfg.billing.timeout_s,
            user_agent=cfg.billing.user_agent,
        ),
    )

    if channel is None:
        logger.base().warning(
            "Telegram credentials not configured; approval endpoints are disabled."
        )
        return container

    approval = cfg.approval
    container.channel = channel
    container.sequencer = SideEffectSequencer(
        channel,
        ack_template=approval.ack_template,
        confirm_template=approval.confirm_template,
        logger=logger.for_sequencer(),
    )
    container.poller = ChannelPoller(
        channel=channel,
        cursor=cursor,
        registry=registry,
        batch_limit=approval.batch_limit,
        wait_window_s=approval.wait_window_s,
        backoff_s=approval.backoff_s,
        logger=logger.for_poller(),
    )
    container.gateway = ApprovalGateway(
        registry=registry,
        sequencer=container.sequencer,
        default_timeout_s=approval.timeout_s,
        logger=logger.for_gateway(),
    )
    return container
