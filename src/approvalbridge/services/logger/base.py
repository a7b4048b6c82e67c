from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True)
class LogContext:
    key: Optional[str] = None
    event_id: Optional[int] = None
    step: Optional[str] = None

    def as_extra(self) -> Mapping[str, Any]:
        # Only include non-None fields; logging.Formatter will lookup keys by name.
        return {k: v for k, v in self.__dict__.items() if v is not None}


class LoggerService(Protocol):
    """Contract used by the rest of the system (container, poller, gateway)."""

    def base(self) -> logging.Logger: ...
    def for_namespace(self, ns: str) -> logging.Logger: ...
    def with_context(self, logger: logging.Logger, ctx: LogContext) -> logging.Logger: ...

    def for_poller(self) -> logging.Logger: ...
    def for_gateway(self) -> logging.Logger: ...
    def for_sequencer(self) -> logging.Logger: ...
    def for_key(self, key: str) -> logging.Logger: ...
