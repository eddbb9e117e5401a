"""
Request/acknowledge primitives shared by the gateway and the transports.

Every inbound request is seen through a `RequestContext`: a payload plus two
terminal actions, ack (handled, consume the message) and nack (failed, let the
transport drop or requeue it). `extract_data` wraps a context so that exactly
one of the two actions reaches the transport.
"""
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Protocol, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACK = "ack"
NACK = "nack"


class RequestContext(Protocol):
    @property
    def data(self) -> Any: ...

    def ack(self) -> None: ...

    def nack(self) -> None: ...


class RequestClient(Protocol):
    """Caller side of the request/response contract."""

    async def send(self, pattern: str, data: Any) -> Any: ...


@dataclass
class ExtractedData(Generic[T]):
    data: T
    _context: RequestContext = field(repr=False)
    _outcome: Optional[str] = field(default=None, repr=False)

    @property
    def outcome(self) -> Optional[str]:
        return self._outcome

    def ack(self) -> None:
        self._settle(ACK)

    def nack(self) -> None:
        self._settle(NACK)

    def _settle(self, outcome: str) -> None:
        if self._outcome is not None:
            logger.warning(
                "Ignoring %s: request already settled with %s", outcome, self._outcome
            )
            return
        # mark first so a failing transport call cannot lead to a second settle
        self._outcome = outcome
        if outcome == ACK:
            self._context.ack()
        else:
            self._context.nack()


def extract_data(context: RequestContext) -> ExtractedData[Any]:
    """Split an inbound request into its payload and a settle-once ack/nack handle."""
    return ExtractedData(data=context.data, _context=context)


class LocalMessage:
    """In-process request context that records how it was settled."""

    def __init__(self, data: Any):
        self._data = data
        self.acks = 0
        self.nacks = 0

    @property
    def data(self) -> Any:
        return self._data

    def ack(self) -> None:
        self.acks += 1

    def nack(self) -> None:
        self.nacks += 1

    @property
    def outcome(self) -> Optional[str]:
        if self.acks:
            return ACK
        if self.nacks:
            return NACK
        return None
