"""
Events - Observable records emitted by the auction house.

Events are appended to an EventLog only after a call has fully
succeeded, so a failed call never leaves a partial trail. Subscribers
(keepers, dashboards, tests) receive each event synchronously.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Type, TypeVar


@dataclass(frozen=True)
class StartAuction:
    id: int
    time: int
    amount_to_sell: int
    amount_to_raise: int


@dataclass(frozen=True)
class BuyCollateral:
    id: int
    bidder: bytes
    time: int
    raised_amount: int
    sold_amount: int


@dataclass(frozen=True)
class SettleAuction:
    id: int
    time: int
    leftover_receiver: bytes
    leftover_collateral: int


@dataclass(frozen=True)
class TerminateAuctionPrematurely:
    id: int
    time: int
    leftover_receiver: bytes
    leftover_collateral: int


@dataclass(frozen=True)
class ParameterModified:
    parameter: str
    value: object


@dataclass(frozen=True)
class AuthorizationGranted:
    account: bytes


@dataclass(frozen=True)
class AuthorizationRevoked:
    account: bytes


E = TypeVar("E")


class EventLog:
    """
    Append-only event log with synchronous subscribers.
    """

    def __init__(self):
        self._events: List[object] = []
        self._subscribers: List[Callable[[object], None]] = []

    def emit(self, event: object) -> None:
        self._events.append(event)
        for callback in self._subscribers:
            callback(event)

    def emit_all(self, events: List[object]) -> None:
        for event in events:
            self.emit(event)

    def subscribe(self, callback: Callable[[object], None]) -> None:
        """Register a callback invoked for every future event."""
        self._subscribers.append(callback)

    def of_type(self, event_type: Type[E]) -> List[E]:
        """All recorded events of a given type, in emission order."""
        return [e for e in self._events if isinstance(e, event_type)]

    def last(self, event_type: Optional[type] = None):
        events = self._events if event_type is None else self.of_type(event_type)
        return events[-1] if events else None

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[object]:
        return iter(list(self._events))
