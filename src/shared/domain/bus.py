"""Ports for in-process event delivery.

Events reach handlers only through the outbox relay, after the write that
produced them has committed.  A handler that raises marks its outbox row
as failed, so handlers must tolerate being called again for the same
event.
"""

from __future__ import annotations

from typing import Generic, List, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Deliver *event* to the handlers subscribed to its exact class."""
        ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None:
        """Register *handler*; subscribing the same handler twice is a no-op."""
        ...

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]: ...
