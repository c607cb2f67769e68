"""Domain request FSM — pure transition function, no I/O.

none → pending on reserve or connect_own; pending → active on activate,
pending → failed on reject; failed → pending on a retried reserve or
connect_own, failed → active on activate; active → failed on revocation;
pending or failed → none on cancel.

Repeating ``activate`` on active or ``reject`` on failed (and ``cancel``
on none) maps a state to itself; callers treat that as a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from linkhub.schemas.domain import DomainStatus


class DomainEvent(str, Enum):
    RESERVE = "reserve"
    CONNECT_OWN = "connect_own"
    ACTIVATE = "activate"
    REJECT = "reject"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Rejected:
    state: DomainStatus
    event: DomainEvent
    reason: str


_TRANSITIONS: dict[tuple[DomainStatus, DomainEvent], DomainStatus] = {
    (DomainStatus.NONE, DomainEvent.RESERVE): DomainStatus.PENDING,
    (DomainStatus.NONE, DomainEvent.CONNECT_OWN): DomainStatus.PENDING,
    (DomainStatus.NONE, DomainEvent.CANCEL): DomainStatus.NONE,
    (DomainStatus.PENDING, DomainEvent.ACTIVATE): DomainStatus.ACTIVE,
    (DomainStatus.PENDING, DomainEvent.REJECT): DomainStatus.FAILED,
    (DomainStatus.PENDING, DomainEvent.CANCEL): DomainStatus.NONE,
    (DomainStatus.ACTIVE, DomainEvent.ACTIVATE): DomainStatus.ACTIVE,
    (DomainStatus.ACTIVE, DomainEvent.REJECT): DomainStatus.FAILED,
    (DomainStatus.FAILED, DomainEvent.RESERVE): DomainStatus.PENDING,
    (DomainStatus.FAILED, DomainEvent.CONNECT_OWN): DomainStatus.PENDING,
    (DomainStatus.FAILED, DomainEvent.ACTIVATE): DomainStatus.ACTIVE,
    (DomainStatus.FAILED, DomainEvent.REJECT): DomainStatus.FAILED,
    (DomainStatus.FAILED, DomainEvent.CANCEL): DomainStatus.NONE,
}

_REASONS: dict[tuple[DomainStatus, DomainEvent], str] = {
    (DomainStatus.PENDING, DomainEvent.RESERVE): "A domain request is already pending",
    (DomainStatus.PENDING, DomainEvent.CONNECT_OWN): "A domain request is already pending",
    (DomainStatus.ACTIVE, DomainEvent.RESERVE): "This page already has an active domain",
    (DomainStatus.ACTIVE, DomainEvent.CONNECT_OWN): "This page already has an active domain",
    (DomainStatus.ACTIVE, DomainEvent.CANCEL): "An active domain cannot be cancelled. Contact support.",
    (DomainStatus.NONE, DomainEvent.ACTIVATE): "There is no domain request to activate",
    (DomainStatus.NONE, DomainEvent.REJECT): "There is no domain request to reject",
}


def transition(state: DomainStatus, event: DomainEvent) -> Union[DomainStatus, Rejected]:
    target = _TRANSITIONS.get((state, event))
    if target is None:
        reason = _REASONS.get((state, event), f"Cannot {event.value} from {state.value}")
        return Rejected(state=state, event=event, reason=reason)
    return target


def is_noop(state: DomainStatus, event: DomainEvent) -> bool:
    return transition(state, event) == state
