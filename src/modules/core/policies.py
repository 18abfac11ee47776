"""Authorization policy table.

Role and ownership rules for every core operation live in ``POLICY`` and
are evaluated once per operation through :func:`authorize`.  The table is
keyed by action; each rule lists the roles allowed unconditionally and the
roles allowed only when the principal owns the resource.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID

import structlog

from modules.core.exceptions import AuthorizationError
from modules.users.constants import UserRole, UserStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the identity provider."""

    id: UUID
    role: str
    status: str

    @classmethod
    def from_user(cls, user: Any) -> Principal:
        return cls(
            id=user.id,
            role=getattr(user, "role", ""),
            status=getattr(user, "status", ""),
        )

    def owns(self, owner_id: Optional[Any]) -> bool:
        return owner_id is not None and str(owner_id) == str(self.id)


class Action(str, Enum):
    ORDER_CREATE = "order.create"
    ORDER_VIEW = "order.view"
    ORDER_LIST_ALL = "order.list_all"
    ORDER_LIST_OWN = "order.list_own"
    ORDER_APPROVE = "order.approve"
    ORDER_REJECT = "order.reject"
    ORDER_CANCEL = "order.cancel"
    ORDER_SET_STATUS = "order.set_status"
    PAYMENT_CREATE_INTENT = "payment.create_intent"
    PAYMENT_CONFIRM = "payment.confirm"
    TRACKING_RECORD = "tracking.record"
    TRACKING_UPDATE = "tracking.update"
    TRACKING_VIEW = "tracking.view"


@dataclass(frozen=True)
class Rule:
    roles: FrozenSet[str] = field(default_factory=frozenset)
    owner_roles: FrozenSet[str] = field(default_factory=frozenset)
    message: str = "Not authorized to perform this action."


_STAFF = frozenset({UserRole.MANAGER, UserRole.ADMIN})
_BUYER = frozenset({UserRole.BUYER})

POLICY: Dict[Action, Rule] = {
    Action.ORDER_CREATE: Rule(roles=_BUYER, message="Only buyers can place orders."),
    Action.ORDER_VIEW: Rule(
        roles=_STAFF,
        owner_roles=_BUYER,
        message="Not authorized to view this order.",
    ),
    Action.ORDER_LIST_ALL: Rule(roles=_STAFF),
    Action.ORDER_LIST_OWN: Rule(roles=_BUYER),
    Action.ORDER_APPROVE: Rule(roles=_STAFF, message="Only managers can approve orders."),
    Action.ORDER_REJECT: Rule(roles=_STAFF, message="Only managers can reject orders."),
    Action.ORDER_CANCEL: Rule(
        owner_roles=_BUYER, message="Not authorized to cancel this order."
    ),
    Action.ORDER_SET_STATUS: Rule(
        roles=_STAFF, message="Only managers or admins can override order status."
    ),
    Action.PAYMENT_CREATE_INTENT: Rule(
        owner_roles=_BUYER, message="Not authorized to pay for this order."
    ),
    Action.PAYMENT_CONFIRM: Rule(
        owner_roles=_BUYER, message="Not authorized to confirm this payment."
    ),
    Action.TRACKING_RECORD: Rule(
        roles=_STAFF, message="Only managers can add tracking updates."
    ),
    Action.TRACKING_UPDATE: Rule(
        roles=_STAFF, message="Only managers can update tracking."
    ),
    Action.TRACKING_VIEW: Rule(
        roles=_STAFF,
        owner_roles=_BUYER,
        message="Not authorized to view tracking for this order.",
    ),
}


def is_allowed(principal: Principal, action: Action, owner_id: Any = None) -> bool:
    if principal.status != UserStatus.APPROVED:
        return False
    rule = POLICY[action]
    if principal.role in rule.roles:
        return True
    return principal.role in rule.owner_roles and principal.owns(owner_id)


def authorize(principal: Principal, action: Action, owner_id: Any = None) -> None:
    """Raise ``AuthorizationError`` unless *principal* may perform *action*.

    ``owner_id`` is the id of the user owning the target resource; it only
    matters for rules with owner-restricted roles.
    """
    if principal.status != UserStatus.APPROVED:
        logger.warning(
            "policy.account_not_approved",
            principal_id=str(principal.id),
            status=principal.status,
            action=action.value,
        )
        if principal.status == UserStatus.SUSPENDED:
            raise AuthorizationError("Account suspended. Contact administrator.")
        raise AuthorizationError("Account not approved yet.")

    if not is_allowed(principal, action, owner_id):
        logger.warning(
            "policy.denied",
            principal_id=str(principal.id),
            role=principal.role,
            action=action.value,
        )
        raise AuthorizationError(POLICY[action].message)
