# agencyhub/services/custom_request_lifecycle.py
"""
Custom request state machine.

    pending ─┐
             ├─> pending_client_approval ─> in_progress ─> completed ─> delivered
    pending_team_approval ┘

Any non-terminal request can be denied, which moves it to `cancelled`.
`delivered` and `cancelled` are terminal.

Every function here is pure: it validates the source status and returns a
`Transition` describing the new status and field changes. Persisting the
result (with a version check) is done by custom_request_service.
Permission checks happen before these are called; REQUIRED_PERMISSIONS lists
what each transition needs.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from agencyhub.models.custom_request import CustomRequestStatus

S = CustomRequestStatus

TERMINAL_STATUSES = frozenset({S.DELIVERED, S.CANCELLED})
NON_TERMINAL_STATUSES = frozenset(set(S) - TERMINAL_STATUSES)

# Transition name -> permission codes (any one of them is enough)
REQUIRED_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "create": ("customs.create",),
    "team_approve": ("customs.approve",),
    "team_deny": ("customs.approve", "customs.delete"),
    "client_approve": ("customs.approve", "customs.pending_approval"),
    "mark_completed": ("customs.complete",),
    "mark_delivered": ("customs.deliver",),
}

# Transition name -> statuses it may start from
ALLOWED_SOURCES: dict[str, frozenset[CustomRequestStatus]] = {
    "team_approve": frozenset({S.PENDING, S.PENDING_TEAM_APPROVAL}),
    "team_deny": NON_TERMINAL_STATUSES,
    "client_approve": frozenset({S.PENDING_CLIENT_APPROVAL}),
    "mark_completed": NON_TERMINAL_STATUSES - {S.COMPLETED},
    "mark_delivered": frozenset({S.COMPLETED}),
    "edit": NON_TERMINAL_STATUSES,
}

EDITABLE_FIELDS = frozenset(
    {
        "fan_name",
        "fan_email",
        "description",
        "proposed_amount",
        "amount_paid",
        "length_duration",
        "notes",
        "chat_link",
        "fan_lifetime_spend",
        "priority",
        "estimated_delivery_date",
        "date_due",
        "call_scheduled_at",
    }
)


class InvalidTransitionError(Exception):
    pass


@dataclass(frozen=True)
class Transition:
    name: str
    target: CustomRequestStatus | None
    changes: dict[str, Any] = field(default_factory=dict)

    def all_changes(self) -> dict[str, Any]:
        """Field changes including the status column, ready to apply."""
        out = dict(self.changes)
        if self.target is not None:
            out["status"] = self.target
        return out


def _check_source(name: str, current: CustomRequestStatus) -> None:
    allowed = ALLOWED_SOURCES[name]
    if current not in allowed:
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Custom request is already {current.value}. No further actions are allowed."
            )
        raise InvalidTransitionError(f"Cannot {name.replace('_', ' ')} a custom request in status {current.value}.")


def team_approve(current: CustomRequestStatus, *, approver_id: uuid.UUID, now: datetime) -> Transition:
    _check_source("team_approve", current)
    return Transition(
        name="team_approve",
        target=S.PENDING_CLIENT_APPROVAL,
        changes={"team_approved_by": approver_id, "team_approved_at": now},
    )


def team_deny(
    current: CustomRequestStatus,
    *,
    actor_id: uuid.UUID,
    now: datetime,
    reason: str | None = None,
) -> Transition:
    _check_source("team_deny", current)
    return Transition(
        name="team_deny",
        target=S.CANCELLED,
        changes={"cancelled_by": actor_id, "cancelled_at": now, "cancellation_reason": reason},
    )


def client_approve(
    current: CustomRequestStatus,
    *,
    estimated_delivery_date: date | None,
    now: datetime,
) -> Transition:
    _check_source("client_approve", current)
    if estimated_delivery_date is None:
        raise InvalidTransitionError("An estimated delivery date is required for client approval.")
    return Transition(
        name="client_approve",
        target=S.IN_PROGRESS,
        changes={"client_approved_at": now, "estimated_delivery_date": estimated_delivery_date},
    )


def mark_completed(current: CustomRequestStatus, *, today: date) -> Transition:
    _check_source("mark_completed", current)
    return Transition(name="mark_completed", target=S.COMPLETED, changes={"date_completed": today})


def mark_delivered(current: CustomRequestStatus, *, now: datetime) -> Transition:
    _check_source("mark_delivered", current)
    return Transition(name="mark_delivered", target=S.DELIVERED, changes={"delivered_at": now})


def edit(current: CustomRequestStatus, updates: dict[str, Any]) -> Transition:
    """
    Free-form field edit. Never changes status.
    """
    if "status" in updates:
        raise InvalidTransitionError("Status cannot be edited directly. Use the workflow actions instead.")
    unknown = sorted(set(updates) - EDITABLE_FIELDS)
    if unknown:
        raise InvalidTransitionError(f"Fields cannot be edited: {', '.join(unknown)}")
    _check_source("edit", current)
    return Transition(name="edit", target=None, changes=dict(updates))


def pending_balance(proposed_amount: Decimal | None, amount_paid: Decimal | None) -> Decimal:
    """
    What the fan still owes. Never negative: overpayment yields 0.
    """
    proposed = proposed_amount or Decimal("0")
    paid = amount_paid or Decimal("0")
    return max(Decimal("0"), proposed - paid)
