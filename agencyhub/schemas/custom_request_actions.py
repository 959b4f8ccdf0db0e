# agencyhub/schemas/custom_request_actions.py
from datetime import date
from typing import Optional

from pydantic import BaseModel


class CustomRequestActionBase(BaseModel):
    """Every action carries the version the caller last saw."""

    version: int


class CustomRequestTeamApproveRequest(CustomRequestActionBase):
    """Request to approve a custom request on behalf of the team."""

    pass


class CustomRequestTeamDenyRequest(CustomRequestActionBase):
    """Request to deny (cancel) a custom request."""

    reason: Optional[str] = None


class CustomRequestClientApproveRequest(CustomRequestActionBase):
    """Request to record the client's approval."""

    estimated_delivery_date: date


class CustomRequestCompleteRequest(CustomRequestActionBase):
    """Request to mark a custom request as completed."""

    pass


class CustomRequestDeliverRequest(CustomRequestActionBase):
    """Request to mark a custom request as delivered to the fan."""

    pass
