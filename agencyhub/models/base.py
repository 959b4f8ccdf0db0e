# agencyhub/models/base.py
from enum import Enum as PyEnum

from sqlalchemy import Enum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Platform-wide tables (tenants, permissions_catalog) and tenant-scoped
    tables (everything carrying tenant_id) both inherit from this class.
    """

    pass


def value_enum(enum_cls: type[PyEnum], name: str) -> Enum:
    """
    Enum column type that persists the lower-case member values
    (e.g. 'pending_client_approval') rather than the member names.
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
