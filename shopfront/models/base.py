"""
Shared column helpers for the table models
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Type

from sqlalchemy import Column, Enum as SAEnum


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column(enum_cls: Type[Enum], default: Enum, index: bool = False) -> Column:
    """String-backed enum column storing the member values ("pending", not "PENDING")"""
    return Column(
        SAEnum(
            enum_cls,
            values_callable=lambda members: [member.value for member in members],
            native_enum=False,
            validate_strings=True,
            length=32,
        ),
        nullable=False,
        default=default,
        index=index,
    )
