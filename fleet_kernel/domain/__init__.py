"""
Pure domain layer.

This module contains value objects, collaborator ports, and the workflow
definition types with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock)

All domain objects are immutable.
"""

from fleet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fleet_kernel.domain.context import ActorContext
from fleet_kernel.domain.dtos import (
    UNSET,
    MovementType,
    OrderLineInput,
    OrderPage,
    OriginDocument,
    OriginType,
    StockMovement,
)
from fleet_kernel.domain.ports import PayableIssuer, ReceivableIssuer, StockLedger
from fleet_kernel.domain.workflow import Transition, Workflow, require_transition

__all__ = [
    "ActorContext",
    "Clock",
    "DeterministicClock",
    "MovementType",
    "OrderLineInput",
    "OrderPage",
    "OriginDocument",
    "OriginType",
    "PayableIssuer",
    "ReceivableIssuer",
    "StockLedger",
    "StockMovement",
    "SystemClock",
    "Transition",
    "UNSET",
    "Workflow",
    "require_transition",
]
