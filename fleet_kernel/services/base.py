"""
BaseService -- abstract base for collaborator services.

Responsibility:
    Provides the common constructor and session-handling contract for the
    services that order services call into (stock ledger, payables,
    receivables).  They receive the caller's SQLAlchemy ``Session`` and use
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: collaborator services flush within the
      caller's transaction and never commit or rollback themselves.  The
      order service that invoked them owns commit/rollback.

Failure modes:
    - If a subclass calls ``session.commit()``, a later failure in the same
      order operation can no longer undo its writes.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for flush-only services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        self.session = session
