"""
OrderNumberSequencer -- per-branch human-readable order numbers.

Responsibility:
    Produces the next ``PREFIX-NNN`` number for a branch by reading the
    highest number already issued for that prefix and adding one.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Called by the
    purchasing and sales services during ``create``.  The order model is
    passed in, so this module never imports the order modules.

Invariants enforced:
    - Numbers are compared by their integer value, so zero padding never
      affects the order (``PC-1000`` > ``PC-999`` and ``PC-010`` > ``PC-0005``).
      Lowering ``min_digits`` therefore continues the sequence.
    - Soft-deleted orders take part in the scan, so their numbers are never
      reissued.
    - Output is zero-padded to at least ``min_digits`` digits.

Failure modes:
    - No lock is taken on the sequence space.  Two concurrent creates may
      compute the same number; the ``(branch_id, number)`` unique constraint
      rejects the second INSERT and the calling service retries.
"""

import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class OrderNumberSequencer:
    """
    Computes the next order number for one numbered order table.

    Contract:
        ``numbered_model`` is an ORM class exposing ``branch_id`` and
        ``number`` columns.

    Non-goals:
        - Does NOT reserve the number.  It is only claimed when the order
          row is inserted and committed.
    """

    def __init__(self, session: Session, numbered_model: type):
        self._session = session
        self._model = numbered_model

    def next_number(self, branch_id: UUID, prefix: str, min_digits: int = 3) -> str:
        """
        Return the next number for ``prefix`` within ``branch_id``.

        Postconditions:
            - Returns ``f"{prefix}-{n:0{min_digits}d}"`` where n is one more
              than the highest issued sequence, or 1 when none exist.
        """
        model = self._model
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")

        stmt = select(model.number).where(
            model.branch_id == branch_id,
            model.number.like(f"{prefix}-%"),
        )

        highest = 0
        # Rows that share the prefix but not the digit format are skipped.
        for number in self._session.scalars(stmt):
            match = pattern.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        seq = highest + 1

        result = f"{prefix}-{seq:0{min_digits}d}"
        logger.debug(
            "order_number_allocated",
            extra={"branch_id": str(branch_id), "prefix": prefix, "number": result},
        )
        return result
