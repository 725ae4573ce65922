"""
Purchasing Workflows.

State machine for purchase order receiving.  Manual transitions are the
ones a user may request through ``update``/``cancel``; the others are
driven by ``receive``.
"""

from fleet_kernel.domain.workflow import Transition, Workflow
from fleet_kernel.logging_config import get_logger
from fleet_modules.purchasing.models import POStatus

logger = get_logger("modules.purchasing.workflows")


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order receiving lifecycle",
    initial_state=POStatus.DRAFT.value,
    states=tuple(s.value for s in POStatus),
    transitions=(
        Transition("DRAFT", "SENT", action="send", manual=True),
        Transition("DRAFT", "CANCELLED", action="cancel", manual=True),
        # A partial first receipt on a DRAFT order also goes through "send"
        Transition("DRAFT", "RECEIVED", action="receive"),
        Transition("SENT", "PARTIALLY_RECEIVED", action="receive"),
        Transition("SENT", "RECEIVED", action="receive"),
        Transition("PARTIALLY_RECEIVED", "RECEIVED", action="receive"),
    ),
    terminal_states=(POStatus.RECEIVED.value, POStatus.CANCELLED.value),
)

logger.info(
    "purchasing_po_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
