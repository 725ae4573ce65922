"""
Sales Workflows.

State machine for sales order invoicing.  Invoicing is a single
all-or-nothing action, so PARTIALLY_DELIVERED has no incoming transition.
"""

from fleet_kernel.domain.workflow import Transition, Workflow
from fleet_kernel.logging_config import get_logger
from fleet_modules.sales.models import SOStatus

logger = get_logger("modules.sales.workflows")


# -----------------------------------------------------------------------------
# Sales Order Workflow
# -----------------------------------------------------------------------------

SALES_ORDER_WORKFLOW = Workflow(
    name="sales_order",
    description="Sales order invoicing lifecycle",
    initial_state=SOStatus.DRAFT.value,
    states=tuple(s.value for s in SOStatus),
    transitions=(
        Transition("DRAFT", "CONFIRMED", action="confirm", manual=True),
        Transition("DRAFT", "CANCELLED", action="cancel", manual=True),
        Transition("DRAFT", "DELIVERED", action="invoice"),
        Transition("CONFIRMED", "DELIVERED", action="invoice"),
    ),
    terminal_states=(SOStatus.DELIVERED.value, SOStatus.CANCELLED.value),
)

logger.info(
    "sales_so_workflow_registered",
    extra={
        "workflow_name": SALES_ORDER_WORKFLOW.name,
        "state_count": len(SALES_ORDER_WORKFLOW.states),
        "transition_count": len(SALES_ORDER_WORKFLOW.transitions),
        "initial_state": SALES_ORDER_WORKFLOW.initial_state,
    },
)
