"""
fleet_services -- cross-module policy and composition.

Responsibility:
    Branch access policy shared by the order modules, and the composition
    root (``fleet_services.wiring``) that builds order services with their
    concrete collaborators.

Architecture position:
    Services -- above the kernel.  ``fleet_modules`` may import the access
    guard.  ``wiring`` imports ``fleet_modules`` and MUST NOT be imported
    from this ``__init__``.
"""

from fleet_services.access_guard import (
    assert_branch_access,
    check_branch_access,
    is_unrestricted,
    scope_branch_filter,
)

__all__ = [
    "assert_branch_access",
    "check_branch_access",
    "is_unrestricted",
    "scope_branch_filter",
]
