"""
Module ORM Registry (``fleet_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table definition before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  ``fleet_kernel.db.engine.create_tables``
imports it lazily, inside the function, so the kernel never imports module
code at import time.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``fleet_modules.*.orm`` module.

    Kernel reference tables (branches, parties, products) come first since
    order lines and headers carry foreign keys to them.  Idempotent.
    """
    import fleet_kernel.models  # noqa: F401
    # fmt: off
    import fleet_modules.ap.orm  # noqa: F401
    import fleet_modules.ar.orm  # noqa: F401
    import fleet_modules.inventory.orm  # noqa: F401
    import fleet_modules.purchasing.orm  # noqa: F401
    import fleet_modules.sales.orm  # noqa: F401
    # fmt: on
