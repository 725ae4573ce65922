"""
Fleet ERP Kernel

Shared infrastructure for the order fulfillment and financial-posting core:
- Declarative persistence base and engine/session management
- Deterministic currency and quantity normalization
- Typed exception hierarchy
- Structured JSON logging
- Reference data (branches, parties, products)
"""

__version__ = "0.1.0"
