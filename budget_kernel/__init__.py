"""
Budget Kernel

Shared foundation for the budget-vs-actual report engine:
- Structured JSON logging with request-scoped context
- Typed exceptions with machine-readable codes
- Permissive value coercion at the source boundary
- Source document DTOs consumed by the pure engines
- SQLAlchemy models and read-only selectors for the source collections
"""

__version__ = "0.1.0"
