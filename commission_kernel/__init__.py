"""
Commission Kernel

Shared foundation for the commission engine:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Immutable domain values (investments, cutoffs, breakdown rows)
- Deterministic clock abstraction
"""

__version__ = "0.1.0"
