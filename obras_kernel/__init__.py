"""
Obras Kernel - valorization primitives

Pure building blocks shared by the valorization engines:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock for deterministic dates
- Workflow value objects
- Validation findings and Decimal helpers
"""

__version__ = "0.1.0"
