"""
Obras Modules.

Thin orchestration layers over the Obras Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- A service that advances records through the workflow

Modules:
- Valorizaciones: execution and supervision progress billing
"""

from obras_modules import valorizaciones

__all__ = ["valorizaciones"]
