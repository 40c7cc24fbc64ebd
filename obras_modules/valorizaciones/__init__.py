"""
Valorizaciones Module (``obras_modules.valorizaciones``).

Responsibility
--------------
Periodic progress billing records for public-works contracts: the
contractor's execution valorization and the supervising firm's
supervision valorization, and the shared lifecycle that takes them from
BORRADOR to PAGADA (or RECHAZADA).

Architecture position
---------------------
**Modules layer** -- models, declarative workflow, and a state-machine
service that delegates all computation to ``obras_engines``.
"""

from obras_modules.valorizaciones.models import (
    ESTADOS_EDITABLES,
    CambioEstado,
    EstadoValorizacion,
    Valorizacion,
    ValorizacionEjecucion,
    ValorizacionSupervision,
)
from obras_modules.valorizaciones.service import ValorizacionStateMachine
from obras_modules.valorizaciones.workflows import (
    SIN_ERRORES_VALIDACION,
    VALORIZACION_WORKFLOW,
)

__all__ = [
    "ESTADOS_EDITABLES",
    "CambioEstado",
    "EstadoValorizacion",
    "SIN_ERRORES_VALIDACION",
    "VALORIZACION_WORKFLOW",
    "Valorizacion",
    "ValorizacionEjecucion",
    "ValorizacionStateMachine",
    "ValorizacionSupervision",
]
