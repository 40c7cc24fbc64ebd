"""
Valorization Workflow (``obras_modules.valorizaciones.workflows``).

Responsibility
--------------
Declares the state machine shared by execution and supervision
valorizations.  Guards express preconditions for transitions; the state
machine in ``service.py`` evaluates them.

Architecture position
---------------------
**Modules layer** -- declarative workflow definition.  Imports canonical
Guard, Transition, Workflow from ``obras_kernel.domain.workflow``.

Invariants enforced
-------------------
* Every non-terminal state has an edge to RECHAZADA.
* PAGADA and RECHAZADA are terminal: no outgoing edges.
* Submission (BORRADOR or OBSERVADA -> PRESENTADA) is guarded by
  ``SIN_ERRORES_VALIDACION``.

Audit relevance
---------------
The workflow definition is logged at module-load time with state and
transition counts.
"""

from obras_kernel.domain.workflow import Guard, Transition, Workflow
from obras_kernel.logging_config import get_logger
from obras_modules.valorizaciones.models import EstadoValorizacion as E

logger = get_logger("modules.valorizaciones.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

SIN_ERRORES_VALIDACION = Guard(
    name="sin_errores_validacion",
    description="Valorization has zero blocking validation errors",
)


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------

_RECHAZABLES = (E.BORRADOR, E.PRESENTADA, E.EN_REVISION, E.OBSERVADA, E.APROBADA)

VALORIZACION_WORKFLOW = Workflow(
    name="valorizacion",
    description="Execution and supervision valorization lifecycle",
    initial_state=E.BORRADOR.value,
    states=tuple(e.value for e in E),
    terminal_states=(E.PAGADA.value, E.RECHAZADA.value),
    transitions=(
        Transition(E.BORRADOR.value, E.PRESENTADA.value, action="presentar",
                   guard=SIN_ERRORES_VALIDACION),
        Transition(E.PRESENTADA.value, E.EN_REVISION.value, action="iniciar_revision"),
        Transition(E.EN_REVISION.value, E.OBSERVADA.value, action="observar"),
        Transition(E.EN_REVISION.value, E.APROBADA.value, action="aprobar"),
        Transition(E.OBSERVADA.value, E.PRESENTADA.value, action="presentar",
                   guard=SIN_ERRORES_VALIDACION),
        Transition(E.APROBADA.value, E.PAGADA.value, action="pagar"),
        *(
            Transition(estado.value, E.RECHAZADA.value, action="rechazar")
            for estado in _RECHAZABLES
        ),
    ),
)

logger.info(
    "valorizacion_workflow_registered",
    extra={
        "workflow_name": VALORIZACION_WORKFLOW.name,
        "state_count": len(VALORIZACION_WORKFLOW.states),
        "transition_count": len(VALORIZACION_WORKFLOW.transitions),
        "terminal_states": list(VALORIZACION_WORKFLOW.terminal_states),
    },
)
