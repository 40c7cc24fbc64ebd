"""
obras_modules.valorizaciones.service -- Valorization state machine.

Responsibility:
    Create valorization records from recomputed drafts and advance them
    through ``VALORIZACION_WORKFLOW``.  Each transition returns a new record
    with the new state, the dates the state implies (submission, payment
    deadline, approval, payment), the days-late figure and one more
    history entry.

Architecture position:
    Modules layer.  Imports pure engines from ``obras_engines`` and kernel
    primitives from ``obras_kernel``.  Holds no record state; callers
    serialize transitions per record (single writer).

Invariants enforced:
    - Only edges declared in the workflow are taken; anything else raises
      ``TransicionInvalidaError`` naming current and requested state.
    - Submission requires zero blocking errors (``PresentacionBloqueadaError``).
    - Records are editable only in BORRADOR and OBSERVADA.
    - A record is never created from a breakdown that carries errors.
    - All dates come from the injected Clock.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from obras_config.schema import NormativaDef
from obras_engines.deducciones import POLITICA_DEDUCCIONES, DeductionPolicy
from obras_engines.plazos import (
    DIAS_PAGO_DEFAULT,
    calcular_dias_atraso,
    calcular_fecha_limite_pago,
)
from obras_engines.recalculo import (
    Borrador,
    BorradorEjecucion,
    BorradorSupervision,
    ResultadoRecalculo,
    recalcular,
)
from obras_kernel.domain.clock import Clock
from obras_kernel.domain.workflow import Workflow
from obras_kernel.exceptions import (
    CalculoBloqueadoError,
    PresentacionBloqueadaError,
    TransicionInvalidaError,
    ValorizacionInmutableError,
)
from obras_kernel.logging_config import LogContext, get_logger
from obras_modules.valorizaciones.models import (
    ESTADOS_EDITABLES,
    CambioEstado,
    EstadoValorizacion,
    Valorizacion,
    ValorizacionEjecucion,
    ValorizacionSupervision,
)
from obras_modules.valorizaciones.workflows import (
    SIN_ERRORES_VALIDACION,
    VALORIZACION_WORKFLOW,
)

logger = get_logger("modules.valorizaciones.service")

TRACE_TYPE_TRANSITION = "VALORIZACION_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_GUARD_FAILED = "guard_failed"
OUTCOME_NO_TRANSITION = "no_transition"

_ESTADOS_CON_ATRASO = frozenset({
    EstadoValorizacion.PRESENTADA,
    EstadoValorizacion.EN_REVISION,
    EstadoValorizacion.OBSERVADA,
    EstadoValorizacion.APROBADA,
})


def _emit_transition_trace(
    valorizacion: Valorizacion,
    estado_solicitado: EstadoValorizacion,
    outcome: str,
    duration_ms: float,
    action: str | None = None,
) -> None:
    logger.info("valorizacion_transition", extra={
        "trace_type": TRACE_TYPE_TRANSITION,
        "workflow": VALORIZACION_WORKFLOW.name,
        "action": action,
        "entity_type": type(valorizacion).__name__,
        "entity_id": str(valorizacion.id),
        "from_state": valorizacion.estado.value,
        "to_state": estado_solicitado.value,
        "outcome": outcome,
        "duration_ms": round(duration_ms, 3),
    })


class ValorizacionStateMachine:
    """
    Lifecycle coordinator for execution and supervision valorizations.

    Args:
        clock: Source of every date stamped on records.
        dias_pago: Payment term in calendar days after submission.
        politica: Rates and caps used when (re)computing drafts.
    """

    def __init__(
        self,
        clock: Clock,
        *,
        dias_pago: int = DIAS_PAGO_DEFAULT,
        politica: DeductionPolicy = POLITICA_DEDUCCIONES,
        workflow: Workflow = VALORIZACION_WORKFLOW,
    ):
        self._clock = clock
        self._dias_pago = dias_pago
        self._politica = politica
        self._workflow = workflow

    @classmethod
    def desde_normativa(cls, clock: Clock, normativa: NormativaDef) -> ValorizacionStateMachine:
        """State machine configured with a normativa's payment term and caps."""
        return cls(
            clock,
            dias_pago=normativa.dias_pago_valorizacion,
            politica=DeductionPolicy.from_normativa(normativa),
        )

    # ------------------------------------------------------------------
    # Creation and edits
    # ------------------------------------------------------------------

    def crear(
        self,
        borrador: Borrador,
        *,
        numero_valorizacion: int = 1,
        valorizacion_id: UUID | None = None,
    ) -> Valorizacion:
        """Create a BORRADOR record from a draft.

        Raises:
            CalculoBloqueadoError: If validation or calculation reports any
                blocking error.
        """
        obra_id = borrador.obra.id if borrador.obra else ""
        with LogContext.bind(obra_id=obra_id or None):
            resultado = recalcular(borrador, politica=self._politica)
            if not resultado.puede_presentar:
                logger.warning("valorizacion_creation_blocked", extra={
                    "errors": list(resultado.errores),
                })
                raise CalculoBloqueadoError(obra_id, resultado.errores)

            valorizacion = self._construir(
                borrador,
                resultado,
                id=valorizacion_id or uuid4(),
                numero_valorizacion=numero_valorizacion,
            )
            logger.info("valorizacion_created", extra={
                "entity_type": type(valorizacion).__name__,
                "entity_id": str(valorizacion.id),
                "monto_neto": str(valorizacion.monto_neto),
            })
            return valorizacion

    def actualizar(self, valorizacion: Valorizacion, borrador: Borrador) -> Valorizacion:
        """Replace a record's content with a recomputed draft.

        Allowed only in BORRADOR and OBSERVADA.  The stored breakdown may
        carry errors; they block the next submission, not the edit.

        Raises:
            ValorizacionInmutableError: Outside the editable states.
            TypeError: If the draft kind does not match the record kind.
            ValueError: If the draft belongs to another Obra or lacks a
                period.
        """
        if valorizacion.estado not in ESTADOS_EDITABLES:
            raise ValorizacionInmutableError(str(valorizacion.id), valorizacion.estado.value)
        if borrador.obra is None or borrador.obra.id != valorizacion.obra_id:
            raise ValueError("draft must reference the valorization's obra")

        with LogContext.bind(
            obra_id=valorizacion.obra_id, valorizacion_id=str(valorizacion.id)
        ):
            resultado = recalcular(borrador, politica=self._politica)
            actualizada = self._construir(
                borrador,
                resultado,
                id=valorizacion.id,
                numero_valorizacion=valorizacion.numero_valorizacion,
                base=valorizacion,
            )
            logger.info("valorizacion_updated", extra={
                "estado": valorizacion.estado.value,
                "error_count": len(resultado.errores),
            })
            return actualizada

    def _construir(
        self,
        borrador: Borrador,
        resultado: ResultadoRecalculo,
        *,
        id: UUID,
        numero_valorizacion: int,
        base: Valorizacion | None = None,
    ) -> Valorizacion:
        if borrador.obra is None or borrador.periodo_inicio is None or borrador.periodo_fin is None:
            raise ValueError("draft must have an obra and a period")

        match borrador:
            case BorradorEjecucion():
                if base is not None and not isinstance(base, ValorizacionEjecucion):
                    raise TypeError("execution draft cannot update a supervision record")
                contenido: dict[str, Any] = dict(
                    obra_id=borrador.obra.id,
                    periodo_inicio=borrador.periodo_inicio,
                    periodo_fin=borrador.periodo_fin,
                    partidas=borrador.ledger.selecciones,
                    deducciones=borrador.deducciones,
                    calculos=resultado.calculos,
                    errores_validacion=resultado.validacion.mensajes_error(),
                    residente_obra=borrador.residente_obra,
                    supervisor_obra=borrador.supervisor_obra,
                    observaciones=borrador.observaciones,
                )
                if base is not None:
                    return replace(base, **contenido)
                return ValorizacionEjecucion(
                    id=id, numero_valorizacion=numero_valorizacion, **contenido
                )
            case BorradorSupervision():
                if base is not None and not isinstance(base, ValorizacionSupervision):
                    raise TypeError("supervision draft cannot update an execution record")
                contenido = dict(
                    obra_id=borrador.obra.id,
                    periodo_inicio=borrador.periodo_inicio,
                    periodo_fin=borrador.periodo_fin,
                    dias=borrador.dias,
                    deducciones=borrador.deducciones,
                    calculos=resultado.calculos,
                    errores_validacion=resultado.validacion.mensajes_error(),
                    supervisor_responsable=borrador.supervisor_responsable,
                    observaciones=borrador.observaciones,
                )
                if base is not None:
                    return replace(base, **contenido)
                return ValorizacionSupervision(
                    id=id, numero_valorizacion=numero_valorizacion, **contenido
                )
            case _:
                raise TypeError(f"Unsupported draft type: {type(borrador).__name__}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transiciones_disponibles(
        self, estado: EstadoValorizacion
    ) -> tuple[EstadoValorizacion, ...]:
        """States reachable in one step from ``estado``."""
        return tuple(
            EstadoValorizacion(t.to_state) for t in self._workflow.outgoing(estado.value)
        )

    def puede_transicionar(
        self, estado: EstadoValorizacion, nuevo_estado: EstadoValorizacion
    ) -> bool:
        return self._workflow.find_transition(estado.value, nuevo_estado.value) is not None

    def transicionar(
        self,
        valorizacion: Valorizacion,
        nuevo_estado: EstadoValorizacion,
        *,
        errores: Sequence[str] = (),
        motivo: str | None = None,
        usuario: str | None = None,
    ) -> Valorizacion:
        """Advance a record one step.

        Args:
            valorizacion: Current record.
            nuevo_estado: Requested state.
            errores: Extra blocking messages from the caller; the
                validation and calculation errors stored on the record at
                its last edit are always added.
            motivo: Reason recorded in the history (and as
                ``motivo_rechazo`` on rejection).
            usuario: Actor recorded in the history.

        Returns:
            A new record in ``nuevo_estado``.

        Raises:
            TransicionInvalidaError: The edge is not in the workflow.
            PresentacionBloqueadaError: Submission with blocking errors.
        """
        t0 = time.monotonic()
        actual = valorizacion.estado

        with LogContext.bind(
            obra_id=valorizacion.obra_id,
            valorizacion_id=str(valorizacion.id),
            actor_id=usuario,
        ):
            transicion = self._workflow.find_transition(actual.value, nuevo_estado.value)
            if transicion is None:
                _emit_transition_trace(
                    valorizacion, nuevo_estado, OUTCOME_NO_TRANSITION,
                    (time.monotonic() - t0) * 1000,
                )
                raise TransicionInvalidaError(actual.value, nuevo_estado.value)

            if transicion.guard == SIN_ERRORES_VALIDACION:
                pendientes = tuple(
                    dict.fromkeys(tuple(errores) + valorizacion.errores_pendientes)
                )
                if pendientes:
                    _emit_transition_trace(
                        valorizacion, nuevo_estado, OUTCOME_GUARD_FAILED,
                        (time.monotonic() - t0) * 1000, action=transicion.action,
                    )
                    raise PresentacionBloqueadaError(
                        actual.value, nuevo_estado.value, pendientes
                    )

            hoy = self._clock.today()
            cambios: dict[str, Any] = {
                "estado": nuevo_estado,
                "historial": valorizacion.historial + (
                    CambioEstado(
                        estado_anterior=actual,
                        estado_nuevo=nuevo_estado,
                        fecha_cambio=self._clock.now(),
                        motivo=motivo,
                        usuario_responsable=usuario,
                    ),
                ),
            }
            cambios.update(self._fechas_por_estado(valorizacion, nuevo_estado, hoy, motivo))

            resultado = replace(valorizacion, **cambios)
            _emit_transition_trace(
                valorizacion, nuevo_estado, OUTCOME_SUCCESS,
                (time.monotonic() - t0) * 1000, action=transicion.action,
            )
            return resultado

    def _fechas_por_estado(
        self,
        valorizacion: Valorizacion,
        nuevo_estado: EstadoValorizacion,
        hoy: date,
        motivo: str | None,
    ) -> dict[str, Any]:
        match nuevo_estado:
            case EstadoValorizacion.PRESENTADA:
                return {
                    "fecha_presentacion": hoy,
                    "fecha_limite_pago": calcular_fecha_limite_pago(hoy, self._dias_pago),
                    "dias_atraso": 0,
                }
            case EstadoValorizacion.APROBADA:
                return {
                    "fecha_aprobacion": hoy,
                    "dias_atraso": calcular_dias_atraso(
                        valorizacion.fecha_limite_pago, fecha_corte=hoy
                    ),
                }
            case EstadoValorizacion.PAGADA:
                return {
                    "fecha_pago": hoy,
                    "dias_atraso": calcular_dias_atraso(
                        valorizacion.fecha_limite_pago, fecha_corte=hoy, fecha_pago=hoy
                    ),
                }
            case EstadoValorizacion.RECHAZADA:
                return {"motivo_rechazo": motivo}
            case _:
                return {}

    def actualizar_atraso(self, valorizacion: Valorizacion) -> Valorizacion:
        """Refresh ``dias_atraso`` as of today for submitted, unpaid records."""
        if valorizacion.estado not in _ESTADOS_CON_ATRASO:
            return valorizacion
        dias = calcular_dias_atraso(
            valorizacion.fecha_limite_pago, fecha_corte=self._clock.today()
        )
        if dias == valorizacion.dias_atraso:
            return valorizacion
        return replace(valorizacion, dias_atraso=dias)
