"""
Validation Engine - structural checks on valorization drafts.

Responsibility:
    Cross-field checks that run before or alongside the calculators: the
    Obra is present and billable, the period is well formed and inside the
    contract window, supervision day counts fit the period, and the
    responsible person is named.

Architecture position:
    Engines -- pure functions, zero I/O.

Invariants enforced:
    - periodo_inicio <= periodo_fin, both inside
      [obra.fecha_inicio, obra.fecha_fin_prevista].
    - dias_efectivos + dias_no_trabajados <= dias_periodo (equality allowed).
    - Day counts are non-negative.

Failure modes:
    None raised.  Every finding is an ``ErrorValidacion``; ``error``
    findings block submission, ``warning`` findings never do.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from obras_engines.supervision import DiasSupervision
from obras_engines.tracer import traced_engine
from obras_kernel.domain.obra import EstadoObra, Obra
from obras_kernel.domain.validation import ErrorValidacion, ResultadoValidacion
from obras_kernel.domain.values import dias_inclusivos
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.validacion")

ESTADOS_VALORIZABLES = frozenset({EstadoObra.REGISTRADA, EstadoObra.EN_EJECUCION})

MSG_OBRA_REQUERIDA = "obra is required"
MSG_PERIODO_REQUERIDO = "period start and end dates are required"
MSG_PERIODO_INVERTIDO = "period start cannot be after period end"
MSG_ANTES_INICIO_OBRA = "period cannot start before the obra start date"
MSG_DESPUES_FIN_OBRA = "period cannot end after the obra scheduled end date"
MSG_SIN_FIN_PREVISTO = "obra has no scheduled end date; period end not checked"
MSG_DIAS_EXCEDEN = "worked and non-worked days exceed the days in the period"
MSG_SIN_EJECUCION = "no execution valuation for this period"


def validar_obra(obra: Obra | None) -> tuple[ErrorValidacion, ...]:
    if obra is None:
        return (ErrorValidacion.error("obra_id", MSG_OBRA_REQUERIDA),)
    if obra.estado not in ESTADOS_VALORIZABLES:
        return (
            ErrorValidacion.error(
                "obra_id", f"obra in state {obra.estado.value} cannot be billed"
            ),
        )
    return ()


def validar_periodo(
    periodo_inicio: date | None,
    periodo_fin: date | None,
    obra: Obra | None,
) -> tuple[ErrorValidacion, ...]:
    """Period presence, order, and containment in the contract window."""
    if periodo_inicio is None or periodo_fin is None:
        return (ErrorValidacion.error("periodo", MSG_PERIODO_REQUERIDO),)

    issues: list[ErrorValidacion] = []
    if periodo_inicio > periodo_fin:
        issues.append(ErrorValidacion.error("periodo_inicio", MSG_PERIODO_INVERTIDO))
    if obra is not None:
        if periodo_inicio < obra.fecha_inicio:
            issues.append(ErrorValidacion.error("periodo_inicio", MSG_ANTES_INICIO_OBRA))
        if obra.fecha_fin_prevista is None:
            issues.append(ErrorValidacion.advertencia("periodo_fin", MSG_SIN_FIN_PREVISTO))
        elif periodo_fin > obra.fecha_fin_prevista:
            issues.append(ErrorValidacion.error("periodo_fin", MSG_DESPUES_FIN_OBRA))
    return tuple(issues)


def validar_dias_supervision(
    dias: DiasSupervision, dias_periodo: int
) -> tuple[ErrorValidacion, ...]:
    """Non-negative day counts that fit inside the period."""
    issues = [
        ErrorValidacion.error(campo, f"{campo} cannot be negative")
        for campo, valor in dias.como_dict().items()
        if valor < 0
    ]
    if dias.total > dias_periodo:
        issues.append(ErrorValidacion.error("dias", MSG_DIAS_EXCEDEN))
    return tuple(issues)


def validar_responsable(valor: str | None, campo: str) -> tuple[ErrorValidacion, ...]:
    if valor is None or not valor.strip():
        return (ErrorValidacion.error(campo, f"{campo} is required"),)
    return ()


def validar_periodo_ejecucion(
    periodo_inicio: date | None,
    periodo_fin: date | None,
    periodos_ejecucion: Iterable[tuple[date, date]],
) -> tuple[ErrorValidacion, ...]:
    """Supervision is billed against an execution valuation of the same period."""
    if periodo_inicio is None or periodo_fin is None:
        return ()
    if (periodo_inicio, periodo_fin) in set(periodos_ejecucion):
        return ()
    return (ErrorValidacion.error("periodo", MSG_SIN_EJECUCION),)


@traced_engine(
    "validation_execution", "1.0",
    fingerprint_fields=("obra", "periodo_inicio", "periodo_fin", "residente_obra"),
)
def validar_ejecucion(
    obra: Obra | None,
    periodo_inicio: date | None,
    periodo_fin: date | None,
    residente_obra: str | None,
) -> ResultadoValidacion:
    issues = (
        validar_obra(obra)
        + validar_periodo(periodo_inicio, periodo_fin, obra)
        + validar_responsable(residente_obra, "residente_obra")
    )
    resultado = ResultadoValidacion(issues=issues)
    logger.debug("execution_validation_completed", extra={
        "error_count": len(resultado.errores),
        "warning_count": len(resultado.advertencias),
    })
    return resultado


@traced_engine(
    "validation_supervision", "1.0",
    fingerprint_fields=("obra", "periodo_inicio", "periodo_fin", "dias"),
)
def validar_supervision(
    obra: Obra | None,
    periodo_inicio: date | None,
    periodo_fin: date | None,
    dias: DiasSupervision,
    supervisor_responsable: str | None,
    *,
    periodos_ejecucion: Iterable[tuple[date, date]] | None = None,
) -> ResultadoValidacion:
    """Checks for a supervision draft.

    Args:
        periodos_ejecucion: When given, the (inicio, fin) pairs of the
            Obra's execution valuations; the supervision period must match
            one of them.
    """
    issues = (
        validar_obra(obra)
        + validar_periodo(periodo_inicio, periodo_fin, obra)
        + validar_dias_supervision(dias, dias_inclusivos(periodo_inicio, periodo_fin))
        + validar_responsable(supervisor_responsable, "supervisor_responsable")
    )
    if periodos_ejecucion is not None:
        issues += validar_periodo_ejecucion(
            periodo_inicio, periodo_fin, periodos_ejecucion
        )
    resultado = ResultadoValidacion(issues=issues)
    logger.debug("supervision_validation_completed", extra={
        "error_count": len(resultado.errores),
        "warning_count": len(resultado.advertencias),
    })
    return resultado
