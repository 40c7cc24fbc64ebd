"""
Execution Valuation Calculator.

Pure functions with deterministic behavior. No I/O.

Turns the period's measured partidas plus the four deduction parameters
into the contractor's billing breakdown:

    monto_bruto         = sum(metrado_actual x precio_unitario)
    retencion_monto     = monto_bruto x 5%
    adelanto_*_monto    = monto_bruto x porcentaje / 100
    total_deducciones   = retencion + adelantos + penalidades + otras
    monto_neto          = monto_bruto - total_deducciones

Business-rule problems are reported in ``errores_calculo`` (which block
submission) or ``advertencias`` (which do not); nothing here raises for
them.  A negative ``monto_neto`` is reported as-is so the caller can see by
how much the deductions overshoot.

Usage:
    from obras_engines.ejecucion import calcular_ejecucion, DeduccionesEjecucion

    calculos = calcular_ejecucion(
        ledger,
        DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20")),
        obra,
    )
    calculos.monto_neto
    calculos.puede_presentar
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from obras_engines.deducciones import POLITICA_DEDUCCIONES, DeductionPolicy, TipoAdelanto
from obras_engines.partidas import PartidaLedger
from obras_engines.tracer import traced_engine
from obras_kernel.domain.obra import Obra
from obras_kernel.domain.validation import TipoIssue
from obras_kernel.domain.values import ZERO, redondear, to_decimal
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.ejecucion")

MSG_OBRA_REQUERIDA = "obra is required"
MSG_SIN_METRADOS = "no billable quantities for this period"
MSG_NETO_NEGATIVO = "net amount is negative"
MSG_DEDUCCIONES_EXCEDEN = "deductions exceed gross amount"


@dataclass(frozen=True)
class DeduccionesEjecucion:
    """The four caller-supplied deduction parameters.

    Percentages are on a 0-100 scale. Values are coerced to Decimal but
    not range-checked here; the calculator reports out-of-range values.
    """

    adelanto_directo_porcentaje: Decimal = ZERO
    adelanto_materiales_porcentaje: Decimal = ZERO
    penalidades_monto: Decimal = ZERO
    otras_deducciones_monto: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in (
            "adelanto_directo_porcentaje",
            "adelanto_materiales_porcentaje",
            "penalidades_monto",
            "otras_deducciones_monto",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))


@dataclass(frozen=True)
class CalculosValorizacion:
    """Execution billing breakdown for one period."""

    monto_bruto: Decimal
    retencion_monto: Decimal
    adelanto_directo_monto: Decimal
    adelanto_materiales_monto: Decimal
    penalidades_monto: Decimal
    otras_deducciones_monto: Decimal
    total_deducciones: Decimal
    monto_neto: Decimal
    porcentaje_avance_fisico: Decimal
    cantidad_partidas: int
    advertencias: tuple[str, ...] = ()
    errores_calculo: tuple[str, ...] = ()

    @property
    def puede_presentar(self) -> bool:
        return not self.errores_calculo


@traced_engine(
    "valuation_execution", "1.0",
    fingerprint_fields=("ledger", "deducciones", "obra"),
)
def calcular_ejecucion(
    ledger: PartidaLedger,
    deducciones: DeduccionesEjecucion,
    obra: Obra | None,
    *,
    politica: DeductionPolicy = POLITICA_DEDUCCIONES,
) -> CalculosValorizacion:
    """
    Compute the execution valorization breakdown.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        ledger: Current draft of measured partidas.
        deducciones: Advance percentages, penalties, other deductions.
        obra: The contract; None is reported as an error.
        politica: Rates and caps to apply.

    Returns:
        CalculosValorizacion with amounts, warnings and errors.
    """
    logger.info("execution_valuation_started", extra={
        "obra_id": obra.id if obra else None,
        "partida_count": len(ledger.selecciones),
        "adelanto_directo_pct": str(deducciones.adelanto_directo_porcentaje),
        "adelanto_materiales_pct": str(deducciones.adelanto_materiales_porcentaje),
    })

    advertencias: list[str] = []
    errores: list[str] = []

    if obra is None:
        errores.append(MSG_OBRA_REQUERIDA)

    for tipo, valor in (
        (TipoAdelanto.DIRECTO, deducciones.adelanto_directo_porcentaje),
        (TipoAdelanto.MATERIALES, deducciones.adelanto_materiales_porcentaje),
    ):
        mensaje = politica.validar_porcentaje_adelanto(tipo, valor)
        if mensaje:
            errores.append(mensaje)

    for name in ("penalidades_monto", "otras_deducciones_monto"):
        if getattr(deducciones, name) < 0:
            errores.append(f"{name} cannot be negative")

    totales = ledger.totales()
    if totales.cantidad_partidas == 0:
        advertencias.append(MSG_SIN_METRADOS)

    for partida, validacion in ledger.validaciones():
        if validacion.tipo == TipoIssue.ERROR:
            errores.append(f"{partida.codigo}: {validacion.mensaje}")
        elif validacion.tipo == TipoIssue.WARNING:
            advertencias.append(f"{partida.codigo}: {validacion.mensaje}")

    bruto = totales.monto_total
    retencion = politica.retencion(bruto)
    adelanto_directo = politica.adelanto(bruto, deducciones.adelanto_directo_porcentaje)
    adelanto_materiales = politica.adelanto(
        bruto, deducciones.adelanto_materiales_porcentaje
    )
    penalidades = redondear(deducciones.penalidades_monto)
    otras = redondear(deducciones.otras_deducciones_monto)
    total = retencion + adelanto_directo + adelanto_materiales + penalidades + otras
    neto = bruto - total

    if neto < 0:
        advertencias.append(MSG_NETO_NEGATIVO)
        errores.append(MSG_DEDUCCIONES_EXCEDEN)
        logger.warning("execution_deductions_exceed_gross", extra={
            "monto_bruto": str(bruto),
            "total_deducciones": str(total),
        })

    result = CalculosValorizacion(
        monto_bruto=bruto,
        retencion_monto=retencion,
        adelanto_directo_monto=adelanto_directo,
        adelanto_materiales_monto=adelanto_materiales,
        penalidades_monto=penalidades,
        otras_deducciones_monto=otras,
        total_deducciones=total,
        monto_neto=neto,
        porcentaje_avance_fisico=totales.porcentaje_promedio_avance,
        cantidad_partidas=totales.cantidad_partidas,
        advertencias=tuple(advertencias),
        errores_calculo=tuple(errores),
    )

    logger.info("execution_valuation_completed", extra={
        "obra_id": obra.id if obra else None,
        "monto_bruto": str(result.monto_bruto),
        "total_deducciones": str(result.total_deducciones),
        "monto_neto": str(result.monto_neto),
        "porcentaje_avance_fisico": str(result.porcentaje_avance_fisico),
        "warning_count": len(result.advertencias),
        "error_count": len(result.errores_calculo),
    })

    return result

