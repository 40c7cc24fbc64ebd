"""
Supervision Valuation Calculator.

Pure functions with deterministic behavior. No I/O.

The supervising firm bills per effective working day at a daily rate fixed
by the contract (``monto_supervision / plazo_ejecucion_dias``), independent
of the billing period.  Unlike execution valuations, supervision billing is
subject to IGV on the net amount.

    tarifa_diaria     = monto_supervision / plazo_ejecucion_dias
    monto_bruto       = dias_efectivos_trabajados x tarifa_diaria
    retencion_monto   = monto_bruto x 5%
    total_deducciones = retencion + penalidades + otras
    monto_neto        = monto_bruto - total_deducciones
    igv_monto         = monto_neto x 18%
    monto_total       = monto_neto + igv_monto

``tarifa_diaria`` is carried at full precision into ``monto_bruto`` and
only the reported value is quantized.

Usage:
    from obras_engines.supervision import calcular_supervision, DiasSupervision

    calculos = calcular_supervision(
        date(2025, 3, 1), date(2025, 3, 31),
        DiasSupervision(dias_efectivos_trabajados=20),
        DeduccionesSupervision(),
        obra,
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from obras_engines.deducciones import POLITICA_DEDUCCIONES, DeductionPolicy
from obras_engines.tracer import traced_engine
from obras_kernel.domain.obra import Obra
from obras_kernel.domain.values import ZERO, dias_inclusivos, porcentaje, redondear, to_decimal
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.supervision")

MSG_OBRA_REQUERIDA = "obra is required"
MSG_PLAZO_INVALIDO = "contract term must be positive"
MSG_PERIODO_NO_DEFINIDO = "period not set"
MSG_DEDUCCIONES_EXCEDEN = "deductions exceed gross amount"


@dataclass(frozen=True)
class DiasSupervision:
    """Day breakdown of a supervision period."""

    dias_efectivos_trabajados: int = 0
    dias_lluvia: int = 0
    dias_feriados: int = 0
    dias_suspension_obra: int = 0
    dias_otros_motivos: int = 0

    @property
    def dias_no_trabajados(self) -> int:
        return (
            self.dias_lluvia
            + self.dias_feriados
            + self.dias_suspension_obra
            + self.dias_otros_motivos
        )

    @property
    def total(self) -> int:
        return self.dias_efectivos_trabajados + self.dias_no_trabajados

    def como_dict(self) -> dict[str, int]:
        return {
            "dias_efectivos_trabajados": self.dias_efectivos_trabajados,
            "dias_lluvia": self.dias_lluvia,
            "dias_feriados": self.dias_feriados,
            "dias_suspension_obra": self.dias_suspension_obra,
            "dias_otros_motivos": self.dias_otros_motivos,
        }


@dataclass(frozen=True)
class DeduccionesSupervision:
    penalidades_monto: Decimal = ZERO
    otras_deducciones_monto: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("penalidades_monto", "otras_deducciones_monto"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))


@dataclass(frozen=True)
class CalculosSupervision:
    """Supervision billing breakdown for one period."""

    dias_periodo: int
    dias_no_trabajados: int
    tarifa_diaria: Decimal
    monto_bruto: Decimal
    retencion_monto: Decimal
    penalidades_monto: Decimal
    otras_deducciones_monto: Decimal
    total_deducciones: Decimal
    monto_neto: Decimal
    igv_monto: Decimal
    monto_total: Decimal
    porcentaje_dias_trabajados: Decimal
    porcentaje_dias_no_trabajados: Decimal
    advertencias: tuple[str, ...] = ()
    errores_calculo: tuple[str, ...] = ()

    @property
    def puede_presentar(self) -> bool:
        return not self.errores_calculo


def calcular_tarifa_diaria(obra: Obra) -> Decimal:
    """Unrounded daily supervision rate.

    Raises:
        ValueError: If the contract term is not positive.
    """
    if obra.plazo_ejecucion_dias <= 0:
        raise ValueError(MSG_PLAZO_INVALIDO)
    return obra.monto_supervision / Decimal(obra.plazo_ejecucion_dias)


@traced_engine(
    "valuation_supervision", "1.0",
    fingerprint_fields=("periodo_inicio", "periodo_fin", "dias", "deducciones", "obra"),
)
def calcular_supervision(
    periodo_inicio: date | None,
    periodo_fin: date | None,
    dias: DiasSupervision,
    deducciones: DeduccionesSupervision,
    obra: Obra | None,
    *,
    politica: DeductionPolicy = POLITICA_DEDUCCIONES,
) -> CalculosSupervision:
    """
    Compute the supervision valorization breakdown.

    Pure function - no side effects, no I/O, deterministic output.

    When the period is unset or reversed (zero days) every derived figure
    is 0 and the warning "period not set" is emitted.

    Returns:
        CalculosSupervision with amounts, warnings and errors.
    """
    logger.info("supervision_valuation_started", extra={
        "obra_id": obra.id if obra else None,
        "periodo_inicio": periodo_inicio.isoformat() if periodo_inicio else None,
        "periodo_fin": periodo_fin.isoformat() if periodo_fin else None,
        "dias_efectivos": dias.dias_efectivos_trabajados,
    })

    advertencias: list[str] = []
    errores: list[str] = []

    tarifa = ZERO
    if obra is None:
        errores.append(MSG_OBRA_REQUERIDA)
    elif obra.plazo_ejecucion_dias <= 0:
        errores.append(MSG_PLAZO_INVALIDO)
    else:
        tarifa = calcular_tarifa_diaria(obra)

    for name in ("penalidades_monto", "otras_deducciones_monto"):
        if getattr(deducciones, name) < 0:
            errores.append(f"{name} cannot be negative")

    dias_periodo = dias_inclusivos(periodo_inicio, periodo_fin)
    if dias_periodo == 0:
        advertencias.append(MSG_PERIODO_NO_DEFINIDO)
        result = CalculosSupervision(
            dias_periodo=0,
            dias_no_trabajados=dias.dias_no_trabajados,
            tarifa_diaria=redondear(ZERO),
            monto_bruto=redondear(ZERO),
            retencion_monto=redondear(ZERO),
            penalidades_monto=redondear(ZERO),
            otras_deducciones_monto=redondear(ZERO),
            total_deducciones=redondear(ZERO),
            monto_neto=redondear(ZERO),
            igv_monto=redondear(ZERO),
            monto_total=redondear(ZERO),
            porcentaje_dias_trabajados=redondear(ZERO),
            porcentaje_dias_no_trabajados=redondear(ZERO),
            advertencias=tuple(advertencias),
            errores_calculo=tuple(errores),
        )
        logger.warning("supervision_period_not_set", extra={
            "obra_id": obra.id if obra else None,
        })
        return result

    bruto = redondear(Decimal(dias.dias_efectivos_trabajados) * tarifa)
    retencion = politica.retencion(bruto)
    penalidades = redondear(deducciones.penalidades_monto)
    otras = redondear(deducciones.otras_deducciones_monto)
    total = retencion + penalidades + otras
    neto = bruto - total
    igv = politica.igv(neto)

    if neto < 0:
        errores.append(MSG_DEDUCCIONES_EXCEDEN)
        logger.warning("supervision_deductions_exceed_gross", extra={
            "monto_bruto": str(bruto),
            "total_deducciones": str(total),
        })

    result = CalculosSupervision(
        dias_periodo=dias_periodo,
        dias_no_trabajados=dias.dias_no_trabajados,
        tarifa_diaria=redondear(tarifa),
        monto_bruto=bruto,
        retencion_monto=retencion,
        penalidades_monto=penalidades,
        otras_deducciones_monto=otras,
        total_deducciones=total,
        monto_neto=neto,
        igv_monto=igv,
        monto_total=neto + igv,
        porcentaje_dias_trabajados=porcentaje(
            Decimal(dias.dias_efectivos_trabajados), Decimal(dias_periodo)
        ),
        porcentaje_dias_no_trabajados=porcentaje(
            Decimal(dias.dias_no_trabajados), Decimal(dias_periodo)
        ),
        advertencias=tuple(advertencias),
        errores_calculo=tuple(errores),
    )

    logger.info("supervision_valuation_completed", extra={
        "obra_id": obra.id if obra else None,
        "tarifa_diaria": str(result.tarifa_diaria),
        "monto_bruto": str(result.monto_bruto),
        "monto_neto": str(result.monto_neto),
        "igv_monto": str(result.igv_monto),
        "monto_total": str(result.monto_total),
        "dias_periodo": dias_periodo,
    })

    return result
