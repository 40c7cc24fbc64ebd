"""
Recompute entry point for valorization drafts.

Responsibility:
    The caller owns an immutable draft (``BorradorEjecucion`` or
    ``BorradorSupervision``) and, after every edit, calls
    ``recalcular(borrador)`` to obtain the validation findings and the
    billing breakdown together.  There are no implicit triggers: nothing
    recomputes unless the caller asks.

Architecture position:
    Engines -- orchestrates the ValidationEngine and the two calculators.
    Pure, no I/O; the only hard failure is ``resolver_obra`` when the
    collaborator lookup has no such Obra.

Invariants enforced:
    - ``recalcular`` is idempotent: identical drafts yield equal results.
    - Draft edits (``seleccionar``, ``quitar``, ``con_*``) return new
      drafts and never mutate.
    - Both draft kinds are handled by exhaustive ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from obras_engines.deducciones import POLITICA_DEDUCCIONES, DeductionPolicy
from obras_engines.ejecucion import (
    CalculosValorizacion,
    DeduccionesEjecucion,
    calcular_ejecucion,
)
from obras_engines.partidas import PartidaLedger, ValidacionMetrado
from obras_engines.supervision import (
    CalculosSupervision,
    DeduccionesSupervision,
    DiasSupervision,
    calcular_supervision,
)
from obras_engines.validacion import validar_ejecucion, validar_supervision
from obras_kernel.domain.obra import Obra, ObraLookup
from obras_kernel.domain.validation import ResultadoValidacion
from obras_kernel.exceptions import ObraNoEncontradaError
from obras_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.recalculo")


@dataclass(frozen=True)
class BorradorEjecucion:
    """In-progress execution valorization owned by the caller."""

    obra: Obra | None
    ledger: PartidaLedger
    periodo_inicio: date | None = None
    periodo_fin: date | None = None
    deducciones: DeduccionesEjecucion = field(default_factory=DeduccionesEjecucion)
    residente_obra: str | None = None
    supervisor_obra: str | None = None
    observaciones: str | None = None

    def seleccionar(
        self, partida_id: str, metrado: Any, **kwargs: Any
    ) -> tuple[BorradorEjecucion, ValidacionMetrado]:
        """Upsert a partida quantity; the draft is unchanged when rejected."""
        resultado = self.ledger.seleccionar(partida_id, metrado, **kwargs)
        if not resultado.aplicada:
            return self, resultado.validacion
        return replace(self, ledger=resultado.ledger), resultado.validacion

    def quitar(self, partida_id: str) -> BorradorEjecucion:
        return replace(self, ledger=self.ledger.quitar(partida_id))

    def con_deducciones(self, deducciones: DeduccionesEjecucion) -> BorradorEjecucion:
        return replace(self, deducciones=deducciones)

    def con_periodo(self, inicio: date | None, fin: date | None) -> BorradorEjecucion:
        return replace(self, periodo_inicio=inicio, periodo_fin=fin)


@dataclass(frozen=True)
class BorradorSupervision:
    """In-progress supervision valorization owned by the caller."""

    obra: Obra | None
    periodo_inicio: date | None = None
    periodo_fin: date | None = None
    dias: DiasSupervision = field(default_factory=DiasSupervision)
    deducciones: DeduccionesSupervision = field(default_factory=DeduccionesSupervision)
    supervisor_responsable: str | None = None
    periodos_ejecucion: tuple[tuple[date, date], ...] | None = None
    observaciones: str | None = None

    def con_dias(self, dias: DiasSupervision) -> BorradorSupervision:
        return replace(self, dias=dias)

    def con_deducciones(
        self, deducciones: DeduccionesSupervision
    ) -> BorradorSupervision:
        return replace(self, deducciones=deducciones)

    def con_periodo(self, inicio: date | None, fin: date | None) -> BorradorSupervision:
        return replace(self, periodo_inicio=inicio, periodo_fin=fin)


Borrador = BorradorEjecucion | BorradorSupervision


@dataclass(frozen=True)
class ResultadoRecalculo:
    """Validation findings plus the billing breakdown of one draft."""

    calculos: CalculosValorizacion | CalculosSupervision
    validacion: ResultadoValidacion

    @property
    def errores(self) -> tuple[str, ...]:
        """Blocking messages from validation and calculation, deduplicated."""
        mensajes = self.validacion.mensajes_error() + self.calculos.errores_calculo
        return tuple(dict.fromkeys(mensajes))

    @property
    def advertencias(self) -> tuple[str, ...]:
        mensajes = (
            tuple(i.mensaje for i in self.validacion.advertencias)
            + self.calculos.advertencias
        )
        return tuple(dict.fromkeys(mensajes))

    @property
    def puede_presentar(self) -> bool:
        return not self.errores


def recalcular(
    borrador: Borrador,
    *,
    politica: DeductionPolicy = POLITICA_DEDUCCIONES,
) -> ResultadoRecalculo:
    """Validate and compute a draft of either kind.

    Raises:
        TypeError: If ``borrador`` is not one of the two draft kinds.
    """
    obra_id = borrador.obra.id if getattr(borrador, "obra", None) else None
    with LogContext.bind(obra_id=obra_id):
        match borrador:
            case BorradorEjecucion():
                validacion = validar_ejecucion(
                    borrador.obra,
                    borrador.periodo_inicio,
                    borrador.periodo_fin,
                    borrador.residente_obra,
                )
                calculos = calcular_ejecucion(
                    borrador.ledger, borrador.deducciones, borrador.obra,
                    politica=politica,
                )
            case BorradorSupervision():
                validacion = validar_supervision(
                    borrador.obra,
                    borrador.periodo_inicio,
                    borrador.periodo_fin,
                    borrador.dias,
                    borrador.supervisor_responsable,
                    periodos_ejecucion=borrador.periodos_ejecucion,
                )
                calculos = calcular_supervision(
                    borrador.periodo_inicio,
                    borrador.periodo_fin,
                    borrador.dias,
                    borrador.deducciones,
                    borrador.obra,
                    politica=politica,
                )
            case _:
                raise TypeError(f"Unsupported draft type: {type(borrador).__name__}")

        resultado = ResultadoRecalculo(calculos=calculos, validacion=validacion)
        logger.info("draft_recalculated", extra={
            "draft_type": type(borrador).__name__,
            "error_count": len(resultado.errores),
            "warning_count": len(resultado.advertencias),
            "puede_presentar": resultado.puede_presentar,
        })
        return resultado


def resolver_obra(obras: ObraLookup, obra_id: str) -> Obra:
    """Fetch an Obra through the collaborator lookup.

    Raises:
        ObraNoEncontradaError: If the lookup returns None.
    """
    obra = obras.obtener_obra(obra_id)
    if obra is None:
        logger.error("obra_not_found", extra={"obra_ref": obra_id})
        raise ObraNoEncontradaError(obra_id)
    return obra
