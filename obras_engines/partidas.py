"""
Partida Ledger - period quantities measured against the contract catalog.

Responsibility:
    Hold an Obra's partida catalog together with the quantities
    (metrados) claimed for the current billing period, enforce the 5%
    quantity-tolerance rule, and summarize the selection for the execution
    calculator.

Architecture position:
    Engines -- pure, caller-owned draft.  Every operation returns a new
    ledger; nothing is mutated in place, so concurrent drafts never share
    state.

Invariants enforced:
    - At most one selection per partida.
    - A rejected selection (metrado <= 0 or above contractual x 1.05)
      never changes the ledger.
    - ``metrado_total_contractual`` sums only the selected partidas.

Failure modes:
    - ``CatalogoCorruptoError`` at construction when catalog ids repeat or
      a selection references a partida outside the catalog.
    - Metrado findings are returned as ``ValidacionMetrado``, not raised.

Usage:
    ledger = PartidaLedger(catalogo=partidas)
    resultado = ledger.seleccionar("P-01", Decimal("102"))
    resultado.validacion.tipo     # TipoIssue.WARNING
    ledger = resultado.ledger
    ledger.totales().monto_total
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from obras_engines.deducciones import POLITICA_DEDUCCIONES, DeductionPolicy
from obras_kernel.domain.obra import CatalogoPartidasLookup, MetodoMedicion, Partida
from obras_kernel.domain.validation import TipoIssue
from obras_kernel.domain.values import ZERO, porcentaje, redondear, to_decimal
from obras_kernel.exceptions import CatalogoCorruptoError
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.partidas")

MSG_METRADO_NO_POSITIVO = "metrado must be greater than zero"
MSG_EXCEDE_TOLERANCIA = "exceeds contractual + 5% tolerance"
MSG_DENTRO_TOLERANCIA = "within 5% tolerance"
MSG_PARTIDA_DESCONOCIDA = "partida not found in catalog"
MSG_METRADO_NO_NUMERICO = "metrado must be numeric"


@dataclass(frozen=True)
class PartidaSeleccionada:
    """One measured line for the current billing period."""

    partida_id: str
    metrado_actual: Decimal
    fecha_medicion: date | None = None
    metodo_medicion: MetodoMedicion = MetodoMedicion.MANUAL


@dataclass(frozen=True)
class ValidacionMetrado:
    """Result of the tolerance check. ``tipo`` is None when clean."""

    valido: bool
    tipo: TipoIssue | None = None
    mensaje: str | None = None

    @classmethod
    def ok(cls) -> ValidacionMetrado:
        return cls(valido=True)

    @classmethod
    def error(cls, mensaje: str) -> ValidacionMetrado:
        return cls(valido=False, tipo=TipoIssue.ERROR, mensaje=mensaje)

    @classmethod
    def advertencia(cls, mensaje: str) -> ValidacionMetrado:
        return cls(valido=True, tipo=TipoIssue.WARNING, mensaje=mensaje)

    @property
    def es_advertencia(self) -> bool:
        return self.tipo == TipoIssue.WARNING


@dataclass(frozen=True)
class TotalesPartidas:
    """Summary of the current selection."""

    monto_total: Decimal
    metrado_total_contractual: Decimal
    metrado_total_ejecutado: Decimal
    porcentaje_promedio_avance: Decimal
    cantidad_partidas: int


@dataclass(frozen=True)
class DetallePartida:
    """Per-partida figures, current period and cumulative."""

    partida_id: str
    codigo: str
    descripcion: str
    unidad_medida: str
    metrado_contractual: Decimal
    precio_unitario: Decimal
    metrado_anterior: Decimal
    metrado_actual: Decimal
    metrado_acumulado: Decimal
    monto_actual: Decimal
    monto_acumulado: Decimal
    porcentaje_actual: Decimal
    porcentaje_acumulado: Decimal
    metrado_pendiente: Decimal
    monto_pendiente: Decimal


@dataclass(frozen=True)
class PartidaLedger:
    """
    Immutable draft of the period's measured partidas.

    Args:
        catalogo: Every partida of the Obra.
        selecciones: Quantities claimed this period, one per partida.
        metrados_anteriores: Quantities accumulated in earlier periods,
            keyed by partida id. Only used by ``detalle``.
        politica: Source of the tolerance rate.

    Raises:
        CatalogoCorruptoError: On duplicate catalog ids, duplicate
            selections, or selections outside the catalog.
    """

    catalogo: tuple[Partida, ...]
    selecciones: tuple[PartidaSeleccionada, ...] = ()
    metrados_anteriores: Mapping[str, Decimal] = field(
        default_factory=dict, hash=False
    )
    politica: DeductionPolicy = POLITICA_DEDUCCIONES
    _indice: Mapping[str, Partida] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "catalogo", tuple(self.catalogo))
        object.__setattr__(self, "selecciones", tuple(self.selecciones))

        indice: dict[str, Partida] = {}
        for partida in self.catalogo:
            if partida.id in indice:
                raise CatalogoCorruptoError("duplicate partida id", partida.id)
            indice[partida.id] = partida
        object.__setattr__(self, "_indice", MappingProxyType(indice))

        vistos: set[str] = set()
        for sel in self.selecciones:
            if sel.partida_id not in indice:
                raise CatalogoCorruptoError(
                    "selection references unknown partida", sel.partida_id
                )
            if sel.partida_id in vistos:
                raise CatalogoCorruptoError("duplicate selection", sel.partida_id)
            vistos.add(sel.partida_id)

        object.__setattr__(
            self,
            "metrados_anteriores",
            MappingProxyType(
                {
                    k: to_decimal(v, "metrado_anterior")
                    for k, v in self.metrados_anteriores.items()
                }
            ),
        )

    @classmethod
    def desde_catalogo(
        cls,
        catalogo: CatalogoPartidasLookup,
        obra_id: str,
        **kwargs: Any,
    ) -> PartidaLedger:
        """Start an empty draft from the collaborator's partida catalog."""
        return cls(catalogo=tuple(catalogo.partidas_de_obra(obra_id)), **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def partida(self, partida_id: str) -> Partida | None:
        return self._indice.get(partida_id)

    def seleccion(self, partida_id: str) -> PartidaSeleccionada | None:
        for sel in self.selecciones:
            if sel.partida_id == partida_id:
                return sel
        return None

    def validar_metrado(self, partida_id: str, metrado: Any) -> ValidacionMetrado:
        """Apply the tolerance rule to a candidate quantity.

        - not a finite number: error.
        - ``metrado <= 0``: error.
        - above ``contractual x 1.05``: error.
        - above contractual, up to 105%: valid with a warning.
        - otherwise: valid, no message.
        """
        partida = self._indice.get(partida_id)
        if partida is None:
            return ValidacionMetrado.error(MSG_PARTIDA_DESCONOCIDA)

        try:
            valor = to_decimal(metrado, "metrado")
        except ValueError:
            return ValidacionMetrado.error(MSG_METRADO_NO_NUMERICO)
        if valor <= 0:
            return ValidacionMetrado.error(MSG_METRADO_NO_POSITIVO)
        if valor > self.politica.limite_tolerancia(partida.metrado_contractual):
            return ValidacionMetrado.error(MSG_EXCEDE_TOLERANCIA)
        if valor > partida.metrado_contractual:
            return ValidacionMetrado.advertencia(MSG_DENTRO_TOLERANCIA)
        return ValidacionMetrado.ok()

    def validaciones(self) -> tuple[tuple[Partida, ValidacionMetrado], ...]:
        """Re-validate every selection against the catalog."""
        return tuple(
            (
                self._indice[sel.partida_id],
                self.validar_metrado(sel.partida_id, sel.metrado_actual),
            )
            for sel in self.selecciones
        )

    def totales(self) -> TotalesPartidas:
        """Summary over the selected partidas.

        ``porcentaje_promedio_avance`` is executed over contractual metrado
        of the *selected* partidas only, 0 when that denominator is 0.
        """
        monto = ZERO
        contractual = ZERO
        ejecutado = ZERO
        for sel in self.selecciones:
            partida = self._indice[sel.partida_id]
            monto += sel.metrado_actual * partida.precio_unitario
            contractual += partida.metrado_contractual
            ejecutado += sel.metrado_actual

        return TotalesPartidas(
            monto_total=redondear(monto),
            metrado_total_contractual=contractual,
            metrado_total_ejecutado=ejecutado,
            porcentaje_promedio_avance=porcentaje(ejecutado, contractual),
            cantidad_partidas=len(self.selecciones),
        )

    def detalle(self) -> tuple[DetallePartida, ...]:
        """Current and cumulative figures per selected partida."""
        filas: list[DetallePartida] = []
        for sel in self.selecciones:
            partida = self._indice[sel.partida_id]
            anterior = self.metrados_anteriores.get(sel.partida_id, ZERO)
            acumulado = anterior + sel.metrado_actual
            pendiente = max(partida.metrado_contractual - acumulado, ZERO)
            filas.append(
                DetallePartida(
                    partida_id=partida.id,
                    codigo=partida.codigo,
                    descripcion=partida.descripcion,
                    unidad_medida=partida.unidad_medida,
                    metrado_contractual=partida.metrado_contractual,
                    precio_unitario=partida.precio_unitario,
                    metrado_anterior=anterior,
                    metrado_actual=sel.metrado_actual,
                    metrado_acumulado=acumulado,
                    monto_actual=redondear(sel.metrado_actual * partida.precio_unitario),
                    monto_acumulado=redondear(acumulado * partida.precio_unitario),
                    porcentaje_actual=porcentaje(
                        sel.metrado_actual, partida.metrado_contractual
                    ),
                    porcentaje_acumulado=porcentaje(
                        acumulado, partida.metrado_contractual
                    ),
                    metrado_pendiente=pendiente,
                    monto_pendiente=redondear(pendiente * partida.precio_unitario),
                )
            )
        return tuple(filas)

    # ------------------------------------------------------------------
    # Draft edits (return new ledgers)
    # ------------------------------------------------------------------

    def seleccionar(
        self,
        partida_id: str,
        metrado: Any,
        *,
        fecha_medicion: date | None = None,
        metodo_medicion: MetodoMedicion = MetodoMedicion.MANUAL,
    ) -> ResultadoSeleccion:
        """Upsert the period quantity of a partida.

        The selection is applied when the tolerance check passes (possibly
        with a warning); on error the same ledger is returned unchanged.
        """
        validacion = self.validar_metrado(partida_id, metrado)
        if not validacion.valido:
            logger.debug(
                "partida_selection_rejected",
                extra={"partida_id": partida_id, "reason": validacion.mensaje},
            )
            return ResultadoSeleccion(ledger=self, validacion=validacion, aplicada=False)

        nueva = PartidaSeleccionada(
            partida_id=partida_id,
            metrado_actual=to_decimal(metrado, "metrado"),
            fecha_medicion=fecha_medicion,
            metodo_medicion=metodo_medicion,
        )
        if self.seleccion(partida_id) is not None:
            selecciones = tuple(
                nueva if sel.partida_id == partida_id else sel
                for sel in self.selecciones
            )
        else:
            selecciones = self.selecciones + (nueva,)

        return ResultadoSeleccion(
            ledger=replace(self, selecciones=selecciones),
            validacion=validacion,
            aplicada=True,
        )

    def quitar(self, partida_id: str) -> PartidaLedger:
        """Drop a partida's selection; returns ``self`` if it was not selected."""
        if self.seleccion(partida_id) is None:
            return self
        return replace(
            self,
            selecciones=tuple(
                sel for sel in self.selecciones if sel.partida_id != partida_id
            ),
        )


@dataclass(frozen=True)
class ResultadoSeleccion:
    """Outcome of ``PartidaLedger.seleccionar``."""

    ledger: PartidaLedger
    validacion: ValidacionMetrado
    aplicada: bool
