"""
Valorization Domain Models (``obras_modules.valorizaciones.models``).

Responsibility
--------------
Frozen value objects for the two billing kinds -- execution
(``ValorizacionEjecucion``) and supervision (``ValorizacionSupervision``) --
plus the lifecycle state enum and the state-history entry.  The two kinds
form the tagged union ``Valorizacion``; code that handles valorizations
dispatches with ``match`` on the concrete class.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O.  Records are created
and advanced only by ``ValorizacionStateMachine`` in ``service.py``; every
change yields a new instance.

Invariants enforced
-------------------
* All monetary fields are ``Decimal`` (carried in the embedded breakdown).
* ``historial`` is append-only: the state machine copies and extends it.
* ``dias_atraso`` is never negative.
* ``errores_validacion`` holds the validation errors of the last edit; with
  the breakdown's ``errores_calculo`` they gate submission.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from obras_engines.ejecucion import CalculosValorizacion, DeduccionesEjecucion
from obras_engines.partidas import PartidaSeleccionada
from obras_engines.supervision import (
    CalculosSupervision,
    DeduccionesSupervision,
    DiasSupervision,
)


class EstadoValorizacion(str, Enum):
    """Valorization lifecycle states.  Must align with ``workflows.VALORIZACION_WORKFLOW.states``."""
    BORRADOR = "BORRADOR"
    PRESENTADA = "PRESENTADA"
    EN_REVISION = "EN_REVISION"
    OBSERVADA = "OBSERVADA"
    APROBADA = "APROBADA"
    PAGADA = "PAGADA"
    RECHAZADA = "RECHAZADA"


ESTADOS_EDITABLES = frozenset({EstadoValorizacion.BORRADOR, EstadoValorizacion.OBSERVADA})


@dataclass(frozen=True)
class CambioEstado:
    """One entry of a valorization's state history."""
    estado_anterior: EstadoValorizacion
    estado_nuevo: EstadoValorizacion
    fecha_cambio: datetime
    motivo: str | None = None
    usuario_responsable: str | None = None


@dataclass(frozen=True)
class ValorizacionEjecucion:
    """Contractor's progress billing for one period."""
    id: UUID
    obra_id: str
    numero_valorizacion: int
    periodo_inicio: date
    periodo_fin: date
    partidas: tuple[PartidaSeleccionada, ...]
    deducciones: DeduccionesEjecucion
    calculos: CalculosValorizacion
    errores_validacion: tuple[str, ...] = ()
    residente_obra: str | None = None
    supervisor_obra: str | None = None
    observaciones: str | None = None
    estado: EstadoValorizacion = EstadoValorizacion.BORRADOR
    dias_atraso: int = 0
    fecha_presentacion: date | None = None
    fecha_limite_pago: date | None = None
    fecha_aprobacion: date | None = None
    fecha_pago: date | None = None
    motivo_rechazo: str | None = None
    historial: tuple[CambioEstado, ...] = ()

    def __post_init__(self) -> None:
        if self.dias_atraso < 0:
            raise ValueError(f"dias_atraso cannot be negative: {self.dias_atraso}")

    @property
    def monto_bruto(self) -> Decimal:
        return self.calculos.monto_bruto

    @property
    def total_deducciones(self) -> Decimal:
        return self.calculos.total_deducciones

    @property
    def monto_neto(self) -> Decimal:
        return self.calculos.monto_neto

    @property
    def porcentaje_avance_fisico(self) -> Decimal:
        return self.calculos.porcentaje_avance_fisico

    @property
    def errores_pendientes(self) -> tuple[str, ...]:
        """Blocking messages stored at the last edit, deduplicated."""
        return tuple(dict.fromkeys(self.errores_validacion + self.calculos.errores_calculo))


@dataclass(frozen=True)
class ValorizacionSupervision:
    """Supervising firm's billing for one period."""
    id: UUID
    obra_id: str
    numero_valorizacion: int
    periodo_inicio: date
    periodo_fin: date
    dias: DiasSupervision
    deducciones: DeduccionesSupervision
    calculos: CalculosSupervision
    errores_validacion: tuple[str, ...] = ()
    supervisor_responsable: str | None = None
    observaciones: str | None = None
    estado: EstadoValorizacion = EstadoValorizacion.BORRADOR
    dias_atraso: int = 0
    fecha_presentacion: date | None = None
    fecha_limite_pago: date | None = None
    fecha_aprobacion: date | None = None
    fecha_pago: date | None = None
    motivo_rechazo: str | None = None
    historial: tuple[CambioEstado, ...] = ()

    def __post_init__(self) -> None:
        if self.dias_atraso < 0:
            raise ValueError(f"dias_atraso cannot be negative: {self.dias_atraso}")

    @property
    def tarifa_diaria(self) -> Decimal:
        return self.calculos.tarifa_diaria

    @property
    def monto_bruto(self) -> Decimal:
        return self.calculos.monto_bruto

    @property
    def retencion_monto(self) -> Decimal:
        return self.calculos.retencion_monto

    @property
    def total_deducciones(self) -> Decimal:
        return self.calculos.total_deducciones

    @property
    def monto_neto(self) -> Decimal:
        return self.calculos.monto_neto

    @property
    def igv_monto(self) -> Decimal:
        return self.calculos.igv_monto

    @property
    def monto_total(self) -> Decimal:
        return self.calculos.monto_total

    @property
    def errores_pendientes(self) -> tuple[str, ...]:
        """Blocking messages stored at the last edit, deduplicated."""
        return tuple(dict.fromkeys(self.errores_validacion + self.calculos.errores_calculo))


Valorizacion = ValorizacionEjecucion | ValorizacionSupervision
