"""
Obra and Partida -- read-only reference aggregates.

Responsibility:
    Immutable snapshots of the contract (Obra) and its bill-of-quantities
    lines (Partida) as handed to the engines by the caller.  The engines
    never load or store them; two collaborator protocols describe how a
    caller resolves them by id.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - Contract amounts, metrados and unit prices are non-negative Decimals.
    - ``Partida.monto_contractual`` is always derived, never stored.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable

from obras_kernel.domain.values import to_decimal


class EstadoObra(str, Enum):
    REGISTRADA = "REGISTRADA"
    EN_EJECUCION = "EN_EJECUCION"
    PARALIZADA = "PARALIZADA"
    TERMINADA = "TERMINADA"
    LIQUIDADA = "LIQUIDADA"
    CANCELADA = "CANCELADA"


class MetodoMedicion(str, Enum):
    """How a period quantity was measured on site."""

    TOPOGRAFICO = "TOPOGRAFICO"
    MANUAL = "MANUAL"
    ESTIMADO = "ESTIMADO"
    CALCULO = "CALCULO"
    OTROS = "OTROS"


@dataclass(frozen=True)
class Obra:
    """
    Public-works contract snapshot.

    Contract:
        ``monto_ejecucion`` is the execution contract amount,
        ``monto_supervision`` the supervision contract amount and
        ``plazo_ejecucion_dias`` the contractual term used to derive the
        supervision daily rate.  ``fecha_fin_prevista`` may be None for
        contracts without a scheduled end.

    Raises:
        ValueError: If an amount is negative.
    """

    id: str
    nombre: str
    monto_ejecucion: Decimal
    monto_supervision: Decimal
    plazo_ejecucion_dias: int
    fecha_inicio: date
    fecha_fin_prevista: date | None = None
    estado: EstadoObra = EstadoObra.EN_EJECUCION
    numero_contrato: str | None = None

    def __post_init__(self) -> None:
        for name in ("monto_ejecucion", "monto_supervision"):
            value = to_decimal(getattr(self, name), name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class Partida:
    """
    One line of the contract's bill of quantities.

    Raises:
        ValueError: If ``metrado_contractual`` or ``precio_unitario`` is
            negative.
    """

    id: str
    codigo: str
    descripcion: str
    unidad_medida: str
    metrado_contractual: Decimal
    precio_unitario: Decimal
    categoria: str | None = None
    numero_orden: int = 0

    def __post_init__(self) -> None:
        for name in ("metrado_contractual", "precio_unitario"):
            value = to_decimal(getattr(self, name), name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")
            object.__setattr__(self, name, value)

    @property
    def monto_contractual(self) -> Decimal:
        return self.metrado_contractual * self.precio_unitario


@runtime_checkable
class ObraLookup(Protocol):
    """Resolves an Obra by id; returns None when it does not exist."""

    def obtener_obra(self, obra_id: str) -> Obra | None:
        ...


@runtime_checkable
class CatalogoPartidasLookup(Protocol):
    """Resolves the partida catalog of an Obra."""

    def partidas_de_obra(self, obra_id: str) -> Sequence[Partida]:
        ...
