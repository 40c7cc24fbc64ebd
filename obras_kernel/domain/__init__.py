"""
Pure domain layer.

This module contains pure value objects and helpers with NO dependencies on:
- Database
- Time/clock (other than the injectable Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from obras_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from obras_kernel.domain.obra import (
    CatalogoPartidasLookup,
    EstadoObra,
    MetodoMedicion,
    Obra,
    ObraLookup,
    Partida,
)
from obras_kernel.domain.validation import (
    ErrorValidacion,
    ResultadoValidacion,
    TipoIssue,
)
from obras_kernel.domain.values import (
    dias_inclusivos,
    porcentaje,
    redondear,
    to_decimal,
)
from obras_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "CatalogoPartidasLookup",
    "Clock",
    "DeterministicClock",
    "ErrorValidacion",
    "EstadoObra",
    "Guard",
    "MetodoMedicion",
    "Obra",
    "ObraLookup",
    "Partida",
    "ResultadoValidacion",
    "SystemClock",
    "TipoIssue",
    "Transition",
    "Workflow",
    "dias_inclusivos",
    "porcentaje",
    "redondear",
    "to_decimal",
]
