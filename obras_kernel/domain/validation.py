"""
Validation issue types (``obras_kernel.domain.validation``).

Pure value objects used by every engine that reports business-rule findings.
Engines return these instead of raising: an ``error`` issue blocks
submission, a ``warning`` issue is advisory only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Self


class TipoIssue(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ErrorValidacion:
    """
    A single validation finding.

    Contract:
        ``campo`` names the input field the finding refers to, ``mensaje`` is
        human-readable.  ``tipo`` decides whether the finding blocks.

    Non-goals:
        Does NOT raise -- it IS the error representation.
    """

    campo: str
    mensaje: str
    tipo: TipoIssue = TipoIssue.ERROR

    @property
    def es_bloqueante(self) -> bool:
        return self.tipo == TipoIssue.ERROR

    @classmethod
    def error(cls, campo: str, mensaje: str) -> Self:
        return cls(campo=campo, mensaje=mensaje, tipo=TipoIssue.ERROR)

    @classmethod
    def advertencia(cls, campo: str, mensaje: str) -> Self:
        return cls(campo=campo, mensaje=mensaje, tipo=TipoIssue.WARNING)


@dataclass(frozen=True)
class ResultadoValidacion:
    """
    Aggregate of zero or more validation findings.

    Guarantees:
        - ``issues`` is always a tuple, in the order the checks ran.
        - ``valida`` is True only when no ``error`` issue is present;
          warnings never affect it.
        - bool(result) == result.valida.
    """

    issues: tuple[ErrorValidacion, ...] = field(default_factory=tuple)

    @property
    def errores(self) -> tuple[ErrorValidacion, ...]:
        return tuple(i for i in self.issues if i.tipo == TipoIssue.ERROR)

    @property
    def advertencias(self) -> tuple[ErrorValidacion, ...]:
        return tuple(i for i in self.issues if i.tipo == TipoIssue.WARNING)

    @property
    def valida(self) -> bool:
        return not self.errores

    @property
    def puede_presentar(self) -> bool:
        """Submission is allowed only with zero blocking errors."""
        return self.valida

    def mensajes_error(self) -> tuple[str, ...]:
        return tuple(i.mensaje for i in self.errores)

    def combinar(self, other: ResultadoValidacion) -> ResultadoValidacion:
        return ResultadoValidacion(issues=self.issues + other.issues)

    def __bool__(self) -> bool:
        return self.valida
