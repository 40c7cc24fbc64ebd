"""
Deduction Policy -- statutory rates and caps for valorizations.

Responsibility:
    Define, in exactly one place, every rate the valorization calculators
    apply: the 5% guarantee retention, the 18% IGV, the advance-payment
    caps (30% direct, 20% materials) and the 5% metrado tolerance.  Provide
    the amount helpers the calculators use so no rate literal appears
    anywhere else.

Architecture position:
    Engines -- pure value object, zero I/O.

Invariants enforced:
    - The guarantee retention is a class-level constant.  There is no
      constructor parameter for it and ``from_normativa`` rejects any
      normativa that declares a different rate.
    - Advance caps may be tightened by a normativa but never raised above
      the statutory ceiling.

Failure modes:
    - ``ValueError`` when a policy is constructed with caps outside the
      statutory range.
    - ``NormativaInvalidaError`` from ``from_normativa`` when the
      normativa declares a non-statutory retention.

Usage:
    from obras_engines.deducciones import POLITICA_DEDUCCIONES, TipoAdelanto

    error = POLITICA_DEDUCCIONES.validar_porcentaje_adelanto(
        TipoAdelanto.DIRECTO, Decimal("35"),
    )
    # "adelanto directo cannot exceed 30%"
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from obras_kernel.domain.values import CIEN, ZERO, redondear
from obras_kernel.exceptions import NormativaInvalidaError

if TYPE_CHECKING:
    from obras_config.schema import NormativaDef

RETENCION_GARANTIA = Decimal("0.05")
IGV_RATE = Decimal("0.18")
ADELANTO_DIRECTO_MAX = Decimal("30")
ADELANTO_MATERIALES_MAX = Decimal("20")
TOLERANCIA_METRADO = Decimal("0.05")


class TipoAdelanto(str, Enum):
    """Kind of advance payment amortized in an execution valorization."""

    DIRECTO = "directo"
    MATERIALES = "materiales"


@dataclass(frozen=True)
class DeductionPolicy:
    """
    Rates and caps applied by the valorization calculators.

    Contract:
        Percentages (``adelanto_*_max``) are on a 0-100 scale; the retention
        and IGV rates are fractions.

    Raises:
        ValueError: If a cap is negative or above its statutory ceiling.
    """

    RETENCION_GARANTIA: ClassVar[Decimal] = RETENCION_GARANTIA
    IGV_RATE: ClassVar[Decimal] = IGV_RATE
    TOLERANCIA_METRADO: ClassVar[Decimal] = TOLERANCIA_METRADO

    adelanto_directo_max: Decimal = ADELANTO_DIRECTO_MAX
    adelanto_materiales_max: Decimal = ADELANTO_MATERIALES_MAX

    def __post_init__(self) -> None:
        if not ZERO <= self.adelanto_directo_max <= ADELANTO_DIRECTO_MAX:
            raise ValueError(
                f"adelanto_directo_max must be within 0..{ADELANTO_DIRECTO_MAX}"
            )
        if not ZERO <= self.adelanto_materiales_max <= ADELANTO_MATERIALES_MAX:
            raise ValueError(
                f"adelanto_materiales_max must be within 0..{ADELANTO_MATERIALES_MAX}"
            )

    @classmethod
    def from_normativa(cls, normativa: NormativaDef) -> DeductionPolicy:
        """Build a policy whose caps come from a configured normativa.

        Raises:
            NormativaInvalidaError: If the normativa declares a retention
                other than the statutory 5% or caps above the ceilings.
        """
        if normativa.porcentaje_retencion_garantia != RETENCION_GARANTIA:
            raise NormativaInvalidaError(
                normativa.codigo,
                f"guarantee retention is fixed at {RETENCION_GARANTIA}",
            )
        try:
            return cls(
                adelanto_directo_max=normativa.porcentaje_adelanto_directo_max,
                adelanto_materiales_max=normativa.porcentaje_adelanto_materiales_max,
            )
        except ValueError as exc:
            raise NormativaInvalidaError(normativa.codigo, str(exc)) from exc

    def limite_adelanto(self, tipo: TipoAdelanto) -> Decimal:
        match tipo:
            case TipoAdelanto.DIRECTO:
                return self.adelanto_directo_max
            case TipoAdelanto.MATERIALES:
                return self.adelanto_materiales_max
            case _:
                raise ValueError(f"Unknown advance type: {tipo}")

    def validar_porcentaje_adelanto(
        self, tipo: TipoAdelanto, valor: Decimal
    ) -> str | None:
        """Return an error message when ``valor`` is outside ``0..cap``."""
        if valor < 0:
            return f"adelanto {tipo.value} cannot be negative"
        limite = self.limite_adelanto(tipo)
        if valor > limite:
            return f"adelanto {tipo.value} cannot exceed {limite.normalize():f}%"
        return None

    def retencion(self, monto_bruto: Decimal) -> Decimal:
        """Guarantee retention on a gross amount."""
        return redondear(monto_bruto * self.RETENCION_GARANTIA)

    def adelanto(self, monto_bruto: Decimal, porcentaje: Decimal) -> Decimal:
        """Advance amortization: ``bruto * porcentaje / 100``."""
        return redondear(monto_bruto * porcentaje / CIEN)

    def igv(self, monto: Decimal) -> Decimal:
        return redondear(monto * self.IGV_RATE)

    def limite_tolerancia(self, metrado_contractual: Decimal) -> Decimal:
        """Upper bound of the metrado tolerance band."""
        return metrado_contractual * (1 + self.TOLERANCIA_METRADO)


POLITICA_DEDUCCIONES = DeductionPolicy()
