"""
Consortium Participation Validator.

A consorcio is a joint venture of contractor companies, each holding a
percentage share.  Shares must be positive, add up to 100% to the cent,
name each company once, and designate at most one leader.

Pure function, no I/O.  Returns the first blocking finding (or None); the
order of the checks is part of the contract because callers display only
one message per form.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from obras_engines.tracer import traced_engine
from obras_kernel.domain.validation import ErrorValidacion
from obras_kernel.domain.values import CIEN, redondear, to_decimal
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.consorcio")

TOLERANCIA_SUMA = Decimal("0.01")

MSG_SIN_INTEGRANTES = "at least one member required"
MSG_PORCENTAJE_NO_POSITIVO = "every member must have a participation greater than 0%"
MSG_LIDER_DUPLICADO = "only one member can be the leader"


@dataclass(frozen=True)
class ParticipacionEmpresa:
    """A member company's share of the consortium."""

    empresa_id: str
    porcentaje_participacion: Decimal
    es_lider: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "porcentaje_participacion",
            to_decimal(self.porcentaje_participacion, "porcentaje_participacion"),
        )


@traced_engine("consortium", "1.0", fingerprint_fields=("participaciones",))
def validar_consorcio(
    participaciones: Sequence[ParticipacionEmpresa],
) -> ErrorValidacion | None:
    """Check a consortium's participation list.

    Rules, first failure wins:
        1. at least one member;
        2. every share > 0;
        3. shares sum to 100 (a difference of 0.01 or more fails, and the
           message reports the actual sum to two decimals);
        4. no company listed twice;
        5. at most one leader.
    """
    if not participaciones:
        return ErrorValidacion.error("integrantes", MSG_SIN_INTEGRANTES)

    if any(p.porcentaje_participacion <= 0 for p in participaciones):
        return ErrorValidacion.error("porcentajes", MSG_PORCENTAJE_NO_POSITIVO)

    suma = sum((p.porcentaje_participacion for p in participaciones), Decimal("0"))
    if abs(suma - CIEN) >= TOLERANCIA_SUMA:
        logger.info("consortium_sum_mismatch", extra={"suma": str(suma)})
        return ErrorValidacion.error(
            "porcentajes",
            f"participation percentages must sum to 100%; actual: {redondear(suma)}%",
        )

    vistos: set[str] = set()
    for p in participaciones:
        if p.empresa_id in vistos:
            return ErrorValidacion.error(
                "integrantes", f"company {p.empresa_id} is listed more than once"
            )
        vistos.add(p.empresa_id)

    if sum(1 for p in participaciones if p.es_lider) > 1:
        return ErrorValidacion.error("es_lider", MSG_LIDER_DUPLICADO)

    return None
