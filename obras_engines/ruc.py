"""
RUC Validator - Peruvian taxpayer identifier checks.

A RUC (Registro Único de Contribuyentes) is an 11-digit identifier whose
two-digit prefix encodes the taxpayer kind: ``10`` for natural persons
(the remaining digits embed the person's DNI) and ``20`` for legal
entities.  The last digit is a modulo-11 check digit.

Pure functions, no I/O.  Remote lookups against the tax authority are out
of scope; this module only checks shape.

Usage:
    from obras_engines.ruc import validar_ruc, TipoContribuyente

    resultado = validar_ruc("20123456789")
    resultado.valido   # True
    resultado.tipo     # TipoContribuyente.JURIDICA

    validar_ruc("10123456789", contexto_empresa=True).error
    # "must start with 20 for companies"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from obras_engines.tracer import traced_engine
from obras_kernel.domain.validation import ErrorValidacion
from obras_kernel.logging_config import get_logger

logger = get_logger("engines.ruc")

RUC_LONGITUD = 11
DNI_LONGITUD = 8
_FACTORES = (5, 4, 3, 2, 7, 6, 5, 4, 3, 2)

MSG_REQUERIDO = "required"
MSG_LONGITUD = "must be 11 digits"
MSG_NUMERICO = "numeric only"
MSG_EMPRESA = "must start with 20 for companies"
MSG_DIGITO = "invalid check digit"


class TipoContribuyente(str, Enum):
    """Taxpayer kind derived from the RUC prefix."""

    NATURAL = "NATURAL"  # 10
    JURIDICA = "JURIDICA"  # 20
    UNKNOWN = "UNKNOWN"


_PREFIJOS = {
    "10": TipoContribuyente.NATURAL,
    "20": TipoContribuyente.JURIDICA,
}


@dataclass(frozen=True)
class ResultadoRuc:
    """Outcome of a RUC check. ``error`` is None when ``valido``."""

    valido: bool
    tipo: TipoContribuyente
    error: str | None = None

    def como_error_validacion(self, campo: str = "ruc") -> ErrorValidacion | None:
        if self.valido:
            return None
        return ErrorValidacion.error(campo, f"RUC {self.error}")


def tipo_contribuyente(ruc: str) -> TipoContribuyente:
    """Classify by prefix only; does not check length or digits."""
    return _PREFIJOS.get(ruc.strip()[:2], TipoContribuyente.UNKNOWN)


def calcular_digito_verificador(ruc: str) -> int:
    """Modulo-11 check digit over the first ten digits of ``ruc``.

    Raises:
        ValueError: If the first ten characters are not all digits.
    """
    base = ruc[:10]
    if len(base) != 10 or not base.isdigit():
        raise ValueError(f"RUC base must be 10 digits, got {base!r}")
    suma = sum(int(d) * f for d, f in zip(base, _FACTORES))
    resto = suma % 11
    return resto if resto < 2 else 11 - resto


@traced_engine("ruc", "1.0")
def validar_ruc(
    ruc: str | None,
    *,
    contexto_empresa: bool = False,
    verificar_digito: bool = False,
) -> ResultadoRuc:
    """Validate a RUC's shape and classify it.

    Rules are applied in order and the first failure wins: presence,
    length, digits-only, then (for company contexts) the ``20`` prefix and
    (when requested) the check digit.

    Args:
        ruc: Candidate identifier. Surrounding whitespace is ignored.
        contexto_empresa: Require a legal-entity (``20``) prefix.
        verificar_digito: Also verify the modulo-11 check digit.
    """
    valor = (ruc or "").strip()
    if not valor:
        return ResultadoRuc(False, TipoContribuyente.UNKNOWN, MSG_REQUERIDO)
    if len(valor) != RUC_LONGITUD:
        return ResultadoRuc(False, TipoContribuyente.UNKNOWN, MSG_LONGITUD)
    if not (valor.isascii() and valor.isdigit()):
        return ResultadoRuc(False, TipoContribuyente.UNKNOWN, MSG_NUMERICO)

    tipo = tipo_contribuyente(valor)
    if contexto_empresa and tipo != TipoContribuyente.JURIDICA:
        return ResultadoRuc(False, tipo, MSG_EMPRESA)
    if verificar_digito and int(valor[-1]) != calcular_digito_verificador(valor):
        logger.debug("ruc_check_digit_mismatch", extra={"tipo": tipo.value})
        return ResultadoRuc(False, tipo, MSG_DIGITO)

    return ResultadoRuc(True, tipo)


def extraer_dni(ruc: str) -> str | None:
    """The 8-digit DNI embedded in a natural-person RUC, else None."""
    valor = ruc.strip()
    if len(valor) != RUC_LONGITUD or not valor.isdigit():
        return None
    if tipo_contribuyente(valor) != TipoContribuyente.NATURAL:
        return None
    return valor[2:10]


def validar_dni(dni: str | None) -> bool:
    """A DNI is exactly eight ASCII digits."""
    valor = (dni or "").strip()
    return len(valor) == DNI_LONGITUD and valor.isascii() and valor.isdigit()
