"""
Typed exception hierarchy for the valorizaciones kernel.

Only hard failures are raised. Business-rule findings (a metrado above the
tolerance band, a consortium that does not add up to 100%, a day budget that
overflows the period) are returned to the caller as validation issues and
never surface through this module.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ObrasKernelError (base)
    |
    +-- TransicionError
    |   +-- TransicionInvalidaError
    |       +-- PresentacionBloqueadaError
    |
    +-- ValorizacionError
    |   +-- ValorizacionInmutableError
    |   +-- CalculoBloqueadoError
    |
    +-- ReferenciaError
    |   +-- ObraNoEncontradaError
    |   +-- CatalogoCorruptoError
    |
    +-- NormativaError
        +-- NormativaNoEncontradaError
        +-- NormativaInvalidaError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                      | When Raised
--------------|---------------------------|--------------------------------------
Transition    | TRANSICION_INVALIDA       | (from, to) not in the workflow
              | PRESENTACION_BLOQUEADA    | Submit attempted with blocking errors
--------------|---------------------------|--------------------------------------
Valorization  | VALORIZACION_INMUTABLE    | Edit outside BORRADOR / OBSERVADA
              | CALCULO_BLOQUEADO         | Record created from an erroring breakdown
--------------|---------------------------|--------------------------------------
Reference     | OBRA_NO_ENCONTRADA        | Obra lookup returned nothing
              | CATALOGO_CORRUPTO         | Duplicate / malformed partida catalog
--------------|---------------------------|--------------------------------------
Normativa     | NORMATIVA_NO_ENCONTRADA   | No normativa in force on a date
              | NORMATIVA_INVALIDA        | Config file violates statutory limits

Every exception stores its context as attributes so that the structured log
formatter can serialize it (``exc_<attribute>`` fields).
"""

from __future__ import annotations

from collections.abc import Sequence


class ObrasKernelError(Exception):
    """
    Base exception for all valorizaciones kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "OBRAS_KERNEL_ERROR"


# Workflow transition exceptions


class TransicionError(ObrasKernelError):
    """Base exception for lifecycle transition errors."""

    code: str = "TRANSICION_ERROR"


class TransicionInvalidaError(TransicionError):
    """Requested state change is not an edge of the valorization workflow."""

    code: str = "TRANSICION_INVALIDA"

    def __init__(self, estado_actual: str, estado_solicitado: str):
        self.estado_actual = estado_actual
        self.estado_solicitado = estado_solicitado
        super().__init__(
            f"Invalid transition from {estado_actual} to {estado_solicitado}"
        )


class PresentacionBloqueadaError(TransicionInvalidaError):
    """Submission attempted while blocking validation errors remain."""

    code: str = "PRESENTACION_BLOQUEADA"

    def __init__(
        self,
        estado_actual: str,
        estado_solicitado: str,
        errores: Sequence[str],
    ):
        self.errores = tuple(errores)
        super().__init__(estado_actual, estado_solicitado)
        self.args = (
            f"Cannot submit from {estado_actual}: "
            f"{len(self.errores)} blocking validation error(s)",
        )


# Valorization record exceptions


class ValorizacionError(ObrasKernelError):
    """Base exception for valorization record errors."""

    code: str = "VALORIZACION_ERROR"


class ValorizacionInmutableError(ValorizacionError):
    """Attempted to edit a valorization outside BORRADOR / OBSERVADA."""

    code: str = "VALORIZACION_INMUTABLE"

    def __init__(self, valorizacion_id: str, estado: str):
        self.valorizacion_id = valorizacion_id
        self.estado = estado
        super().__init__(
            f"Valorization {valorizacion_id} cannot be modified in state {estado}"
        )


class CalculoBloqueadoError(ValorizacionError):
    """A record cannot be created from a breakdown that carries errors."""

    code: str = "CALCULO_BLOQUEADO"

    def __init__(self, obra_id: str, errores: Sequence[str]):
        self.obra_id = obra_id
        self.errores = tuple(errores)
        super().__init__(
            f"Cannot create valorization for obra {obra_id}: "
            f"{'; '.join(self.errores)}"
        )


# Reference / collaborator exceptions


class ReferenciaError(ObrasKernelError):
    """Base exception for missing or corrupt reference data."""

    code: str = "REFERENCIA_ERROR"


class ObraNoEncontradaError(ReferenciaError):
    """Obra with given ID was not found by the collaborator lookup."""

    code: str = "OBRA_NO_ENCONTRADA"

    def __init__(self, obra_id: str):
        self.obra_id = obra_id
        super().__init__(f"Obra not found: {obra_id}")


class CatalogoCorruptoError(ReferenciaError):
    """The partida catalog handed to the engine is internally inconsistent."""

    code: str = "CATALOGO_CORRUPTO"

    def __init__(self, detalle: str, partida_id: str | None = None):
        self.detalle = detalle
        self.partida_id = partida_id
        suffix = f" (partida {partida_id})" if partida_id else ""
        super().__init__(f"Corrupt partida catalog: {detalle}{suffix}")


# Normativa configuration exceptions


class NormativaError(ObrasKernelError):
    """Base exception for normativa configuration errors."""

    code: str = "NORMATIVA_ERROR"


class NormativaNoEncontradaError(NormativaError):
    """No normativa is in force on the requested date."""

    code: str = "NORMATIVA_NO_ENCONTRADA"

    def __init__(self, fecha: str):
        self.fecha = fecha
        super().__init__(f"No normativa in force on {fecha}")


class NormativaInvalidaError(NormativaError):
    """A normativa definition violates the statutory limits."""

    code: str = "NORMATIVA_INVALIDA"

    def __init__(self, codigo: str, detalle: str):
        self.codigo = codigo
        self.detalle = detalle
        super().__init__(f"Invalid normativa {codigo}: {detalle}")
