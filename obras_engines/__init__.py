"""
Module: obras_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    valorization engine sub-modules.  This is the canonical import surface
    for higher layers (obras_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import obras_kernel (and sibling engine modules).
    MUST NOT import obras_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic: all amounts and quantities use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``obras_engines.tracer``), emitting OBRAS_ENGINE_TRACE log records
    that include engine name, version, input fingerprint, and duration.

Usage:
    from obras_engines.ruc import validar_ruc
    from obras_engines.partidas import PartidaLedger
    from obras_engines.ejecucion import calcular_ejecucion
    from obras_engines.supervision import calcular_supervision
    from obras_engines.recalculo import recalcular, BorradorEjecucion
"""

from obras_kernel.logging_config import get_logger

logger = get_logger("engines")

from obras_engines.consorcio import ParticipacionEmpresa, validar_consorcio
from obras_engines.deducciones import (
    ADELANTO_DIRECTO_MAX,
    ADELANTO_MATERIALES_MAX,
    IGV_RATE,
    POLITICA_DEDUCCIONES,
    RETENCION_GARANTIA,
    TOLERANCIA_METRADO,
    DeductionPolicy,
    TipoAdelanto,
)
from obras_engines.ejecucion import (
    CalculosValorizacion,
    DeduccionesEjecucion,
    calcular_ejecucion,
)
from obras_engines.partidas import (
    DetallePartida,
    PartidaLedger,
    PartidaSeleccionada,
    ResultadoSeleccion,
    TotalesPartidas,
    ValidacionMetrado,
)
from obras_engines.plazos import calcular_dias_atraso, calcular_fecha_limite_pago
from obras_engines.recalculo import (
    Borrador,
    BorradorEjecucion,
    BorradorSupervision,
    ResultadoRecalculo,
    recalcular,
    resolver_obra,
)
from obras_engines.ruc import (
    ResultadoRuc,
    TipoContribuyente,
    calcular_digito_verificador,
    extraer_dni,
    validar_dni,
    validar_ruc,
)
from obras_engines.supervision import (
    CalculosSupervision,
    DeduccionesSupervision,
    DiasSupervision,
    calcular_supervision,
)
from obras_engines.validacion import validar_ejecucion, validar_supervision

__all__ = [
    # Deduction policy
    "ADELANTO_DIRECTO_MAX",
    "ADELANTO_MATERIALES_MAX",
    "IGV_RATE",
    "POLITICA_DEDUCCIONES",
    "RETENCION_GARANTIA",
    "TOLERANCIA_METRADO",
    "DeductionPolicy",
    "TipoAdelanto",
    # Partida ledger
    "DetallePartida",
    "PartidaLedger",
    "PartidaSeleccionada",
    "ResultadoSeleccion",
    "TotalesPartidas",
    "ValidacionMetrado",
    # Calculators
    "CalculosValorizacion",
    "DeduccionesEjecucion",
    "calcular_ejecucion",
    "CalculosSupervision",
    "DeduccionesSupervision",
    "DiasSupervision",
    "calcular_supervision",
    # Validators
    "ParticipacionEmpresa",
    "validar_consorcio",
    "ResultadoRuc",
    "TipoContribuyente",
    "calcular_digito_verificador",
    "extraer_dni",
    "validar_dni",
    "validar_ruc",
    "validar_ejecucion",
    "validar_supervision",
    # Payment terms
    "calcular_dias_atraso",
    "calcular_fecha_limite_pago",
    # Recompute
    "Borrador",
    "BorradorEjecucion",
    "BorradorSupervision",
    "ResultadoRecalculo",
    "recalcular",
    "resolver_obra",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 9,
    "modules": [
        "ruc", "deducciones", "partidas", "ejecucion", "supervision",
        "consorcio", "validacion", "plazos", "recalculo",
    ],
})
