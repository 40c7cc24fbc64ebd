"""
Configuration Loader (``obras_config.loader``).

Responsibility
--------------
Loads the normativa YAML file and parses it into typed
``obras_config.schema`` dataclass instances.  This is **build/test
tooling only** -- the single public entry point for runtime config is
``obras_config.get_active_normativa()``.

Invariants enforced
-------------------
* Every percentage is parsed through ``Decimal(str(value))``.
* A normativa may only tighten the statutory advance caps; any retention
  other than the fixed guarantee rate is rejected, because the guarantee
  retention is not a configurable parameter.
* Validity windows of the loaded normativas do not overlap.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Statutory violations  -> ``NormativaInvalidaError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from obras_config.schema import NormativaDef, NormativaSet
from obras_engines.deducciones import (
    ADELANTO_DIRECTO_MAX,
    ADELANTO_MATERIALES_MAX,
    RETENCION_GARANTIA,
)
from obras_kernel.domain.values import to_decimal
from obras_kernel.exceptions import NormativaInvalidaError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """
    Parse a date from YAML (string or date object).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_normativa(data: dict[str, Any]) -> NormativaDef:
    """
    Parse and validate a ``NormativaDef`` from a dict.

    Raises:
        KeyError: if required keys are missing.
        ValueError: if dates or numbers cannot be parsed.
        NormativaInvalidaError: if the values break the statutory limits.
    """
    fin = data.get("fecha_vigencia_fin")
    normativa = NormativaDef(
        codigo=data["codigo"],
        nombre=data["nombre"],
        fecha_vigencia_inicio=parse_date(data["fecha_vigencia_inicio"]),
        fecha_vigencia_fin=parse_date(fin) if fin else None,
        porcentaje_adelanto_directo_max=to_decimal(
            data["porcentaje_adelanto_directo_max"], "porcentaje_adelanto_directo_max"
        ),
        porcentaje_adelanto_materiales_max=to_decimal(
            data["porcentaje_adelanto_materiales_max"],
            "porcentaje_adelanto_materiales_max",
        ),
        porcentaje_retencion_garantia=to_decimal(
            data.get("porcentaje_retencion_garantia", RETENCION_GARANTIA),
            "porcentaje_retencion_garantia",
        ),
        dias_pago_valorizacion=int(data.get("dias_pago_valorizacion", 30)),
    )
    validate_normativa(normativa)
    return normativa


def validate_normativa(normativa: NormativaDef) -> None:
    """Raise ``NormativaInvalidaError`` on the first statutory violation."""
    _check_cap(
        normativa,
        "porcentaje_adelanto_directo_max",
        normativa.porcentaje_adelanto_directo_max,
        ADELANTO_DIRECTO_MAX,
    )
    _check_cap(
        normativa,
        "porcentaje_adelanto_materiales_max",
        normativa.porcentaje_adelanto_materiales_max,
        ADELANTO_MATERIALES_MAX,
    )
    if normativa.porcentaje_retencion_garantia != RETENCION_GARANTIA:
        raise NormativaInvalidaError(
            normativa.codigo,
            f"guarantee retention is fixed at {RETENCION_GARANTIA}, "
            f"got {normativa.porcentaje_retencion_garantia}",
        )
    if normativa.dias_pago_valorizacion <= 0:
        raise NormativaInvalidaError(
            normativa.codigo, "dias_pago_valorizacion must be positive"
        )
    if (
        normativa.fecha_vigencia_fin is not None
        and normativa.fecha_vigencia_fin <= normativa.fecha_vigencia_inicio
    ):
        raise NormativaInvalidaError(
            normativa.codigo, "fecha_vigencia_fin must follow fecha_vigencia_inicio"
        )


def _check_cap(
    normativa: NormativaDef, campo: str, valor: Decimal, limite: Decimal
) -> None:
    if valor < 0 or valor > limite:
        raise NormativaInvalidaError(
            normativa.codigo, f"{campo} must be between 0 and {limite}, got {valor}"
        )


def load_normativa_set(path: Path) -> NormativaSet:
    """
    Load every normativa from a YAML file.

    Raises:
        NormativaInvalidaError: if two validity windows overlap or a code
            repeats.
    """
    data = load_yaml_file(path)
    normativas = tuple(
        sorted(
            (parse_normativa(item) for item in data.get("normativas", [])),
            key=lambda n: n.fecha_vigencia_inicio,
        )
    )

    codigos = [n.codigo for n in normativas]
    for codigo in codigos:
        if codigos.count(codigo) > 1:
            raise NormativaInvalidaError(codigo, "duplicate normativa code")

    for previa, siguiente in zip(normativas, normativas[1:]):
        if (
            previa.fecha_vigencia_fin is None
            or previa.fecha_vigencia_fin > siguiente.fecha_vigencia_inicio
        ):
            raise NormativaInvalidaError(
                siguiente.codigo, f"validity window overlaps {previa.codigo}"
            )

    return NormativaSet(
        version=str(data.get("version", "")),
        normativas=normativas,
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
