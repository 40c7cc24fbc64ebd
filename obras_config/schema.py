"""
Configuration schema (``obras_config.schema``).

Frozen dataclasses describing a normativa -- the procurement law in force
for a contract -- and the valorization parameters it fixes.  Instances are
produced by ``obras_config.loader`` and handed to the engines; nothing in
this module performs I/O.

Invariants enforced
-------------------
* All percentages are Decimal, never float.
* ``fecha_vigencia_fin`` is None for the normativa currently in force.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class NormativaDef:
    """Valorization parameters fixed by one procurement law.

    ``porcentaje_*`` fields are expressed on a 0-100 scale, except
    ``porcentaje_retencion_garantia`` which is a fraction (0.05 == 5%).
    """

    codigo: str
    nombre: str
    fecha_vigencia_inicio: date
    fecha_vigencia_fin: date | None
    porcentaje_adelanto_directo_max: Decimal
    porcentaje_adelanto_materiales_max: Decimal
    porcentaje_retencion_garantia: Decimal
    dias_pago_valorizacion: int

    def vigente_en(self, fecha: date) -> bool:
        """True when ``fecha`` falls in the half-open validity window."""
        if fecha < self.fecha_vigencia_inicio:
            return False
        return self.fecha_vigencia_fin is None or fecha < self.fecha_vigencia_fin


@dataclass(frozen=True)
class NormativaSet:
    """All normativas loaded from one YAML file, with its checksum."""

    version: str
    normativas: tuple[NormativaDef, ...]
    checksum: str = ""
