"""
Payment terms - due dates and days late for valorizations.

Public entities must pay a submitted valorization within the term set by
the governing normativa (``dias_pago_valorizacion``, 30 calendar days
under both Ley N° 30225 and Ley N° 32069).  These helpers derive the due
date from the submission date and count calendar days past it.

Pure functions; "today" is always an argument.
"""

from __future__ import annotations

from datetime import date, timedelta

DIAS_PAGO_DEFAULT = 30


def calcular_fecha_limite_pago(
    fecha_presentacion: date, dias_pago: int = DIAS_PAGO_DEFAULT
) -> date:
    """Due date: submission date plus the payment term in calendar days.

    Raises:
        ValueError: If ``dias_pago`` is negative.
    """
    if dias_pago < 0:
        raise ValueError(f"dias_pago cannot be negative: {dias_pago}")
    return fecha_presentacion + timedelta(days=dias_pago)


def calcular_dias_atraso(
    fecha_limite_pago: date | None,
    *,
    fecha_corte: date,
    fecha_pago: date | None = None,
) -> int:
    """Calendar days past the due date, never negative.

    A paid valorization is measured at ``fecha_pago``; an unpaid one at
    ``fecha_corte``.  Without a due date there is no delay.
    """
    if fecha_limite_pago is None:
        return 0
    referencia = fecha_pago or fecha_corte
    return max(0, (referencia - fecha_limite_pago).days)
