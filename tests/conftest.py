"""
Pytest fixtures for the valorizaciones test suite.

Provides:
- Structured logging configured for the whole session
- A deterministic clock
- A reference Obra, partida catalog and drafts shared by engine and
  module tests
"""

import json
import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO

import pytest

from obras_engines.ejecucion import DeduccionesEjecucion
from obras_engines.partidas import PartidaLedger
from obras_engines.recalculo import BorradorEjecucion, BorradorSupervision
from obras_engines.supervision import DiasSupervision
from obras_kernel.domain.clock import DeterministicClock
from obras_kernel.domain.obra import Obra, Partida
from obras_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture obras_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            calcular_ejecucion(...)
            logs = captured_logs()
            assert any(r["message"] == "execution_valuation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("obras_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock():
    """Deterministic clock fixed at 2025-06-02 09:00 UTC."""
    return DeterministicClock(datetime(2025, 6, 2, 9, 0, 0, tzinfo=UTC))


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def obra():
    """Contract used across tests: 90,000 supervision over 180 days."""
    return Obra(
        id="OBRA-001",
        nombre="Mejoramiento de la carretera Huanta - Ayacucho",
        monto_ejecucion=Decimal("1500000.00"),
        monto_supervision=Decimal("90000.00"),
        plazo_ejecucion_dias=180,
        fecha_inicio=date(2025, 1, 1),
        fecha_fin_prevista=date(2025, 12, 31),
        numero_contrato="CONTRATO-2024-015",
    )


@pytest.fixture
def catalogo():
    return (
        Partida(
            id="P-01",
            codigo="01.01",
            descripcion="Excavacion de zanjas",
            unidad_medida="m3",
            metrado_contractual=Decimal("100"),
            precio_unitario=Decimal("50"),
            categoria="movimiento de tierras",
            numero_orden=1,
        ),
        Partida(
            id="P-02",
            codigo="02.01",
            descripcion="Concreto f'c=210 kg/cm2",
            unidad_medida="m3",
            metrado_contractual=Decimal("40"),
            precio_unitario=Decimal("420.50"),
            categoria="obras de concreto",
            numero_orden=2,
        ),
        Partida(
            id="P-03",
            codigo="03.01",
            descripcion="Acero de refuerzo",
            unidad_medida="kg",
            metrado_contractual=Decimal("2000"),
            precio_unitario=Decimal("4.80"),
            categoria="obras de concreto",
            numero_orden=3,
        ),
    )


@pytest.fixture
def ledger(catalogo):
    return PartidaLedger(catalogo=catalogo)


@pytest.fixture
def borrador_ejecucion(obra, ledger):
    """Valid execution draft: 100 m3 of P-01, 20% direct advance."""
    borrador = BorradorEjecucion(
        obra=obra,
        ledger=ledger,
        periodo_inicio=date(2025, 5, 1),
        periodo_fin=date(2025, 5, 31),
        deducciones=DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20")),
        residente_obra="Ing. Rosa Quispe",
        supervisor_obra="Ing. Carlos Huaman",
    )
    borrador, _ = borrador.seleccionar("P-01", Decimal("100"))
    return borrador


@pytest.fixture
def borrador_supervision(obra):
    """Valid supervision draft: 20 effective days in May 2025."""
    return BorradorSupervision(
        obra=obra,
        periodo_inicio=date(2025, 5, 1),
        periodo_fin=date(2025, 5, 31),
        dias=DiasSupervision(dias_efectivos_trabajados=20, dias_lluvia=4, dias_feriados=2),
        supervisor_responsable="Ing. Luis Mendoza",
    )
