"""
Tests for the execution valuation calculator.

Covers:
- Gross, retention, advance amortizations and net amount
- Advance cap and negative-amount errors
- Tolerance findings surfaced per partida code
- Deductions exceeding the gross amount
- Determinism and trace emission
"""

from decimal import Decimal

import pytest

from obras_engines.deducciones import DeductionPolicy
from obras_engines.ejecucion import DeduccionesEjecucion, calcular_ejecucion
from obras_engines.partidas import PartidaLedger, PartidaSeleccionada


@pytest.fixture
def ledger_5000(ledger):
    """100 m3 of P-01 at 50.00 -> 5,000.00 gross."""
    return ledger.seleccionar("P-01", Decimal("100")).ledger


class TestAmounts:
    """The reference case from the contract manual."""

    def test_reference_breakdown(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20")),
            obra,
        )

        assert calculos.monto_bruto == Decimal("5000.00")
        assert calculos.retencion_monto == Decimal("250.00")
        assert calculos.adelanto_directo_monto == Decimal("1000.00")
        assert calculos.adelanto_materiales_monto == Decimal("0.00")
        assert calculos.total_deducciones == Decimal("1250.00")
        assert calculos.monto_neto == Decimal("3750.00")
        assert calculos.porcentaje_avance_fisico == Decimal("100.00")
        assert calculos.cantidad_partidas == 1
        assert calculos.errores_calculo == ()
        assert calculos.puede_presentar

    def test_all_deductions(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(
                adelanto_directo_porcentaje=Decimal("10"),
                adelanto_materiales_porcentaje=Decimal("5"),
                penalidades_monto=Decimal("100"),
                otras_deducciones_monto=Decimal("50.505"),
            ),
            obra,
        )

        assert calculos.adelanto_directo_monto == Decimal("500.00")
        assert calculos.adelanto_materiales_monto == Decimal("250.00")
        assert calculos.penalidades_monto == Decimal("100.00")
        assert calculos.otras_deducciones_monto == Decimal("50.51")
        assert calculos.total_deducciones == Decimal("1150.51")
        assert calculos.monto_neto == Decimal("3849.49")

    def test_total_is_sum_of_components(self, ledger, obra):
        ledger = ledger.seleccionar("P-02", Decimal("7.33")).ledger
        ledger = ledger.seleccionar("P-03", Decimal("123.4")).ledger

        c = calcular_ejecucion(
            ledger,
            DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("12.5")),
            obra,
        )

        assert c.total_deducciones == (
            c.retencion_monto
            + c.adelanto_directo_monto
            + c.adelanto_materiales_monto
            + c.penalidades_monto
            + c.otras_deducciones_monto
        )
        assert c.monto_neto == c.monto_bruto - c.total_deducciones

    def test_float_inputs_keep_printed_value(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000, DeduccionesEjecucion(penalidades_monto=0.1), obra
        )

        assert calculos.penalidades_monto == Decimal("0.10")


class TestErrors:
    """Business problems are reported, never raised."""

    def test_missing_obra(self, ledger_5000):
        calculos = calcular_ejecucion(ledger_5000, DeduccionesEjecucion(), None)

        assert "obra is required" in calculos.errores_calculo
        assert not calculos.puede_presentar

    def test_direct_advance_above_cap(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("35")),
            obra,
        )

        assert "adelanto directo cannot exceed 30%" in calculos.errores_calculo

    def test_materials_advance_above_cap(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(adelanto_materiales_porcentaje=Decimal("21")),
            obra,
        )

        assert "adelanto materiales cannot exceed 20%" in calculos.errores_calculo

    def test_negative_penalty(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000, DeduccionesEjecucion(penalidades_monto=Decimal("-1")), obra
        )

        assert "penalidades_monto cannot be negative" in calculos.errores_calculo

    def test_deductions_exceed_gross(self, ledger_5000, obra):
        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(
                adelanto_directo_porcentaje=Decimal("30"),
                adelanto_materiales_porcentaje=Decimal("20"),
                penalidades_monto=Decimal("3000"),
            ),
            obra,
        )

        # 250 + 1500 + 1000 + 3000 = 5750 > 5000
        assert calculos.monto_neto == Decimal("-750.00")
        assert "net amount is negative" in calculos.advertencias
        assert "deductions exceed gross amount" in calculos.errores_calculo

    def test_metrado_above_tolerance_reported_by_code(self, catalogo, obra):
        # Built directly: seleccionar() would refuse this quantity.
        ledger = PartidaLedger(
            catalogo=catalogo,
            selecciones=(PartidaSeleccionada("P-01", Decimal("110")),),
        )

        calculos = calcular_ejecucion(ledger, DeduccionesEjecucion(), obra)

        assert "01.01: exceeds contractual + 5% tolerance" in calculos.errores_calculo


class TestWarnings:
    """Warnings never block submission."""

    def test_no_selections(self, ledger, obra):
        calculos = calcular_ejecucion(ledger, DeduccionesEjecucion(), obra)

        assert calculos.monto_bruto == Decimal("0.00")
        assert calculos.monto_neto == Decimal("0.00")
        assert calculos.advertencias == ("no billable quantities for this period",)
        assert calculos.puede_presentar

    def test_within_tolerance(self, ledger, obra):
        ledger = ledger.seleccionar("P-01", Decimal("104")).ledger

        calculos = calcular_ejecucion(ledger, DeduccionesEjecucion(), obra)

        assert "01.01: within 5% tolerance" in calculos.advertencias
        assert calculos.puede_presentar


class TestPolicy:
    def test_tighter_policy_caps(self, ledger_5000, obra):
        politica = DeductionPolicy(adelanto_directo_max=Decimal("15"))

        calculos = calcular_ejecucion(
            ledger_5000,
            DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20")),
            obra,
            politica=politica,
        )

        assert "adelanto directo cannot exceed 15%" in calculos.errores_calculo


class TestDeterminism:
    def test_same_inputs_same_result(self, ledger_5000, obra):
        deducciones = DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20"))

        assert calcular_ejecucion(ledger_5000, deducciones, obra) == calcular_ejecucion(
            ledger_5000, deducciones, obra
        )

    def test_same_inputs_same_fingerprint(self, ledger_5000, obra, captured_logs):
        deducciones = DeduccionesEjecucion(adelanto_directo_porcentaje=Decimal("20"))

        calcular_ejecucion(ledger_5000, deducciones, obra)
        calcular_ejecucion(ledger_5000, deducciones, obra)

        traces = [
            r for r in captured_logs()
            if r["message"] == "OBRAS_ENGINE_TRACE"
            and r["engine_name"] == "valuation_execution"
        ]
        assert len(traces) == 2
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_logs_completion(self, ledger_5000, obra, captured_logs):
        calcular_ejecucion(ledger_5000, DeduccionesEjecucion(), obra)

        completed = [
            r for r in captured_logs() if r["message"] == "execution_valuation_completed"
        ]
        assert completed[0]["monto_bruto"] == "5000.00"
        assert completed[0]["obra_id"] == "OBRA-001"

    def test_duration_only_in_engine_trace(self, ledger_5000, obra, captured_logs):
        calcular_ejecucion(ledger_5000, DeduccionesEjecucion(), obra)

        logs = captured_logs()
        (completed,) = [r for r in logs if r["message"] == "execution_valuation_completed"]
        (trace,) = [
            r for r in logs
            if r["message"] == "OBRAS_ENGINE_TRACE" and r["engine_name"] == "valuation_execution"
        ]
        assert "duration_ms" not in completed
        assert trace["duration_ms"] >= 0
