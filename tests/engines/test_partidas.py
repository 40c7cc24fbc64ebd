"""
Tests for the partida ledger.

Covers:
- Metrado tolerance rule (error above 105%, warning between 100% and 105%)
- Selection upsert and removal without mutation
- Totals over the selected partidas
- Cumulative detail with quantities from earlier periods
- Catalog integrity errors
"""

from datetime import date
from decimal import Decimal

import pytest

from obras_engines.partidas import PartidaLedger, PartidaSeleccionada
from obras_kernel.domain.obra import MetodoMedicion, Partida
from obras_kernel.domain.validation import TipoIssue
from obras_kernel.exceptions import CatalogoCorruptoError


class TestToleranceRule:
    """P-01 has a contractual metrado of 100."""

    def test_within_contract(self, ledger):
        validacion = ledger.validar_metrado("P-01", Decimal("100"))

        assert validacion.valido
        assert validacion.tipo is None
        assert validacion.mensaje is None

    def test_within_tolerance_is_warning(self, ledger):
        validacion = ledger.validar_metrado("P-01", Decimal("102"))

        assert validacion.valido
        assert validacion.es_advertencia
        assert validacion.mensaje == "within 5% tolerance"

    def test_exact_tolerance_limit_is_warning(self, ledger):
        validacion = ledger.validar_metrado("P-01", Decimal("105"))

        assert validacion.valido
        assert validacion.tipo == TipoIssue.WARNING

    def test_above_tolerance_is_error(self, ledger):
        validacion = ledger.validar_metrado("P-01", Decimal("106"))

        assert not validacion.valido
        assert validacion.tipo == TipoIssue.ERROR
        assert validacion.mensaje == "exceeds contractual + 5% tolerance"

    def test_just_above_limit_is_error(self, ledger):
        assert not ledger.validar_metrado("P-01", Decimal("105.0001")).valido

    @pytest.mark.parametrize("metrado", [Decimal("0"), Decimal("-5")])
    def test_non_positive_metrado(self, ledger, metrado):
        validacion = ledger.validar_metrado("P-01", metrado)

        assert not validacion.valido
        assert validacion.mensaje == "metrado must be greater than zero"

    def test_unknown_partida(self, ledger):
        validacion = ledger.validar_metrado("P-99", Decimal("1"))

        assert not validacion.valido
        assert validacion.mensaje == "partida not found in catalog"

    def test_accepts_plain_numbers(self, ledger):
        assert ledger.validar_metrado("P-01", 50).valido
        assert ledger.validar_metrado("P-01", "50.5").valido

    @pytest.mark.parametrize("metrado", ["abc", "", None, True, "NaN", float("inf")])
    def test_malformed_metrado_reported(self, ledger, metrado):
        validacion = ledger.validar_metrado("P-01", metrado)

        assert not validacion.valido
        assert validacion.tipo == TipoIssue.ERROR
        assert validacion.mensaje == "metrado must be numeric"

    def test_malformed_selection_not_applied(self, ledger):
        resultado = ledger.seleccionar("P-01", "abc")

        assert not resultado.aplicada
        assert resultado.ledger is ledger
        assert resultado.validacion.mensaje == "metrado must be numeric"


class TestSelection:
    """Upsert and removal return new ledgers."""

    def test_select_adds_line(self, ledger):
        resultado = ledger.seleccionar("P-01", Decimal("40"))

        assert resultado.aplicada
        assert resultado.ledger.seleccion("P-01").metrado_actual == Decimal("40")
        assert ledger.selecciones == ()

    def test_select_again_replaces_quantity(self, ledger):
        ledger = ledger.seleccionar("P-01", Decimal("40")).ledger
        ledger = ledger.seleccionar("P-01", Decimal("60")).ledger

        assert len(ledger.selecciones) == 1
        assert ledger.seleccion("P-01").metrado_actual == Decimal("60")

    def test_upsert_keeps_order(self, ledger):
        ledger = ledger.seleccionar("P-01", Decimal("10")).ledger
        ledger = ledger.seleccionar("P-02", Decimal("10")).ledger
        ledger = ledger.seleccionar("P-01", Decimal("20")).ledger

        assert [s.partida_id for s in ledger.selecciones] == ["P-01", "P-02"]

    def test_rejected_selection_leaves_ledger_unchanged(self, ledger):
        ledger = ledger.seleccionar("P-01", Decimal("40")).ledger

        resultado = ledger.seleccionar("P-01", Decimal("200"))

        assert not resultado.aplicada
        assert resultado.ledger is ledger
        assert resultado.ledger.seleccion("P-01").metrado_actual == Decimal("40")

    def test_warning_selection_is_applied(self, ledger):
        resultado = ledger.seleccionar("P-01", Decimal("103"))

        assert resultado.aplicada
        assert resultado.validacion.es_advertencia

    def test_measurement_metadata_kept(self, ledger):
        ledger = ledger.seleccionar(
            "P-02", Decimal("10"),
            fecha_medicion=date(2025, 5, 20),
            metodo_medicion=MetodoMedicion.TOPOGRAFICO,
        ).ledger

        sel = ledger.seleccion("P-02")
        assert sel.fecha_medicion == date(2025, 5, 20)
        assert sel.metodo_medicion == MetodoMedicion.TOPOGRAFICO

    def test_quitar(self, ledger):
        ledger = ledger.seleccionar("P-01", Decimal("40")).ledger

        assert ledger.quitar("P-01").selecciones == ()

    def test_quitar_absent_returns_same_ledger(self, ledger):
        assert ledger.quitar("P-01") is ledger


class TestTotals:
    """Totals only consider selected partidas."""

    def test_empty_ledger(self, ledger):
        totales = ledger.totales()

        assert totales.monto_total == Decimal("0.00")
        assert totales.metrado_total_contractual == Decimal("0")
        assert totales.porcentaje_promedio_avance == Decimal("0.00")
        assert totales.cantidad_partidas == 0

    def test_single_line(self, ledger):
        ledger = ledger.seleccionar("P-01", Decimal("100")).ledger

        totales = ledger.totales()

        assert totales.monto_total == Decimal("5000.00")
        assert totales.porcentaje_promedio_avance == Decimal("100.00")

    def test_contractual_counts_only_selected(self, ledger):
        # P-01: 50 of 100, P-02: 10 of 40 -> 60 / 140 = 42.857...%
        ledger = ledger.seleccionar("P-01", Decimal("50")).ledger
        ledger = ledger.seleccionar("P-02", Decimal("10")).ledger

        totales = ledger.totales()

        assert totales.metrado_total_contractual == Decimal("140")
        assert totales.metrado_total_ejecutado == Decimal("60")
        assert totales.porcentaje_promedio_avance == Decimal("42.86")
        assert totales.monto_total == Decimal("6705.00")
        assert totales.cantidad_partidas == 2


class TestDetalle:
    """Cumulative figures per selected partida."""

    def test_without_previous_periods(self, ledger):
        ledger = ledger.seleccionar("P-02", Decimal("10")).ledger

        (fila,) = ledger.detalle()

        assert fila.metrado_anterior == Decimal("0")
        assert fila.metrado_acumulado == Decimal("10")
        assert fila.monto_actual == Decimal("4205.00")
        assert fila.porcentaje_actual == Decimal("25.00")
        assert fila.metrado_pendiente == Decimal("30")
        assert fila.monto_pendiente == Decimal("12615.00")

    def test_with_previous_periods(self, catalogo):
        ledger = PartidaLedger(
            catalogo=catalogo, metrados_anteriores={"P-01": Decimal("60")}
        )
        ledger = ledger.seleccionar("P-01", Decimal("30")).ledger

        (fila,) = ledger.detalle()

        assert fila.metrado_anterior == Decimal("60")
        assert fila.metrado_acumulado == Decimal("90")
        assert fila.monto_acumulado == Decimal("4500.00")
        assert fila.porcentaje_acumulado == Decimal("90.00")
        assert fila.metrado_pendiente == Decimal("10")

    def test_pending_never_negative(self, catalogo):
        ledger = PartidaLedger(
            catalogo=catalogo, metrados_anteriores={"P-01": Decimal("100")}
        )
        ledger = ledger.seleccionar("P-01", Decimal("5")).ledger

        (fila,) = ledger.detalle()

        assert fila.metrado_pendiente == Decimal("0")
        assert fila.monto_pendiente == Decimal("0.00")

    def test_previous_quantities_are_read_only(self, catalogo):
        ledger = PartidaLedger(catalogo=catalogo, metrados_anteriores={"P-01": 1})

        with pytest.raises(TypeError):
            ledger.metrados_anteriores["P-01"] = Decimal("2")


class TestCatalogIntegrity:
    """Malformed catalogs are hard failures."""

    def test_duplicate_partida_id(self, catalogo):
        with pytest.raises(CatalogoCorruptoError) as exc_info:
            PartidaLedger(catalogo=catalogo + (catalogo[0],))
        assert exc_info.value.partida_id == "P-01"

    def test_selection_outside_catalog(self, catalogo):
        with pytest.raises(CatalogoCorruptoError):
            PartidaLedger(
                catalogo=catalogo,
                selecciones=(PartidaSeleccionada("P-99", Decimal("1")),),
            )

    def test_duplicate_selection(self, catalogo):
        sel = PartidaSeleccionada("P-01", Decimal("1"))
        with pytest.raises(CatalogoCorruptoError):
            PartidaLedger(catalogo=catalogo, selecciones=(sel, sel))

    def test_negative_unit_price_rejected(self):
        with pytest.raises(ValueError):
            Partida("X", "X", "X", "und", Decimal("1"), Decimal("-1"))


class TestFromCatalog:
    def test_desde_catalogo(self, catalogo):
        class Catalogo:
            def partidas_de_obra(self, obra_id):
                return list(catalogo) if obra_id == "OBRA-001" else []

        ledger = PartidaLedger.desde_catalogo(Catalogo(), "OBRA-001")

        assert ledger.partida("P-03").codigo == "03.01"
        assert ledger.selecciones == ()
