"""
Tests for the validation engine.

Covers:
- Obra presence and billable state
- Period presence, order and contract window
- Supervision day budget
- Responsible person
- Supervision against execution periods
"""

from dataclasses import replace
from datetime import date

import pytest

from obras_engines.supervision import DiasSupervision
from obras_engines.validacion import (
    validar_dias_supervision,
    validar_ejecucion,
    validar_obra,
    validar_periodo,
    validar_periodo_ejecucion,
    validar_responsable,
    validar_supervision,
)
from obras_kernel.domain.obra import EstadoObra
from obras_kernel.domain.validation import TipoIssue

MAYO = (date(2025, 5, 1), date(2025, 5, 31))


class TestObra:
    def test_missing(self):
        (issue,) = validar_obra(None)

        assert issue.campo == "obra_id"
        assert issue.mensaje == "obra is required"

    @pytest.mark.parametrize("estado", [EstadoObra.REGISTRADA, EstadoObra.EN_EJECUCION])
    def test_billable_states(self, obra, estado):
        assert validar_obra(replace(obra, estado=estado)) == ()

    @pytest.mark.parametrize(
        "estado",
        [EstadoObra.PARALIZADA, EstadoObra.TERMINADA, EstadoObra.LIQUIDADA,
         EstadoObra.CANCELADA],
    )
    def test_non_billable_states(self, obra, estado):
        (issue,) = validar_obra(replace(obra, estado=estado))

        assert issue.mensaje == f"obra in state {estado.value} cannot be billed"


class TestPeriodo:
    @pytest.mark.parametrize("inicio,fin", [(None, MAYO[1]), (MAYO[0], None), (None, None)])
    def test_missing_dates(self, obra, inicio, fin):
        (issue,) = validar_periodo(inicio, fin, obra)

        assert issue.campo == "periodo"
        assert issue.mensaje == "period start and end dates are required"

    def test_valid_period(self, obra):
        assert validar_periodo(*MAYO, obra) == ()

    def test_single_day_period(self, obra):
        assert validar_periodo(date(2025, 5, 1), date(2025, 5, 1), obra) == ()

    def test_reversed(self, obra):
        issues = validar_periodo(date(2025, 5, 31), date(2025, 5, 1), obra)

        assert [i.mensaje for i in issues] == ["period start cannot be after period end"]

    def test_before_obra_start(self, obra):
        issues = validar_periodo(date(2024, 12, 15), date(2025, 1, 14), obra)

        assert [i.mensaje for i in issues] == [
            "period cannot start before the obra start date"
        ]

    def test_after_scheduled_end(self, obra):
        issues = validar_periodo(date(2025, 12, 15), date(2026, 1, 14), obra)

        assert [i.campo for i in issues] == ["periodo_fin"]
        assert issues[0].mensaje == "period cannot end after the obra scheduled end date"

    def test_contract_boundaries_inclusive(self, obra):
        assert validar_periodo(obra.fecha_inicio, obra.fecha_fin_prevista, obra) == ()

    def test_no_scheduled_end_is_warning(self, obra):
        issues = validar_periodo(*MAYO, replace(obra, fecha_fin_prevista=None))

        (issue,) = issues
        assert issue.tipo == TipoIssue.WARNING
        assert not issue.es_bloqueante

    def test_without_obra_only_order_checked(self):
        assert validar_periodo(*MAYO, None) == ()


class TestDiasSupervision:
    def test_equal_to_period_allowed(self):
        dias = DiasSupervision(dias_efectivos_trabajados=25, dias_lluvia=6)

        assert validar_dias_supervision(dias, 31) == ()

    def test_exceeds_period(self):
        dias = DiasSupervision(dias_efectivos_trabajados=25, dias_lluvia=7)

        (issue,) = validar_dias_supervision(dias, 31)

        assert issue.campo == "dias"
        assert issue.mensaje == "worked and non-worked days exceed the days in the period"

    def test_negative_counts(self):
        dias = DiasSupervision(dias_efectivos_trabajados=5, dias_feriados=-1)

        (issue,) = validar_dias_supervision(dias, 31)

        assert issue.campo == "dias_feriados"
        assert issue.mensaje == "dias_feriados cannot be negative"


class TestResponsable:
    @pytest.mark.parametrize("valor", [None, "", "   "])
    def test_missing(self, valor):
        (issue,) = validar_responsable(valor, "residente_obra")

        assert issue.mensaje == "residente_obra is required"

    def test_present(self):
        assert validar_responsable("Ing. Rosa Quispe", "residente_obra") == ()


class TestPeriodoEjecucion:
    def test_matching_execution_period(self):
        assert validar_periodo_ejecucion(*MAYO, [MAYO]) == ()

    def test_no_matching_execution_period(self):
        (issue,) = validar_periodo_ejecucion(
            *MAYO, [(date(2025, 4, 1), date(2025, 4, 30))]
        )

        assert issue.mensaje == "no execution valuation for this period"

    def test_skipped_without_period(self):
        assert validar_periodo_ejecucion(None, None, []) == ()


class TestAggregates:
    def test_valid_execution_draft(self, obra):
        resultado = validar_ejecucion(obra, *MAYO, "Ing. Rosa Quispe")

        assert resultado.valida
        assert resultado.issues == ()

    def test_execution_collects_every_issue(self):
        resultado = validar_ejecucion(None, None, None, None)

        assert resultado.mensajes_error() == (
            "obra is required",
            "period start and end dates are required",
            "residente_obra is required",
        )
        assert not resultado.puede_presentar

    def test_valid_supervision_draft(self, obra):
        resultado = validar_supervision(
            obra, *MAYO, DiasSupervision(dias_efectivos_trabajados=20), "Ing. Luis Mendoza"
        )

        assert resultado.valida

    def test_supervision_day_budget(self, obra):
        resultado = validar_supervision(
            obra, *MAYO, DiasSupervision(dias_efectivos_trabajados=32), "Ing. Luis Mendoza"
        )

        assert "worked and non-worked days exceed the days in the period" in (
            resultado.mensajes_error()
        )

    def test_supervision_requires_execution_period_when_given(self, obra):
        resultado = validar_supervision(
            obra, *MAYO, DiasSupervision(dias_efectivos_trabajados=20), "Ing. Luis Mendoza",
            periodos_ejecucion=[],
        )

        assert resultado.mensajes_error() == ("no execution valuation for this period",)

    def test_warning_keeps_draft_valid(self, obra):
        resultado = validar_ejecucion(
            replace(obra, fecha_fin_prevista=None), *MAYO, "Ing. Rosa Quispe"
        )

        assert resultado.valida
        assert len(resultado.advertencias) == 1
