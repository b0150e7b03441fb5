"""
Tests for budget summary, price deviation tracking and standard yield comparison.
"""
from datetime import date

import pytest

from estimator.domain.entities import (
    BudgetItem, LaborCategory, Material, MaterialYield, PricingConfig,
    Project, Snapshot, Task, Tool,
)
from estimator.domain.entities.task import (
    StandardLaborYield, StandardMaterialYield, StandardToolYield, StandardYields,
)
from estimator.domain.services import (
    analyze_standard,
    build_indexes,
    compare_to_standard,
    detect_price_deviations,
    summarize_budget,
)


# =============================================================================
# Budget summary
# =============================================================================

@pytest.fixture
def tasks():
    return {
        "T1": Task(id="T1", labor_cost=100.0, daily_yield=10.0),
        "T2": Task(id="T2", labor_cost=0.0, fixed_cost=50.0),
    }


class TestSummarizeBudget:
    """Tests for direct cost totals and sale price."""

    def test_sale_price_build_up(self, tasks):
        """Test general, financial, profit and tax on top of direct cost."""
        project = Project(id="P1", items=(BudgetItem(id="I1", task_id="T1", quantity=10),))
        summary = summarize_budget(project, tasks, build_indexes())
        assert summary.direct_cost == pytest.approx(1000.0)
        assert summary.general_expenses == pytest.approx(150.0)
        assert summary.financial_expenses == pytest.approx(34.5)
        assert summary.profit == pytest.approx(115.0)
        assert summary.tax == pytest.approx(272.895)
        assert summary.sale_price == pytest.approx(1572.395)
        assert summary.k_factor == pytest.approx(1.572395)

    def test_component_totals(self, tasks):
        project = Project(id="P1", items=(
            BudgetItem(id="I1", task_id="T1", quantity=10),
            BudgetItem(id="I2", task_id="T2", quantity=2),
        ))
        summary = summarize_budget(project, tasks, build_indexes())
        assert summary.labor_cost == pytest.approx(1000.0)
        assert summary.fixed_cost == pytest.approx(100.0)
        assert summary.material_cost == 0.0
        assert summary.direct_cost == pytest.approx(1100.0)
        assert summary.item_count == 2

    def test_project_pricing_overrides_config(self, tasks):
        pricing = PricingConfig(0, 0, 0, 0)
        project = Project(id="P1", pricing=pricing, items=(BudgetItem(id="I1", task_id="T1", quantity=10),))
        summary = summarize_budget(project, tasks, build_indexes())
        assert summary.sale_price == pytest.approx(summary.direct_cost)
        assert summary.k_factor == pytest.approx(1.0)

    def test_sequential_duration(self, tasks):
        """Test durations add back to back; non-computable items count as zero."""
        project = Project(id="P1", items=(
            BudgetItem(id="I1", task_id="T1", quantity=50),
            BudgetItem(id="I2", task_id="T1", quantity=5, manual_duration=3),
            BudgetItem(id="I3", task_id="T2", quantity=5),
        ))
        assert summarize_budget(project, tasks, build_indexes()).total_duration_days == 8

    def test_empty_budget(self, tasks):
        summary = summarize_budget(Project(id="P1"), tasks, build_indexes())
        assert summary.direct_cost == 0.0
        assert summary.sale_price == 0.0
        assert summary.k_factor == 1.0
        assert summary.to_dict()['item_count'] == 0


# =============================================================================
# Price deviations
# =============================================================================

@pytest.fixture
def baseline():
    return Snapshot(
        id="S1",
        date=date(2024, 1, 1),
        materials=(
            Material(id="M1", name="Cement", unit_cost=10.0),
            Material(id="M2", name="Sand", unit_cost=20.0),
            Material(id="M3", name="Gift", unit_cost=0.0),
        ),
    )


@pytest.fixture
def current_materials():
    return [
        Material(id="M1", name="Cement", unit_cost=12.0),
        Material(id="M2", name="Sand", unit_cost=21.0),
        Material(id="M3", name="Gift", unit_cost=5.0),
        Material(id="M4", name="New", unit_cost=99.0),
    ]


class TestPriceDeviations:
    """Tests for material price increase detection."""

    def test_default_threshold(self, current_materials, baseline):
        """Test only increases above 10% are reported."""
        deviations = detect_price_deviations(current_materials, baseline)
        assert [d.material_id for d in deviations] == ["M1"]
        assert deviations[0].percent == pytest.approx(20.0)
        assert deviations[0].base_price == 10.0
        assert deviations[0].current_price == 12.0

    def test_sorted_by_increase(self, current_materials, baseline):
        deviations = detect_price_deviations(current_materials, baseline, threshold_percent=4)
        assert [d.material_id for d in deviations] == ["M1", "M2"]

    def test_increase_equal_to_threshold_not_reported(self, baseline):
        deviations = detect_price_deviations([Material(id="M1", unit_cost=11.0)], baseline)
        assert deviations == []

    def test_no_snapshot(self, current_materials):
        assert detect_price_deviations(current_materials, None) == []


# =============================================================================
# Standard yields
# =============================================================================

@pytest.fixture
def standard_indexes():
    return build_indexes(
        materials=[
            Material(id="M1", unit_cost=10.0),
            Material(id="M2", unit_cost=3.0),
        ],
        tools=[Tool(id="E1", cost_per_hour=8.0)],
        labor_categories=[LaborCategory(id="L1", basic_hourly_rate=20.0)],
        material_yields=[
            MaterialYield(task_id="T1", material_id="M1", quantity=2.2),
            MaterialYield(task_id="T1", material_id="M2", quantity=1),
        ],
    )


@pytest.fixture
def standard_task():
    return Task(
        id="T1",
        labor_cost=40.0,
        standard_yields=StandardYields(
            materials=(StandardMaterialYield("M1", 2.0),),
            labor=(StandardLaborYield("L1", 1.5),),
            equipment=(StandardToolYield("E1", 0.5),),
        ),
    )


class TestStandardComparison:
    """Tests for comparison against the reference recipe."""

    def test_standard_unit_price(self, standard_task, standard_indexes):
        """Test pricing the standard recipe."""
        standard = analyze_standard(standard_task, standard_indexes)
        assert standard.material_cost == pytest.approx(20.0)
        assert standard.labor_cost == pytest.approx(30.0)
        assert standard.tool_cost == pytest.approx(4.0)
        assert standard.total_unit_cost == pytest.approx(54.0)

    def test_unit_cost_difference(self, standard_task, standard_indexes):
        comparison = compare_to_standard(standard_task, standard_indexes)
        assert comparison.actual.total_unit_cost == pytest.approx(65.0)
        assert comparison.unit_cost_difference == pytest.approx(11.0)

    def test_material_differences(self, standard_task, standard_indexes):
        """Test modified and added materials are flagged."""
        comparison = compare_to_standard(standard_task, standard_indexes)
        by_id = {m.material_id: m for m in comparison.materials}
        assert by_id["M1"].percent == pytest.approx(10.0)
        assert by_id["M1"].is_different
        assert by_id["M2"].is_new
        assert by_id["M2"].standard_quantity is None

    def test_standard_labor_falls_back_to_manual(self, standard_indexes):
        task = Task(id="T1", labor_cost=40.0, standard_yields=StandardYields(
            materials=(StandardMaterialYield("M1", 2.0),),
        ))
        assert analyze_standard(task, standard_indexes).labor_cost == pytest.approx(40.0)

    def test_task_without_standard(self, standard_indexes):
        comparison = compare_to_standard(Task(id="T1", labor_cost=5.0), standard_indexes)
        assert comparison.standard is None
        assert comparison.unit_cost_difference == 0.0
        assert comparison.materials == ()
