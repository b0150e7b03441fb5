"""
Tests for the unit price analyzer.

Covers:
- Material cost with waste (record override and catalog default)
- Tool cost per hour of use
- Crew-based labor vs manual labor fallback
- Dangling references contributing zero
- Budget item pricing
"""
import pytest

from estimator.domain.entities import (
    Material, LaborCategory, CrewMember, Crew, Tool, Task,
    MaterialYield, ToolYield, CrewYield, BudgetItem, Project,
)
from estimator.domain.services import (
    analyze, analyze_unit_price, build_indexes, price_budget_items,
)
from estimator.domain.services.unit_price import LABOR_SOURCE_CREW, LABOR_SOURCE_MANUAL


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def masonry_catalog():
    """Catalog with materials, a tool and a one-mason crew."""
    return build_indexes(
        materials=[
            Material(id="M1", name="Brick", unit_cost=10.0, waste_percent=10),
            Material(id="M2", name="Mortar", unit_cost=50.0, waste_percent=5),
        ],
        tools=[Tool(id="E1", name="Mixer", cost_per_hour=20.0)],
        labor_categories=[LaborCategory(id="L1", role="Mason", basic_hourly_rate=10.0)],
        crews=[Crew(id="C1", name="Mason crew", composition=(CrewMember("L1"),))],
        material_yields=[
            MaterialYield(task_id="WALL", material_id="M1", quantity=2),
            MaterialYield(task_id="WALL", material_id="M2", quantity=0.1, waste_percent=0),
        ],
        tool_yields=[ToolYield(task_id="WALL", tool_id="E1", hours_per_unit=0.5)],
        crew_yields=[CrewYield(task_id="WALL", crew_id="C1")],
    )


@pytest.fixture
def wall_task():
    return Task(id="WALL", name="Brick wall", unit="m2", labor_cost=99.0, daily_yield=8.0, fixed_cost=1.5)


# =============================================================================
# Component tests
# =============================================================================

class TestMaterialCost:
    """Tests for material cost per unit."""

    def test_material_with_waste(self):
        """Test unit_cost * quantity * (1 + waste/100)."""
        indexes = build_indexes(
            materials=[Material(id="M1", unit_cost=10.0, waste_percent=10)],
            material_yields=[MaterialYield(task_id="T1", material_id="M1", quantity=2)],
        )
        task = Task(id="T1", daily_yield=10)
        analysis = analyze_unit_price(task, indexes)
        assert analysis.material_cost == pytest.approx(22.0)
        assert analysis.material_cost * 5 == pytest.approx(110.0)

    def test_record_waste_overrides_material_waste(self, masonry_catalog, wall_task):
        """Test a per-record waste percentage replaces the catalog value."""
        analysis = analyze_unit_price(wall_task, masonry_catalog, workday_hours=8)
        # brick 10*2*1.1 = 22, mortar 50*0.1*1.0 = 5
        assert analysis.material_cost == pytest.approx(27.0)

    def test_missing_material_contributes_zero(self):
        """Test a record pointing to a deleted material."""
        indexes = build_indexes(
            material_yields=[MaterialYield(task_id="T1", material_id="GONE", quantity=5)],
        )
        analysis = analyze_unit_price(Task(id="T1", labor_cost=7.0), indexes)
        assert analysis.material_cost == 0.0
        assert analysis.total_unit_cost == pytest.approx(7.0)


class TestToolCost:
    """Tests for tool cost per unit."""

    def test_tool_cost(self, masonry_catalog, wall_task):
        """Test cost_per_hour * hours_per_unit."""
        analysis = analyze_unit_price(wall_task, masonry_catalog, workday_hours=8)
        assert analysis.tool_cost == pytest.approx(10.0)

    def test_missing_tool_contributes_zero(self):
        """Test a record pointing to a deleted tool."""
        indexes = build_indexes(
            tool_yields=[ToolYield(task_id="T1", tool_id="GONE", hours_per_unit=3)],
        )
        assert analyze_unit_price(Task(id="T1"), indexes).tool_cost == 0.0


class TestLaborCost:
    """Tests for crew-based and manual labor."""

    def test_crew_labor_from_daily_yield(self, masonry_catalog, wall_task):
        """Test hourly crew cost * workday_hours / daily_yield."""
        analysis = analyze_unit_price(wall_task, masonry_catalog, workday_hours=8)
        assert analysis.labor_source == LABOR_SOURCE_CREW
        assert analysis.labor_cost == pytest.approx(10.0)

    def test_crew_labor_from_labor_hours(self):
        """Test labor-hours standard divided by crew headcount."""
        indexes = build_indexes(
            labor_categories=[LaborCategory(id="L1", basic_hourly_rate=10.0)],
            crews=[Crew(id="C1", composition=(CrewMember("L1", headcount=2),))],
            crew_yields=[CrewYield(task_id="T1", crew_id="C1")],
        )
        task = Task(id="T1", daily_yield=0, yield_hh=2.0, labor_cost=99.0)
        analysis = analyze_unit_price(task, indexes, workday_hours=8)
        # crew costs 20/h, 2 hh / 2 people = 1 crew-hour per unit
        assert analysis.labor_cost == pytest.approx(20.0)
        assert analysis.labor_source == LABOR_SOURCE_CREW

    def test_manual_labor_without_crew_bundle(self, masonry_catalog, wall_task):
        """Test the fallback branch when no crew data is supplied."""
        analysis = analyze(
            wall_task,
            masonry_catalog.material_yields_by_task,
            masonry_catalog.materials_by_id,
            masonry_catalog.tool_yields_by_task,
            masonry_catalog.tools_by_id,
        )
        assert analysis.labor_source == LABOR_SOURCE_MANUAL
        assert analysis.labor_cost == pytest.approx(99.0)

    def test_manual_labor_when_assigned_crew_is_missing(self):
        """Test a crew assignment pointing to a deleted crew."""
        indexes = build_indexes(
            crews=[Crew(id="OTHER")],
            crew_yields=[CrewYield(task_id="T1", crew_id="GONE")],
        )
        analysis = analyze_unit_price(Task(id="T1", daily_yield=5, labor_cost=42.0), indexes)
        assert analysis.labor_source == LABOR_SOURCE_MANUAL
        assert analysis.labor_cost == pytest.approx(42.0)

    def test_manual_labor_when_crew_cost_is_zero(self):
        """Test a crew whose members reference unknown categories prices nothing."""
        indexes = build_indexes(
            crews=[Crew(id="C1", composition=(CrewMember("GONE", headcount=2),))],
            crew_yields=[CrewYield(task_id="T1", crew_id="C1")],
        )
        analysis = analyze_unit_price(Task(id="T1", daily_yield=5, labor_cost=100.0), indexes)
        assert analysis.labor_source == LABOR_SOURCE_MANUAL
        assert analysis.labor_cost == pytest.approx(100.0)

    def test_manual_labor_when_crew_has_no_yield(self):
        """Test a crew assignment without any yield to derive hours."""
        indexes = build_indexes(
            crews=[Crew(id="C1", composition=(CrewMember("L1"),))],
            crew_yields=[CrewYield(task_id="T1", crew_id="C1")],
        )
        analysis = analyze_unit_price(Task(id="T1", labor_cost=12.0), indexes)
        assert analysis.labor_cost == pytest.approx(12.0)


class TestUnitPriceAnalysis:
    """Tests for the totals and invariants of the analysis."""

    def test_total_is_sum_of_components(self, masonry_catalog, wall_task):
        """Test total = material + labor + tool + fixed."""
        a = analyze_unit_price(wall_task, masonry_catalog, workday_hours=8)
        assert a.fixed_cost == pytest.approx(1.5)
        assert a.total_unit_cost == pytest.approx(
            a.material_cost + a.labor_cost + a.tool_cost + a.fixed_cost
        )
        assert a.total_unit_cost == pytest.approx(27.0 + 10.0 + 10.0 + 1.5)

    def test_components_never_negative(self):
        """Test negative inputs are clamped to zero."""
        task = Task(id="T1", labor_cost=-5.0, fixed_cost=-1.0)
        a = analyze_unit_price(task, build_indexes())
        assert a.labor_cost == 0.0
        assert a.fixed_cost == 0.0
        assert a.total_unit_cost == 0.0

    def test_only_manual_labor(self):
        """Test a task with labor only."""
        a = analyze_unit_price(Task(id="T1", daily_yield=10, labor_cost=100), build_indexes())
        assert a.total_unit_cost == pytest.approx(100.0)

    def test_deterministic(self, masonry_catalog, wall_task):
        """Test repeated analyses are equal."""
        assert analyze_unit_price(wall_task, masonry_catalog, 8) == analyze_unit_price(wall_task, masonry_catalog, 8)

    def test_to_dict(self, masonry_catalog, wall_task):
        """Test serialization keys."""
        data = analyze_unit_price(wall_task, masonry_catalog, 8).to_dict()
        assert set(data) == {
            'task_id', 'material_cost', 'labor_cost', 'tool_cost',
            'fixed_cost', 'total_unit_cost', 'labor_source',
        }


class TestPriceBudgetItems:
    """Tests for pricing a whole budget."""

    def test_skips_items_with_missing_tasks(self):
        """Test items referencing unknown or no task are ignored."""
        task = Task(id="T1", labor_cost=10.0)
        project = Project(id="P1", items=(
            BudgetItem(id="I1", task_id="T1", quantity=3),
            BudgetItem(id="I2", task_id="GONE", quantity=3),
            BudgetItem(id="I3", task_id=None, quantity=3),
        ))
        priced = price_budget_items(project, {"T1": task}, build_indexes())
        assert [p.item.id for p in priced] == ["I1"]
        assert priced[0].total_cost == pytest.approx(30.0)

    def test_negative_quantity_clamped(self):
        """Test negative quantities price as zero."""
        project = Project(id="P1", items=(BudgetItem(id="I1", task_id="T1", quantity=-4),))
        priced = price_budget_items(project, {"T1": Task(id="T1", labor_cost=10.0)}, build_indexes())
        assert priced[0].quantity == 0.0
        assert priced[0].total_cost == 0.0

    def test_project_workday_hours_used_for_crews(self, masonry_catalog, wall_task):
        """Test crew labor follows the project's working day length."""
        project = Project(id="P1", workday_hours=16, items=(BudgetItem(id="I1", task_id="WALL", quantity=1),))
        priced = price_budget_items(project, {"WALL": wall_task}, masonry_catalog)
        # 10/h * 16h / 8 units per day
        assert priced[0].analysis.labor_cost == pytest.approx(20.0)
