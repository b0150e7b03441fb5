"""
Tests for the snapshot loader and the command line interface.
"""
import json

import pytest
import yaml
from click.testing import CliRunner

from estimator.cli import cli
from estimator.data import SnapshotLoader, load_snapshot
from estimator.domain.exceptions import (
    BudgetItemNotFoundError,
    SnapshotLoadError,
    TaskNotFoundError,
)


SNAPSHOT = {
    'materials': [
        {'id': 'M1', 'name': 'Cement', 'unit': 'bag', 'unit_cost': 10, 'waste_percent': 10},
    ],
    'labor_categories': [
        {'id': 'L1', 'role': 'Mason', 'basic_hourly_rate': 10, 'social_charges_percent': 0},
    ],
    'tasks': [
        {'id': 'T1', 'name': 'Excavation', 'unit': 'm3', 'daily_yield': 10, 'labor_cost': 100},
        {'id': 'T2', 'name': 'Screed', 'unit': 'm2', 'daily_yield': 5},
    ],
    'material_yields': [
        {'task_id': 'T2', 'material_id': 'M1', 'quantity': 2},
    ],
    'project': {
        'id': 'P1',
        'name': 'Test House',
        'start_date': '2024-01-01',
        'items': [
            {'id': 'I1', 'task_id': 'T1', 'quantity': 50, 'progress': 50},
            {'id': 'I2', 'task_id': 'T2', 'quantity': 5},
        ],
    },
    'receipts': [
        {'id': 'R1', 'date': '2024-01-02', 'lines': [{'material_id': 'M1', 'quantity_received': 10}]},
    ],
    'snapshots': [
        {'id': 'S2', 'date': '2023-12-20', 'materials': [{'id': 'M1', 'name': 'Cement', 'unit_cost': 9.5}]},
        {'id': 'S1', 'date': '2023-12-01', 'materials': [{'id': 'M1', 'name': 'Cement', 'unit_cost': 8}]},
    ],
}


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_text(yaml.safe_dump(SNAPSHOT))
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


class TestSnapshotLoader:
    """Tests for loading catalog/project snapshot files."""

    def test_load(self, snapshot_file):
        snapshot = load_snapshot(snapshot_file)
        assert snapshot.project.name == "Test House"
        assert len(snapshot.project.items) == 2
        assert set(snapshot.tasks_by_id) == {"T1", "T2"}
        assert snapshot.indexes.material_yields_for("T2")[0].quantity == 2
        assert snapshot.receipts[0].lines[0].quantity_received == 10

    def test_baseline_is_oldest_snapshot(self, snapshot_file):
        assert load_snapshot(snapshot_file).baseline.id == "S1"

    def test_lookups(self, snapshot_file):
        snapshot = load_snapshot(snapshot_file)
        assert snapshot.task("T1").name == "Excavation"
        assert snapshot.item("I2").task_id == "T2"
        with pytest.raises(TaskNotFoundError):
            snapshot.task("NOPE")
        with pytest.raises(BudgetItemNotFoundError) as exc_info:
            snapshot.item("NOPE")
        assert exc_info.value.code == "BUDGET_ITEM_NOT_FOUND"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotLoadError, match="file not found"):
            SnapshotLoader(str(tmp_path / "missing.yaml")).load()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("project: [unclosed\n")
        with pytest.raises(SnapshotLoadError, match="invalid YAML"):
            load_snapshot(str(path))

    def test_missing_project(self, tmp_path):
        path = tmp_path / "no_project.yaml"
        path.write_text(yaml.safe_dump({'tasks': []}))
        with pytest.raises(SnapshotLoadError, match="project"):
            load_snapshot(str(path))

    def test_malformed_record(self, tmp_path):
        """Test a record without id is reported, not a raw KeyError."""
        data = dict(SNAPSHOT, tasks=[{'name': 'No id'}])
        path = tmp_path / "malformed.yaml"
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(SnapshotLoadError) as exc_info:
            load_snapshot(str(path))
        assert exc_info.value.code == "SNAPSHOT_LOAD_FAILED"

    def test_section_must_be_list(self, tmp_path):
        data = dict(SNAPSHOT, materials={'id': 'M1'})
        path = tmp_path / "mapping.yaml"
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(SnapshotLoadError, match="materials"):
            load_snapshot(str(path))

    def test_receipt_without_date(self, tmp_path):
        """Test an empty receipt date is rejected at load time."""
        data = dict(SNAPSHOT, receipts=[{'id': 'R9', 'date': '', 'lines': []}])
        path = tmp_path / "undated_receipt.yaml"
        path.write_text(yaml.safe_dump(data))
        with pytest.raises(SnapshotLoadError, match="R9"):
            load_snapshot(str(path))

    def test_project_without_start_date(self, tmp_path):
        """Test a project must carry its start date."""
        project = {k: v for k, v in SNAPSHOT['project'].items() if k != 'start_date'}
        path = tmp_path / "no_start.yaml"
        path.write_text(yaml.safe_dump(dict(SNAPSHOT, project=project)))
        with pytest.raises(SnapshotLoadError, match="start_date"):
            load_snapshot(str(path))


class TestCLI:
    """Tests for CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_analyze_task_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['analyze-task', '--data', snapshot_file, '--json', 'T2'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data['material_cost'] == pytest.approx(22.0)
        assert data['total_unit_cost'] == pytest.approx(22.0)

    def test_analyze_task_table(self, runner, snapshot_file):
        result = runner.invoke(cli, ['analyze-task', '--data', snapshot_file, 'T1'])
        assert result.exit_code == 0, result.output
        assert "Excavation" in result.output
        assert "100.00" in result.output

    def test_unknown_task_reports_error(self, runner, snapshot_file):
        result = runner.invoke(cli, ['analyze-task', '--data', snapshot_file, 'NOPE'])
        assert result.exit_code == 1
        assert "TASK_NOT_FOUND" in result.output

    def test_evm_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['evm', '--data', snapshot_file, '--as-of', '2024-01-03', '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data['BAC'] == pytest.approx(5110.0)
        assert data['EV'] == pytest.approx(2500.0)
        # labor 2500 + received cement 10 * 10
        assert data['AC'] == pytest.approx(2600.0)
        assert data['as_of'] == "2024-01-03"
        assert 's_curve' not in data

    def test_evm_table(self, runner, snapshot_file):
        result = runner.invoke(cli, ['evm', '--data', snapshot_file, '--as-of', '2024-01-03'])
        assert result.exit_code == 0, result.output
        assert "CPI" in result.output
        assert "Test House" in result.output

    def test_s_curve(self, runner, snapshot_file):
        result = runner.invoke(cli, ['s-curve', '--data', snapshot_file, '--as-of', '2024-01-03'])
        assert result.exit_code == 0, result.output
        assert "Week 0" in result.output

    def test_pareto_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['pareto', '--data', snapshot_file, '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data['ranked_items'][0]['item_id'] == "I1"
        assert sum(s['count'] for s in data['class_stats'].values()) == 2

    def test_crash_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['crash', '--data', snapshot_file, '--json', 'I1', '--added-crews', '1'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data['normal_duration'] == 5
        assert data['sim_duration'] == 3
        assert data['sim_cost'] >= data['normal_cost']

    def test_crash_unknown_item(self, runner, snapshot_file):
        result = runner.invoke(cli, ['crash', '--data', snapshot_file, 'NOPE'])
        assert result.exit_code == 1
        assert "BUDGET_ITEM_NOT_FOUND" in result.output

    def test_summary_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['summary', '--data', snapshot_file, '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data['direct_cost'] == pytest.approx(5110.0)
        assert data['item_count'] == 2
        assert data['price_deviations'][0]['material_id'] == "M1"
        assert data['price_deviations'][0]['percent'] == pytest.approx(25.0)

    def test_stock_json(self, runner, snapshot_file):
        result = runner.invoke(cli, ['stock', '--data', snapshot_file, '--json'])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        # I2: 5 m2 of screed * 2 bags
        assert data[0]['material_id'] == "M1"
        assert data[0]['budgeted'] == pytest.approx(10.0)
        assert data[0]['received'] == pytest.approx(10.0)
        assert data[0]['pending'] == 0.0

    def test_stock_before_first_receipt(self, runner, snapshot_file):
        result = runner.invoke(cli, ['stock', '--data', snapshot_file, '--as-of', '2024-01-01'])
        assert result.exit_code == 0, result.output
        assert "Cement" in result.output

    def test_missing_data_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['summary', '--data', str(tmp_path / "missing.yaml")])
        assert result.exit_code == 2

    def test_invalid_snapshot_reported(self, runner, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("tasks: []\n")
        result = runner.invoke(cli, ['summary', '--data', str(path)])
        assert result.exit_code == 1
        assert "SNAPSHOT_LOAD_FAILED" in result.output
