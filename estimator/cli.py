"""
CLI for the Estimator engine.

Usage:
    estimator analyze-task --data project.yaml T-001
    estimator evm --data project.yaml --as-of 2024-06-30
    estimator s-curve --data project.yaml --as-of 2024-06-30
    estimator pareto --data project.yaml
    estimator crash --data project.yaml ITEM-3 --added-crews 1 --overtime 50
    estimator summary --data project.yaml
    estimator stock --data project.yaml --as-of 2024-06-30

Commands:
    analyze-task  Unit price breakdown of one task
    evm           Earned value metrics of the project
    s-curve       Weekly planned/earned/actual series
    pareto        ABC classification of budget items
    crash         Time-cost trade-off for one budget item
    summary       Direct cost, sale price and price deviations
    stock         Budgeted vs received material quantities
"""
import json
import logging
from functools import wraps

import click
import pandas as pd

from estimator import __version__
from estimator.data import load_snapshot
from estimator.domain.exceptions import DomainError
from estimator.domain.services import (
    CrashScenario,
    analyze_unit_price,
    classify_pareto,
    compare_to_standard,
    detect_price_deviations,
    material_stock_status,
    roll_up_project,
    simulate_crashing,
    stock_status_frame,
    summarize_budget,
)

logger = logging.getLogger(__name__)

data_option = click.option(
    '--data',
    'data_path',
    required=True,
    help='Path to the catalog/project snapshot YAML file',
    type=click.Path(exists=True, dir_okay=False),
)
json_option = click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')


def domain_errors(func):
    """Report domain errors as CLI errors instead of tracebacks."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DomainError as e:
            raise click.ClickException(f"[{e.code}] {e.message}")
    return wrapper


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _money(value) -> str:
    return "-" if value is None else f"{value:,.2f}"


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Construction cost and schedule estimation engine.

    Prices tasks from their resource recipes and rolls budgets up into
    earned value, Pareto and crashing analyses.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command('analyze-task')
@data_option
@json_option
@click.argument('task_id')
@domain_errors
def analyze_task(data_path: str, as_json: bool, task_id: str):
    """Unit price breakdown of TASK_ID, with its standard-yield comparison."""
    snapshot = load_snapshot(data_path)
    task = snapshot.task(task_id)
    analysis = analyze_unit_price(task, snapshot.indexes, snapshot.project.workday_hours)

    if as_json:
        _echo_json(analysis.to_dict())
        return

    click.echo(click.style(f"{task.name} ({task.unit})", fg='cyan', bold=True))
    click.echo(f"  Material:  {_money(analysis.material_cost)}")
    click.echo(f"  Labor:     {_money(analysis.labor_cost)}  [{analysis.labor_source}]")
    click.echo(f"  Tools:     {_money(analysis.tool_cost)}")
    click.echo(f"  Fixed:     {_money(analysis.fixed_cost)}")
    click.echo(f"  Total:     {_money(analysis.total_unit_cost)}")

    comparison = compare_to_standard(task, snapshot.indexes, snapshot.project.workday_hours)
    if comparison.standard is not None:
        click.echo(f"\nStandard unit cost: {_money(comparison.standard.total_unit_cost)} "
                   f"(difference {_money(comparison.unit_cost_difference)})")
        for m in comparison.materials:
            if m.is_new:
                click.echo(f"  {m.material_id}: not in standard")
            elif m.is_different:
                click.echo(f"  {m.material_id}: {m.quantity:g} vs {m.standard_quantity:g} ({m.percent:+.1f}%)")


@cli.command()
@data_option
@json_option
@click.option('--as-of', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Status date (default: today)')
@domain_errors
def evm(data_path: str, as_json: bool, as_of):
    """Earned value metrics of the project."""
    snapshot = load_snapshot(data_path)
    result = roll_up_project(
        snapshot.project, snapshot.tasks_by_id, snapshot.indexes,
        snapshot.receipts, as_of.date() if as_of else None,
    )

    if as_json:
        payload = result.to_dict()
        payload.pop('s_curve')
        _echo_json(payload)
        return

    click.echo(click.style(f"Earned value - {snapshot.project.name} as of {result.as_of}", fg='cyan', bold=True))
    for name, value in result.metrics().items():
        if name in ('CPI', 'SPI'):
            click.echo(f"  {name:<4} {value:>14.3f}")
        else:
            click.echo(f"  {name:<4} {_money(value):>14}")
    if result.uncomputable_item_ids:
        click.echo(click.style(
            f"\nItems without computable duration: {', '.join(result.uncomputable_item_ids)}",
            fg='yellow',
        ))


@cli.command('s-curve')
@data_option
@json_option
@click.option('--as-of', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Status date (default: today)')
@domain_errors
def s_curve(data_path: str, as_json: bool, as_of):
    """Weekly cumulative planned/earned/actual series."""
    snapshot = load_snapshot(data_path)
    result = roll_up_project(
        snapshot.project, snapshot.tasks_by_id, snapshot.indexes,
        snapshot.receipts, as_of.date() if as_of else None,
    )

    if as_json:
        _echo_json(result.to_dict()['s_curve'])
        return

    frame = result.s_curve_frame()
    with pd.option_context('display.float_format', '{:,.0f}'.format):
        click.echo(frame.to_string())


@cli.command()
@data_option
@json_option
@domain_errors
def pareto(data_path: str, as_json: bool):
    """ABC classification of the budget items."""
    snapshot = load_snapshot(data_path)
    result = classify_pareto(snapshot.project, snapshot.tasks_by_id, snapshot.indexes)

    if as_json:
        _echo_json({
            'total_cost': result.total_cost,
            'ranked_items': result.to_frame().to_dict(orient='records'),
            'class_stats': {k: v.__dict__ for k, v in result.class_stats.items()},
        })
        return

    frame = result.to_frame()[['item_id', 'name', 'cost', 'cumulative_percentage', 'abc_class']]
    click.echo(frame.to_string(index=False))
    click.echo("")
    for abc_class, stats in result.class_stats.items():
        click.echo(f"  {abc_class}: {stats.count} items ({stats.percentage:.1f}%), cost {_money(stats.cost)}")


@cli.command()
@data_option
@json_option
@click.argument('item_id')
@click.option('--added-crews', default=0, type=click.IntRange(0, None), help='Extra crews to add')
@click.option('--overtime', default=0, type=int, help='Overtime percent (0, 50 or 100)')
@domain_errors
def crash(data_path: str, as_json: bool, item_id: str, added_crews: int, overtime: int):
    """Time-cost trade-off for budget item ITEM_ID."""
    snapshot = load_snapshot(data_path)
    item = snapshot.item(item_id)
    task = snapshot.task(item.task_id)
    result = simulate_crashing(
        item, task, snapshot.indexes,
        CrashScenario(added_crews=added_crews, overtime_percent=overtime),
        workday_hours=snapshot.project.workday_hours,
    )

    if as_json:
        _echo_json(result.to_dict())
        return

    if not result.computable:
        raise click.ClickException(f"Task '{task.id}' has no daily yield; crashing is not computable")

    click.echo(click.style(f"Crashing - {task.name}", fg='cyan', bold=True))
    click.echo(f"  Normal:    {result.normal_duration} days, {_money(result.normal_cost)}")
    click.echo(f"  Simulated: {result.sim_duration} days, {_money(result.sim_cost)} "
               f"(+{result.scenario.added_crews} crews, {result.scenario.overtime_percent}% overtime)")
    click.echo(f"  Saved:     {result.days_saved} days for {_money(result.cost_increase)} "
               f"({_money(result.cost_slope)}/day)")

    frame = pd.DataFrame([p.__dict__ for p in result.frontier_points])
    click.echo("")
    click.echo(frame.to_string(index=False))


@cli.command()
@data_option
@json_option
@domain_errors
def summary(data_path: str, as_json: bool):
    """Direct cost totals, sale price and material price deviations."""
    snapshot = load_snapshot(data_path)
    result = summarize_budget(snapshot.project, snapshot.tasks_by_id, snapshot.indexes)
    deviations = detect_price_deviations(snapshot.materials, snapshot.baseline)

    if as_json:
        _echo_json({
            **result.to_dict(),
            'price_deviations': [d.__dict__ for d in deviations],
        })
        return

    click.echo(click.style(f"Budget summary - {snapshot.project.name}", fg='cyan', bold=True))
    click.echo(f"  Materials:          {_money(result.material_cost)}")
    click.echo(f"  Labor:              {_money(result.labor_cost)}")
    click.echo(f"  Tools:              {_money(result.tool_cost)}")
    click.echo(f"  Fixed/subcontract:  {_money(result.fixed_cost)}")
    click.echo(f"  Direct cost:        {_money(result.direct_cost)}")
    click.echo(f"  General expenses:   {_money(result.general_expenses)}")
    click.echo(f"  Financial expenses: {_money(result.financial_expenses)}")
    click.echo(f"  Profit:             {_money(result.profit)}")
    click.echo(f"  Tax:                {_money(result.tax)}")
    click.echo(f"  Sale price:         {_money(result.sale_price)}  (K = {result.k_factor:.3f})")
    click.echo(f"  Sequential duration: {result.total_duration_days} days")

    if deviations:
        click.echo(click.style("\nPrice deviations since baseline:", fg='yellow'))
        for d in deviations:
            click.echo(f"  {d.name}: {_money(d.base_price)} -> {_money(d.current_price)} ({d.percent:+.1f}%)")


@cli.command()
@data_option
@json_option
@click.option('--as-of', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Ignore receipts after this date (YYYY-MM-DD)')
@domain_errors
def stock(data_path: str, as_json: bool, as_of):
    """Budgeted, received and pending quantity per material."""
    snapshot = load_snapshot(data_path)
    statuses = material_stock_status(
        snapshot.project, snapshot.indexes, snapshot.receipts,
        as_of.date() if as_of else None,
    )

    if as_json:
        _echo_json([s.to_dict() for s in statuses])
        return

    click.echo(click.style(f"Material stock - {snapshot.project.name}", fg='cyan', bold=True))
    if not statuses:
        click.echo("  No materials budgeted or received")
        return
    click.echo(stock_status_frame(statuses).to_string(index=False))

    short = [s for s in statuses if s.has_discrepancy]
    if short:
        click.echo(click.style("\nDelivery note discrepancies:", fg='yellow'))
        for s in short:
            click.echo(f"  {s.name or s.material_id}: received {s.received:g}, declared {s.declared:g}")


if __name__ == '__main__':
    cli()
