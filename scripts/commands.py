# commands.py

import json

import click
from flask import current_app
from flask.cli import with_appcontext
from extensions import db


@click.command('init-db')
@with_appcontext
def init_db():
    """Create the document table"""
    import crm_database  # noqa: F401  registers the models
    db.create_all()
    click.echo('Database tables created.')


@click.command('import-snapshot')
@click.argument('snapshot_file', type=click.File('r'))
@with_appcontext
def import_snapshot(snapshot_file):
    """Load accounts/contacts/tasks from a JSON export"""
    try:
        snapshot = json.load(snapshot_file)
    except ValueError as e:
        raise click.ClickException(f'Invalid JSON: {e}')
    if not isinstance(snapshot, dict):
        raise click.ClickException('Snapshot must be a JSON object')

    entity_repository = current_app.services.get('entity_repository')
    try:
        counts = entity_repository.import_snapshot(snapshot)
    except ValueError as e:
        raise click.ClickException(str(e))

    for name, count in counts.items():
        click.echo(f'Imported {count} {name}')


@click.command('evaluate-alerts')
@click.option('--today', default=None, help='Evaluate as of this date (YYYY-MM-DD)')
@with_appcontext
def evaluate_alerts(today):
    """Run one alert delivery pass"""
    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.run_evaluation(today or current_app.services.get('today_provider')())
    if result.is_failure:
        raise click.ClickException(f'Alert evaluation failed: {result.error}')

    summary = result.data
    click.echo(
        f"Evaluated {summary['evaluated']} alert(s) for {summary['today']}: "
        f"{summary['delivered']} delivered, {summary['already_sent']} already sent, "
        f"{summary['snoozed']} snoozed, {summary['failed']} failed"
    )


@click.command('prune-alerts')
@click.option('--days', type=click.IntRange(min=0), default=None, help='Retention window in days')
@with_appcontext
def prune_alerts(days):
    """Remove old sent-alert records whose alerts are no longer due"""
    evaluation_service = current_app.services.get('alert_evaluation')
    result = evaluation_service.prune_sent_alerts(days, today=current_app.services.get('today_provider')())
    if result.is_failure:
        raise click.ClickException(f'Prune failed: {result.error}')
    click.echo(f'Removed {result.data} sent-alert record(s)')


@click.command('export-report')
@click.option('--output', '-o', type=click.File('w'), default='-', help='Output file (default stdout)')
@click.option('--columns', default=None, help='Comma-separated row columns to include')
@with_appcontext
def export_report(output, columns):
    """Export the flattened account report as CSV"""
    report_service = current_app.services.get('report')
    result = report_service.export_csv(columns.split(',') if columns else None)
    if result.is_failure:
        raise click.ClickException(result.error)
    output.write(result.data)
    if output.name != '<stdout>':
        click.echo(f"Exported {result.metadata['count']} row(s)", err=True)


@click.command('export-contacts')
@click.option('--output', '-o', type=click.File('w'), default='-', help='Output file (default stdout)')
@with_appcontext
def export_contacts(output):
    """Export contacts as CSV in the import layout"""
    report_service = current_app.services.get('report')
    result = report_service.export_contacts_csv()
    if result.is_failure:
        raise click.ClickException(result.error)
    output.write(result.data)
    if output.name != '<stdout>':
        click.echo(f"Exported {result.metadata['count']} contact(s)", err=True)


@click.command('import-contacts')
@click.argument('csv_file', type=click.File('r', encoding='utf-8-sig'))
@with_appcontext
def import_contacts(csv_file):
    """Add or update contacts from a CSV file; existing contacts match by email"""
    report_service = current_app.services.get('report')
    result = report_service.import_contacts_csv(csv_file.read())
    if result.is_failure:
        raise click.ClickException(f'Import failed: {result.error}')
    click.echo(f"Imported contacts: {result.data['added']} added, {result.data['updated']} updated")


def init_app(app):
    """Register commands with the Flask app"""
    app.cli.add_command(init_db)
    app.cli.add_command(import_snapshot)
    app.cli.add_command(evaluate_alerts)
    app.cli.add_command(prune_alerts)
    app.cli.add_command(export_report)
    app.cli.add_command(export_contacts)
    app.cli.add_command(import_contacts)
