"""
Flask CLI commands for database and stock management.

Commands:
- flask init-db: Create every table
- flask low-stock: List active stock items under their minimum stock
"""

import click
from app.database import create_all, get_session
from app.repositories import StockItemRepository


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the database schema."""
        try:
            create_all()
            click.echo(click.style('Database tables created.', fg='green', bold=True))
        except Exception as e:
            click.echo(click.style(f'Error creating tables: {str(e)}', fg='red'))
            raise SystemExit(1)

    @app.cli.command('low-stock')
    def low_stock_command():
        """Print stock items below their minimum stock."""
        items = StockItemRepository(get_session()).list_low_stock()
        if not items:
            click.echo(click.style('No stock items below minimum.', fg='green'))
            return

        click.echo(click.style(f'{len(items)} stock item(s) below minimum:', fg='yellow', bold=True))
        for item in items:
            click.echo(f'   #{item.id} {item.name}: {item.stock} {item.unit or ""} (min {item.min_stock})')
