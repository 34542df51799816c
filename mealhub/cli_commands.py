"""
Flask CLI commands for store maintenance.

Commands:
- flask init-db: Create all tables
- flask expire-orders: Cancel unpaid card orders past their expiry window
- flask purge-carts: Delete cart lines older than the cart TTL
"""

import click
from flask import current_app

from mealhub.database import get_database, get_session
from mealhub.exceptions import StorageError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the database tables."""
        get_database().create_all()
        click.echo(click.style('Tables created.', fg='green'))

    @app.cli.command('expire-orders')
    def expire_orders_command():
        """Expire unpaid card orders and return their stock."""
        from mealhub.services.order_service import expire_stale_orders

        try:
            count = expire_stale_orders(get_session())
        except StorageError as e:
            click.echo(click.style(f'Error expiring orders: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'Expired {count} order(s).', fg='green'))

    @app.cli.command('purge-carts')
    @click.option('--hours', type=int, default=None, help='Cart TTL in hours (defaults to CART_TTL_HOURS)')
    def purge_carts_command(hours):
        """Delete expired cart lines for every owner."""
        from mealhub.services.cart_service import purge_expired_lines
        from mealhub.database import commit_session

        ttl_hours = hours or current_app.config.get('CART_TTL_HOURS', 48)
        session = get_session()
        try:
            deleted = purge_expired_lines(session, ttl_hours=ttl_hours)
            commit_session(session, 'purging carts')
        except StorageError as e:
            click.echo(click.style(f'Error purging carts: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'Deleted {deleted} expired cart line(s).', fg='green'))
