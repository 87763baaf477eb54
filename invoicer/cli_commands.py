"""
Flask CLI commands for database and data management.

Commands:
- flask init-db: Create missing tables
- flask seed-data: Load the default catalog, customers and users
- flask create-user: Create a user with a role
- flask export-data PATH: Write a JSON snapshot
- flask import-data PATH: Load a JSON snapshot (defaults into empty tables when corrupt)
"""

import click
from invoicer.database import get_session, init_schema
from invoicer.models import AppUser, normalize_user_role


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every missing table."""
        init_schema()
        click.echo(click.style('Database initialized.', fg='green'))

    @app.cli.command('seed-data')
    def seed_data_command():
        """Load default data into empty tables."""
        from invoicer.services.data_service import seed_defaults

        created = seed_defaults(get_session())
        click.echo(click.style('Default data loaded.', fg='green', bold=True))
        for collection, count in created.items():
            click.echo(f'   {collection}: {count}')

    @app.cli.command('create-user')
    @click.option('--username', prompt=True, help='Login name')
    @click.option('--role', type=click.Choice(['Admin', 'Billing Staff'], case_sensitive=False),
                  default='Billing Staff', show_default=True, help='User role')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    def create_user(username, role, password):
        """Create a user for the shop."""
        username = username.strip()
        if not username:
            click.echo(click.style('Username is required.', fg='red'))
            return

        if len(password) < 6:
            click.echo(click.style('Password must be at least 6 characters.', fg='red'))
            return

        db_session = get_session()
        if db_session.query(AppUser).filter_by(username=username).first():
            click.echo(click.style(f'A user named {username} already exists.', fg='red'))
            return

        try:
            user = AppUser(username=username, role=normalize_user_role(role))
            user.set_password(password)
            db_session.add(user)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            raise click.ClickException(f'Error creating user: {e}')

        click.echo(click.style('User created.', fg='green', bold=True))
        click.echo(f'   Username: {user.username}')
        click.echo(f'   Role: {user.role.value}')

    @app.cli.command('export-data')
    @click.argument('path', type=click.Path(dir_okay=False, writable=True))
    def export_data_command(path):
        """Write products, customers, bills and payments to a JSON file."""
        from invoicer.services.data_service import export_to_file

        counts = export_to_file(get_session(), path)
        click.echo(click.style(f'Data exported to {path}', fg='green'))
        for collection, count in counts.items():
            click.echo(f'   {collection}: {count}')

    @app.cli.command('import-data')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    @click.confirmation_option(prompt='This replaces products, customers, bills and payments. Continue?')
    def import_data_command(path):
        """Replace business data with a JSON snapshot."""
        from invoicer.services.data_service import import_from_file

        counts = import_from_file(get_session(), path)
        click.echo(click.style('Data imported.', fg='green'))
        for collection, count in counts.items():
            click.echo(f'   {collection}: {count}')
