"""CLI commands for the application."""
import click
from flask import current_app
from flask.cli import with_appcontext

from community.models.base import db
from community.models import User, Profile, TenantSettings
from community.services.tenant_service import TenantSettingsRepository


def register_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @with_appcontext
    def init_db():
        """Initialize the database."""
        db.create_all()
        click.echo('Database initialized.')

    @app.cli.command('seed-db')
    @with_appcontext
    def seed_db():
        """Seed the tenant settings row and two demo members."""
        tenant_id = current_app.config['TENANT_ID']

        if not TenantSettings.query.filter_by(tenant_id=tenant_id).first():
            db.session.add(TenantSettings(tenant_id=tenant_id))
            click.echo(f'Tenant settings created for {tenant_id}.')

        for username in ('demo_sender', 'demo_receiver'):
            if User.query.filter_by(username=username).first():
                click.echo(f'User {username} already exists.')
                continue
            user = User(email=f'{username}@example.com', username=username)
            user.set_password('Demo12345')
            db.session.add(user)
            db.session.add(Profile(username=username, tenant_id=tenant_id))
            click.echo(f'User {username} created.')

        db.session.commit()
        click.echo('Database seeded successfully.')

    @app.cli.command('set-tenant-setting')
    @click.argument('field', type=click.Choice(TenantSettings.EDITABLE_FIELDS))
    @click.argument('value')
    @with_appcontext
    def set_tenant_setting(field, value):
        """Set a branding field for the configured tenant."""
        repository = TenantSettingsRepository(
            current_app.config['TENANT_ID'],
            cache=getattr(current_app, 'cache', None)
        )
        settings = repository.update_setting(field, value)
        click.echo(f'{field} = {getattr(settings, field)}')
