"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables
- flask seed-catalog: Load the starter services/products for an owner
"""

import click
from app.database import get_session, init_schema
from app.models import AppUser
from app.services.catalog_service import seed_catalog


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        try:
            init_schema()
            click.echo(click.style('✅ Tabelas criadas.', fg='green', bold=True))
        except Exception as e:
            click.echo(click.style(f'❌ Erro ao criar tabelas: {str(e)}', fg='red'))
            raise click.Abort()

    @app.cli.command('seed-catalog')
    @click.option('--email', prompt=True, help='Email of the owner account')
    def seed_catalog_command(email):
        """Load the starter catalog for an owner."""
        db_session = get_session()
        user = db_session.query(AppUser).filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo(click.style(f'❌ Usuário não encontrado: {email}', fg='red'))
            raise click.Abort()

        try:
            created = seed_catalog(db_session, user.id)
        except Exception as e:
            click.echo(click.style(f'❌ Erro ao carregar catálogo: {str(e)}', fg='red'))
            raise click.Abort()

        click.echo(click.style(f'✅ {created} itens adicionados ao catálogo de {email}', fg='green'))
