import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from momfit import db
from momfit.models import Community


@click.command('create-community')
@click.option('--name', required=True, help='Community name (unique)')
@click.option('--description', default=None, help='Short description')
@click.option('--tag', 'tags', multiple=True, help='Tag, may be repeated')
@with_appcontext
def create_community(name, description, tags):
    """Creates a new community."""
    existing = Community.query.filter_by(name=name).first()
    if existing:
        click.echo(f"Error: Community '{name}' already exists (ID {existing.id})")
        return

    try:
        community = Community(name=name, description=description, tags=list(tags))
        db.session.add(community)
        db.session.commit()
        click.echo(f"Successfully created community: {name} (ID {community.id})")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"Error creating community: {e}")
