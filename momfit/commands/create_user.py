import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from momfit import db
from momfit.models import User


@click.command('create-user')
@click.option('--username', required=True)
@click.option('--password', required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--email', default=None)
@click.option('--full-name', default=None)
@with_appcontext
def create_user(username, password, email, full_name):
    """Creates a login user."""
    if User.query.filter_by(username=username).first():
        click.echo(f"Error: User '{username}' already exists")
        return

    user = User(username=username, email=email, full_name=full_name)
    user.set_password(password)
    try:
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created user {username} (ID {user.id})")
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"Error creating user: {e}")
