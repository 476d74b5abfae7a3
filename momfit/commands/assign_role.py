import click
from flask.cli import with_appcontext

from momfit import db
from momfit.models import Community, User
from momfit.services import get_role_resolver


@click.command('assign-role')
@click.option('--username', required=True, help='User to receive the role')
@click.option('--role', 'role_name', required=True, help='Role name, e.g. "Community Admin"')
@click.option('--community-id', type=int, default=None, help='Restrict to one community (omit for global)')
@click.option('--expires-at', type=click.DateTime(formats=['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S']), default=None,
              help='UTC expiry, YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS')
@with_appcontext
def assign_role(username, role_name, community_id, expires_at):
    """Assigns a role to a user, globally or within one community."""
    user = User.query.filter_by(username=username).first()
    if not user:
        click.echo(f"Error: User '{username}' not found")
        return

    resolver = get_role_resolver()
    role = resolver.get_role_by_name(role_name)
    if not role:
        click.echo(f"Error: Role '{role_name}' not found. Run 'flask seed-roles' first?")
        return

    if community_id is not None and db.session.get(Community, community_id) is None:
        click.echo(f"Error: Community {community_id} not found")
        return

    assignment = resolver.assign_role(user.id, role.id, community_id=community_id, expires_at=expires_at)
    where = f"community {community_id}" if community_id is not None else "globally"
    click.echo(f"Assigned '{role.name}' to {username} {where} (assignment {assignment.id})")
