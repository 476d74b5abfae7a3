import click
from flask.cli import with_appcontext

from momfit.constants import OWNER_ROLE_NAME, AccessLevel
from momfit.services import get_role_resolver

# name -> (access level, description, grants)
DEFAULT_ROLES = {
    OWNER_ROLE_NAME: (
        AccessLevel.SUPREME_ADMIN,
        'Full control over the platform',
        [('global', 'manage', '*')],
    ),
    'Platform User': (
        AccessLevel.USER,
        'Default role for every signed-up user',
        [('content', 'read', 'public'), ('content', 'manage', 'profile')],
    ),
    'Community Admin': (
        AccessLevel.ADMIN,
        'Runs a community: settings, members and events',
        [('community', 'manage', 'community'), ('community', 'manage', 'members'),
         ('community', 'manage', 'events')],
    ),
    'Community Co-Admin': (
        AccessLevel.SECONDARY_ADMIN,
        'Helps moderate content and events',
        [('community', 'manage', 'content'), ('community', 'update', 'members'),
         ('community', 'manage', 'events')],
    ),
    'Community Member': (
        AccessLevel.MEMBER,
        'Regular community member',
        [('community', 'create', 'content'), ('community', 'update', 'content'),
         ('community', 'read', 'events')],
    ),
}


@click.command('seed-roles')
@with_appcontext
def seed_roles():
    """Create the default roles. Existing roles are left untouched."""
    resolver = get_role_resolver()
    created = 0
    for name, (access_level, description, grants) in DEFAULT_ROLES.items():
        if resolver.get_role_by_name(name):
            click.echo(f"Role '{name}' already exists, skipping")
            continue
        resolver.create_role(name, access_level, grants, description=description)
        click.echo(f"Created role: {name} ({access_level})")
        created += 1
    click.echo(f"Seeding complete: {created} role(s) created.")
