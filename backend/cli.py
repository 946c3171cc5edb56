import click
import logging
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash
from shared.enums import RoleType, UserStatus
from .models import db, Role, User
from .permissions import get_all_role_permissions

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = [
    {
        'role': 'super_admin',
        'role_type': RoleType.ADMIN.value,
        'email': 'superadmin@yopmail.com',
        'password': 'Superpass',
        'full_name': 'Super Admin',
    },
    {
        'role': 'collector',
        'role_type': RoleType.COLLECTOR.value,
        'email': 'collector@yopmail.com',
        'password': 'Collectorpass',
        'full_name': 'Abu Isah',
    },
]


def seed_defaults():
    """Create the default roles and accounts, refreshing role permissions.

    Safe to run repeatedly: existing accounts keep their passwords.

    Returns:
        dict: Role name -> Role
    """
    roles = {}
    for account in DEFAULT_ACCOUNTS:
        role = Role.query.filter_by(name=account['role']).first()
        if role is None:
            role = Role(name=account['role'], role_type=account['role_type'])
            db.session.add(role)
            logger.info(f"Created role {account['role']}")
        role.role_type = account['role_type']
        role.permissions = get_all_role_permissions(account['role_type'])
        db.session.flush()
        roles[role.name] = role

        if User.query.filter_by(email=account['email']).first():
            logger.debug(f"User {account['email']} already exists")
            continue
        db.session.add(User(
            full_name=account['full_name'],
            email=account['email'],
            password=generate_password_hash(account['password']),
            role_id=role.id,
            status=UserStatus.ACTIVE.value,
            is_email_verified=True
        ))
        logger.info(f"Created user {account['email']}")

    db.session.commit()
    return roles


@click.command('init-db')
@click.option('--drop', is_flag=True, help='Drop all tables before creating them')
@with_appcontext
def init_db_command(drop):
    """Create the database tables and seed the default roles and users."""
    logger.info("Starting database initialization")
    if drop:
        logger.warning("Dropping all database tables")
        db.drop_all()

    logger.info("Creating database tables and schema")
    db.create_all()
    logger.info("Database tables created successfully")

    logger.info("Seeding default roles and users")
    roles = seed_defaults()
    logger.info("Database initialization completed successfully")
    click.echo(f"Initialized the database with roles: {', '.join(sorted(roles))}")
