"""User manager blueprint: users, invitations and roles."""
import logging
import uuid
from datetime import timedelta
from flask import Blueprint, g, abort, current_app
from werkzeug.security import generate_password_hash
from shared.enums import UserStatus
from shared.models import User, Role, now, as_aware
from shared.schemas import (
    UserCreate, UserUpdate, UserInvite, AcceptInvitation, RoleCreate, RoleUpdate
)
from shared.validation import ValidationError
from ..base.crud_base import CRUDBase
from ..models import db
from ..services.mail_service import get_mail_service, MailError
from ..utils import api_error, responder
from .auth import require_permissions, serialize_user, serialize_role

bp = Blueprint('user_manager', __name__, url_prefix='/api/user-manager')
logger = logging.getLogger(__name__)

INVITATION_TTL = timedelta(days=7)


class UserCRUD(CRUDBase):

    def serialize(self, resource):
        return serialize_user(resource)

    def ensure_email_free(self, email):
        if User.query.filter_by(email=email).first():
            abort(409, description='User with this email already exists')

    def ensure_role(self, role_id):
        if db.session.get(Role, role_id) is None:
            abort(404, description='Role not found')


class RoleCRUD(CRUDBase):

    def serialize(self, resource):
        return serialize_role(resource)

    def ensure_name_free(self, name, current_id=None):
        existing = Role.query.filter_by(name=name).first()
        if existing and existing.id != current_id:
            abort(409, description='Role with this name already exists')


users = UserCRUD(User, 'User', 'user_manager.users')
roles = RoleCRUD(Role, 'Role', 'user_manager.roles')


@bp.errorhandler(ValidationError)
def handle_validation_error(e):
    return api_error(str(e), 400)


# User Routes
@bp.route('/users', methods=['POST'])
@require_permissions('users:create')
def create_user():
    payload = users.validate(UserCreate, users.get_json_data())
    users.ensure_email_free(payload.email)
    users.ensure_role(payload.role_id)

    # Accounts created directly by an administrator can sign in at once
    user = User(
        full_name=payload.full_name,
        email=payload.email,
        role_id=payload.role_id,
        password=generate_password_hash(payload.password),
        status=UserStatus.ACTIVE.value,
        is_email_verified=True
    )
    db.session.add(user)
    db.session.commit()
    logger.info(f"Created user {user.id} ({user.email})")
    return responder(201, users.serialize(user), 'User created successfully')


@bp.route('/users', methods=['GET'])
@require_permissions('users:read')
def list_users():
    items, meta = users.get_list(users.get_pagination())
    return responder(200, {'data': items, 'meta': meta}, 'Users fetched successfully')


@bp.route('/users/<user_id>', methods=['GET'])
@require_permissions('users:read')
def get_user(user_id):
    return responder(200, users.serialize(users.get_or_404(user_id)), 'User fetched successfully')


@bp.route('/users/<user_id>', methods=['PATCH'])
@require_permissions('users:update')
def update_user(user_id):
    user = users.get_or_404(user_id)
    payload = users.validate(UserUpdate, users.get_json_data())
    changes = payload.model_dump(exclude_unset=True)

    if changes.get('role_id'):
        users.ensure_role(changes['role_id'])
    if changes.get('email') and changes['email'] != user.email:
        users.ensure_email_free(changes['email'])
    if changes.get('password'):
        changes['password'] = generate_password_hash(changes['password'])

    for key, value in changes.items():
        if value is not None:
            setattr(user, key, value)
    db.session.commit()
    logger.info(f"Updated user {user_id}: {sorted(changes)}")
    return responder(200, users.serialize(user), 'User updated successfully')


@bp.route('/users/<user_id>', methods=['DELETE'])
@require_permissions('users:delete')
def delete_user(user_id):
    users.delete(user_id)
    return responder(200, None, 'User deleted successfully')


# Invitation Routes
@bp.route('/users/invite', methods=['POST'])
@require_permissions('users:invite')
def invite_user():
    payload = users.validate(UserInvite, users.get_json_data())
    users.ensure_email_free(payload.email)
    users.ensure_role(payload.role_id)

    user = User(
        full_name=payload.full_name,
        email=payload.email,
        role_id=payload.role_id,
        status=UserStatus.INVITED.value,
        invitation_token=str(uuid.uuid4()),
        invitation_expires_at=now() + INVITATION_TTL,
        invited_by=g.user.id
    )
    db.session.add(user)
    db.session.commit()
    logger.info(f"User {g.user.id} invited {user.email}")

    try:
        get_mail_service().send_invitation(user, current_app.config.get('INVITATION_URL', ''))
    except MailError as e:
        logger.error(f"Invitation email to {user.email} failed: {e}")

    return responder(201, users.serialize(user), 'User invited successfully')


@bp.route('/users/<user_id>/revoke-invitation', methods=['DELETE'])
@require_permissions('users:invite')
def revoke_invitation(user_id):
    user = users.get_or_404(user_id)
    if user.status != UserStatus.INVITED.value:
        return api_error('Can only revoke invitations for invited users', 400)

    db.session.delete(user)
    db.session.commit()
    logger.info(f"Revoked invitation for {user.email}")
    return responder(200, None, 'Invitation revoked successfully')


@bp.route('/users/accept-invitation', methods=['POST'])
def accept_invitation():
    payload = users.validate(AcceptInvitation, users.get_json_data())
    user = User.query.filter_by(
        invitation_token=payload.invitation_token,
        status=UserStatus.INVITED.value
    ).first()
    if not user:
        return api_error('Invalid invitation token', 404)

    if user.invitation_expires_at and as_aware(user.invitation_expires_at) < now():
        return api_error('Invitation has expired', 400)

    user.password = generate_password_hash(payload.password)
    user.status = UserStatus.ACTIVE.value
    user.invitation_token = None
    user.invitation_expires_at = None
    user.is_email_verified = True
    db.session.commit()
    logger.info(f"User {user.id} accepted their invitation")

    try:
        get_mail_service().send_welcome(user)
    except MailError as e:
        logger.error(f"Welcome email to {user.email} failed: {e}")

    return responder(200, users.serialize(user), 'Invitation accepted successfully')


# Role Routes
@bp.route('/roles', methods=['POST'])
@require_permissions('roles:create')
def create_role():
    payload = roles.validate(RoleCreate, roles.get_json_data())
    roles.ensure_name_free(payload.name)

    role = Role(
        name=payload.name,
        permissions=payload.permissions,
        role_type=payload.type,
        created_by=g.user.id
    )
    db.session.add(role)
    db.session.commit()
    logger.info(f"Created role {role.id} ({role.name})")
    return responder(201, roles.serialize(role), 'Role created successfully')


@bp.route('/roles', methods=['GET'])
@require_permissions('roles:read')
def list_roles():
    items, meta = roles.get_list(roles.get_pagination())
    return responder(200, {'data': items, 'meta': meta}, 'Roles fetched successfully')


@bp.route('/roles/<role_id>', methods=['GET'])
@require_permissions('roles:read')
def get_role(role_id):
    return responder(200, roles.serialize(roles.get_or_404(role_id)), 'Role fetched successfully')


@bp.route('/roles/<role_id>', methods=['PATCH'])
@require_permissions('roles:update')
def update_role(role_id):
    role = roles.get_or_404(role_id)
    payload = roles.validate(RoleUpdate, roles.get_json_data())

    if payload.name is not None:
        roles.ensure_name_free(payload.name, role.id)
        role.name = payload.name
    if payload.permissions is not None:
        role.permissions = payload.permissions
    if payload.type is not None:
        role.role_type = payload.type
    db.session.commit()
    logger.info(f"Updated role {role_id}")
    return responder(200, roles.serialize(role), 'Role updated successfully')


@bp.route('/roles/<role_id>', methods=['DELETE'])
@require_permissions('roles:delete')
def delete_role(role_id):
    role = roles.get_or_404(role_id)
    if User.query.filter_by(role_id=role.id).first():
        abort(409, description='Cannot delete role with assigned users')
    roles.delete(role_id)
    return responder(200, None, 'Role deleted successfully')
