"""Authentication blueprint: JWT login, the current user, and access checks."""
import logging
from datetime import timedelta
from functools import wraps
import jwt
from flask import Blueprint, request, g, current_app, abort
from werkzeug.security import check_password_hash
from shared.models import User, now
from shared.schemas import LoginRequest
from shared.validation import ValidationError
from ..base.crud_base import serialize_model
from ..models import db
from ..utils import api_error, responder, get_json_body, validate_payload

bp = Blueprint('auth', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'

# Endpoints reachable without a bearer token
PUBLIC_PATHS = (
    '/api/auth/login',
    '/api/user-manager/users/accept-invitation',
    '/api/communities/data',
    '/storage/public-url',
)
PUBLIC_PREFIXES = (
    '/api/dashboard/',
    '/api/public/',
)

USER_PRIVATE_FIELDS = ('password', 'invitation_token')


def serialize_role(role):
    if role is None:
        return None
    data = serialize_model(role)
    data['type'] = data.pop('roleType')
    return data


def serialize_user(user):
    """User as returned by the API, with its role and without secrets."""
    data = serialize_model(user, USER_PRIVATE_FIELDS)
    data['role'] = serialize_role(user.role)
    return data


def create_access_token(user):
    issued_at = now()
    payload = {
        'username': user.email,
        'sub': user.id,
        'iat': issued_at,
        'exp': issued_at + timedelta(seconds=current_app.config.get('JWT_EXPIRES_IN_SECONDS', 86400)),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=JWT_ALGORITHM)


def decode_access_token(token):
    """Return the user id carried by ``token`` or None when it is invalid."""
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None
    return payload.get('sub')


def is_public_path(path):
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def require_permissions(*permissions):
    """Allow the view when the user's role grants any of ``permissions``."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = getattr(g, 'user', None)
            if user is None:
                abort(401, description='Unauthorized')
            granted = set(user.role.permissions or []) if user.role else set()
            if not any(permission in granted for permission in permissions):
                logger.warning(f"User {user.id} lacks permissions {permissions} for {request.path}")
                abort(403, description='Forbidden resource')
            return view(*args, **kwargs)
        return wrapped
    return decorator


def require_role_type(*role_types):
    """Allow the view when the user's role is one of ``role_types``."""
    allowed = {getattr(role_type, 'value', role_type) for role_type in role_types}

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = getattr(g, 'user', None)
            if user is None:
                abort(401, description='Unauthorized')
            if not user.role or user.role.role_type not in allowed:
                abort(403, description='Forbidden resource')
            return view(*args, **kwargs)
        return wrapped
    return decorator


@bp.route('/auth/login', methods=['POST'])
def login():
    """Check credentials and return an access token with the user."""
    try:
        credentials = validate_payload(LoginRequest, get_json_body())
    except ValidationError as e:
        return api_error(str(e), 400)

    user = User.query.filter_by(email=credentials.email).first()
    if not user or not user.is_email_verified or not user.password:
        return api_error('Invalid credentials', 401)
    if not check_password_hash(user.password, credentials.password):
        return api_error('Invalid credentials', 401)

    logger.info(f"User {user.id} logged in")
    return responder(200, {
        'accessToken': create_access_token(user),
        'user': serialize_user(user),
    })


@bp.route('/auth/me', methods=['GET'])
def me():
    """Get current user info."""
    return responder(200, serialize_user(g.user))


@bp.route('/auth/me/collector', methods=['GET'])
@require_role_type('collector')
def me_collector():
    return responder(200, serialize_user(g.user))


@bp.route('/auth/me/admin', methods=['GET'])
@require_role_type('admin')
def me_admin():
    return responder(200, serialize_user(g.user))


def init_auth(app):
    """Initialize authentication for the Flask app."""
    @app.before_request
    def check_auth():
        g.user = None

        # Unrouted paths fall through to the 404 handler
        if request.method == 'OPTIONS' or request.url_rule is None:
            return

        # Check Bearer Token (User Auth)
        auth_header = request.headers.get('Authorization', '')
        if auth_header.startswith('Bearer '):
            user_id = decode_access_token(auth_header[len('Bearer '):].strip())
            if user_id:
                g.user = db.session.get(User, user_id)

        if g.user is not None or is_public_path(request.path):
            return

        return api_error('Unauthorized', 401)
