"""Middleware for authentication and role checks."""
from functools import wraps
from flask import session, g, current_app
from invoicer.database import get_session
from invoicer.models import AppUser, UserRole, normalize_user_role
from invoicer.exceptions import AuthenticationError, UnauthorizedError


def load_current_user():
    """
    Load the current user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_role when the
    session carries the id of an active user.
    """
    g.user = None
    g.user_role = None

    user_id = session.get('user_id')
    if not user_id:
        return

    db_session = get_session()
    if not db_session:
        return

    user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    if user:
        g.user = user
        g.user_role = user.role
    else:
        # Deleted or deactivated since login
        current_app.logger.info(f"Dropping session of inactive user {user_id}")
        session.pop('user_id', None)


def require_login(f):
    """Decorator: require a logged-in user (401 otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function


def require_role(*allowed_roles):
    """
    Decorator to restrict access to specific roles.

    Usage:
        @require_role(UserRole.ADMIN)
        @require_role('Admin', 'Billing Staff')

    Implies require_login.
    """
    roles = {normalize_user_role(role) for role in allowed_roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.get('user') is None:
                raise AuthenticationError()

            if g.get('user_role') not in roles:
                raise UnauthorizedError('You do not have permission to access this section.')

            return f(*args, **kwargs)
        return decorated_function
    return decorator


# Billing screen: every role
require_billing = require_role(UserRole.ADMIN, UserRole.STAFF)
require_admin = require_role(UserRole.ADMIN)
