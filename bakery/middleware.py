"""Middleware for authentication context and access control."""
from functools import wraps
from flask import session, g, current_app
from sqlalchemy.exc import SQLAlchemyError
from bakery.database import get_session
from bakery.models import User
from bakery.exceptions import AuthenticationError, UnauthorizedError


def load_user():
    """
    Load current user into g (Flask's per-request global).

    Called before each request. Sets g.user to the active User whose id is
    in the session cookie, or None.
    """
    g.user = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        user = get_session().query(User).filter_by(id=user_id, active=True).first()
    except SQLAlchemyError as e:
        # Storefront endpoints must keep working for anonymous visitors
        current_app.logger.error(f"Error in load_user: {e}")
        return

    if user is None:
        # Deleted or deactivated account: drop the stale session
        session.pop('user_id', None)
        return
    g.user = user


def login_required(f):
    """
    Decorator: Require user to be logged in.

    Raises AuthenticationError (401) when there is no session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """
    Decorator: Require an ADMIN user.

    Anonymous requests get 401, logged-in non-admins get 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = g.get('user')
        if user is None:
            raise AuthenticationError()
        if not user.is_admin:
            raise UnauthorizedError('Se requiere rol de administrador')
        return f(*args, **kwargs)
    return decorated_function
