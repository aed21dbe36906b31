"""
Authentication blueprint.
Cookie-session login for customers and admins.
"""
import logging
from flask import Blueprint, jsonify, request, session, g
from flask_wtf.csrf import generate_csrf
from sqlalchemy import func

from bakery.database import get_session
from bakery.exceptions import AuthenticationError, ValidationError
from bakery.middleware import login_required
from bakery.models import User
from bakery.utils.payloads import request_payload

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate email + password and open a session."""
    payload = request_payload(request)
    email = (payload.get('email') or '').strip().lower()
    password = payload.get('password') or ''

    if not email or not password:
        raise ValidationError({'email': ['Email y contraseña son requeridos']})

    user = get_session().query(User).filter(func.lower(User.email) == email).first()

    # Same message for unknown email, inactive user and wrong password
    if not user or not user.active or not user.check_password(password):
        logger.info(f"Failed login for {email}")
        raise AuthenticationError('Email o contraseña incorrectos')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    logger.info(f"User {user.id} logged in")
    return jsonify({'status': 'success', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Clear the session."""
    session.clear()
    return jsonify({'status': 'success'})


@auth_bp.route('/me')
@login_required
def me():
    """Current user, plus a CSRF token for state-changing admin calls."""
    return jsonify({'user': g.user.to_dict(), 'csrf_token': generate_csrf()})
