"""
Authentication blueprint.
Handles login, logout and the current-user lookup.
"""

from flask import Blueprint, request, session, g, jsonify, current_app
from flask_wtf.csrf import generate_csrf
from invoicer.database import get_session
from invoicer.models import AppUser
from invoicer.middleware import require_login
from invoicer.exceptions import BusinessLogicError, AuthenticationError

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate username + password and open a session."""
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip()
    password = str(data.get('password') or '')

    if not username or not password:
        raise BusinessLogicError('Username and password are required.')

    user = get_session().query(AppUser).filter_by(username=username).first()

    if not user or not user.active or not user.check_password(password):
        current_app.logger.warning(f"Failed login for '{username}'")
        raise AuthenticationError('Invalid username or password.')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    current_app.logger.info(f"User {user.username} logged in ({user.role.value})")
    return jsonify({'status': 'success', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'success'})


@auth_bp.route('/me')
@require_login
def me():
    return jsonify({'user': g.user.to_dict()})


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header of JSON clients."""
    return jsonify({'csrf_token': generate_csrf()})
