from flask import request, jsonify
from sqlalchemy import or_
from flask_login import login_user, logout_user, current_user

from . import auth_bp  # Import the blueprint
from .permissions import json_login_required
from ..models import User
from ..utils import json_body, text_field


# Login route
@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body() if request.is_json else request.form
    login_identifier = text_field(data, 'username')
    password = data.get('password')
    if not isinstance(password, str):
        password = ''

    # Input validation
    if not login_identifier or not password:
        return jsonify(success=False, error='Username/email and password are required.'), 400

    if len(login_identifier) > 255 or len(password) > 128:
        return jsonify(success=False, error='Input too long.'), 400

    user = User.query.filter(
        or_(
            User.username == login_identifier,
            User.email == login_identifier
        )
    ).first()

    if user is None or not user.check_password(password):
        return jsonify(success=False, error='Invalid username or password.'), 401

    if not user.is_active:
        return jsonify(success=False, error='Account is inactive.'), 403

    login_user(user, remember=True)
    return jsonify(success=True, user=user.to_dict())


# Logout route
@auth_bp.route('/logout', methods=['POST'])
@json_login_required
def logout():
    logout_user()
    return jsonify(success=True)


@auth_bp.route('/me')
@json_login_required
def me():
    return jsonify(success=True, user=current_user.to_dict())
