from functools import wraps

from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from roomofy import db
from roomofy.models import User

main = Blueprint('main', __name__)


def _credentials():
    data = request.get_json(silent=True) or {}
    mobile = (data.get('mobile') or '').strip()
    password = data.get('password') or ''
    return mobile, password


@main.route('/signup', methods=['POST', 'OPTIONS'])
def signup():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    mobile, password = _credentials()
    if not mobile or not password:
        return jsonify({"success": False, "message": "Mobile and password required"}), 400
    if User.query.filter_by(mobile=mobile).first():
        return jsonify({"success": False, "message": "Mobile already registered"}), 400

    user = User(mobile=mobile)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    login_user(user)
    current_app.extensions['arena'].ledger.ensure_account(str(user.id))
    current_app.logger.info(f"[signup] user={user.id}")
    return jsonify({"success": True, "user": user.to_dict()}), 201


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    mobile, password = _credentials()
    if not mobile or not password:
        return jsonify({"success": False, "message": "Mobile and password required"}), 400
    user = User.query.filter_by(mobile=mobile).first()
    if user and user.check_password(password):
        login_user(user, remember=True)
        return jsonify({"success": True, "user": user.to_dict()})
    return jsonify({"success": False, "message": "Invalid mobile or password"}), 401


@main.route('/check_login', methods=['GET', 'OPTIONS'])
def check_login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200

    @login_required
    def protected_check():
        return jsonify({"success": True, "user": current_user.to_dict()})

    return protected_check()


@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapper
