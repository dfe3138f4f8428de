from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from roomofy.main import admin_required
from roomofy.services.arena.errors import ArenaError

arena_api = Blueprint('arena', __name__)


def _arena():
    return current_app.extensions['arena']


@arena_api.errorhandler(ArenaError)
def handle_arena_error(exc):
    current_app.logger.info(f"[arena-error] path={request.path} code={exc.code} message={exc.message}")
    return jsonify(exc.to_dict()), exc.status


@arena_api.route('/wallet', methods=['GET'])
@login_required
def get_wallet():
    return jsonify(_arena().get_wallet(str(current_user.id)))


@arena_api.route('/pools', methods=['GET'])
def list_pools():
    include_closed = request.args.get('all') in ('1', 'true', 'yes')
    return jsonify({'pools': _arena().list_pools(include_closed=include_closed)})


@arena_api.route('/pools', methods=['POST'])
@login_required
def create_pool():
    data = request.get_json(silent=True) or {}
    pool = _arena().create_pool(
        data.get('title'),
        data.get('entry_fee', data.get('entryFee')),
        data.get('max_players', data.get('maxPlayers')),
    )
    return jsonify(pool), 201


@arena_api.route('/pools/<string:pool_id>/cancel', methods=['POST'])
@admin_required
def cancel_pool(pool_id):
    return jsonify(_arena().cancel_pool(pool_id.upper()))


@arena_api.route('/matches/<string:match_id>', methods=['GET'])
def get_match(match_id):
    return jsonify(_arena().get_match(match_id.upper()))
