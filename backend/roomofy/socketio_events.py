from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit
from roomofy import socketio
from roomofy.services.arena.errors import ArenaError, InvalidRequest

NAMESPACE = '/ws'
GUEST_PREFIX = 'guest:'


def _arena():
    return current_app.extensions['arena']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _as_int(value):
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    return value


def _code(value):
    return str(value or '').strip().upper()


def relay_event(handle: str, name: str, payload) -> None:
    """Deliver an arena event to one connection."""
    socketio.emit(name, payload, to=handle, namespace=NAMESPACE)


def arena_call(handler):
    """Run a handler, turning arena errors into an `error` event."""
    def wrapper(data=None):
        try:
            return handler(data or {})
        except ArenaError as exc:
            current_app.logger.info(f"[ws-reject] sid={_get_sid()} event={handler.__name__} code={exc.code}")
            emit('error', exc.to_dict())
    wrapper.__name__ = handler.__name__
    return wrapper


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    identity = _arena().disconnect(_get_sid())
    if identity:
        current_app.logger.info(f"[ws-disconnect] account={identity}")


def socket_identity(claim) -> str:
    """Account id for this connection.

    Logged-in users play as their user id. Anonymous claims live under
    `guest:` so they can never resolve to a real user's wallet.
    """
    if current_user.is_authenticated:
        return str(current_user.id)
    claim = str(claim or '').strip()
    if not claim:
        raise InvalidRequest('user_id is required')
    return f"{GUEST_PREFIX}{claim}"


@arena_call
def handle_register(data):
    emit('registered', _arena().register(_get_sid(), socket_identity(data.get('user_id'))))


@arena_call
def handle_get_wallet(data):
    arena = _arena()
    emit('wallet', arena.get_wallet(arena.identity_of(_get_sid())))


@arena_call
def handle_list_pools(data):
    emit('pools', {'pools': _arena().list_pools(include_closed=bool(data.get('all')))})


@arena_call
def handle_create_pool(data):
    arena = _arena()
    arena.identity_of(_get_sid())
    pool = arena.create_pool(
        data.get('title'),
        _as_int(data.get('entry_fee')),
        _as_int(data.get('max_players')),
    )
    emit('poolCreated', pool)


@arena_call
def handle_join_pool(data):
    arena = _arena()
    identity = arena.identity_of(_get_sid())
    emit('poolJoined', arena.join_pool(_code(data.get('pool_id')), identity))


@arena_call
def handle_quick_join(data):
    arena = _arena()
    identity = arena.identity_of(_get_sid())
    emit('poolJoined', arena.quick_join(identity, _as_int(data.get('entry_fee'))))


@arena_call
def handle_leave_pool(data):
    arena = _arena()
    identity = arena.identity_of(_get_sid())
    emit('poolLeft', arena.leave_pool(_code(data.get('pool_id')), identity))


@arena_call
def handle_move(data):
    arena = _arena()
    identity = arena.identity_of(_get_sid())
    # boardUpdate / gameOver are pushed to both players by the arena
    arena.move(_code(data.get('room_id')), identity, _as_int(data.get('row')), _as_int(data.get('col')))


def handle_ping(data=None):
    emit('pong', data or {})


def handle_error(exc):
    current_app.logger.exception(f"[ws-unhandled] sid={_get_sid()} {exc}")
    emit('error', {'code': 'InternalError', 'message': 'Internal error'})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'register': handle_register,
    'get_wallet': handle_get_wallet,
    'list_pools': handle_list_pools,
    'create_pool': handle_create_pool,
    'join_pool': handle_join_pool,
    'quick_join': handle_quick_join,
    'leave_pool': handle_leave_pool,
    'move': handle_move,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace=namespace)
        socketio.on_error(namespace)(handle_error)
