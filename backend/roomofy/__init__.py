from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One arena (ledger, pools, matches) per app instance
    from roomofy.services.arena import create_arena
    arena = create_arena(db.session, flask_app.config)
    flask_app.extensions['arena'] = arena

    from roomofy.main import main
    flask_app.register_blueprint(main, url_prefix='/api/auth')

    from roomofy.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from roomofy.api.arena import arena_api
    flask_app.register_blueprint(arena_api, url_prefix='/api/arena')

    from roomofy.socketio_events import register_socketio_handlers, relay_event
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))
    arena.events.subscribe(relay_event)

    from roomofy.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Login required'}), 401

    @flask_app.errorhandler(500)
    def internal_error(exc):
        original = getattr(exc, 'original_exception', None) or exc
        flask_app.logger.error(f"[unhandled] {original!r}", exc_info=original)
        db.session.rollback()
        return jsonify({'code': 'InternalError', 'message': 'Internal Server Error'}), 500

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin = User(mobile='9000000000', is_admin=True)
            admin.set_password('password')
            db.session.add(admin)
            for mobile in ['9000000001', '9000000002']:
                user = User(mobile=mobile)
                user.set_password('password')
                db.session.add(user)
            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
