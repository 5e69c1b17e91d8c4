from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

cors = CORS()
socketio = SocketIO(async_mode=None)


def _allowed_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config, scheduler=None, rng=None, clock=None):
    """Build the Flask app and its session coordinator.

    `scheduler`, `rng` and `clock` replace the interval scheduler, the random
    source and the wall clock of the coordinator; tests pass fakes here.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    cors.init_app(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from taggame.models import GameRules
    from taggame.services.scheduler import SocketIOScheduler
    from taggame.services.sessions import SessionCoordinator
    from taggame.transport import SocketIOBus

    coordinator_kwargs = {}
    if clock is not None:
        coordinator_kwargs['clock'] = clock
    flask_app.extensions['tag_coordinator'] = SessionCoordinator(
        SocketIOBus(socketio),
        scheduler or SocketIOScheduler(socketio, logger=flask_app.logger),
        rules=GameRules.from_config(flask_app.config),
        rng=rng,
        logger=flask_app.logger,
        **coordinator_kwargs,
    )

    from taggame.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    from taggame.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app
