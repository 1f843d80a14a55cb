from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from darksignal.main import main
    flask_app.register_blueprint(main)

    from darksignal.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from darksignal.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-init')
    def db_init_command():
        """Creates the score table if it does not exist yet."""
        import darksignal.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
            print('Score table ready.')

    flask_app.cli.add_command(db_init_command)

    return flask_app
