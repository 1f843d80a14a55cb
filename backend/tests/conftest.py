import os
import sys
import pytest

# Ensure the backend root (containing the `darksignal` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from darksignal import create_app, db, socketio
from darksignal.services.maze.level import Cell, Grid, Position


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = 5000


def build_grid(walls=(), exit_pos=(8, 7), size=10):
    """Open board with the given walls and an exit."""
    rows = [[Cell.FLOOR] * size for _ in range(size)]
    for row, col in walls:
        rows[row][col] = Cell.WALL
    rows[exit_pos[0]][exit_pos[1]] = Cell.EXIT
    return Grid(rows), Position(*exit_pos)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import darksignal.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
