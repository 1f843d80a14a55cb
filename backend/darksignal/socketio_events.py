from flask import current_app, request
from flask_socketio import emit
from darksignal import socketio, db
from darksignal.services.maze.audio import CUES, DRONE
from darksignal.services.maze.constants import AUDIO_INTERVAL_MS
from darksignal.services.maze.engine import Difficulty, Engine, RunState, ScoreRecord
from darksignal.services.maze.scheduler import schedule_sonar_expiry, start_run_timers
from darksignal.services.scoreboard.records import append_score, top_scores
from typing import Dict, List, Optional

NAMESPACE = '/ws'


class MazeSession:
    """One connected client and the engine it drives."""

    def __init__(self, app, sid: str):
        self.app = app
        self.sid = sid
        self.engine = Engine(reporter=self.report_score)
        self.announced_generation = 0

    def push_state(self) -> None:
        engine = self.engine
        announce = False
        with engine.lock:
            payload = engine.snapshot()
            payload['cues'] = engine.drain_cues()
            state = engine.state
            elapsed = engine.run.elapsed if engine.run else 0
            if state in (RunState.GAME_OVER, RunState.WON) and self.announced_generation != engine.generation:
                self.announced_generation = engine.generation
                announce = True
        socketio.emit('run_state', payload, to=self.sid, namespace=NAMESPACE)
        if announce:
            socketio.emit(
                'run_ended',
                {'state': state.value, 'time': elapsed, 'won': state == RunState.WON},
                to=self.sid,
                namespace=NAMESPACE,
            )

    def push_audio(self) -> None:
        with self.engine.lock:
            frame = self.engine.audio_frame(AUDIO_INTERVAL_MS / 1000.0)
        if frame is not None:
            socketio.emit('audio', frame.to_dict(), to=self.sid, namespace=NAMESPACE)

    def on_tick(self, name: str) -> None:
        if name == 'audio':
            self.push_audio()
        else:
            self.push_state()

    def report_score(self, record: ScoreRecord) -> None:
        """Best-effort save; the run ends whether or not this succeeds."""
        app = self.app

        def _save():
            with app.app_context():
                try:
                    append_score(record.to_payload(), date=record.date)
                except Exception as exc:
                    db.session.rollback()
                    app.logger.warning(f"[score-save-failed] sid={self.sid} player={record.player} error={exc}")
                    return
                app.logger.info(f"[score-saved] player={record.player} time={record.time}s won={record.won}")
                self.push_leaderboard()

        if app.config.get('TESTING'):
            _save()
        else:
            socketio.start_background_task(_save)

    def push_leaderboard(self) -> None:
        rows = _leaderboard_rows()
        if rows is not None:
            socketio.emit('leaderboard', rows, to=self.sid, namespace=NAMESPACE)


_sessions: Dict[str, MazeSession] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _leaderboard_rows() -> Optional[List[dict]]:
    try:
        return [s.to_dict() for s in top_scores()]
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[leaderboard-failed] error={exc}")
        return None


def _object_payload(data) -> Optional[dict]:
    """Event payloads must be JSON objects; anything else answers an error event."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        emit('error', {'message': 'Payload must be an object'})
        return None
    return data


def _session_or_error() -> Optional[MazeSession]:
    session = _sessions.get(_get_sid())
    if session is None or session.engine.run is None:
        emit('error', {'message': 'No active run; send start_run first'})
        return None
    return session


def handle_connect(auth=None):
    sid = _get_sid()
    _sessions[sid] = MazeSession(current_app._get_current_object(), sid)
    emit('connected', {'message': 'Connected to /ws', 'cues': CUES, 'drone': DRONE})
    _sessions[sid].push_leaderboard()


def handle_disconnect(reason=None):
    session = _sessions.pop(_get_sid(), None)
    if not session:
        return
    with session.engine.lock:
        session.engine.discard()
    current_app.logger.info(f"[session-end] sid={session.sid}")


def handle_start_run(data):
    data = _object_payload(data)
    if data is None:
        return
    name = str(data.get('player') or '').strip()
    if not name:
        emit('error', {'message': 'IDENTIFICATION REQUIRED: enter your name'})
        return
    try:
        difficulty = Difficulty.parse(data.get('difficulty'))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return

    sid = _get_sid()
    session = _sessions.get(sid)
    if session is None:
        session = _sessions[sid] = MazeSession(current_app._get_current_object(), sid)
    engine = session.engine
    with engine.lock:
        engine.player_name = name
        engine.difficulty = difficulty
        engine.start()
    session.push_state()
    start_run_timers(session.app, engine, session.on_tick)


def handle_move(data):
    data = _object_payload(data)
    if data is None:
        return
    session = _session_or_error()
    if not session:
        return
    with session.engine.lock:
        session.engine.move(data.get('direction'))
    session.push_state()


def handle_sonar(data=None):
    session = _session_or_error()
    if not session:
        return
    engine = session.engine
    with engine.lock:
        token = engine.fire_sonar()
    if token is not None:
        schedule_sonar_expiry(session.app, engine, token, session.push_state)
    session.push_state()


def handle_mute(data=None):
    data = _object_payload(data)
    if data is None:
        return
    session = _sessions.get(_get_sid())
    if not session:
        return
    engine = session.engine
    with engine.lock:
        muted = data.get('muted')
        engine.muted = (not engine.muted) if muted is None else bool(muted)
    emit('muted', {'muted': engine.muted})
    session.push_audio()


def handle_get_leaderboard(data=None):
    rows = _leaderboard_rows()
    if rows is None:
        emit('error', {'message': 'Failed to fetch leaderboard'})
        return
    emit('leaderboard', rows)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('start_run', handle_start_run, namespace=NAMESPACE)
    socketio.on_event('move', handle_move, namespace=NAMESPACE)
    socketio.on_event('sonar', handle_sonar, namespace=NAMESPACE)
    socketio.on_event('mute', handle_mute, namespace=NAMESPACE)
    socketio.on_event('get_leaderboard', handle_get_leaderboard, namespace=NAMESPACE)
