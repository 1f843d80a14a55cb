from typing import Callable

from darksignal import socketio
from .constants import (
    AUDIO_INTERVAL_MS,
    CLOCK_INTERVAL_MS,
    RECHARGE_INTERVAL_MS,
    SONAR_DURATION_MS,
)
from .engine import Engine


def _scheduler_enabled(app) -> bool:
    return not (app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'))


def start_run_timers(app, engine: Engine, on_tick: Callable[[str], None]) -> None:
    """Start the periodic timers for the engine's current run.

    - No-ops in TESTING mode
    - One worker per timer: pursuer, survival clock, sonar recharge, audio
    - Each worker is bound to the run generation it was started for and
      exits as soon as that run is superseded or leaves PLAYING
    - ``on_tick`` is called with the timer name after each mutation so the
      transport can push fresh state
    """
    if not _scheduler_enabled(app):
        return

    with engine.lock:
        generation = engine.generation
        if not engine.is_live(generation):
            return
        timers = {
            'pursuer': (engine.difficulty.tick_ms, engine.tick_pursuer),
            'clock': (CLOCK_INTERVAL_MS, engine.tick_clock),
            'recharge': (RECHARGE_INTERVAL_MS, engine.tick_recharge),
            'audio': (AUDIO_INTERVAL_MS, None),
        }

    app.logger.info(
        f"[timer-set] player={engine.player_name} generation={generation} "
        f"pursuer={timers['pursuer'][0]}ms clock={CLOCK_INTERVAL_MS}ms recharge={RECHARGE_INTERVAL_MS}ms"
    )

    def _worker(name: str, interval_ms: int, tick):
        while True:
            socketio.sleep(interval_ms / 1000.0)
            with engine.lock:
                if not engine.is_live(generation):
                    app.logger.debug(f"[timer-stop] timer={name} generation={generation}")
                    return
                if tick is not None:
                    tick()
            try:
                with app.app_context():
                    on_tick(name)
            except Exception:
                app.logger.exception(f"[timer-emit-failed] timer={name} generation={generation}")

    for name, (interval_ms, tick) in timers.items():
        socketio.start_background_task(_worker, name, interval_ms, tick)


def schedule_sonar_expiry(app, engine: Engine, token: int, on_expire: Callable[[], None]) -> None:
    """Clear the sonar boost after its duration, unless a later fire replaced it."""
    if not _scheduler_enabled(app):
        return

    generation = engine.generation

    def _runner():
        socketio.sleep(SONAR_DURATION_MS / 1000.0)
        with engine.lock:
            if engine.generation != generation:
                return
            engine.expire_sonar(token)
        with app.app_context():
            on_expire()

    socketio.start_background_task(_runner)
