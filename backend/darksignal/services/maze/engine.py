import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from .audio import AudioFrame, AudioMixer
from .constants import (
    DEFAULT_DIFFICULTY,
    MAX_CHARGES,
    PLAYER_SPAWN,
    PURSUER_SPAWN,
    PURSUER_TICK_MS,
    UNKNOWN_PLAYER,
)
from .level import Cell, Grid, Position, generate_level
from .pursuit import step_pursuer
from .visibility import visibility_map

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    START = 'START'
    PLAYING = 'PLAYING'
    GAME_OVER = 'GAME_OVER'
    WON = 'WON'


class Difficulty(str, Enum):
    EASY = 'EASY'
    MEDIUM = 'MEDIUM'
    HARD = 'HARD'

    @property
    def tick_ms(self) -> int:
        return PURSUER_TICK_MS[self.value]

    @classmethod
    def parse(cls, value) -> 'Difficulty':
        if isinstance(value, cls):
            return value
        if value is None or value == '':
            return cls(DEFAULT_DIFFICULTY)
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f'Unknown difficulty: {value}')


DIRECTIONS = {
    'up': (-1, 0),
    'down': (1, 0),
    'left': (0, -1),
    'right': (0, 1),
}
_DIRECTION_ALIASES = {
    'w': 'up', 'arrowup': 'up',
    's': 'down', 'arrowdown': 'down',
    'a': 'left', 'arrowleft': 'left',
    'd': 'right', 'arrowright': 'right',
}


def parse_direction(value) -> Optional[str]:
    key = str(value or '').strip().lower()
    key = _DIRECTION_ALIASES.get(key, key)
    return key if key in DIRECTIONS else None


@dataclass(frozen=True)
class ScoreRecord:
    player: str
    time: int
    difficulty: str
    won: bool
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> Dict:
        return {
            'player': self.player,
            'time': self.time,
            'difficulty': self.difficulty,
            'won': self.won,
        }


@dataclass
class Run:
    """Mutable state for one run; replaced wholesale on every start."""
    generation: int
    grid: Grid
    exit: Position
    player: Position = Position(*PLAYER_SPAWN)
    pursuer: Position = Position(*PURSUER_SPAWN)
    state: RunState = RunState.PLAYING
    charges: int = MAX_CHARGES
    sonar_active: bool = False
    sonar_token: int = 0
    elapsed: int = 0
    ended: bool = False
    cues: List[str] = field(default_factory=list)


Reporter = Callable[[ScoreRecord], None]


class Engine:
    """Level/encounter engine for a single client.

    Timers and input handlers call into the engine while holding ``lock`` so
    every callback sees a consistent run. Callbacks scheduled for an older
    run compare ``generation`` and bail out.
    """

    def __init__(self, player_name: str = '', difficulty=DEFAULT_DIFFICULTY,
                 reporter: Optional[Reporter] = None, rng: Optional[random.Random] = None):
        self.player_name = player_name or UNKNOWN_PLAYER
        self.difficulty = Difficulty.parse(difficulty)
        self.reporter = reporter
        self.rng = rng or random.Random()
        self.muted = False
        self.mixer = AudioMixer()
        self.lock = threading.RLock()
        self.generation = 0
        self.run: Optional[Run] = None

    @property
    def state(self) -> RunState:
        return self.run.state if self.run else RunState.START

    def is_live(self, generation: int) -> bool:
        """True while the given run is the current one and still in play."""
        return self.run is not None and self.generation == generation and self.run.state == RunState.PLAYING

    def start(self, grid: Optional[Grid] = None, exit_pos: Optional[Position] = None) -> Run:
        if grid is None:
            grid, exit_pos = generate_level(self.rng)
        elif exit_pos is None:
            exit_pos = next(
                Position(r, c) for r in range(grid.size) for c in range(grid.size) if grid[(r, c)] == Cell.EXIT
            )
        self.generation += 1
        self.mixer.reset()
        self.run = Run(generation=self.generation, grid=grid, exit=Position(*exit_pos))
        logger.info(f"[run-start] player={self.player_name} difficulty={self.difficulty.value} "
                    f"generation={self.generation} exit={tuple(self.run.exit)}")
        return self.run

    def discard(self) -> None:
        """Drop the current run; outstanding timer callbacks become no-ops."""
        self.generation += 1
        self.run = None

    def move(self, direction) -> bool:
        run = self.run
        if run is None or run.state != RunState.PLAYING:
            return False
        key = parse_direction(direction)
        if key is None:
            return False
        d_row, d_col = DIRECTIONS[key]
        target = Position(run.player.row + d_row, run.player.col + d_col)
        if not run.grid.is_open(target):
            return False

        run.player = target
        run.cues.append('step')
        if target == run.exit:
            self._finish(RunState.WON)
        else:
            self._check_collision()
        return True

    def fire_sonar(self) -> Optional[int]:
        """Spend a charge; returns the expiry token, or None when nothing fired."""
        run = self.run
        if run is None or run.state != RunState.PLAYING or run.charges <= 0:
            return None
        run.charges -= 1
        run.sonar_active = True
        run.sonar_token += 1
        run.cues.append('ping')
        return run.sonar_token

    def expire_sonar(self, token: int) -> None:
        run = self.run
        if run is not None and run.sonar_token == token:
            run.sonar_active = False

    def tick_pursuer(self) -> None:
        run = self.run
        if run is None or run.state != RunState.PLAYING:
            return
        run.pursuer = step_pursuer(run.grid, run.pursuer, run.player)
        self._check_collision()

    def tick_clock(self) -> None:
        if self.state == RunState.PLAYING:
            self.run.elapsed += 1

    def tick_recharge(self) -> None:
        if self.state == RunState.PLAYING:
            self.run.charges = min(self.run.charges + 1, MAX_CHARGES)

    def audio_frame(self, dt: float) -> Optional[AudioFrame]:
        run = self.run
        if run is None:
            return None
        return self.mixer.update(
            run.player.distance(run.pursuer),
            run.player.distance(run.exit),
            self.muted,
            dt,
            playing=run.state == RunState.PLAYING,
        )

    def drain_cues(self) -> List[str]:
        if self.run is None:
            return []
        cues, self.run.cues = self.run.cues, []
        return cues

    def snapshot(self) -> Dict:
        run = self.run
        payload = {
            'state': self.state.value,
            'player': self.player_name,
            'difficulty': self.difficulty.value,
            'tick_ms': self.difficulty.tick_ms,
            'muted': self.muted,
        }
        if run is None:
            return payload
        payload.update({
            'generation': run.generation,
            'elapsed': run.elapsed,
            'charges': run.charges,
            'max_charges': MAX_CHARGES,
            'sonar_active': run.sonar_active,
            'position': run.player.to_dict(),
            'size': run.grid.size,
            'cells': [
                [view.value for view in row]
                for row in visibility_map(run.grid, run.player, run.pursuer, run.sonar_active)
            ],
        })
        return payload

    def _check_collision(self) -> None:
        run = self.run
        if run.state == RunState.PLAYING and run.player == run.pursuer:
            self._finish(RunState.GAME_OVER)

    def _finish(self, outcome: RunState) -> bool:
        run = self.run
        if run.ended:
            return False
        run.ended = True
        record = ScoreRecord(
            player=self.player_name,
            time=run.elapsed,
            difficulty=self.difficulty.value,
            won=outcome == RunState.WON,
        )
        if self.reporter is not None:
            try:
                self.reporter(record)
            except Exception:
                logger.exception(f"[score-save-failed] player={record.player} time={record.time} won={record.won}")
        run.state = outcome
        run.cues.append('win' if outcome == RunState.WON else 'die')
        logger.info(f"[run-end] player={self.player_name} state={outcome.value} time={run.elapsed}")
        return True
