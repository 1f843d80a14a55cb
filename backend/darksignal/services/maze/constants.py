"""Fixed game tuning. These are not read from the environment."""

GRID_SIZE = 10
WALL_PROBABILITY = 0.2

PLAYER_SPAWN = (1, 1)
PURSUER_SPAWN = (8, 8)
PLAYER_CLEARING = ((1, 1), (1, 2), (2, 1), (0, 1), (1, 0))
PURSUER_CLEARING = ((8, 8), (7, 8), (8, 7))
# Exit row/col are each drawn from this band (opposite corner from the player)
EXIT_BAND = (7, 8, 9)

# Pursuer tick interval per difficulty (ms)
PURSUER_TICK_MS = {
    'EASY': 1200,
    'MEDIUM': 900,
    'HARD': 500,
}
DEFAULT_DIFFICULTY = 'MEDIUM'

MAX_CHARGES = 2
SONAR_DURATION_MS = 1500
RECHARGE_INTERVAL_MS = 5000
CLOCK_INTERVAL_MS = 1000
AUDIO_INTERVAL_MS = 180

UNKNOWN_PLAYER = 'UNKNOWN_DROID'
