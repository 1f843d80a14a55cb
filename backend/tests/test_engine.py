import random

import pytest

from darksignal.services.maze.constants import MAX_CHARGES
from darksignal.services.maze.engine import Difficulty, Engine, RunState, parse_direction
from darksignal.services.maze.level import Position
from conftest import build_grid


def make_engine(walls=(), exit_pos=(8, 7), **kwargs):
    records = []
    engine = Engine(player_name='Ripley', difficulty='HARD', reporter=records.append, **kwargs)
    grid, exit_at = build_grid(walls=walls, exit_pos=exit_pos)
    engine.start(grid, exit_at)
    return engine, records


def walk(engine, *directions):
    for d in directions:
        engine.move(d)


def test_start_resets_run():
    engine, _ = make_engine()
    run = engine.run
    assert engine.state == RunState.PLAYING
    assert run.player == Position(1, 1)
    assert run.pursuer == Position(8, 8)
    assert run.charges == MAX_CHARGES
    assert run.elapsed == 0
    assert not run.sonar_active


def test_start_without_grid_generates_level():
    engine = Engine(player_name='x', rng=random.Random(3))
    run = engine.start()
    assert run.grid.size == 10
    assert run.grid[run.exit] == 3


def test_state_before_start():
    engine = Engine()
    assert engine.state == RunState.START
    assert engine.snapshot()['state'] == 'START'
    assert engine.move('up') is False


def test_reaching_exit_wins_and_reports_once():
    # Exit at (8,7) with (7,7) open; walk the player there
    engine, records = make_engine(exit_pos=(8, 7))
    engine.run.player = Position(7, 7)
    assert engine.move('down')
    assert engine.state == RunState.WON
    assert len(records) == 1
    assert records[0].won is True
    assert records[0].player == 'Ripley'
    assert records[0].difficulty == 'HARD'
    assert records[0].to_payload()['won'] is True

    # Nothing can fire again for this run
    engine.tick_pursuer()
    engine.move('up')
    assert engine.state == RunState.WON
    assert len(records) == 1


def test_walls_and_edges_block_moves():
    engine, _ = make_engine(walls=[(1, 2)])
    assert engine.move('right') is False
    assert engine.run.player == Position(1, 1)
    engine.run.player = Position(0, 0)
    assert engine.move('up') is False
    assert engine.move('left') is False
    assert engine.run.player == Position(0, 0)


def test_move_aliases():
    assert parse_direction('W') == 'up'
    assert parse_direction('ArrowLeft') == 'left'
    assert parse_direction('d') == 'right'
    assert parse_direction('jump') is None
    engine, _ = make_engine()
    assert engine.move('s')
    assert engine.run.player == Position(2, 1)
    assert engine.move('bogus') is False


def test_pursuer_catches_player_once():
    engine, records = make_engine()
    engine.run.player = Position(8, 6)
    engine.run.pursuer = Position(8, 8)
    engine.tick_pursuer()
    assert engine.state == RunState.PLAYING
    engine.tick_pursuer()
    assert engine.state == RunState.GAME_OVER
    assert engine.run.pursuer == engine.run.player
    assert len(records) == 1 and records[0].won is False

    engine.tick_pursuer()
    engine.tick_clock()
    assert len(records) == 1
    assert engine.run.elapsed == 0


def test_player_walking_into_pursuer_loses():
    engine, records = make_engine()
    engine.run.pursuer = Position(1, 2)
    engine.move('right')
    assert engine.state == RunState.GAME_OVER
    assert len(records) == 1


def test_exit_beats_collision_on_same_move():
    engine, records = make_engine(exit_pos=(8, 7))
    engine.run.player = Position(7, 7)
    engine.run.pursuer = Position(8, 7)
    engine.move('down')
    assert engine.state == RunState.WON
    assert [r.won for r in records] == [True]


@pytest.mark.parametrize('seed', range(30))
def test_random_play_ends_at_most_once(seed):
    rng = random.Random(seed)
    records = []
    engine = Engine(player_name='r', reporter=records.append, rng=rng)
    engine.start()
    for _ in range(300):
        action = rng.choice(['up', 'down', 'left', 'right', 'tick', 'tick', 'sonar', 'recharge'])
        before = (engine.run.player, engine.run.pursuer, engine.state)
        if action == 'tick':
            engine.tick_pursuer()
        elif action == 'sonar':
            engine.fire_sonar()
        elif action == 'recharge':
            engine.tick_recharge()
        else:
            engine.move(action)
        run = engine.run
        if before[2] == RunState.PLAYING and run.player != before[0] and run.player == run.exit:
            assert engine.state == RunState.WON
        elif before[2] == RunState.PLAYING and run.player == run.pursuer:
            assert engine.state == RunState.GAME_OVER
        elif before[2] == RunState.PLAYING:
            assert engine.state == RunState.PLAYING
        assert 0 <= run.charges <= MAX_CHARGES
    assert len(records) == (0 if engine.state == RunState.PLAYING else 1)


def test_sonar_spends_and_recharges_within_bounds():
    engine, _ = make_engine()
    run = engine.run
    first = engine.fire_sonar()
    second = engine.fire_sonar()
    assert first is not None and second is not None
    assert engine.fire_sonar() is None
    assert run.charges == 0
    assert run.sonar_active

    # Only the most recent fire's expiry clears the boost
    engine.expire_sonar(first)
    assert run.sonar_active
    engine.expire_sonar(second)
    assert not run.sonar_active

    for _ in range(5):
        engine.tick_recharge()
    assert run.charges == MAX_CHARGES


def test_sonar_only_while_playing():
    engine, _ = make_engine()
    engine.run.pursuer = Position(1, 2)
    engine.move('right')
    assert engine.fire_sonar() is None
    engine.tick_recharge()
    assert engine.run.charges == MAX_CHARGES


def test_clock_counts_seconds_into_record():
    engine, records = make_engine(exit_pos=(8, 7))
    for _ in range(12):
        engine.tick_clock()
    engine.run.player = Position(8, 6)
    engine.move('right')
    assert records[0].time == 12


def test_failed_report_does_not_block_end():
    def broken(record):
        raise ConnectionError('score service down')

    engine = Engine(player_name='x', reporter=broken)
    grid, exit_at = build_grid()
    engine.start(grid, exit_at)
    engine.run.player = Position(7, 7)
    engine.move('down')
    assert engine.state == RunState.WON


def test_restart_supersedes_previous_run():
    engine, records = make_engine()
    old_generation = engine.generation
    assert engine.is_live(old_generation)
    grid, exit_at = build_grid()
    engine.start(grid, exit_at)
    assert not engine.is_live(old_generation)
    assert engine.is_live(engine.generation)

    engine.discard()
    assert engine.run is None
    assert engine.state == RunState.START
    engine.tick_pursuer()
    engine.tick_clock()
    assert records == []


def test_unknown_name_and_difficulty_parsing():
    assert Engine().player_name == 'UNKNOWN_DROID'
    assert Difficulty.parse(None) == Difficulty.MEDIUM
    assert Difficulty.parse('easy').tick_ms == 1200
    assert Difficulty.HARD.tick_ms == 500
    with pytest.raises(ValueError):
        Difficulty.parse('NIGHTMARE')


def test_snapshot_exposes_view_not_hidden_positions():
    engine, _ = make_engine()
    snap = engine.snapshot()
    assert snap['state'] == 'PLAYING'
    assert snap['position'] == {'row': 1, 'col': 1}
    assert snap['cells'][1][1] == 'player'
    assert snap['cells'][8][8] == 'hidden'
    assert snap['charges'] == MAX_CHARGES
    assert 'pursuer' not in snap


def test_cues_are_drained():
    engine, _ = make_engine()
    engine.move('down')
    engine.fire_sonar()
    assert engine.drain_cues() == ['step', 'ping']
    assert engine.drain_cues() == []
