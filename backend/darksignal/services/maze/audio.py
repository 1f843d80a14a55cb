"""Ambient audio parameters driven by distance.

The client owns the actual oscillators; this module only turns the two
distances the player cares about (pursuer and exit) into smoothly moving
parameter targets, one frame per audio tick.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Dict, Optional

HEARTBEAT_RANGE = 4
FOOTSTEP_RANGE = 3
HOPE_RANGE = 3

# One-shot cue synthesis, consumed verbatim by the client
CUES = {
    'ping': {'wave': 'sine', 'freqs': [880, 110], 'gain': 0.3, 'duration': 0.5},
    'step': {'wave': 'triangle', 'freqs': [100], 'gain': 0.08, 'duration': 0.12},
    'die': {'wave': 'sawtooth', 'freqs': [300, 50], 'gain': 0.5, 'duration': 0.5},
    'win': {'wave': 'square', 'freqs': [523.25, 659.25, 783.99, 1046.50], 'gain': 0.09, 'duration': 0.5, 'stagger': 0.1},
}
DRONE = {'wave': 'sawtooth', 'freq': 50, 'lowpass': 200, 'gain': 0.05}


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class Smoothed:
    """A parameter that glides toward its target like AudioParam.setTargetAtTime."""
    value: float
    target: Optional[float] = None
    tau: float = 0.1

    def __post_init__(self):
        if self.target is None:
            self.target = self.value

    def set_target(self, target: float, tau: float) -> None:
        self.target = target
        self.tau = tau

    def advance(self, dt: float) -> float:
        if self.tau <= 0:
            self.value = self.target
        else:
            self.value += (self.target - self.value) * (1.0 - math.exp(-dt / self.tau))
        return self.value


@dataclass
class AudioFrame:
    heartbeat_gain: float
    heartbeat_lfo_hz: float
    heartbeat_pitch_hz: float
    footstep_interval_ms: Optional[int]
    footstep_gain: float
    hope_gain: float
    hope_osc1_hz: float
    hope_osc2_hz: float
    hope_lfo_hz: float
    drone: bool
    muted: bool

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class AudioMixer:
    """Holds the live parameter state between audio ticks."""
    heartbeat_gain: Smoothed = field(default_factory=lambda: Smoothed(0.0))
    heartbeat_lfo: Smoothed = field(default_factory=lambda: Smoothed(2.0))
    heartbeat_pitch: Smoothed = field(default_factory=lambda: Smoothed(60.0))
    hope_gain: Smoothed = field(default_factory=lambda: Smoothed(0.0))
    hope_osc1: Smoothed = field(default_factory=lambda: Smoothed(330.0))
    hope_osc2: Smoothed = field(default_factory=lambda: Smoothed(495.0))
    hope_lfo: Smoothed = field(default_factory=lambda: Smoothed(2.0))

    def reset(self) -> None:
        fresh = AudioMixer()
        self.__dict__.update(fresh.__dict__)

    def update(self, pursuer_distance: int, exit_distance: int, muted: bool, dt: float, playing: bool = True) -> AudioFrame:
        if muted:
            self.reset()
            return AudioFrame(
                heartbeat_gain=0.0,
                heartbeat_lfo_hz=self.heartbeat_lfo.value,
                heartbeat_pitch_hz=self.heartbeat_pitch.value,
                footstep_interval_ms=None,
                footstep_gain=0.0,
                hope_gain=0.0,
                hope_osc1_hz=self.hope_osc1.value,
                hope_osc2_hz=self.hope_osc2.value,
                hope_lfo_hz=self.hope_lfo.value,
                drone=False,
                muted=True,
            )

        footstep_interval = None
        footstep_gain = 0.0
        if pursuer_distance <= HEARTBEAT_RANGE:
            intensity = _clamp01((HEARTBEAT_RANGE - pursuer_distance) / HEARTBEAT_RANGE)
            self.heartbeat_gain.set_target(0.12 * intensity, 0.08)
            self.heartbeat_lfo.set_target(1.0 + intensity * 3.0, 0.08)
            self.heartbeat_pitch.set_target(50 + intensity * 30, 0.12)
            if pursuer_distance <= FOOTSTEP_RANGE:
                footstep_interval = int(max(180, 700 - intensity * 500))
                footstep_gain = 0.6 * intensity
        else:
            self.heartbeat_gain.set_target(0.0, 0.3)
            self.heartbeat_lfo.set_target(1.0, 0.3)

        if exit_distance <= HOPE_RANGE:
            hope = _clamp01((HOPE_RANGE - exit_distance) / HOPE_RANGE)
            self.hope_gain.set_target(0.28 * hope, 0.25)
            self.hope_osc1.set_target(330 + hope * 18, 0.3)
            self.hope_osc2.set_target(495 + hope * 28, 0.3)
            self.hope_lfo.set_target(1.5 + hope * 1.5, 0.3)
        else:
            self.hope_gain.set_target(0.0, 0.4)

        return AudioFrame(
            heartbeat_gain=self.heartbeat_gain.advance(dt),
            heartbeat_lfo_hz=self.heartbeat_lfo.advance(dt),
            heartbeat_pitch_hz=self.heartbeat_pitch.advance(dt),
            footstep_interval_ms=footstep_interval,
            footstep_gain=footstep_gain,
            hope_gain=self.hope_gain.advance(dt),
            hope_osc1_hz=self.hope_osc1.advance(dt),
            hope_osc2_hz=self.hope_osc2.advance(dt),
            hope_lfo_hz=self.hope_lfo.advance(dt),
            drone=playing,
            muted=False,
        )
