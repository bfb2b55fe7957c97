"""Clock an OPN2, resample its output and produce 16-bit stereo PCM frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, Union, runtime_checkable

from .chip import Opn2

CLOCK_RATE = 7670453
SAMPLE_RATE = 44100

_I16_MIN = -0x8000
_I16_MAX = 0x7FFF

_log = logging.getLogger(__name__)


@runtime_checkable
class Opn2Chip(Protocol):
    """Interface every emulated OPN2 offers to the driver."""

    def reset(self) -> None:
        """Reset the emulated chip."""

    def clock(self) -> tuple[int, int]:
        """Advance one internal clock (6 master clocks); return signed 9-bit MOL, MOR."""

    def write(self, port: int, data: int) -> None:
        """Write 8-bit data to a port."""

    def set_test_pin(self, value: int) -> None:
        """Set the TEST pin value."""

    def read_test_pin(self) -> int:
        """Read the TEST pin value."""

    def read_irq_pin(self) -> int:
        """Read the IRQ pin value."""

    def read(self, port: int) -> int:
        """Read the chip status."""


@dataclass(frozen=True)
class SetClockRate:
    """Change the master clock rate the driver assumes."""

    clock_rate: int


@dataclass(frozen=True)
class Write:
    """Write one byte to a chip port."""

    port: int
    data: int


@dataclass(frozen=True)
class Wait:
    """Hold the play head for a number of output samples."""

    samples: int


Instruction = Union[SetClockRate, Write, Wait]


def _to_i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _apply_gain(sample: tuple[int, int], gain: int) -> tuple[int, int]:
    """Multiply a stereo frame by gain, saturating at the 16-bit limits."""
    left = max(_I16_MIN, min(_I16_MAX, sample[0] * gain))
    if left in (_I16_MIN, _I16_MAX):
        _log.warning("Left channel clipping")
    right = max(_I16_MIN, min(_I16_MAX, sample[1] * gain))
    if right in (_I16_MIN, _I16_MAX):
        _log.warning("Right channel clipping")
    return left, right


def _resample(frames: list[tuple[int, int]], count: int) -> list[tuple[int, int]]:
    """Stretch or squeeze stereo frames to exactly count frames, interpolating linearly."""
    if count and not frames:
        raise ValueError("no chip samples to resample from")
    result = []
    for out_index in range(count):
        progress = out_index / count * len(frames)
        index = int(progress)
        substep = progress % 1.0
        left, right = frames[index]
        if substep > 0.0 and index + 1 < len(frames):
            next_left, next_right = frames[index + 1]
            delta_left = _to_i16(next_left - left)
            delta_right = _to_i16(next_right - right)
            left = _to_i16(left + int(delta_left * substep))
            right = _to_i16(right + int(delta_right * substep))
        result.append((left, right))
    return result


class Opn2Driver:
    """Plays a list of instructions on a chip and renders PCM at a chosen sample rate."""

    # Chip is running at VCLK / 144 = MCLK / 7 / 144
    CLOCK_RATIO = 144
    CLOCKS_PER_FM_CYCLE = CLOCK_RATIO // 6

    def __init__(
        self,
        chip: Opn2Chip | None = None,
        commands: Iterable[Instruction] | None = None,
    ) -> None:
        self.chip: Opn2Chip = chip if chip is not None else Opn2()
        self.clock_rate = CLOCK_RATE
        self.sample_rate = SAMPLE_RATE
        self.gain = 20
        self.commands: list[Instruction] = list(commands) if commands is not None else []
        self._play_head = 0
        self._busy_clocks = 0
        self._busy_samples = 0
        self._sample_idx = 0
        self._prev_sample_idx = 0

    def __len__(self) -> int:
        return len(self.commands)

    def __getitem__(self, index):
        return self.commands[index]

    def __iter__(self):
        return iter(self.commands)

    def append(self, instruction: Instruction) -> None:
        self.commands.append(instruction)

    def extend(self, instructions: Iterable[Instruction]) -> None:
        self.commands.extend(instructions)

    @property
    def play_head(self) -> int:
        """Index of the next instruction to execute."""
        return self._play_head

    @play_head.setter
    def play_head(self, value: int) -> None:
        if not self.commands:
            raise ValueError("cannot position the play head in an empty command list")
        self._play_head = max(0, min(value, len(self.commands) - 1))

    def is_playing(self) -> bool:
        """True while the chip is busy or instructions remain."""
        return self._is_busy() or self._play_head < len(self.commands) - 1

    def samples(self, count: int) -> list[tuple[int, int]]:
        """Render count stereo frames at the current sample rate."""
        if count < 0:
            raise ValueError("sample count must not be negative")
        scaled = int(count * self._scale())
        gain = self.gain
        frames = [_apply_gain(self._sample(), gain) for _ in range(scaled)]
        return _resample(frames, count)

    def _scale(self) -> float:
        clocks_per_sample = self.clock_rate / self.sample_rate
        return clocks_per_sample / self.CLOCK_RATIO

    def _sample(self) -> tuple[int, int]:
        index = int(self._sample_idx / self._scale())
        if index != self._prev_sample_idx:
            self._advance_play_head()
            if self._busy_samples > 0:
                self._busy_samples -= 1
        self._prev_sample_idx = index
        self._sample_idx += 1

        left = right = 0
        for _ in range(self.CLOCKS_PER_FM_CYCLE):
            mol, mor = self._clock_chip()
            left = _to_i16(left + mol)
            right = _to_i16(right + mor)
        return left, right

    def _clock_chip(self) -> tuple[int, int]:
        if self._busy_clocks > 0:
            self._busy_clocks -= 1
        return self.chip.clock()

    def _is_busy(self) -> bool:
        busy = (self.chip.read(4000) >> 7) != 0
        return busy or self._busy_clocks > 0 or self._busy_samples > 0

    def _advance_play_head(self) -> None:
        if not self.commands:
            return
        if self._play_head == len(self.commands) - 1:
            return
        if self._is_busy():
            return

        match self.commands[self._play_head]:
            case SetClockRate(clock_rate=clock_rate):
                self.clock_rate = clock_rate
            case Write(port=port, data=data):
                self.chip.write(port, data)
                self._busy_clocks += 2
            case Wait(samples=samples):
                self._busy_samples = (self._busy_samples + samples) & 0xFFFF

        self._play_head += 1