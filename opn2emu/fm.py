"""Operator unit: modulation routing and log-sine/exponent waveform synthesis."""

from __future__ import annotations

from dataclasses import dataclass, field

from .envelope_generator import EnvelopeGenerator
from .phase_generator import PhaseGenerator
from .registers import CHANNELS, SLOTS, Registers
from .rom import EXP_ROM, FM_ALGORITHM, LOGSIN_ROM


def _to_i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _sign_extend_14(value: int) -> int:
    value &= 0x3FFF
    return value - 0x4000 if value & 0x2000 else value


@dataclass
class Fm:
    """Operator outputs and the modulation feeding each slot."""

    op1: list[list[int]] = field(default_factory=lambda: [[0, 0] for _ in range(CHANNELS)])
    op2: list[int] = field(default_factory=lambda: [0] * CHANNELS)
    out: list[int] = field(default_factory=lambda: [0] * SLOTS)
    modulation: list[int] = field(default_factory=lambda: [0] * SLOTS)

    def prepare(self, cycles: int, channel: int, registers: Registers) -> None:
        slot = (cycles + 6) % 24
        op = slot // 6
        connect = registers.connect[channel]
        prevslot = (cycles + 18) % 24
        routing = FM_ALGORITHM[op]

        # Calculate modulation
        mod1 = 0
        mod2 = 0
        if routing[0][connect]:
            mod2 |= self.op1[channel][0]
        if routing[1][connect]:
            mod1 |= self.op1[channel][1]
        if routing[2][connect]:
            mod1 |= self.op2[channel]
        if routing[3][connect]:
            mod2 |= self.out[prevslot]
        if routing[4][connect]:
            mod1 |= self.out[prevslot]

        mod = _to_i16(mod1 + mod2)
        if op == 0:
            # Feedback
            feedback = registers.feedback[channel]
            mod = 0 if feedback == 0 else mod >> (10 - feedback)
        else:
            mod >>= 1

        self.modulation[slot] = mod & 0xFFFF

        slot = (cycles + 18) % 24
        if slot // 6 == 0:
            self.op1[channel][1] = self.op1[channel][0]
            self.op1[channel][0] = self.out[slot]
        if slot // 6 == 2:
            self.op2[channel] = self.out[slot]

    def generate(
        self,
        cycles: int,
        registers: Registers,
        phase_generator: PhaseGenerator,
        envelope_generator: EnvelopeGenerator,
    ) -> None:
        slot = (cycles + 19) % 24

        # Calculate phase
        phase = (self.modulation[slot] + (phase_generator.phase[slot] >> 10)) & 0x3FF
        if phase & 0x100:
            quarter = (phase ^ 0xFF) & 0xFF
        else:
            quarter = phase & 0xFF

        # Apply envelope
        level = LOGSIN_ROM[quarter] + (envelope_generator.out[slot] << 2)
        level = min(level, 0x1FFF)

        # Transform
        output = ((EXP_ROM[(level & 0xFF) ^ 0xFF] | 0x400) << 2) >> (level >> 8)
        test_bit = registers.mode_test_21[4] << 13
        if phase & 0x200:
            output = (~output ^ test_bit) + 1
        else:
            output ^= test_bit

        self.out[slot] = _sign_extend_14(output)