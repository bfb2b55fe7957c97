"""Phase generator: per-slot phase accumulators and frequency increments."""

from __future__ import annotations

from dataclasses import dataclass, field

from .blocks import Lfo
from .registers import SLOTS, Registers
from .rom import PG_DETUNE, PG_LFO_SH1, PG_LFO_SH2


def _slots() -> list[int]:
    return [0] * SLOTS


@dataclass
class PhaseGenerator:
    """Computes phase increments from F-number, block, detune, multiple and LFO."""

    fnum: int = 0
    block: int = 0
    kcode: int = 0
    inc: list[int] = field(default_factory=_slots)
    phase: list[int] = field(default_factory=_slots)
    reset: list[int] = field(default_factory=_slots)
    read: int = 0

    def cycle_2(self) -> None:
        self.read = self.phase[21] & 0x3FF

    def generate(self, cycles: int, registers: Registers) -> None:
        # Mask increment
        slot = (cycles + 20) % 24
        if self.reset[slot]:
            self.inc[slot] = 0

        # Phase step
        slot = (cycles + 19) % 24
        if self.reset[slot] or registers.mode_test_21[3]:
            self.phase[slot] = 0
        self.phase[slot] = (self.phase[slot] + self.inc[slot]) & 0xFFFFF

    def phase_calc_increment(
        self, cycles: int, channel: int, registers: Registers, lfo: Lfo
    ) -> None:
        slot = cycles
        fnum = self.fnum
        fnum_h = fnum >> 4
        fnum <<= 1

        pm = lfo.pm
        lfo_l = pm & 0xF
        pms = registers.freq_mod_sens[channel]
        dt = registers.detune[slot]
        dt_l = dt & 0x3
        detune = 0
        kcode = self.kcode

        # Apply LFO
        if lfo_l & 0x8:
            lfo_l ^= 0xF

        fm = (fnum_h >> PG_LFO_SH1[pms][lfo_l]) + (fnum_h >> PG_LFO_SH2[pms][lfo_l])
        if pms > 5:
            fm <<= pms - 5
        fm >>= 2

        if pm & 0x10:
            fnum -= fm
        else:
            fnum += fm
        fnum &= 0xFFF

        basefreq = (fnum << self.block) >> 2

        # Apply detune
        if dt_l:
            kcode = min(kcode, 0x1C)
            block = kcode >> 2
            note = kcode & 0x3
            total = block + 9 + (int(dt_l == 3) | (dt_l & 0x2))
            sum_h = total >> 1
            sum_l = total & 0x1
            detune = PG_DETUNE[(sum_l << 2) | note] >> (9 - sum_h)

        if dt & 0x4:
            basefreq -= detune
        else:
            basefreq += detune
        basefreq &= 0x1FFFF

        self.inc[slot] = ((basefreq * registers.multiple[slot]) >> 1) & 0xFFFFF

    def fnum_block(self, slot: int, channel: int, registers: Registers) -> None:
        if registers.mode_ch3:
            # Channel 3 special mode: OP1, OP3, OP2 take their own frequencies
            special = {1: 1, 7: 0, 13: 2}
            if slot in special:
                index = special[slot]
                self.fnum = registers.fnum_ch3[index]
                self.block = registers.block_ch3[index]
                self.kcode = registers.kcode_ch3[index]
                return

        index = (channel + 1) % 6
        self.fnum = registers.fnum[index]
        self.block = registers.block[index]
        self.kcode = registers.kcode[index]