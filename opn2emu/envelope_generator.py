"""Envelope generator: ADSR state machine, SSG-EG and attenuation output."""

from __future__ import annotations

from dataclasses import dataclass, field

from .blocks import Io, Lfo
from .phase_generator import PhaseGenerator
from .registers import SLOTS, Adsr, Registers
from .rom import EG_AM_SHIFT, EG_STEP_HI


def _slots(value: int = 0):
    return field(default_factory=lambda: [value] * SLOTS)


def _pair():
    return field(default_factory=lambda: [0, 0])


@dataclass
class EnvelopeGenerator:
    """Per-slot envelope levels plus the shared envelope timer."""

    cycle: int = 0
    cycle_stop: int = 0
    shift: int = 0
    shift_lock: int = 0
    timer_low_lock: int = 0
    timer: int = 0
    timer_inc: int = 0
    quotient: int = 0
    custom_timer: int = 0
    rate: int = 0
    ksv: int = 0
    inc: int = 0
    ratemax: int = 0
    sl: list[int] = _pair()
    lfo_am: int = 0
    tl: list[int] = _pair()
    state: list[int] = _slots(Adsr.RELEASE)
    level: list[int] = _slots(0x3FF)
    out: list[int] = _slots(0x3FF)
    kon: list[int] = _slots()
    kon_csm: list[int] = _slots()
    kon_latch: list[int] = _slots()
    csm_mode: list[int] = _slots()
    ssg_enable: list[int] = _slots()
    ssg_pgrst_latch: list[int] = _slots()
    ssg_repeat_latch: list[int] = _slots()
    ssg_hold_up_latch: list[int] = _slots()
    ssg_dir: list[int] = _slots()
    ssg_inv: list[int] = _slots()
    read: list[int] = _pair()
    read_inc: int = 0

    def _restart_timer_step(self) -> None:
        self.cycle = 0
        self.cycle_stop = 1
        self.shift = 0

    def _advance_timer(self) -> None:
        self.timer += self.timer_inc
        self.timer_inc = self.timer >> 12
        self.timer &= 0xFFF

    def cycle_1(self) -> None:
        # Lock envelope generator timer value
        if self.quotient == 2:
            self.shift_lock = 0 if self.cycle_stop else (self.shift + 1) & 0xFF
            self.timer_low_lock = self.timer & 0x3

        self.quotient = (self.quotient + 1) % 3
        self._restart_timer_step()
        self.timer_inc |= self.quotient >> 1
        self._advance_timer()

    def cycle_2(self) -> None:
        self.read[1] = self.out[0]

    def cycle_13(self) -> None:
        self._restart_timer_step()
        self._advance_timer()

    def increment_timer(self, registers: Registers, io: Io) -> None:
        self.timer &= ~(registers.mode_test_21[5] << self.cycle) & 0xFFFF
        bit = (self.timer >> self.cycle) | (io.pin_test_in & self.custom_timer)
        if bit & self.cycle_stop:
            self.shift = self.cycle
            self.cycle_stop = 0

    def prepare(
        self,
        cycles: int,
        channel: int,
        registers: Registers,
        phase_generator: PhaseGenerator,
        lfo: Lfo,
    ) -> None:
        slot = cycles
        inc = 0

        # Prepare increment
        rate = min((self.rate << 1) + self.ksv, 0x3F)
        step = ((rate >> 2) + self.shift_lock) & 0xF
        if self.rate and self.quotient == 2:
            if rate < 48:
                if step == 12:
                    inc = 1
                elif step == 13:
                    inc = (rate >> 1) & 0x1
                elif step == 14:
                    inc = rate & 0x1
            else:
                inc = (EG_STEP_HI[rate & 0x3][self.timer_low_lock] + (rate >> 2) - 11) & 0xFF
                inc = min(inc, 4)

        self.inc = inc
        self.ratemax = int(rate >> 1 == 0x1F)

        # Prepare rate & ksv
        rate_sel = self.state[slot]
        if (self.kon[slot] and self.ssg_repeat_latch[slot]) or (
            not self.kon[slot] and self.kon_latch[slot]
        ):
            rate_sel = Adsr.ATTACK

        if rate_sel == Adsr.ATTACK:
            self.rate = registers.attack_rate[slot]
        elif rate_sel == Adsr.DECAY:
            self.rate = registers.decay_rate_first[slot]
        elif rate_sel == Adsr.SUSTAIN:
            self.rate = registers.decay_rate_second[slot]
        elif rate_sel == Adsr.RELEASE:
            self.rate = ((registers.release_rate[slot] << 1) | 0x1) & 0xFF

        self.ksv = phase_generator.kcode >> (registers.rate_scale[slot] ^ 0x3)

        if registers.amplitude_modulation[slot]:
            self.lfo_am = lfo.am >> EG_AM_SHIFT[registers.amp_mod_sens[channel]]
        else:
            self.lfo_am = 0

        # Delay TL & SL value
        self.tl[1] = self.tl[0]
        self.tl[0] = registers.total_level[slot]
        self.sl[1] = self.sl[0]
        self.sl[0] = registers.secondary_amplitude[slot]

    def generate(self, cycles: int, channel: int, registers: Registers) -> None:
        slot = (cycles + 23) % 24
        level = self.level[slot]

        if self.ssg_inv[slot]:
            level = 512 - level
        if registers.mode_test_21[5]:
            level = 0
        level &= 0x3FF

        # Apply AM LFO
        level += self.lfo_am

        # Apply TL
        if not (registers.mode_csm and channel == 3):
            level += self.tl[0] << 3

        self.out[slot] = min(level, 0x3FF)

    def adsr(self, cycles: int, phase_generator: PhaseGenerator) -> None:
        slot = (cycles + 22) % 24
        nkon = self.kon_latch[slot]
        okon = self.kon[slot]
        state = self.state[slot]
        nextstate = state
        inc = 0
        self.read[0] = self.read_inc
        self.read_inc = int(self.inc != 0)

        # Reset phase generator
        phase_generator.reset[slot] = int(
            (bool(nkon) and not okon) or bool(self.ssg_pgrst_latch[slot])
        )

        # KeyOn/Off
        kon_event = (nkon and not okon) or (okon and self.ssg_repeat_latch[slot])
        koff_event = okon and not nkon

        level = self.level[slot]
        ssg_level = level
        if self.ssg_inv[slot]:
            ssg_level = (512 - level) & 0x3FF
        if koff_event:
            level = ssg_level

        if self.ssg_enable[slot]:
            eg_off = level >> 9
        else:
            eg_off = int(level & 0x3F0 == 0x3F0)

        nextlevel = level
        if kon_event:
            nextstate = Adsr.ATTACK
            # Instant attack
            if self.ratemax:
                nextlevel = 0
            elif state == Adsr.ATTACK and level != 0 and self.inc and nkon:
                inc = (~level << self.inc) >> 5
        else:
            if state == Adsr.ATTACK:
                if level == 0:
                    nextstate = Adsr.DECAY
                elif self.inc and not self.ratemax and nkon:
                    inc = (~level << self.inc) >> 5
            elif state == Adsr.DECAY:
                if level >> 5 == self.sl[1]:
                    nextstate = Adsr.SUSTAIN
                elif not eg_off and self.inc:
                    inc = self._decay_step(slot)
            elif state in (Adsr.SUSTAIN, Adsr.RELEASE):
                if not eg_off and self.inc:
                    inc = self._decay_step(slot)

            if not nkon:
                nextstate = Adsr.RELEASE

        if self.kon_csm[slot]:
            nextlevel |= self.tl[1] << 3

        # Envelope off
        if (
            not kon_event
            and not self.ssg_hold_up_latch[slot]
            and state != Adsr.ATTACK
            and eg_off
        ):
            nextstate = Adsr.RELEASE
            nextlevel = 0x3FF

        nextlevel += inc
        self.kon[slot] = self.kon_latch[slot]
        self.level[slot] = nextlevel & 0x3FF
        self.state[slot] = int(nextstate)

    def _decay_step(self, slot: int) -> int:
        step = 1 << (self.inc - 1)
        if self.ssg_enable[slot]:
            step <<= 2
        return step

    def ssg_eg(self, cycles: int, registers: Registers) -> None:
        slot = cycles
        mode = registers.ssg_eg[slot]
        direction = 0
        self.ssg_pgrst_latch[slot] = 0
        self.ssg_repeat_latch[slot] = 0
        self.ssg_hold_up_latch[slot] = 0
        self.ssg_inv[slot] = 0

        if mode & 0x8:
            direction = self.ssg_dir[slot]
            if self.level[slot] & 0x200:
                # Reset
                if mode & 0x3 == 0:
                    self.ssg_pgrst_latch[slot] = 1
                # Repeat
                if mode & 0x1 == 0:
                    self.ssg_repeat_latch[slot] = 1
                # Inverse
                if mode & 0x3 == 0x2:
                    direction ^= 1
                if mode & 0x3 == 0x3:
                    direction = 1

            # Hold up
            if self.kon_latch[slot] and (mode & 0x7 in (0x5, 0x3)):
                self.ssg_hold_up_latch[slot] = 1

            direction &= self.kon[slot]
            self.ssg_inv[slot] = (self.ssg_dir[slot] ^ ((mode >> 2) & 0x1)) & self.kon[slot]

        self.ssg_dir[slot] = direction
        self.ssg_enable[slot] = (mode >> 3) & 0x1

    def key_on(self, cycles: int, channel: int, slot: int, registers: Registers) -> None:
        # Key On
        self.kon_latch[slot] = registers.mode_kon[slot]
        self.kon_csm[slot] = 0

        if channel == 2 and registers.mode_kon_csm:
            # CSM Key On
            self.kon_latch[slot] = 1
            self.kon_csm[slot] = 1

        if cycles == registers.mode_kon_channel:
            operators = registers.mode_kon_operator
            registers.mode_kon[channel] = operators[0]
            registers.mode_kon[channel + 12] = operators[1]
            registers.mode_kon[channel + 6] = operators[2]
            registers.mode_kon[channel + 18] = operators[3]