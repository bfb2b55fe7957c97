"""Small functional blocks of the OPN2: bus I/O, LFO, timers and channel accumulator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .registers import CHANNELS, Registers
from .rom import FM_ALGORITHM, LFO_CYCLES


class _FmOutput(Protocol):
    out: Sequence[int]


@dataclass
class Io:
    """Bus interface latches and busy counter."""

    write_data: int = 0
    write_a: int = 0
    write_d: int = 0
    write_a_en: int = 0
    write_d_en: int = 0
    write_busy: int = 0
    write_busy_cnt: int = 0
    write_fm_address: int = 0
    write_fm_data: int = 0
    write_fm_mode_a: int = 0
    address: int = 0
    data: int = 0
    pin_test_in: int = 0
    pin_irq: int = 0
    busy: int = 0

    def clock(self) -> None:
        # Write signal check
        self.write_a_en = int(self.write_a & 0x3 == 0x1)
        self.write_d_en = int(self.write_d & 0x3 == 0x1)
        self.write_a = (self.write_a << 1) & 0xFF
        self.write_d = (self.write_d << 1) & 0xFF

        # Busy counter
        self.busy = self.write_busy
        self.write_busy_cnt = (self.write_busy_cnt + self.write_busy) & 0xFF
        self.write_busy = int(
            (self.write_busy != 0 and self.write_busy_cnt >> 5 == 0) or self.write_d_en != 0
        )
        self.write_busy_cnt &= 0x1F


@dataclass
class Lfo:
    """Low frequency oscillator."""

    enable: int = 0
    freq: int = 0
    pm: int = 0
    am: int = 0
    cnt: int = 0
    inc: int = 0
    quotient: int = 0

    def cycle_0(self) -> None:
        self.pm = self.cnt >> 2
        if self.cnt & 0x40:
            am = self.cnt & 0x3F
        else:
            am = (self.cnt ^ 0x3F) & 0xFF
        self.am = (am << 1) & 0xFF

    def cycle_23(self) -> None:
        self.inc |= 1

    def update(self) -> None:
        period = LFO_CYCLES[self.freq]
        if self.quotient & period == period:
            self.quotient = 0
            self.cnt = (self.cnt + 1) & 0xFF
        else:
            self.quotient = (self.quotient + self.inc) & 0xFF
        self.cnt &= self.enable


@dataclass
class TimerA:
    """10-bit timer A; also drives CSM key-on."""

    cnt: int = 0
    reg: int = 0
    load_lock: bool = False
    load: bool = False
    enable: bool = False
    reset: bool = False
    load_latch: bool = False
    overflow_flag: bool = False
    overflow: bool = False

    def clock(self, cycles: int, registers: Registers) -> None:
        load = self.overflow

        if cycles == 2:
            # Lock load value
            load = load or (not self.load_lock and self.load)
            self.load_lock = self.load
            # CSM KeyOn
            registers.mode_kon_csm = int(load) if registers.mode_csm else 0

        # Load counter
        time = self.reg if self.load_latch else self.cnt
        self.load_latch = load

        # Increase counter
        if (cycles == 1 and self.load_lock) or registers.mode_test_21[2]:
            time = (time + 1) & 0xFFFF

        # Set overflow flag
        if self.reset:
            self.reset = False
            self.overflow_flag = False
        else:
            self.overflow_flag = self.overflow_flag or (self.overflow and self.enable)

        self.overflow = (time >> 10) != 0
        self.cnt = time & 0x3FF


@dataclass
class TimerB:
    """8-bit timer B, ticking once every 16 sample frames."""

    cnt: int = 0
    subcnt: int = 0
    reg: int = 0
    load_lock: bool = False
    load: bool = False
    enable: bool = False
    reset: bool = False
    load_latch: bool = False
    overflow_flag: bool = False
    overflow: bool = False

    def clock(self, cycles: int, registers: Registers) -> None:
        load = self.overflow

        if cycles == 2:
            # Lock load value
            load = load or (not self.load_lock and self.load)
            self.load_lock = self.load

        # Load counter
        time = self.reg if self.load_latch else self.cnt
        self.load_latch = load

        # Increase counter
        if cycles == 1:
            self.subcnt = (self.subcnt + 1) & 0xFF

        if (self.subcnt == 0x10 and self.load_lock) or registers.mode_test_21[2]:
            time = (time + 1) & 0xFFFF

        self.subcnt &= 0xF

        # Set overflow flag
        if self.reset:
            self.reset = False
            self.overflow_flag = False
        else:
            self.overflow_flag = self.overflow_flag or (self.overflow and self.enable)

        self.overflow = (time >> 8) != 0
        self.cnt = time & 0xFF


@dataclass
class Channel:
    """Per-channel output accumulator and output latch."""

    acc: list[int] = field(default_factory=lambda: [0] * CHANNELS)
    out: list[int] = field(default_factory=lambda: [0] * CHANNELS)
    lock: int = 0
    lock_l: int = 0
    lock_r: int = 0
    read: int = 0

    def generate(self, cycles: int, channel: int, registers: Registers, fm: _FmOutput) -> None:
        slot = (cycles + 18) % 24
        op = slot // 6
        test_dac = registers.mode_test_2c[5]
        acc = self.acc[channel]
        add = test_dac

        if op == 0 and not test_dac:
            acc = 0

        if FM_ALGORITHM[op][5][registers.connect[channel]] and not test_dac:
            add += fm.out[slot] >> 5

        # Clamp
        total = max(-256, min(255, acc + add))

        if op == 0 or test_dac:
            self.out[channel] = self.acc[channel]

        self.acc[channel] = total