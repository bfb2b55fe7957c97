"""Chip variants: the YM2612 and YM3438 differ in DAC output, status hold time and read mode."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Protocol


class _ChannelLatch(Protocol):
    lock_l: int
    lock_r: int


class _ChipState(Protocol):
    ch: _ChannelLatch


def _to_i16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


class ChipType(enum.IntFlag):
    """Emulation options selecting the chip variant."""

    # Enables YM2612 emulation (MD1, MD2 VA2)
    YM2612 = 0x01
    # Enables status read on any port (TeraDrive, MD1 VA7, MD2, etc)
    READ_MODE = 0x02


_ALL_CHIP_FLAGS = int(ChipType.YM2612 | ChipType.READ_MODE)


@dataclass(frozen=True)
class ChipVariant(ABC):
    """Behaviour that depends on which chip is emulated."""

    status_time: ClassVar[int]
    read_mode: bool

    @abstractmethod
    def output(self, chip: _ChipState, cycles: int, test_dac: int, out: int) -> tuple[int, int]:
        """Return the (MOL, MOR) pin values for a channel output sample."""


@dataclass(frozen=True)
class Ym2612(ChipVariant):
    """Discrete YM2612: ladder-effect DAC, short status hold, status only on port 0."""

    status_time: ClassVar[int] = 300000
    read_mode: bool = False

    def output(self, chip: _ChipState, cycles: int, test_dac: int, out: int) -> tuple[int, int]:
        out_en = (cycles & 3) == 3 or test_dac != 0
        sign = out >> 8
        if out >= 0:
            out = _to_i16(out + 1)
            sign += 1

        mol = out if chip.ch.lock_l and out_en else sign
        mor = out if chip.ch.lock_r and out_en else sign

        # Amplify signal
        return _to_i16(mol * 3), _to_i16(mor * 3)


@dataclass(frozen=True)
class Ym3438(ChipVariant):
    """CMOS YM3438: clean DAC, long status hold, status readable on any port."""

    status_time: ClassVar[int] = 40000000
    read_mode: bool = True

    def output(self, chip: _ChipState, cycles: int, test_dac: int, out: int) -> tuple[int, int]:
        out_en = (cycles & 3) != 0 or test_dac != 0
        mol = out if chip.ch.lock_l and out_en else 0
        mor = out if chip.ch.lock_r and out_en else 0
        return mol, mor


def variant_for(chip_type: ChipType | int = ChipType.READ_MODE) -> ChipVariant:
    """Build the chip variant described by a set of ChipType flags."""
    bits = int(chip_type)
    if bits < 0 or bits & ~_ALL_CHIP_FLAGS:
        raise ValueError(f"unknown chip type flags: {bits:#x}")
    flags = ChipType(bits)
    read_mode = ChipType.READ_MODE in flags
    if ChipType.YM2612 in flags:
        return Ym2612(read_mode=read_mode)
    return Ym3438(read_mode=read_mode)