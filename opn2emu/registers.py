"""Register file, register addresses and envelope states of the OPN2."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

SLOTS = 24
CHANNELS = 6


def _filled(count: int, value: int = 0):
    return field(default_factory=lambda: [value] * count)


class Address(enum.IntEnum):
    """Register addresses understood by the chip."""

    INVALID = 0
    LSI_TEST_1 = 0x21
    LFO = 0x22
    TIMER_A_MSB = 0x24
    TIMER_A_LSB = 0x25
    TIMER_B = 0x26
    TIMERS_AND_CH3_MODE = 0x27
    KEY_ON_OFF = 0x28
    DAC_DATA = 0x2A
    DAC_ENABLE = 0x2B
    LSI_TEST_2 = 0x2C
    DETUNE_AND_MULTIPLE = 0x30
    TOTAL_LEVEL = 0x40
    RATE_SCALE_AND_ATTACK_RATE = 0x50
    FIRST_DECAY_AND_AMP = 0x60
    SECONDARY_DECAY_RATE = 0x70
    SECONDARY_AMP_AND_RELEASE = 0x80
    SSG_EG = 0x90
    FNUM = 0xA0
    BLOCK_FREQ = 0xA4
    CH3_FNUM = 0xA8
    CH3_BLOCK_FREQ = 0xAC
    FEEDBACK_AND_ALGORITHM = 0xB0
    STEREO_AND_LFO_SENS = 0xB4

    @classmethod
    def from_value(cls, value: int) -> Address:
        """Decode an address; anything unknown becomes INVALID."""
        try:
            return cls(value)
        except ValueError:
            return cls.INVALID


class Adsr(enum.IntEnum):
    """Envelope generator states."""

    ATTACK = 0
    DECAY = 1
    SUSTAIN = 2
    RELEASE = 3


@dataclass
class Registers:
    """Decoded register contents."""

    mode_test_21: list[int] = _filled(8)
    mode_test_2c: list[int] = _filled(8)
    mode_ch3: int = 0
    mode_kon_channel: int = 0
    mode_kon_operator: list[int] = _filled(4)
    mode_kon: list[int] = _filled(SLOTS)
    mode_csm: int = 0
    mode_kon_csm: int = 0
    dac_enable: bool = False
    dac_data: int = 0
    rate_scale: list[int] = _filled(SLOTS)
    attack_rate: list[int] = _filled(SLOTS)
    decay_rate_second: list[int] = _filled(SLOTS)
    detune: list[int] = _filled(SLOTS)
    multiple: list[int] = _filled(SLOTS, 1)
    secondary_amplitude: list[int] = _filled(SLOTS)
    release_rate: list[int] = _filled(SLOTS)
    decay_rate_first: list[int] = _filled(SLOTS)
    amplitude_modulation: list[int] = _filled(SLOTS)
    total_level: list[int] = _filled(SLOTS)
    ssg_eg: list[int] = _filled(SLOTS)
    fnum: list[int] = _filled(CHANNELS)
    block: list[int] = _filled(CHANNELS)
    kcode: list[int] = _filled(CHANNELS)
    fnum_ch3: list[int] = _filled(CHANNELS)
    block_ch3: list[int] = _filled(CHANNELS)
    kcode_ch3: list[int] = _filled(CHANNELS)
    block_freq: int = 0
    block_freq_ch3: int = 0
    connect: list[int] = _filled(CHANNELS)
    feedback: list[int] = _filled(CHANNELS)
    pan_l: list[int] = _filled(CHANNELS, 1)
    pan_r: list[int] = _filled(CHANNELS, 1)
    amp_mod_sens: list[int] = _filled(CHANNELS)
    freq_mod_sens: list[int] = _filled(CHANNELS)
    status: int = 0
    status_time: int = 0