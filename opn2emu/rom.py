"""Lookup tables burned into the OPN2 die, used by the cycle-accurate core."""

import math


def _logsin_value(index: int) -> int:
    """Attenuation of the quarter sine wave at ``index``, in 1/256 log2 units."""
    return round(-math.log2(math.sin((index + 0.5) * math.pi / 512)) * 256)


def _exp_value(index: int) -> int:
    """Fractional part of ``2 ** (index / 256)``, scaled to 10 bits."""
    return round((2 ** (index / 256) - 1) * 1024)


# Quarter-wave log-sine table
LOGSIN_ROM: tuple[int, ...] = tuple(_logsin_value(i) for i in range(256))

# Exponent table
EXP_ROM: tuple[int, ...] = tuple(_exp_value(i) for i in range(256))

# Note table
FN_NOTE: tuple[int, ...] = (0,) * 7 + (1, 2) + (3,) * 7

# Envelope generator
EG_STEP_HI: tuple[tuple[int, ...], ...] = (
    (0, 0, 0, 0),
    (1, 0, 0, 0),
    (1, 0, 1, 0),
    (1, 1, 1, 0),
)
EG_AM_SHIFT: tuple[int, ...] = (7, 3, 1, 0)

# Phase generator
PG_DETUNE: tuple[int, ...] = (16, 17, 19, 20, 22, 24, 27, 29)

PG_LFO_SH1: tuple[tuple[int, ...], ...] = (
    (7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 1, 1),
    (7, 7, 7, 7, 1, 1, 1, 1),
    (7, 7, 7, 1, 1, 1, 1, 0),
    (7, 7, 1, 1, 0, 0, 0, 0),
    (7, 7, 1, 1, 0, 0, 0, 0),
    (7, 7, 1, 1, 0, 0, 0, 0),
)

PG_LFO_SH2: tuple[tuple[int, ...], ...] = (
    (7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 2, 2, 2, 2),
    (7, 7, 7, 2, 2, 2, 7, 7),
    (7, 7, 2, 2, 7, 7, 2, 2),
    (7, 7, 2, 7, 7, 7, 2, 7),
    (7, 7, 7, 2, 7, 7, 2, 1),
    (7, 7, 7, 2, 7, 7, 2, 1),
    (7, 7, 7, 2, 7, 7, 2, 1),
)

# Address decoder: channel offsets (Ch1..Ch6); bank 1 channels live at 0x100.
CH_OFFSET: tuple[int, ...] = tuple(
    bank | channel for bank in (0x000, 0x100) for channel in range(3)
)
# Address decoder: operator offsets (Ch1..Ch6 OP1/OP2, then Ch1..Ch6 OP3/OP4)
OP_OFFSET: tuple[int, ...] = CH_OFFSET + tuple(offset | 0x4 for offset in CH_OFFSET)

# LFO
LFO_CYCLES: tuple[int, ...] = (108, 77, 71, 67, 62, 44, 8, 5)

# FM algorithm routing, indexed [operator][row][algorithm]; rows are
# OP1_0, OP1_1, OP2, last operator (mod2), last operator (mod1), out.
FM_ALGORITHM: tuple[tuple[tuple[int, ...], ...], ...] = (
    (
        (1, 1, 1, 1, 1, 1, 1, 1),
        (1, 1, 1, 1, 1, 1, 1, 1),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 1),
    ),
    (
        (0, 1, 0, 0, 0, 1, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (1, 1, 1, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 1, 1, 1),
    ),
    (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (1, 0, 0, 1, 1, 1, 1, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 1, 1, 1, 1),
    ),
    (
        (0, 0, 1, 0, 0, 1, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 1, 0, 0, 0, 0),
        (1, 1, 0, 1, 1, 0, 0, 0),
        (0, 0, 1, 0, 0, 0, 0, 0),
        (1, 1, 1, 1, 1, 1, 1, 1),
    ),
)