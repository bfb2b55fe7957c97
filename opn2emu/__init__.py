"""Cycle-level YM2612/YM3438 (OPN2) FM chip emulator and sample-rendering playback driver."""

__version__ = "0.1.0"

__all__ = [
    "rom",
    "dirty_guard",
    "registers",
    "blocks",
    "phase_generator",
    "envelope_generator",
    "fm",
    "variants",
    "chip",
    "driver",
]