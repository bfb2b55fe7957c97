# opn2emu

A pure-Python, cycle-level emulator of the Yamaha OPN2 FM synthesis chip
(YM2612 and YM3438). It comes with a small driver that turns a list of
register writes and waits into 16-bit stereo PCM frames.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests:

```
pip install .[test]
pytest
```

## The chip

`opn2emu.chip.Opn2` models the chip one internal clock at a time, and
each clock stands for 6 master clocks. The variant you pass in sets the
DAC behaviour and the status-read rules. With no variant, the chip is a
`Ym3438`.

```python
from opn2emu.chip import Opn2
from opn2emu.variants import Ym3438

chip = Opn2(Ym3438())
chip.write(0, 0x28)         # address port 0: key on/off register
chip.write(1, 0xF0)         # data port 0: all operators of channel 1 on
left, right = chip.clock()  # signed MOL/MOR pin states
status = chip.read(0)       # busy flag and timer overflow flags
```

Writes are latched and take effect over the following clocks, as on the
real chip. Even ports take addresses and odd ports take data. Ports 2
and 3 address the second register bank.

- `Opn2.reset()` returns every block to its power-on state and keeps the
  variant.
- `set_test_pin`, `read_test_pin` and `read_irq_pin` give access to the
  TEST and IRQ pins.
- The internal blocks are attributes of the chip: `io`, `lfo`,
  `phase_generator`, `envelope_generator`, `fm`, `ch`, `timer_a`,
  `timer_b` and `registers`.

### Variants

`opn2emu.variants` holds the two chip variants:

- `Ym2612` models the discrete-DAC chip. Its output is offset and
  amplified threefold. It holds status for a short time and, by default,
  returns status only on port 0.
- `Ym3438` models the CMOS chip. Its DAC is clean, it holds status for a
  long time, and by default it returns status on any port.

`variant_for(chip_type)` builds a variant from `ChipType` flags:

- `ChipType.YM2612` selects `Ym2612`. Without it you get `Ym3438`.
- `ChipType.READ_MODE` turns on status reads on any port.

The default is `ChipType.READ_MODE`. Flags the function does not know
raise `ValueError`.

## The driver

`opn2emu.driver.Opn2Driver` holds a list of instructions and plays them
on a chip. With no chip given, it uses an `Opn2()`. It then resamples the
chip's output to `sample_rate`.

There are three instructions:

- `SetClockRate(clock_rate)`
- `Write(port, data)`
- `Wait(samples)`

```python
from opn2emu.chip import Opn2
from opn2emu.variants import Ym3438
from opn2emu.driver import Opn2Driver, SetClockRate, Write, Wait

driver = Opn2Driver(Opn2(Ym3438()), [SetClockRate(7670453)])
driver.extend([Write(0, 0x28), Write(1, 0xF0), Wait(735), Wait(0)])

frames = driver.samples(1024)   # list of (left, right) tuples
```

- The attributes `clock_rate`, `sample_rate` and `gain` are plain values
  you can set. Their defaults are 7670453, 44100 and 20.
- Gain saturates at the 16-bit limits, and clipping is reported through
  the `opn2emu.driver` logger.
- The driver behaves like a list of its instructions. It supports
  `len()`, indexing, iteration, `append` and `extend`.
- `play_head` is the index of the next instruction. Setting it clamps the
  value to the list, and raises `ValueError` on an empty list.
- The play head stops at the last instruction and never executes it. End
  a list with a spare instruction, such as `Wait(0)`, if everything
  before it must run.
- `is_playing()` reports whether the chip is busy, a write or wait is
  pending, or instructions remain.
- `opn2emu.driver.Opn2Chip` is the protocol a chip must follow to be
  driven.

## Supporting pieces

- `opn2emu.rom` holds the log-sine, exponent and other lookup tables.
- `opn2emu.registers` holds the `Registers` file, the `Address` map and
  the `Adsr` envelope states.
- `opn2emu.blocks`, `opn2emu.phase_generator`,
  `opn2emu.envelope_generator` and `opn2emu.fm` hold the chip's
  functional blocks.
- `opn2emu.dirty_guard.DirtyGuard` wraps a value and records whether it
  has changed since it was last read with `try_read()`.
  - `write()` returns a `DirtyGuardRef` working copy.
  - The working copy is stored back by `commit()`, or on leaving a
    `with` block.

## What it does not do

The package renders samples into Python lists only. It does not play
sound on an audio device. It does not read music files such as VGM logs.
It has no command-line program. To hear the output, feed the frames from
`Opn2Driver.samples()` to an audio or WAV-writing library of your choice.