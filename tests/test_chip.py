import pytest

from opn2emu.chip import Opn2
from opn2emu.registers import Adsr
from opn2emu.variants import ChipType, Ym2612, Ym3438, variant_for


def write_register(chip, bank, address, data, settle=24):
    chip.write(bank * 2, address)
    chip.clock()
    chip.write(bank * 2 + 1, data)
    chip.clock()
    for _ in range(settle):
        chip.clock()


def run(chip, count):
    return [chip.clock() for _ in range(count)]


def test_reset_defaults():
    chip = Opn2()
    eg = chip.envelope_generator
    assert eg.out == [0x3FF] * 24
    assert eg.level == [0x3FF] * 24
    assert eg.state == [Adsr.RELEASE] * 24
    assert chip.registers.multiple == [1] * 24
    assert chip.registers.pan_l == [1] * 6
    assert chip.registers.pan_r == [1] * 6


def test_set_chip_mode_read_any_port():
    chip = Opn2(variant_for(ChipType.READ_MODE | ChipType.YM2612))
    assert chip.variant.read_mode is True
    chip.write(0, 0x22)
    chip.clock()
    chip.write(1, 0x00)
    chip.clock()
    chip.clock()
    assert chip.read(1) & 0x80 == 0x80


def test_reset_restores_state_and_keeps_variant():
    chip = Opn2(Ym2612())
    write_register(chip, 0, 0xB4, 0x40)
    run(chip, 10)
    chip.reset()
    assert chip.cycles == 0
    assert chip.channel == 0
    assert chip.registers.pan_l == [1] * 6
    assert chip.variant == Ym2612()


def test_cycles_and_channel_advance():
    chip = Opn2()
    run(chip, 25)
    assert chip.cycles == 1
    assert chip.channel == 1
    run(chip, 10)
    assert chip.cycles == 11
    assert chip.channel == 5


def test_silent_ym3438_outputs_zero():
    chip = Opn2(Ym3438())
    assert set(run(chip, 240)) == {(0, 0)}


def test_silent_ym2612_outputs_dc_offset():
    chip = Opn2(Ym2612())
    assert set(run(chip, 240)) == {(3, 3)}


def test_lfo_register():
    chip = Opn2()
    write_register(chip, 0, 0x22, 0x0B, settle=0)
    assert chip.lfo.enable == 0x7F
    assert chip.lfo.freq == 3


def test_detune_multiple_register():
    chip = Opn2()
    write_register(chip, 0, 0x30, 0x35)
    assert chip.registers.multiple[0] == 10
    assert chip.registers.detune[0] == 3


def test_multiple_zero_means_half():
    chip = Opn2()
    write_register(chip, 0, 0x30, 0x35)
    write_register(chip, 0, 0x30, 0x00)
    assert chip.registers.multiple[0] == 1
    assert chip.registers.detune[0] == 0


def test_operator_two_register_goes_to_upper_slot():
    chip = Opn2()
    write_register(chip, 0, 0x38, 0x02)
    assert chip.registers.multiple[12] == 4
    assert chip.registers.multiple[0] == 1


def test_second_bank_total_level():
    chip = Opn2()
    write_register(chip, 1, 0x40, 0x7F)
    assert chip.registers.total_level[3] == 0x7F
    assert chip.registers.total_level[0] == 0


def test_sustain_level_fifteen_extends():
    chip = Opn2()
    write_register(chip, 0, 0x80, 0xF5)
    assert chip.registers.release_rate[0] == 5
    assert chip.registers.secondary_amplitude[0] == 0x1F


def test_stereo_register():
    chip = Opn2()
    write_register(chip, 0, 0xB4, 0x80)
    assert chip.registers.pan_l[0] == 1
    assert chip.registers.pan_r[0] == 0
    assert chip.registers.amp_mod_sens[0] == 0


def test_frequency_registers():
    chip = Opn2()
    write_register(chip, 0, 0xA4, 0x22)
    write_register(chip, 0, 0xA0, 0x69)
    assert chip.registers.fnum[0] == 0x269
    assert chip.registers.block[0] == 4
    assert chip.registers.kcode[0] == 16


@pytest.mark.parametrize(
    "data, channel, operators",
    [
        (0xF0, 0, [1, 1, 1, 1]),
        (0xF6, 5, [1, 1, 1, 1]),
        (0x11, 1, [1, 0, 0, 0]),
        (0x03, 0xFF, [0, 0, 0, 0]),
    ],
)
def test_key_on_register(data, channel, operators):
    chip = Opn2()
    write_register(chip, 0, 0x28, data, settle=0)
    assert chip.registers.mode_kon_channel == channel
    assert chip.registers.mode_kon_operator == operators


def test_global_register_ignored_on_second_bank():
    chip = Opn2()
    write_register(chip, 1, 0x22, 0x0B, settle=0)
    assert chip.lfo.enable == 0


def test_timer_a_overflow_raises_irq():
    chip = Opn2()
    write_register(chip, 0, 0x24, 0xFF, settle=0)
    write_register(chip, 0, 0x25, 0x03, settle=0)
    assert chip.timer_a.reg == 0x3FF
    assert chip.read_irq_pin() == 0
    write_register(chip, 0, 0x27, 0x05, settle=100)
    assert chip.read_irq_pin() == 1
    assert chip.read(0) == 0x01


def test_busy_flag_after_write():
    chip = Opn2()
    chip.write(0, 0x22)
    chip.clock()
    chip.write(1, 0x00)
    chip.clock()
    chip.clock()
    assert chip.read(0) & 0x80 == 0x80
    run(chip, 40)
    assert chip.read(0) & 0x80 == 0


def test_read_mode_per_variant():
    for variant, expected in ((Ym2612(), 0), (Ym3438(), 0x80)):
        chip = Opn2(variant)
        chip.write(0, 0x22)
        chip.clock()
        chip.write(1, 0x00)
        chip.clock()
        chip.clock()
        assert chip.read(1) == expected


def test_status_time_counts_down():
    chip = Opn2(Ym2612())
    chip.read(0)
    assert chip.registers.status_time == 300000
    chip.clock()
    assert chip.registers.status_time == 299999


def test_test_pin():
    chip = Opn2()
    chip.set_test_pin(3)
    assert chip.io.pin_test_in == 1
    assert chip.read_test_pin() == 0
    write_register(chip, 0, 0x2C, 0x80, settle=0)
    while chip.cycles != 23:
        chip.clock()
    assert chip.read_test_pin() == 1
    chip.clock()
    assert chip.read_test_pin() == 0


@pytest.mark.parametrize("data, level", [(0x00, -256), (0xFF, 254)])
def test_dac_output(data, level):
    chip = Opn2(Ym3438())
    write_register(chip, 0, 0x2B, 0x80, settle=0)
    write_register(chip, 0, 0x2A, data)
    outputs = run(chip, 24)
    assert outputs.count((level, level)) == 3
    assert outputs.count((0, 0)) == 21