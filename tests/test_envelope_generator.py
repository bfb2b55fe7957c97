from opn2emu.blocks import Io, Lfo
from opn2emu.envelope_generator import EnvelopeGenerator
from opn2emu.phase_generator import PhaseGenerator
from opn2emu.registers import Adsr, Registers


def test_defaults_are_released_and_silent():
    eg = EnvelopeGenerator()
    assert eg.state == [Adsr.RELEASE] * 24
    assert eg.level == [0x3FF] * 24
    assert eg.out == [0x3FF] * 24


def test_cycle_1_quotient_cycles_through_three():
    eg = EnvelopeGenerator()
    seen = []
    for _ in range(3):
        eg.cycle_1()
        seen.append(eg.quotient)
        assert eg.cycle == 0 and eg.cycle_stop == 1 and eg.shift == 0
    assert sorted(seen) == [0, 1, 2]
    assert eg.quotient == 0


def test_timer_wraps_at_12_bits():
    eg = EnvelopeGenerator(timer=0xFFF, timer_inc=1)
    eg.cycle_13()
    assert eg.timer == 0
    assert eg.timer_inc == 1


def test_cycle_2_latches_first_output():
    eg = EnvelopeGenerator()
    eg.out[0] = 0x123
    eg.cycle_2()
    assert eg.read[1] == 0x123


def test_increment_timer_captures_shift():
    eg = EnvelopeGenerator(timer=0b1000, cycle=3, cycle_stop=1)
    eg.increment_timer(Registers(), Io())
    assert eg.shift == 3
    assert eg.cycle_stop == 0


def test_increment_timer_test_bit_clears_timer_bit():
    registers = Registers()
    registers.mode_test_21[5] = 1
    eg = EnvelopeGenerator(timer=0b1000, cycle=3, cycle_stop=1)
    eg.increment_timer(registers, Io())
    assert eg.timer == 0
    assert eg.cycle_stop == 1


def test_key_on_latches_register():
    registers = Registers()
    registers.mode_kon[5] = 1
    eg = EnvelopeGenerator()
    eg.key_on(0, 0, 5, registers)
    assert eg.kon_latch[5] == 1
    assert eg.kon_csm[5] == 0


def test_key_on_updates_operators_for_selected_channel():
    registers = Registers()
    registers.mode_kon_operator = [1, 0, 1, 0]
    registers.mode_kon_channel = 2
    eg = EnvelopeGenerator()
    eg.key_on(2, 2, 2, registers)
    assert registers.mode_kon[2] == 1
    assert registers.mode_kon[14] == 0
    assert registers.mode_kon[8] == 1
    assert registers.mode_kon[20] == 0


def test_key_on_csm():
    registers = Registers()
    registers.mode_kon_csm = 1
    eg = EnvelopeGenerator()
    eg.key_on(5, 2, 7, registers)
    assert eg.kon_latch[7] == 1
    assert eg.kon_csm[7] == 1


def test_instant_attack_on_key_on():
    eg = EnvelopeGenerator(ratemax=1)
    eg.kon_latch[0] = 1
    pg = PhaseGenerator()
    eg.adsr(2, pg)
    assert eg.level[0] == 0
    assert eg.state[0] == Adsr.ATTACK
    assert eg.kon[0] == 1
    assert pg.reset[0] == 1


def test_attack_falls_to_zero_then_decays():
    eg = EnvelopeGenerator(inc=4)
    eg.state[0] = Adsr.ATTACK
    eg.kon[0] = eg.kon_latch[0] = 1
    pg = PhaseGenerator()
    levels = [eg.level[0]]
    for _ in range(200):
        eg.adsr(2, pg)
        if eg.state[0] != Adsr.ATTACK:
            break
        levels.append(eg.level[0])
    assert eg.state[0] == Adsr.DECAY
    assert levels[-1] == 0
    assert all(a > b for a, b in zip(levels, levels[1:]))


def _decay_steps(ssg_enable):
    eg = EnvelopeGenerator(inc=1)
    eg.state[0] = Adsr.DECAY
    eg.kon[0] = eg.kon_latch[0] = 1
    eg.level[0] = 0
    eg.sl[1] = 4
    eg.ssg_enable[0] = ssg_enable
    pg = PhaseGenerator()
    levels = [0]
    for _ in range(500):
        eg.adsr(2, pg)
        if eg.state[0] != Adsr.DECAY:
            break
        levels.append(eg.level[0])
    return eg, levels


def test_decay_reaches_sustain_level():
    eg, levels = _decay_steps(0)
    assert eg.state[0] == Adsr.SUSTAIN
    assert levels[-1] >> 5 == eg.sl[1]
    steps = {b - a for a, b in zip(levels, levels[1:])}
    assert len(steps) == 1


def test_ssg_decay_is_four_times_faster():
    _, plain = _decay_steps(0)
    _, ssg = _decay_steps(1)
    assert ssg[1] - ssg[0] == 4 * (plain[1] - plain[0])


def test_key_off_moves_to_release():
    eg = EnvelopeGenerator()
    eg.state[0] = Adsr.SUSTAIN
    eg.kon[0] = 1
    eg.level[0] = 100
    eg.adsr(2, PhaseGenerator())
    assert eg.state[0] == Adsr.RELEASE
    assert eg.kon[0] == 0


def test_envelope_off_forces_full_attenuation():
    eg = EnvelopeGenerator()
    eg.state[0] = Adsr.DECAY
    eg.kon[0] = eg.kon_latch[0] = 1
    eg.level[0] = 0x3F5
    eg.adsr(2, PhaseGenerator())
    assert eg.state[0] == Adsr.RELEASE
    assert eg.level[0] == 0x3FF


def test_generate_clamps_output():
    eg = EnvelopeGenerator()
    eg.level[0] = 0x300
    eg.tl[0] = 127
    eg.generate(1, 0, Registers())
    assert eg.out[0] == 0x3FF


def test_generate_csm_channel_ignores_total_level():
    registers = Registers()
    registers.mode_csm = 1
    eg = EnvelopeGenerator()
    eg.level[0] = 0x100
    eg.tl[0] = 50
    eg.generate(1, 3, registers)
    assert eg.out[0] == 0x100


def test_generate_test_bit_zeroes_level():
    registers = Registers()
    registers.mode_test_21[5] = 1
    eg = EnvelopeGenerator()
    eg.level[0] = 0x200
    eg.generate(1, 0, registers)
    assert eg.out[0] == 0


def test_ssg_eg_latches_on_overflow():
    registers = Registers()
    registers.ssg_eg[0] = 0x8
    eg = EnvelopeGenerator()
    eg.level[0] = 0x200
    eg.ssg_eg(0, registers)
    assert eg.ssg_pgrst_latch[0] == 1
    assert eg.ssg_repeat_latch[0] == 1
    assert eg.ssg_enable[0] == 1


def test_ssg_eg_disabled_clears_latches():
    registers = Registers()
    eg = EnvelopeGenerator()
    eg.ssg_pgrst_latch[0] = eg.ssg_repeat_latch[0] = eg.ssg_inv[0] = 1
    eg.ssg_eg(0, registers)
    assert (eg.ssg_pgrst_latch[0], eg.ssg_repeat_latch[0], eg.ssg_inv[0]) == (0, 0, 0)
    assert eg.ssg_enable[0] == 0


def test_prepare_selects_attack_rate():
    registers = Registers()
    registers.attack_rate[3] = 17
    eg = EnvelopeGenerator()
    eg.state[3] = Adsr.ATTACK
    eg.prepare(3, 0, registers, PhaseGenerator(), Lfo())
    assert eg.rate == 17


def test_prepare_release_rate_is_odd_and_scaled():
    registers = Registers()
    registers.release_rate[3] = 5
    eg = EnvelopeGenerator()
    eg.prepare(3, 0, registers, PhaseGenerator(), Lfo())
    assert eg.rate & 1 == 1
    assert eg.rate >> 1 == 5


def test_prepare_pending_key_on_uses_attack_rate():
    registers = Registers()
    registers.attack_rate[3] = 17
    registers.release_rate[3] = 5
    eg = EnvelopeGenerator()
    eg.kon_latch[3] = 1
    eg.prepare(3, 0, registers, PhaseGenerator(), Lfo())
    assert eg.rate == 17


def test_prepare_ksv_and_lfo_am():
    registers = Registers()
    registers.rate_scale[3] = 3
    registers.amplitude_modulation[3] = 1
    registers.amp_mod_sens[0] = 3
    pg = PhaseGenerator(kcode=0x1F)
    lfo = Lfo(am=0x7E)
    eg = EnvelopeGenerator()
    eg.prepare(3, 0, registers, pg, lfo)
    assert eg.ksv == pg.kcode
    assert eg.lfo_am == lfo.am


def test_prepare_delays_total_level():
    registers = Registers()
    registers.total_level[3] = 42
    registers.total_level[4] = 7
    eg = EnvelopeGenerator()
    eg.prepare(3, 0, registers, PhaseGenerator(), Lfo())
    assert eg.tl == [42, 0]
    eg.prepare(4, 0, registers, PhaseGenerator(), Lfo())
    assert eg.tl == [7, 42]


def test_prepare_max_rate():
    eg = EnvelopeGenerator(rate=31, quotient=2)
    eg.prepare(0, 0, Registers(), PhaseGenerator(), Lfo())
    assert eg.ratemax == 1
    assert 0 < eg.inc <= 4


def test_prepare_no_increment_off_quotient():
    eg = EnvelopeGenerator(rate=31, quotient=1)
    eg.prepare(0, 0, Registers(), PhaseGenerator(), Lfo())
    assert eg.inc == 0