"""Cycle-accurate OPN2 core tying the functional blocks together."""

from __future__ import annotations

from .blocks import Channel, Io, Lfo, TimerA, TimerB
from .envelope_generator import EnvelopeGenerator
from .fm import Fm
from .phase_generator import PhaseGenerator
from .registers import Address, Registers
from .rom import CH_OFFSET, FN_NOTE, OP_OFFSET
from .variants import ChipVariant, Ym3438


def _sign_extend_9(value: int) -> int:
    value &= 0x1FF
    return value - 0x200 if value & 0x100 else value


def _bits(value: int) -> list[int]:
    return [(value >> i) & 0x1 for i in range(8)]


class Opn2:
    """An emulated OPN2 chip; one call to clock() is one internal cycle (6 master clocks)."""

    def __init__(self, variant: ChipVariant | None = None) -> None:
        self.variant: ChipVariant = variant if variant is not None else Ym3438()
        self.reset()

    def reset(self) -> None:
        """Return every block to its power-on state, keeping the chip variant."""
        self.cycles = 0
        self.channel = 0
        self.mol = 0
        self.mor = 0
        self.io = Io()
        self.lfo = Lfo()
        self.phase_generator = PhaseGenerator()
        self.envelope_generator = EnvelopeGenerator()
        self.fm = Fm()
        self.ch = Channel()
        self.timer_a = TimerA()
        self.timer_b = TimerB()
        self.registers = Registers()

    def clock(self) -> tuple[int, int]:
        """Advance one internal clock and return the signed (MOL, MOR) pin values."""
        cycles = self.cycles
        channel = self.channel
        slot = cycles
        regs = self.registers
        eg = self.envelope_generator
        pg = self.phase_generator

        self.lfo.inc = regs.mode_test_21[1]
        pg.read >>= 1
        eg.read[1] >>= 1
        eg.cycle = (eg.cycle + 1) & 0xFF

        # Cycle specific functions
        if cycles == 0:
            self.lfo.cycle_0()
        elif cycles == 1:
            eg.cycle_1()
        elif cycles == 2:
            pg.cycle_2()
            eg.cycle_2()
        elif cycles == 13:
            eg.cycle_13()
        elif cycles == 23:
            self.lfo.cycle_23()

        eg.increment_timer(regs, self.io)
        self.io.clock()
        self.timer_a.clock(cycles, regs)
        self.timer_b.clock(cycles, regs)
        eg.key_on(cycles, channel, slot, regs)
        self._ch_output()
        self.ch.generate(cycles, channel, regs, self.fm)
        self.fm.prepare(cycles, channel, regs)
        self.fm.generate(cycles, regs, pg, eg)
        pg.generate(cycles, regs)
        pg.phase_calc_increment(cycles, channel, regs, self.lfo)
        eg.adsr(cycles, pg)
        eg.generate(cycles, channel, regs)
        eg.ssg_eg(cycles, regs)
        eg.prepare(cycles, channel, regs, pg, self.lfo)
        pg.fnum_block(slot, channel, regs)
        self.lfo.update()
        self._do_reg_write()

        self.cycles = (cycles + 1) % 24
        self.channel = self.cycles % 6

        if regs.status_time:
            regs.status_time -= 1

        return self.mol, self.mor

    def write(self, port: int, data: int) -> None:
        """Latch an 8-bit value on a port: even ports take addresses, odd ports data."""
        port &= 3
        self.io.write_data = ((port << 7) & 0x100) | (data & 0xFF)
        if port & 1:
            self.io.write_d |= 1
        else:
            self.io.write_a |= 1

    def set_test_pin(self, value: int) -> None:
        self.io.pin_test_in = value & 1

    def read_test_pin(self) -> int:
        if not self.registers.mode_test_2c[7]:
            return 0
        return int(self.cycles == 23)

    def read_irq_pin(self) -> int:
        return int(self.timer_a.overflow_flag or self.timer_b.overflow_flag)

    def read(self, port: int) -> int:
        """Read the status register (or test data) through a port."""
        regs = self.registers
        if port & 3 == 0 or self.variant.read_mode:
            if regs.mode_test_21[6]:
                # Read test data
                slot = (self.cycles + 18) % 24
                testdata = ((self.phase_generator.read & 0x1) << 15) | (
                    (self.envelope_generator.read[regs.mode_test_21[0]] & 0x1) << 14
                )
                if regs.mode_test_2c[4]:
                    testdata |= self.ch.read & 0x1FF
                else:
                    testdata |= self.fm.out[slot] & 0x3FFF
                testdata &= 0xFFFF
                if regs.mode_test_21[7]:
                    regs.status = testdata & 0xFF
                else:
                    regs.status = testdata >> 8
            else:
                regs.status = (
                    (self.io.busy << 7)
                    | (int(self.timer_b.overflow_flag) << 1)
                    | int(self.timer_a.overflow_flag)
                ) & 0xFF
            regs.status_time = self.variant.status_time

        if regs.status_time:
            return regs.status
        return 0

    def _write_slot_register(self, slot: int) -> None:
        io = self.io
        regs = self.registers
        if io.address & 0x8:
            # OP2, OP4
            slot += 12
        data = io.data
        match Address.from_value(io.address & 0xF0):
            case Address.DETUNE_AND_MULTIPLE:
                multiple = data & 0xF
                regs.multiple[slot] = multiple << 1 if multiple else 1
                regs.detune[slot] = (data >> 4) & 0x7
            case Address.TOTAL_LEVEL:
                regs.total_level[slot] = data & 0x7F
            case Address.RATE_SCALE_AND_ATTACK_RATE:
                regs.attack_rate[slot] = data & 0x1F
                regs.rate_scale[slot] = (data >> 6) & 0x3
            case Address.FIRST_DECAY_AND_AMP:
                regs.decay_rate_first[slot] = data & 0x1F
                regs.amplitude_modulation[slot] = (data >> 7) & 0x1
            case Address.SECONDARY_DECAY_RATE:
                regs.decay_rate_second[slot] = data & 0x1F
            case Address.SECONDARY_AMP_AND_RELEASE:
                regs.release_rate[slot] = data & 0xF
                level = (data >> 4) & 0xF
                regs.secondary_amplitude[slot] = level | ((level + 1) & 0x10)
            case Address.SSG_EG:
                regs.ssg_eg[slot] = data & 0xF

    def _write_channel_register(self, channel: int) -> None:
        io = self.io
        regs = self.registers
        data = io.data
        match Address.from_value(io.address & 0xFC):
            case Address.FNUM:
                regs.fnum[channel] = (data & 0xFF) | ((regs.block_freq & 0x7) << 8)
                regs.block[channel] = (regs.block_freq >> 3) & 0x7
                regs.kcode[channel] = (
                    (regs.block[channel] << 2) | FN_NOTE[regs.fnum[channel] >> 7]
                ) & 0xFF
            case Address.BLOCK_FREQ:
                regs.block_freq = data & 0xFF
            case Address.CH3_FNUM:
                regs.fnum_ch3[channel] = (data & 0xFF) | ((regs.block_freq_ch3 & 0x7) << 8)
                regs.block_ch3[channel] = (regs.block_freq_ch3 >> 3) & 0x7
                regs.kcode_ch3[channel] = (
                    (regs.block_ch3[channel] << 2) | FN_NOTE[regs.fnum_ch3[channel] >> 7]
                ) & 0xFF
            case Address.CH3_BLOCK_FREQ:
                regs.block_freq_ch3 = data & 0xFF
            case Address.FEEDBACK_AND_ALGORITHM:
                regs.connect[channel] = data & 0x7
                regs.feedback[channel] = (data >> 3) & 0x7
            case Address.STEREO_AND_LFO_SENS:
                regs.freq_mod_sens[channel] = data & 0x7
                regs.amp_mod_sens[channel] = (data >> 4) & 0x3
                regs.pan_l[channel] = (data >> 7) & 0x1
                regs.pan_r[channel] = (data >> 6) & 0x1

    def _write_global_register(self) -> None:
        io = self.io
        regs = self.registers
        value = io.write_data
        match Address.from_value(io.write_fm_mode_a):
            case Address.LSI_TEST_1:
                regs.mode_test_21 = _bits(value)
            case Address.LFO:
                self.lfo.enable = 0x7F if (value >> 3) & 0x1 else 0
                self.lfo.freq = value & 0x7
            case Address.TIMER_A_MSB:
                self.timer_a.reg = (self.timer_a.reg & 0x3) | ((value & 0xFF) << 2)
            case Address.TIMER_A_LSB:
                self.timer_a.reg = (self.timer_a.reg & 0x3FC) | (value & 0x3)
            case Address.TIMER_B:
                self.timer_b.reg = value & 0xFF
            case Address.TIMERS_AND_CH3_MODE:
                # CSM, Timer control
                regs.mode_ch3 = (value & 0xC0) >> 6
                regs.mode_csm = int(regs.mode_ch3 == 2)
                self.timer_a.load = bool(value & 0x1)
                self.timer_a.enable = bool((value >> 2) & 0x1)
                self.timer_a.reset = bool((value >> 4) & 0x1)
                self.timer_b.load = bool((value >> 1) & 0x1)
                self.timer_b.enable = bool((value >> 3) & 0x1)
                self.timer_b.reset = bool((value >> 5) & 0x1)
            case Address.KEY_ON_OFF:
                regs.mode_kon_operator = [(value >> (4 + i)) & 0x1 for i in range(4)]
                if value & 0x3 == 0x3:
                    # Invalid address
                    regs.mode_kon_channel = 0xFF
                else:
                    regs.mode_kon_channel = (value & 0x3) + ((value >> 2) & 0x1) * 3
            case Address.DAC_DATA:
                regs.dac_data = (regs.dac_data & 0x1) | (((value ^ 0x80) & 0xFF) << 1)
            case Address.DAC_ENABLE:
                regs.dac_enable = (value >> 7) != 0
            case Address.LSI_TEST_2:
                regs.mode_test_2c = _bits(value)
                regs.dac_data = (regs.dac_data & 0x1FE) | regs.mode_test_2c[3]
                self.envelope_generator.custom_timer = int(
                    not regs.mode_test_2c[7] and bool(regs.mode_test_2c[6])
                )

    def _do_reg_write(self) -> None:
        io = self.io
        slot = self.cycles % 12
        channel = self.channel

        # Update registers
        if io.write_fm_data:
            if OP_OFFSET[slot] == io.address & 0x107:
                self._write_slot_register(slot)
            if CH_OFFSET[channel] == io.address & 0x103:
                self._write_channel_register(channel)

        if io.write_a_en or io.write_d_en:
            if io.write_a_en:
                io.write_fm_data = 0
            if io.write_fm_address and io.write_d_en:
                io.write_fm_data = 1

            if io.write_a_en:
                if io.write_data & 0xF0:
                    # FM write
                    io.address = io.write_data
                    io.write_fm_address = 1
                else:
                    # SSG write
                    io.write_fm_address = 0

            if io.write_d_en and not io.write_data & 0x100:
                self._write_global_register()

            if io.write_a_en:
                io.write_fm_mode_a = io.write_data & 0x1FF

        if io.write_fm_data:
            io.data = io.write_data & 0xFF

    def _ch_output(self) -> None:
        cycles = self.cycles
        channel = self.channel
        regs = self.registers
        test_dac = regs.mode_test_2c[5]
        self.ch.read = self.ch.lock

        if cycles < 12:
            # Ch 4, 5, 6
            channel += 1

        if cycles & 3 == 0:
            if not test_dac:
                # Lock value
                self.ch.lock = self.ch.out[channel]
            self.ch.lock_l = regs.pan_l[channel]
            self.ch.lock_r = regs.pan_r[channel]

        # Ch 6
        if ((cycles >> 2) == 1 and regs.dac_enable) or test_dac:
            out = _sign_extend_9(regs.dac_data)
        else:
            out = self.ch.lock

        self.mol, self.mor = self.variant.output(self, cycles, test_dac, out)