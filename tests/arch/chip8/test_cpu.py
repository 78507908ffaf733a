# tests/arch/chip8/test_cpu.py
"""
Chip8Cpuの統合テスト。
プログラムのロード、命令サイクル、タイマー、キー入力待ちの振る舞いを検証します。
"""
import pytest

from chip8_core_tracer.transport.bus import Bus, RAM
from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu, TIMER_PERIOD
from chip8_core_tracer.arch.chip8.state import FONT_SET, MAX_PROGRAM_SIZE, PROGRAM_START, Chip8CpuState
from chip8_core_tracer.core.faults import CapacityFault, DecodeFault, StackOverflowFault
from chip8_core_tracer.core.snapshot import CycleStatus

# @intent:test_suite CHIP-8インタプリタ全体としての振る舞いを検証します。

class FakeClock:
    """手動で進めるテスト用の時計。"""
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

def make_cpu(program: bytes = b"", clock=None) -> Chip8Cpu:
    bus = Bus()
    bus.register_device(0x000, 0xFFF, RAM(0x1000))
    cpu = Chip8Cpu(bus, clock=clock or FakeClock())
    cpu.load_program(program)
    return cpu

class TestChip8CpuLoad:
    """
    load_programの単体テスト。
    """
    # @intent:test_case_initial_state 初期状態を検証します。
    def test_initial_state(self):
        cpu = make_cpu()
        state = cpu.get_state()
        assert isinstance(state, Chip8CpuState)
        assert state.pc == PROGRAM_START
        assert state.sp == 0
        assert state.i == 0
        assert state.v == [0] * 16
        assert state.delay_timer == 0
        assert state.sound_timer == 0
        assert cpu.get_framebuffer() == bytes(256)

    # @intent:test_case_font フォントが0x000から配置されることを検証します。
    def test_font_loaded(self):
        cpu = make_cpu()
        bus = cpu.get_bus()
        assert bytes(bus.peek(a) for a in range(80)) == FONT_SET

    def test_program_loaded_at_0x200(self):
        cpu = make_cpu(bytes([0x12, 0x34, 0x56]))
        bus = cpu.get_bus()
        assert [bus.peek(0x200 + k) for k in range(3)] == [0x12, 0x34, 0x56]

    # @intent:test_case_capacity 3584バイトはロードでき、3585バイトはCapacityFaultとなることを検証します。
    def test_program_capacity(self):
        cpu = make_cpu(bytes([0xAA]) * MAX_PROGRAM_SIZE)
        assert cpu.get_bus().peek(0xFFF) == 0xAA

        cpu = make_cpu()
        with pytest.raises(CapacityFault):
            cpu.load_program(bytes([0xBB]) * (MAX_PROGRAM_SIZE + 1))
        assert cpu.get_bus().peek(0x200) == 0x00

    def test_load_does_not_log_bus_activity(self):
        cpu = make_cpu(bytes([0x00, 0xE0]))
        assert cpu.get_bus().get_and_clear_activity_log() == []

class TestChip8CpuCycle:
    """
    stepの単体テスト。
    """
    def test_load_and_add_immediate(self):
        cpu = make_cpu(bytes([0x6A, 0x07, 0x7A, 0x05]))
        first = cpu.step()
        second = cpu.step()
        state = cpu.get_state()
        assert state.v[0xA] == 0x0C
        assert state.vf == 0
        assert state.pc == 0x204
        assert first.metadata.symbol_info == "LD VA, #$07"
        assert second.operation.mnemonic == "ADD"

    def test_add_registers_overflow(self):
        cpu = make_cpu(bytes([0x60, 0xFF, 0x61, 0x01, 0x80, 0x14]))
        for _ in range(3):
            cpu.step()
        state = cpu.get_state()
        assert state.v[0] == 0x00
        assert state.vf == 1

    def test_call_and_return(self):
        program = bytearray(0x102)
        program[0:2] = bytes([0x23, 0x00])       # 0x200: CALL $300
        program[0x100:0x102] = bytes([0x00, 0xEE])  # 0x300: RET
        cpu = make_cpu(bytes(program))

        cpu.step()
        assert cpu.get_state().pc == 0x300
        assert cpu.get_call_stack() == [0x202]
        cpu.step()
        assert cpu.get_state().pc == 0x202
        assert cpu.get_call_stack() == []

    # @intent:test_case_nesting 16段のCALLは成功し、17段目はスタックとPCを変更せずにStackOverflowとなることを検証します。
    def test_nested_calls_overflow(self):
        # 各CALLは直後の命令を呼び出す: 0x200: CALL $202, 0x202: CALL $204, ...
        program = bytearray()
        for k in range(17):
            target = 0x200 + 2 * (k + 1)
            program += bytes([0x20 | (target >> 8), target & 0xFF])
        cpu = make_cpu(bytes(program))

        for _ in range(16):
            assert cpu.step().status == CycleStatus.COMPLETED
        state = cpu.get_state()
        assert state.sp == 16
        stack_before = list(state.stack)
        pc_before = state.pc

        snapshot = cpu.step()
        assert snapshot.is_fault
        assert isinstance(snapshot.fault, StackOverflowFault)
        assert cpu.get_state().sp == 16
        assert cpu.get_state().stack == stack_before
        assert cpu.get_state().pc == pc_before

    def test_undefined_opcode_faults_without_mutation(self):
        cpu = make_cpu(bytes([0x00, 0x00]))
        before = cpu.get_register_map()
        snapshot = cpu.step()
        assert isinstance(snapshot.fault, DecodeFault)
        assert snapshot.operation.opcode_hex == "0000"
        assert cpu.get_register_map() == before

    def test_fault_is_repeatable(self):
        cpu = make_cpu(bytes([0xFF, 0xFF]))
        assert cpu.step().is_fault
        assert cpu.step().is_fault
        assert cpu.get_state().pc == 0x200

    # @intent:test_case_fetch メモリ末尾を越えるフェッチはCapacityFaultとなることを検証します。
    def test_fetch_past_end_of_memory(self):
        cpu = make_cpu()
        cpu.get_state().pc = 0xFFF
        snapshot = cpu.step()
        assert isinstance(snapshot.fault, CapacityFault)
        assert cpu.get_state().pc == 0xFFF

    def test_buttons_are_recorded_only_on_completed_cycles(self):
        cpu = make_cpu(bytes([0x12, 0x00]))
        cpu.step(0x0003)
        assert cpu.get_state().last_buttons == 0x0003
        cpu.get_state().pc = 0xFFF
        cpu.step(0x0100)
        assert cpu.get_state().last_buttons == 0x0003

    # @intent:test_case_wait キー入力待ちは新たな押下があるまで同じ命令に留まることを検証します。
    def test_wait_for_key(self):
        cpu = make_cpu(bytes([0xF3, 0x0A, 0x12, 0x02]))
        for _ in range(3):
            snapshot = cpu.step(0)
            assert snapshot.is_awaiting_input
            assert cpu.get_state().pc == 0x200

        snapshot = cpu.step(1 << 0xB)
        assert snapshot.status == CycleStatus.COMPLETED
        assert cpu.get_state().v[3] == 0xB
        assert cpu.get_state().pc == 0x202

    def test_reset_keeps_memory(self):
        cpu = make_cpu(bytes([0x6A, 0x07]))
        cpu.step()
        cpu.reset()
        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v[0xA] == 0
        assert cpu.get_bus().peek(0x200) == 0x6A

    def test_register_map_and_layout(self):
        cpu = make_cpu()
        regs = cpu.get_register_map()
        assert set(regs) == {f"V{n:X}" for n in range(16)} | {"I", "PC", "SP", "DT", "ST"}
        names = [r.name for group in cpu.get_register_layout() for r in group.registers]
        assert sorted(names) == sorted(regs)

class TestChip8CpuTimers:
    """
    60Hzタイマーの単体テスト。
    """
    # @intent:test_case_tick 1/60秒が経過するまでタイマーは減算されないことを検証します。
    def test_timers_decrement_at_60hz(self):
        clock = FakeClock()
        cpu = make_cpu(bytes([0x12, 0x00]), clock=clock)  # JP $200
        state = cpu.get_state()
        state.delay_timer = 3
        state.sound_timer = 1

        cpu.step()
        assert state.delay_timer == 3

        clock.advance(0.001)
        cpu.step()
        assert (state.delay_timer, state.sound_timer) == (2, 0)

        # 次の期限までは何サイクル実行しても減算されない
        for _ in range(50):
            cpu.step()
        assert state.delay_timer == 2

        clock.advance(TIMER_PERIOD * 1.5)
        cpu.step()
        assert (state.delay_timer, state.sound_timer) == (1, 0)

    def test_timers_do_not_go_below_zero(self):
        clock = FakeClock()
        cpu = make_cpu(bytes([0x12, 0x00]), clock=clock)
        for _ in range(5):
            clock.advance(1.0)
            cpu.step()
        assert cpu.get_state().delay_timer == 0
        assert cpu.get_state().sound_timer == 0

    def test_delay_timer_read_back(self):
        clock = FakeClock()
        # LD V0,#$05 / LD DT,V0 / LD V1,DT
        cpu = make_cpu(bytes([0x60, 0x05, 0xF0, 0x15, 0xF1, 0x07]), clock=clock)
        cpu.step()
        cpu.step()
        clock.advance(0.5)
        cpu.step()
        assert cpu.get_state().v[1] == 4
