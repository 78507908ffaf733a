# tests/debugger/test_debugger.py
"""
chip8_core_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、巻き戻し機能を検証します。
"""
import pytest
from unittest.mock import patch

from chip8_core_tracer.transport.bus import Bus, RAM
from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.state import Chip8CpuState
from chip8_core_tracer.core.snapshot import Snapshot, Operation, Metadata
from chip8_core_tracer.debugger.debugger import Debugger, BreakpointCondition, BreakpointConditionType

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

# 0x200: LD V0,#$01
# 0x202: ADD V0,#$01
# 0x204: LD I,$300
# 0x206: LD [I],V0
# 0x208: JP $202
LOOP_PROGRAM = bytes([0x60, 0x01, 0x70, 0x01, 0xA3, 0x00, 0xF0, 0x55, 0x12, 0x02])

class TestDebugger:
    """
    Debuggerの単体テスト。
    """
    @pytest.fixture
    def setup_debugger(self):
        bus = Bus()
        bus.register_device(0x000, 0xFFF, RAM(0x1000))
        cpu = Chip8Cpu(bus, clock=lambda: 0.0)
        cpu.load_program(LOOP_PROGRAM)
        debugger = Debugger(cpu)
        return debugger, cpu, bus

    # @intent:test_case_add_remove_breakpoint ブレークポイントの追加と削除が正しく行われることを検証します。
    def test_add_remove_breakpoint(self, setup_debugger):
        debugger, _, _ = setup_debugger
        bp1 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204)
        bp2 = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300)

        debugger.add_breakpoint(bp1)
        debugger.add_breakpoint(bp2)
        debugger.add_breakpoint(bp1) # 重複追加は無視される
        assert debugger.get_breakpoints() == [bp1, bp2]

        debugger.remove_breakpoint(bp1)
        debugger.remove_breakpoint(bp1) # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == [bp2]

    def test_update_breakpoint(self, setup_debugger):
        debugger, _, _ = setup_debugger
        old = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204)
        new = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204, enabled=False)
        debugger.add_breakpoint(old)
        debugger.update_breakpoint(old, new)
        assert debugger.get_breakpoints() == [new]

    # @intent:test_case_step_instruction step_instructionがcpu.stepにボタン状態を渡し、Snapshotを記録することを検証します。
    def test_step_instruction(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        fake = Snapshot(
            state=Chip8CpuState(pc=0x202),
            operation=Operation(opcode_hex="6001", mnemonic="LD", length=2),
            metadata=Metadata(cycle_count=1),
        )
        with patch.object(cpu, 'step', return_value=fake) as mock_step:
            snapshot = debugger.step_instruction(0x0010)
            mock_step.assert_called_once_with(0x0010)
        assert snapshot is fake
        assert debugger.get_last_snapshot() is fake
        assert debugger.get_history() == [fake]

    # @intent:test_case_pc_breakpoint PC一致のブレークポイントで、その命令を実行する前に停止することを検証します。
    def test_run_stops_at_pc_breakpoint(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x206))
        debugger.run()
        assert cpu.get_state().pc == 0x206
        assert not debugger.is_running()

        # 再度runすると、現在のPCのブレークポイントを越えて次のヒットまで進む
        debugger.run()
        assert cpu.get_state().pc == 0x206
        assert cpu.get_state().v[0] == 3

    def test_disabled_breakpoint_is_ignored(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x206, enabled=False))
        debugger.run(max_steps=20)
        assert len(debugger.get_history()) == 20

    # @intent:test_case_memory_write メモリ書き込みのブレークポイントで停止することを検証します。
    def test_run_stops_on_memory_write(self, setup_debugger):
        debugger, cpu, bus = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300))
        snapshot = debugger.run()
        assert snapshot.operation.opcode_hex == "F055"
        assert bus.peek(0x300) == 2

    def test_run_stops_on_memory_read(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x208))
        snapshot = debugger.run()
        assert snapshot.operation.opcode_hex == "1202"

    def test_run_stops_on_register_value(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.REGISTER_VALUE,
                                                    register_name="V0", value=5))
        debugger.run()
        assert cpu.get_state().v[0] == 5

    def test_run_stops_on_register_change(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I"))
        snapshot = debugger.run()
        assert snapshot.operation.opcode_hex == "A300"
        assert len(debugger.get_history()) == 3

    # @intent:test_case_fault フォールトで停止することを検証します。
    def test_run_stops_on_fault(self, setup_debugger):
        debugger, cpu, bus = setup_debugger
        bus.load(0x204, 0xFF)
        bus.load(0x205, 0xFF)
        snapshot = debugger.run()
        assert snapshot.is_fault
        assert cpu.get_state().pc == 0x204

    def test_run_stops_when_waiting_for_key(self, setup_debugger):
        debugger, cpu, bus = setup_debugger
        bus.load(0x202, 0xF1)
        bus.load(0x203, 0x0A)
        snapshot = debugger.run()
        assert snapshot.is_awaiting_input
        assert cpu.get_state().pc == 0x202

    def test_run_max_steps(self, setup_debugger):
        debugger, _, _ = setup_debugger
        debugger.run(max_steps=7)
        assert len(debugger.get_history()) == 7

    # @intent:test_case_step_back 巻き戻しでCPU状態とメモリ書き込みが元に戻ることを検証します。
    def test_step_back_restores_state_and_memory(self, setup_debugger):
        debugger, cpu, bus = setup_debugger
        for _ in range(4):
            debugger.step_instruction()
        assert bus.peek(0x300) == 2

        previous = debugger.step_back()
        assert previous.state.pc == 0x206
        assert cpu.get_state().pc == 0x206
        assert bus.peek(0x300) == 0

        for _ in range(3):
            debugger.step_back()
        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v[0] == 0
        assert debugger.step_back() is None

    def test_run_back_stops_at_breakpoint(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        debugger.run(max_steps=6)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204))
        debugger.run_back()
        assert cpu.get_state().pc == 0x204
