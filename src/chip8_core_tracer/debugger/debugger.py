# chip8_core_tracer/debugger/debugger.py
"""
デバッガモジュール。

インタプリタを1サイクルずつ、または条件が成立するまで連続で実行します。
実行したサイクルのSnapshotを履歴として保持し、メモリ書き込みの取り消しによる巻き戻しを提供します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional
import copy
import logging as lg

from chip8_core_tracer.core.cpu import AbstractCpu
from chip8_core_tracer.core.snapshot import Snapshot, BusAccessType
from chip8_core_tracer.core.state import CpuState

class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"
    MEMORY_READ = "MEMORY_READ"
    MEMORY_WRITE = "MEMORY_WRITE"
    REGISTER_VALUE = "REGISTER_VALUE"
    REGISTER_CHANGE = "REGISTER_CHANGE"

# @intent:data_structure ブレークポイント条件。register_nameはget_register_map()のキー（"V3", "I", "DT"など）。
@dataclass(frozen=True)
class BreakpointCondition:
    condition_type: BreakpointConditionType
    value: Optional[int] = None
    address: Optional[int] = None
    register_name: Optional[str] = None
    enabled: bool = True

# @intent:responsibility サイクル実行後に評価する条件の判定関数群。PC_MATCHは実行前に別途判定します。
PostCycleCheck = Callable[[BreakpointCondition, Snapshot, Dict[str, int], Dict[str, int]], bool]

def _touches(access_type: BusAccessType) -> PostCycleCheck:
    def check(bp, snapshot, registers, previous):
        return any(a.access_type == access_type and a.address == bp.address for a in snapshot.bus_activity)
    return check

def _register_equals(bp, snapshot, registers, previous) -> bool:
    return registers.get(bp.register_name) == bp.value

def _register_changed(bp, snapshot, registers, previous) -> bool:
    name = bp.register_name
    return name in registers and name in previous and registers[name] != previous[name]

_POST_CYCLE_CHECKS = {
    BreakpointConditionType.MEMORY_READ: _touches(BusAccessType.READ),
    BreakpointConditionType.MEMORY_WRITE: _touches(BusAccessType.WRITE),
    BreakpointConditionType.REGISTER_VALUE: _register_equals,
    BreakpointConditionType.REGISTER_CHANGE: _register_changed,
}

class Debugger:
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running = False
        self._history: List[Snapshot] = []
        self._registers_before: Dict[str, int] = cpu.get_register_map()
        # 履歴を全て巻き戻した時の復帰先
        self._initial_state: CpuState = copy.deepcopy(cpu.get_state())

    # --- breakpoints ---
    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            self._breakpoints[self._breakpoints.index(old_condition)] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def _active(self) -> List[BreakpointCondition]:
        return [bp for bp in self._breakpoints if bp.enabled]

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        return any(bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc for bp in self._active())

    def _check_other_breakpoints(self, snapshot: Snapshot, registers: Dict[str, int]) -> bool:
        for bp in self._active():
            check = _POST_CYCLE_CHECKS.get(bp.condition_type)
            if check is not None and check(bp, snapshot, registers, self._registers_before):
                return True
        return False

    # --- history ---
    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._history[-1] if self._history else None

    def is_running(self) -> bool:
        return self._running

    def step_instruction(self, buttons: int = 0) -> Snapshot:
        self._registers_before = self._cpu.get_register_map()
        snapshot = self._cpu.step(buttons)
        self._history.append(snapshot)
        return snapshot

    # @intent:responsibility 最新サイクルの書き込みを逆順に取り消し、1つ前のSnapshotの状態に戻します。
    # @intent:post-condition 履歴が尽きた場合は初期状態に戻り、Noneを返します。
    def step_back(self) -> Optional[Snapshot]:
        if not self._history:
            return None

        undone = self._history.pop()
        bus = self._cpu.get_bus()
        for access in reversed(undone.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        previous = self.get_last_snapshot()
        self._cpu.restore_state(previous.state if previous is not None else self._initial_state)
        return previous

    # --- continuous execution ---
    def _stop_reason(self, snapshot: Snapshot) -> Optional[str]:
        if snapshot.is_fault:
            return f"Stopped on fault: {snapshot.fault}"
        if snapshot.is_awaiting_input:
            return f"Waiting for key input at PC: {snapshot.state.pc:#06x}"
        if self._check_other_breakpoints(snapshot, self._cpu.get_register_map()):
            return f"Breakpoint hit at PC: {snapshot.state.pc:#06x}"
        return None

    def run(self, buttons: int = 0, max_steps: Optional[int] = None) -> Optional[Snapshot]:
        """
        停止条件が成立するまでサイクルを実行し、最後のSnapshotを返します。

        停止条件はブレークポイント、フォールト、キー入力待ち、stop()、max_stepsの到達です。
        PC_MATCHは命令の実行前に判定するため、停止時のPCはブレークポイントのアドレスになります。
        開始時のPCにあるブレークポイントは判定しません。
        """
        self._running = True
        steps = 0
        skip_pc_check = True

        while self._running and (max_steps is None or steps < max_steps):
            pc = self._cpu.get_state().pc
            if not skip_pc_check and self._pc_breakpoint_hit(pc):
                lg.info(f"Breakpoint hit at PC: {pc:#06x}")
                break
            skip_pc_check = False

            snapshot = self.step_instruction(buttons)
            steps += 1
            reason = self._stop_reason(snapshot)
            if reason is not None:
                lg.info(reason)
                break

        self._running = False
        return self.get_last_snapshot()

    def run_back(self) -> None:
        """PC_MATCHブレークポイントか履歴の先頭に達するまで巻き戻します。"""
        self._running = True
        while self._running:
            snapshot = self.step_back()
            if snapshot is None:
                lg.info("Reached start of history.")
                break
            if self._pc_breakpoint_hit(snapshot.state.pc):
                lg.info(f"Reverse breakpoint hit at PC: {snapshot.state.pc:#06x}")
                break
        self._running = False

    def stop(self) -> None:
        self._running = False
