# chip8_core_tracer/core/cpu.py
"""
Core Layer (サイクルエンジン)

1サイクル = タイマー更新 → 2バイト命令のフェッチ → デコード → PC前進 → 実行、という流れを
テンプレートメソッドとして固定し、命令セット固有の処理をサブクラスに委ねます。
サイクルの結果は常にSnapshotとして返され、フォールトも例外ではなく FAULT のSnapshotで報告されます。
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple
import copy
import logging as lg

from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.core.faults import Chip8Fault
from chip8_core_tracer.core.snapshot import Snapshot, Operation, Metadata, CycleStatus
from chip8_core_tracer.core.state import CpuState
from chip8_core_tracer.common.types import RegisterLayoutInfo

class AbstractCpu(ABC):
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        ...

    # @intent:responsibility レジスタ類とサイクル数を初期化します。メモリ内容は保持されます。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility デバッガの巻き戻し用。渡された状態はコピーして保持します。
    def restore_state(self, state: CpuState) -> None:
        self._state = copy.deepcopy(state)

    def get_bus(self) -> Bus:
        return self._bus

    def get_cycle_count(self) -> int:
        return self._cycle_count

    # @intent:post-condition PCは変更しません。
    @abstractmethod
    def _fetch(self) -> int:
        ...

    # @intent:post-condition 未定義の命令語ではDecodeFaultを送出します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        ...

    # @intent:pre-condition PCは既に次の命令を指しています。
    # @intent:post-condition フォールトは状態を変更する前に送出しなければなりません。
    @abstractmethod
    def _execute(self, operation: Operation, buttons: int) -> CycleStatus:
        ...

    def step(self, buttons: int = 0) -> Snapshot:
        """
        1サイクルを実行し、サイクル後の状態とバスアクセスを含むSnapshotを返します。

        Args:
            buttons: 論理ボタンの押下状態（bit N = ボタンN）。

        フォールト時はPCをその命令のアドレスに戻し、status=FAULTのSnapshotを返します。
        """
        self._bus.get_and_clear_activity_log()
        instruction_address = self._state.pc

        self._begin_cycle()
        try:
            opcode = self._fetch()
            operation = self._decode(opcode)
            self._update_pc(operation)
            status = self._execute(operation, buttons)
        except Chip8Fault as fault:
            self._state.pc = instruction_address
            lg.warning(f"Fault: {fault}")
            return self._fault_snapshot(fault)

        self._end_cycle(buttons)
        return self._cycle_snapshot(instruction_address, operation, status)

    # タイマー更新用
    def _begin_cycle(self) -> None:
        pass

    # フォールトしなかったサイクルの後処理
    def _end_cycle(self, buttons: int) -> None:
        pass

    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    def _cycle_snapshot(self, instruction_address: int, operation: Operation, status: CycleStatus) -> Snapshot:
        self._cycle_count += operation.cycle_count
        text = " ".join(filter(None, [operation.mnemonic, ", ".join(operation.operands)]))
        lg.debug(f"${instruction_address:03X}: {operation.opcode_hex}  {text}")
        return Snapshot(
            state=copy.deepcopy(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=text),
            bus_activity=self._bus.get_and_clear_activity_log(),
            status=status,
        )

    def _fault_snapshot(self, fault: Chip8Fault) -> Snapshot:
        opcode_hex = "????" if fault.opcode is None else f"{fault.opcode:04X}"
        return Snapshot(
            state=copy.deepcopy(self._state),
            operation=Operation(opcode_hex=opcode_hex, mnemonic="???", operands=[], length=0),
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=str(fault)),
            bus_activity=self._bus.get_and_clear_activity_log(),
            status=CycleStatus.FAULT,
            fault=fault,
        )

    # --- UI / トレース出力向けの問い合わせ ---
    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """レジスタ名から現在値への辞書。"""

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """レジスタ表示のグループ構成。"""

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """(address, hex_bytes, text) のリスト。"""
