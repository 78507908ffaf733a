# chip8_core_tracer/core/snapshot.py
"""
サイクル結果の記録

1サイクルの実行結果（サイクル後の状態、実行した命令、バスアクセス、終了状態）を不変の値として表します。
トレース出力、UIの更新、デバッガの履歴はすべてこの値を介して情報を受け取ります。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from chip8_core_tracer.core.state import CpuState
from chip8_core_tracer.core.faults import Chip8Fault
from chip8_core_tracer.transport.bus import BusAccessType, BusAccess


# @intent:data_structure デコード済みの命令。operandsは逆アセンブル表記の各オペランド。
@dataclass(frozen=True)
class Operation:
    opcode_hex: str                                        # "6A07"
    mnemonic: str                                          # "LD"
    operands: List[str] = field(default_factory=list)      # ["VA", "#$07"]
    operand_bytes: List[int] = field(default_factory=list)
    cycle_count: int = 0
    length: int = 1

class CycleStatus(Enum):
    COMPLETED = "COMPLETED"
    AWAITING_INPUT = "AWAITING_INPUT"   # PCは同じ命令を指したまま
    FAULT = "FAULT"

@dataclass(frozen=True)
class Metadata:
    cycle_count: int
    symbol_info: Optional[str] = None  # "JP $200" またはフォールトの説明

# @intent:responsibility 1サイクル終了時点の観測結果。stateはコピーであり後続のサイクルで変化しません。
@dataclass(frozen=True)
class Snapshot:
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    status: CycleStatus = CycleStatus.COMPLETED
    fault: Optional[Chip8Fault] = None

    @property
    def is_fault(self) -> bool:
        return self.status is CycleStatus.FAULT

    @property
    def is_awaiting_input(self) -> bool:
        return self.status is CycleStatus.AWAITING_INPUT
