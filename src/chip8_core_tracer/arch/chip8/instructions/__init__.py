# src/chip8_core_tracer/arch/chip8/instructions/__init__.py
"""
CHIP-8命令セット実装パッケージ。
"""
from typing import Optional

from chip8_core_tracer.core.faults import DecodeFault
from chip8_core_tracer.core.snapshot import CycleStatus
from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import Chip8CpuState
from .base import Chip8Operation, ExecutionContext, InstructionKind, split_fields
from .maps import DECODE_MAP, EXECUTE_MAP, SYNTAX_MAP

# @intent:responsibility CHIP-8の命令語をデコードし、タグ付きのChip8Operationを返します。
# @intent:post-condition どのパターンにも一致しない命令語はDecodeFaultを送出します。状態は一切変更しません。
def decode_opcode(opcode: int, pc: Optional[int] = None) -> Chip8Operation:
    """
    命令語の上位4ビットでカテゴリを選び、カテゴリ内のパターンと照合してデコードします。
    """
    opcode &= 0xFFFF
    for mask, pattern, kind in DECODE_MAP[opcode >> 12]:
        if opcode & mask == pattern:
            fields = split_fields(opcode)
            mnemonic, templates = SYNTAX_MAP[kind]
            return Chip8Operation(
                opcode_hex=f"{opcode:04X}",
                mnemonic=mnemonic,
                operands=[t.format(**fields) for t in templates],
                operand_bytes=[opcode >> 8, opcode & 0xFF],
                cycle_count=1,
                length=2,
                kind=kind,
                opcode=opcode,
                **fields,
            )
    raise DecodeFault("Undefined opcode", opcode=opcode, address=pc)

# @intent:responsibility デコードされたCHIP-8命令を実行し、サイクルの終了状態を返します。
def execute_instruction(operation: Chip8Operation, state: Chip8CpuState, bus: Bus,
                        ctx: ExecutionContext) -> CycleStatus:
    """
    命令種別に対応する実行関数へディスパッチします。
    """
    executor = EXECUTE_MAP.get(operation.kind)
    if executor is None:
        raise DecodeFault(f"No executor for {operation.kind}", opcode=operation.opcode, address=ctx.address)
    status = executor(state, bus, operation, ctx)
    return status or CycleStatus.COMPLETED
