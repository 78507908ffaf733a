# src/chip8_core_tracer/arch/chip8/instructions/base.py
"""
CHIP-8命令実装用の共通定義とユーティリティ。

命令語は最初に InstructionKind で識別されるタグ付きのOperationへデコードされ、
実行層はビット操作を行わずにデコード済みのフィールド(x, y, n, kk, nnn)だけを参照します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import random

from chip8_core_tracer.core.faults import CapacityFault
from chip8_core_tracer.core.snapshot import Operation
from chip8_core_tracer.transport.bus import Bus

# @intent:responsibility CHIP-8命令セットの全ての命令種別を列挙します。
class InstructionKind(Enum):
    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_VX_BYTE = "3xkk"
    SNE_VX_BYTE = "4xkk"
    SE_VX_VY = "5xy0"
    LD_VX_BYTE = "6xkk"
    ADD_VX_BYTE = "7xkk"
    LD_VX_VY = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_VX_VY = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_VX_VY = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I_VX = "Fx1E"
    LD_F_VX = "Fx29"
    LD_B_VX = "Fx33"
    LD_MEM_VX = "Fx55"
    LD_VX_MEM = "Fx65"

# @intent:responsibility デコード済みのCHIP-8命令を表します。
# @intent:rationale 命令種別(kind)とデコード済みフィールドを不変データとして保持し、
#                  ビット操作（デコード）と実行の意味論を分離します。
@dataclass(frozen=True)
class Chip8Operation(Operation):
    kind: Optional[InstructionKind] = None
    opcode: int = 0x0000
    x: int = 0
    y: int = 0
    n: int = 0
    kk: int = 0
    nnn: int = 0

# @intent:responsibility 命令実行時に必要な、CPU状態以外の入力を保持します。
@dataclass
class ExecutionContext:
    buttons: int = 0x0000
    rng: Optional[random.Random] = None
    address: int = 0x0000  # 実行中の命令のアドレス（フォールト報告用）

# @intent:utility_function 命令語を各フィールドに分解します。
def split_fields(opcode: int) -> dict:
    return {
        "x": (opcode >> 8) & 0xF,
        "y": (opcode >> 4) & 0xF,
        "n": opcode & 0xF,
        "kk": opcode & 0xFF,
        "nnn": opcode & 0xFFF,
    }

# @intent:utility_function バスから16ビットワードをビッグエンディアン形式で読み込みます。
def read_word(bus: Bus, addr: int) -> int:
    """Big-endian 16-bit read."""
    return (bus.read(addr) << 8) | bus.read(addr + 1)

# @intent:utility_function メモリ範囲が全てマップ済みであることを検証します。範囲外ならCapacityFaultを送出します。
# @intent:pre-condition 状態を変更する前に呼び出す必要があります。
def ensure_memory_range(bus: Bus, start: int, length: int, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if not bus.is_mapped(start, length):
        raise CapacityFault(
            f"{op.mnemonic} would access ${start:04X}-${start + length - 1:04X} beyond memory",
            opcode=op.opcode, address=ctx.address,
        )
