# src/chip8_core_tracer/arch/chip8/instructions/alu.py
"""
算術論理演算命令の実装。

フラグ(VF)を更新する命令では、オペランドを先に取り出して結果を計算し、
結果をVxへ格納した後にVFへフラグ値を書き込みます。したがって x = F の場合、
VFにはフラグ値が残ります。
"""
import random

from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import Chip8CpuState
from .base import Chip8Operation, ExecutionContext

# @intent:utility_function 演算結果をVxに格納した後、フラグをVFに書き込みます。
def store_with_flag(state: Chip8CpuState, x: int, result: int, flag: int) -> None:
    state.v[x] = result & 0xFF
    state.vf = flag

# --- LD Vx, byte ---
def execute_ld_vx_byte(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = op.kk

# --- ADD Vx, byte ---
# @intent:responsibility 即値を加算します（mod 256）。VFは変更しません。
def execute_add_vx_byte(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = (state.v[op.x] + op.kk) & 0xFF

# --- LD Vx, Vy ---
def execute_ld_vx_vy(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.y]

# --- OR / AND / XOR ---
def execute_or(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] | state.v[op.y]

def execute_and(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] & state.v[op.y]

def execute_xor(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.v[op.x] ^ state.v[op.y]

# --- ADD Vx, Vy ---
# @intent:responsibility Vx = Vx + Vy (mod 256)。和が255を超えた場合 VF = 1。
def execute_add_vx_vy(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    v1, v2 = state.v[op.x], state.v[op.y]
    res = v1 + v2
    store_with_flag(state, op.x, res, 1 if res > 0xFF else 0)

# --- SUB Vx, Vy ---
# @intent:responsibility Vx = Vx - Vy (mod 256)。VF = 1 は「借りなし」(Vx >= Vy) を意味します。
def execute_sub(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    v1, v2 = state.v[op.x], state.v[op.y]
    store_with_flag(state, op.x, v1 - v2, 1 if v1 >= v2 else 0)

# --- SUBN Vx, Vy ---
# @intent:responsibility Vx = Vy - Vx (mod 256)。VF = 1 は Vy >= Vx。
def execute_subn(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    v1, v2 = state.v[op.x], state.v[op.y]
    store_with_flag(state, op.x, v2 - v1, 1 if v2 >= v1 else 0)

# --- SHR Vx ---
# @intent:responsibility Vxを1ビット右シフトし、押し出されたビットをVFに設定します。Vyは参照しません。
def execute_shr(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    v1 = state.v[op.x]
    store_with_flag(state, op.x, v1 >> 1, v1 & 0x01)

# --- SHL Vx ---
# @intent:responsibility Vxを1ビット左シフトし、押し出されたビットをVFに設定します。
def execute_shl(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    v1 = state.v[op.x]
    store_with_flag(state, op.x, v1 << 1, (v1 >> 7) & 0x01)

# --- RND Vx, byte ---
# @intent:responsibility 乱数バイトと即値のANDをVxに格納します。
def execute_rnd(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    rng = ctx.rng if ctx.rng is not None else random
    state.v[op.x] = rng.randrange(0x100) & op.kk
