# src/chip8_core_tracer/arch/chip8/instructions/load.py
"""
ロード／ストア命令（インデックスレジスタ、タイマー、キー入力待ち、BCD、ブロック転送）の実装。
"""
from typing import Optional

from chip8_core_tracer.core.snapshot import CycleStatus
from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import Chip8CpuState, FONT_ADDRESS, FONT_GLYPH_SIZE
from .base import Chip8Operation, ExecutionContext, ensure_memory_range

# --- LD I, addr ---
def execute_ld_i(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.i = op.nnn

# --- LD Vx, DT ---
def execute_ld_vx_dt(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.v[op.x] = state.delay_timer

# --- LD Vx, K ---
# @intent:responsibility 前サイクルから新たに押されたボタンを待ち、最も番号の小さいボタンをVxに格納します。
# @intent:rationale スレッドをブロックせず、PCを命令の先頭に戻して次サイクルで同じ命令を再実行します。
#                  これにより呼び出し側のループ（タイマー、描画）は通常どおり進行します。
def execute_ld_vx_k(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> Optional[CycleStatus]:
    pressed = (state.last_buttons ^ ctx.buttons) & ctx.buttons & 0xFFFF
    if not pressed:
        state.pc = (state.pc - 2) & 0xFFFF
        return CycleStatus.AWAITING_INPUT
    state.v[op.x] = (pressed & -pressed).bit_length() - 1
    return None

# --- LD DT, Vx / LD ST, Vx ---
def execute_ld_dt_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.delay_timer = state.v[op.x]

def execute_ld_st_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.sound_timer = state.v[op.x]

# --- ADD I, Vx ---
def execute_add_i_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.i = (state.i + state.v[op.x]) & 0xFFFF

# --- LD F, Vx ---
# @intent:responsibility Vxの下位4ビットが示す組み込みフォントグリフのアドレスをIに設定します。
def execute_ld_f_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.i = FONT_ADDRESS + (state.v[op.x] & 0x0F) * FONT_GLYPH_SIZE

# --- LD B, Vx ---
# @intent:responsibility Vxの10進表現（百の位、十の位、一の位）を I, I+1, I+2 に格納します。
def execute_ld_b_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    ensure_memory_range(bus, state.i, 3, op, ctx)
    value = state.v[op.x]
    bus.write(state.i, value // 100)
    bus.write(state.i + 1, value // 10 % 10)
    bus.write(state.i + 2, value % 10)

# --- LD [I], Vx ---
# @intent:responsibility V0..Vx を I から始まるメモリに格納します。Iは変更しません。
def execute_ld_mem_vx(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    ensure_memory_range(bus, state.i, op.x + 1, op, ctx)
    for offset in range(op.x + 1):
        bus.write(state.i + offset, state.v[offset])

# --- LD Vx, [I] ---
# @intent:responsibility I から始まるメモリを V0..Vx に読み込みます。Iは変更しません。
def execute_ld_vx_mem(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    ensure_memory_range(bus, state.i, op.x + 1, op, ctx)
    for offset in range(op.x + 1):
        state.v[offset] = bus.read(state.i + offset)
