# src/chip8_core_tracer/arch/chip8/instructions/control.py
"""
制御命令（ジャンプ、サブルーチン、条件スキップ、キー判定）の実装。

実行時点でPCは既に次の命令（命令アドレス + 2）を指しています。
ジャンプ系はPCに目的アドレスを直接設定し、スキップ系はさらに2を加算します。
"""
from chip8_core_tracer.core.faults import (
    StackOverflowFault, StackUnderflowFault, InvalidButtonIndexFault,
)
from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import Chip8CpuState, BUTTON_COUNT
from .base import Chip8Operation, ExecutionContext

# @intent:utility_function 次の命令をスキップします。
def skip_next(state: Chip8CpuState) -> None:
    state.pc = (state.pc + 2) & 0xFFFF

# --- RET ---
# @intent:responsibility スタックから戻りアドレスをポップしてPCに設定します。
# @intent:pre-condition スタックが空の場合は状態を変更せずにStackUnderflowFaultを送出します。
def execute_ret(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.stack_empty:
        raise StackUnderflowFault("RET with empty stack", opcode=op.opcode, address=ctx.address)
    state.sp -= 1
    state.pc = state.stack[state.sp]

# --- JP addr ---
def execute_jp(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.pc = op.nnn

# --- CALL addr ---
# @intent:responsibility 次の命令のアドレスをプッシュしてからサブルーチンへジャンプします。
# @intent:pre-condition スタックが満杯の場合は状態を変更せずにStackOverflowFaultを送出します。
def execute_call(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.stack_full:
        raise StackOverflowFault(f"CALL ${op.nnn:03X} with full stack", opcode=op.opcode, address=ctx.address)
    state.stack[state.sp] = state.pc
    state.sp += 1
    state.pc = op.nnn

# --- SE / SNE ---
def execute_se_vx_byte(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.v[op.x] == op.kk:
        skip_next(state)

def execute_sne_vx_byte(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.v[op.x] != op.kk:
        skip_next(state)

def execute_se_vx_vy(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.v[op.x] == state.v[op.y]:
        skip_next(state)

def execute_sne_vx_vy(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    if state.v[op.x] != state.v[op.y]:
        skip_next(state)

# --- JP V0, addr ---
# @intent:responsibility V0 + nnn へジャンプします（16ビットで折り返し）。
def execute_jp_v0(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.pc = (state.v[0] + op.nnn) & 0xFFFF

# @intent:utility_function Vxからボタン番号を取り出し、範囲外ならInvalidButtonIndexFaultを送出します。
def button_index(state: Chip8CpuState, op: Chip8Operation, ctx: ExecutionContext) -> int:
    button = state.v[op.x]
    if not 0 <= button < BUTTON_COUNT:
        raise InvalidButtonIndexFault(f"{op.mnemonic} V{op.x:X} holds invalid button {button}",
                                      opcode=op.opcode, address=ctx.address)
    return button

# --- SKP Vx ---
def execute_skp(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    button = button_index(state, op, ctx)
    if (ctx.buttons >> button) & 0x1:
        skip_next(state)

# --- SKNP Vx ---
def execute_sknp(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    button = button_index(state, op, ctx)
    if not (ctx.buttons >> button) & 0x1:
        skip_next(state)
