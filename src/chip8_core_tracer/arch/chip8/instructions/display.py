# src/chip8_core_tracer/arch/chip8/instructions/display.py
"""
表示命令（画面消去、スプライト描画）の実装と、フレームバッファ合成アルゴリズム。
"""
from typing import Iterator, Tuple

from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import (
    Chip8CpuState, SCREEN_WIDTH, SCREEN_HEIGHT, FRAMEBUFFER_SIZE,
)
from .base import Chip8Operation, ExecutionContext, ensure_memory_range

BYTES_PER_ROW = SCREEN_WIDTH // 8

# @intent:responsibility 8ピクセル幅・N行のスプライトをXORでフレームバッファに合成します。
# @intent:post-condition いずれかのピクセルが点灯から消灯へ遷移した場合にTrue（衝突）を返します。
# @intent:rationale 座標は画面サイズで折り返します。算出したバイト位置は必ず範囲チェックし、
#                  フレームバッファ外のメモリを決して書き換えません。
def draw_sprite(framebuffer: bytearray, x: int, y: int, sprite: bytes) -> bool:
    """
    スプライトを (x, y) に描画し、衝突の有無を返します。

    スプライトの1のビットは対応するピクセルを反転し、0のビットは何も変更しません。
    衝突判定は、各ピクセルの描画前と描画後の値を比較して行います。
    """
    collision = False
    origin_x = x % SCREEN_WIDTH
    origin_y = y % SCREEN_HEIGHT

    for row, bits in enumerate(sprite):
        py = (origin_y + row) % SCREEN_HEIGHT
        for col in range(8):
            if not (bits >> (7 - col)) & 0x1:
                continue
            px = (origin_x + col) % SCREEN_WIDTH
            index = py * BYTES_PER_ROW + px // 8
            if not 0 <= index < len(framebuffer):
                continue

            mask = 0x80 >> (px % 8)
            before = framebuffer[index]
            after = before ^ mask
            if (before & mask) and not (after & mask):
                collision = True
            framebuffer[index] = after

    return collision

# @intent:utility_function 点灯しているピクセルの座標 (x, y) を行優先で列挙します。
def iter_lit_pixels(framebuffer: bytes) -> Iterator[Tuple[int, int]]:
    for index, byte in enumerate(framebuffer[:FRAMEBUFFER_SIZE]):
        if not byte:
            continue
        row, column_byte = divmod(index, BYTES_PER_ROW)
        for bit in range(8):
            if (byte >> (7 - bit)) & 0x1:
                yield column_byte * 8 + bit, row

# @intent:utility_function フレームバッファをテキスト（点灯='#', 消灯='.'）に変換します。
def render_text(framebuffer: bytes, on: str = "#", off: str = ".") -> str:
    lit = set(iter_lit_pixels(framebuffer))
    lines = []
    for py in range(SCREEN_HEIGHT):
        lines.append("".join(on if (px, py) in lit else off for px in range(SCREEN_WIDTH)))
    return "\n".join(lines)

# --- CLS ---
# @intent:responsibility CLS命令を実行し、フレームバッファを全て消去します。
def execute_cls(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    state.framebuffer[:] = bytes(FRAMEBUFFER_SIZE)

# --- DRW ---
# @intent:responsibility DRW Vx, Vy, n 命令を実行し、I が指すnバイトのスプライトを描画して衝突をVFに設定します。
def execute_drw(state: Chip8CpuState, bus: Bus, op: Chip8Operation, ctx: ExecutionContext) -> None:
    ensure_memory_range(bus, state.i, op.n, op, ctx)
    sprite = bytes(bus.read(state.i + k) for k in range(op.n))
    collision = draw_sprite(state.framebuffer, state.v[op.x], state.v[op.y], sprite)
    state.vf = 1 if collision else 0
