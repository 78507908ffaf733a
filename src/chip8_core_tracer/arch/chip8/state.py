# src/chip8_core_tracer/arch/chip8/state.py
"""
CHIP-8 インタプリタ固有の状態定義。

レジスタファイル、インデックスレジスタ、スタック、タイマー、フレームバッファ、
および前サイクルの入力状態を保持します。メモリ本体はBus上のRAMが保持します。
"""
from dataclasses import dataclass, field
from typing import List

from chip8_core_tracer.core.state import CpuState

# @intent:constant メモリマップとハードウェア構成。
MEMORY_SIZE = 4096
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START  # 3584 bytes

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_SIZE = 16
BUTTON_COUNT = 16

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
FRAMEBUFFER_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT // 8  # 256 bytes, MSB = 左端のピクセル

TIMER_HZ = 60

# @intent:constant 0x000から配置される組み込みフォント（0-9, A-F の16グリフ、各5バイト）。
FONT_ADDRESS = 0x000
FONT_GLYPH_SIZE = 5
FONT_SET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# @intent:responsibility CHIP-8の全てのレジスタ（V0-VF, I, PC, SP）、スタック、タイマー、フレームバッファを保持します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8 インタプリタのレジスタ状態を保持するデータクラス。
    spはスタックの使用中エントリ数（0..STACK_SIZE）を表します。
    """
    pc: int = PROGRAM_START
    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    i: int = 0x000
    stack: List[int] = field(default_factory=lambda: [0] * STACK_SIZE)
    delay_timer: int = 0
    sound_timer: int = 0
    framebuffer: bytearray = field(default_factory=lambda: bytearray(FRAMEBUFFER_SIZE))
    last_buttons: int = 0x0000

    # @intent:accessor フラグレジスタ(VF)へのアクセスを提供します。
    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    @property
    def stack_full(self) -> bool:
        return self.sp >= STACK_SIZE

    @property
    def stack_empty(self) -> bool:
        return self.sp <= 0

    # @intent:responsibility 指定座標のピクセルが点灯しているかを返します。
    def pixel(self, x: int, y: int) -> bool:
        index = y * (SCREEN_WIDTH // 8) + x // 8
        return bool((self.framebuffer[index] >> (7 - x % 8)) & 0x1)
