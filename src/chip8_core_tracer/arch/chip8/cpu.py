# src/chip8_core_tracer/arch/chip8/cpu.py
"""
CHIP-8 インタプリタの中心モジュール。

フェッチ、デコード、実行のサイクルと、60Hzのタイマー減算、プログラムイメージのロードを担当します。
"""
from typing import Callable, Dict, List, Optional, Tuple
import logging as lg
import random
import time

from chip8_core_tracer.common.types import RegisterLayoutInfo, RegisterInfo
from chip8_core_tracer.core.cpu import AbstractCpu
from chip8_core_tracer.core.faults import CapacityFault
from chip8_core_tracer.core.snapshot import CycleStatus, Operation
from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.state import (
    Chip8CpuState, FONT_ADDRESS, FONT_SET, MAX_PROGRAM_SIZE, PROGRAM_START, REGISTER_COUNT, TIMER_HZ,
)
from chip8_core_tracer.arch.chip8.instructions import decode_opcode, execute_instruction, ExecutionContext
from chip8_core_tracer.arch.chip8.instructions.base import read_word
from chip8_core_tracer.arch.chip8 import disassembler

TIMER_PERIOD = 1.0 / TIMER_HZ

# @intent:responsibility CHIP-8の具体的なエミュレーションロジック（フェッチ、デコード、実行、タイマー）を提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8 インタプリタを実行するクラス。

    Args:
        bus: 0x000-0xFFF に4096バイトのRAMがマップされたバス。
        clock: 秒単位の単調増加時刻を返す関数。タイマー減算の基準となります。
        rng: RND命令が使用する乱数生成器。
    """
    def __init__(self, bus: Bus, clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None):
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        super().__init__(bus)
        self._timer_deadline = self._clock()

    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    # @intent:responsibility フォントとプログラムイメージをメモリにロードします。
    # @intent:pre-condition programは最大3584バイト。超過した場合はメモリを変更せずにCapacityFaultを送出します。
    def load_program(self, program: bytes) -> None:
        """
        組み込みフォントを0x000から、プログラムイメージを0x200から書き込みます。
        イメージはヘッダを持たない生のバイト列です。
        """
        program = bytes(program)
        if len(program) > MAX_PROGRAM_SIZE:
            raise CapacityFault(
                f"Program image of {len(program)} bytes exceeds the {MAX_PROGRAM_SIZE}-byte program area",
                address=PROGRAM_START,
            )
        if not self._bus.is_mapped(PROGRAM_START, len(program)):
            raise CapacityFault("Program area is not fully mapped", address=PROGRAM_START)

        self._bus.load_block(FONT_ADDRESS, FONT_SET)
        self._bus.load_block(PROGRAM_START, program)
        lg.info(f"Loaded {len(program)} bytes at ${PROGRAM_START:03X}")

    # @intent:responsibility 状態をリセットし、タイマー減算の基準時刻を再設定します。
    def reset(self) -> None:
        super().reset()
        self._timer_deadline = self._clock()

    # @intent:responsibility 1/60秒の境界を過ぎていれば両タイマーを減算し、次の期限を再計算します。
    # @intent:rationale 実時間に基づくため、命令の実行速度に関係なくタイマーは60Hzで減算されます。
    def _begin_cycle(self) -> None:
        now = self._clock()
        if now > self._timer_deadline:
            self._timer_deadline = now + TIMER_PERIOD
            s = self._state
            if s.delay_timer > 0:
                s.delay_timer -= 1
            if s.sound_timer > 0:
                s.sound_timer -= 1

    # @intent:responsibility PCが指すアドレスからビッグエンディアンの命令語をフェッチします。
    def _fetch(self) -> int:
        pc = self._state.pc
        if not self._bus.is_mapped(pc, 2):
            raise CapacityFault("Instruction fetch beyond memory", address=pc)
        return read_word(self._bus, pc)

    def _decode(self, opcode: int) -> Operation:
        return decode_opcode(opcode, self._state.pc)

    def _execute(self, operation: Operation, buttons: int) -> CycleStatus:
        ctx = ExecutionContext(
            buttons=buttons & 0xFFFF,
            rng=self._rng,
            address=(self._state.pc - operation.length) & 0xFFFF,
        )
        return execute_instruction(operation, self._state, self._bus, ctx)

    # @intent:responsibility 今回の入力状態を、次サイクルのエッジ検出用に記録します。
    def _end_cycle(self, buttons: int) -> None:
        self._state.last_buttons = buttons & 0xFFFF

    # @intent:responsibility 表示用にフレームバッファの不変コピーを提供します。
    def get_framebuffer(self) -> bytes:
        return bytes(self._state.framebuffer)

    # @intent:responsibility UI表示用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        registers = {f"V{n:X}": s.v[n] for n in range(REGISTER_COUNT)}
        registers.update({
            "I": s.i, "PC": s.pc, "SP": s.sp, "DT": s.delay_timer, "ST": s.sound_timer,
        })
        return registers

    # @intent:responsibility UIのレジスタ表示レイアウト（グループ化）を定義します。
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{n:X}", 8) for n in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("I", 16), RegisterInfo("PC", 16), RegisterInfo("SP", 8)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    # @intent:responsibility 使用中のスタックエントリ（底から順）を返します。
    def get_call_stack(self) -> List[int]:
        return list(self._state.stack[:self._state.sp])

    # @intent:responsibility 指定範囲のメモリを逆アセンブルします。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)
