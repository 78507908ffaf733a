# src/chip8_core_tracer/arch/chip8/disassembler.py
"""
CHIP-8 Disassembler

メモリ上のバイナリデータを解析し、CHIP-8のアセンブリ表記に変換します。
Instruction Layerのデコードロジックを再利用し、読み込みにはpeek（ログなし読み込み）を使用して
バスアクセスログを汚さないようにします。
"""
from typing import List, Tuple

from chip8_core_tracer.core.faults import DecodeFault
from chip8_core_tracer.transport.bus import Bus
from chip8_core_tracer.arch.chip8.instructions import decode_opcode

# @intent:responsibility 単一の命令語をアセンブリ表記の文字列に変換します。
def format_opcode(opcode: int) -> str:
    """
    定義されていない命令語はデータとして "DW $XXXX" の形式で表します。
    """
    try:
        operation = decode_opcode(opcode)
    except DecodeFault:
        return f"DW ${opcode:04X}"
    text = operation.mnemonic
    if operation.operands:
        text += " " + ", ".join(operation.operands)
    return text

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    指定された範囲のメモリを2バイト単位で逆アセンブルします。

    Returns:
        List of (address, hex_bytes, mnemonic) tuples.
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        # 命令語の2バイト目がマップ外なら終了
        if not bus.is_mapped(current_addr, 2):
            break

        high = bus.peek(current_addr)
        low = bus.peek(current_addr + 1)
        opcode = (high << 8) | low

        result.append((current_addr, f"{high:02X} {low:02X}", format_opcode(opcode)))
        current_addr += 2

    return result
