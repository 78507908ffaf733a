# src/chip8_core_tracer/cli.py
"""
コマンドラインツール。

ヘッドレスでプログラムを実行し、1サイクルごとのトレースを出力する `chip8-trace` と、
静的な逆アセンブルを行う `chip8-disasm` を提供します。
"""
from pathlib import Path
from typing import Optional
import logging as lg
import sys

import click

from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.instructions.display import render_text
from chip8_core_tracer.arch.chip8.state import MEMORY_SIZE, PROGRAM_START
from chip8_core_tracer.config.builder import SystemBuilder
from chip8_core_tracer.config.loader import ConfigLoader
from chip8_core_tracer.config.models import SystemConfig
from chip8_core_tracer.core.faults import Chip8Fault
from chip8_core_tracer.loader.loader import BinaryImageLoader
from chip8_core_tracer.transport.bus import Bus


EXIT_OK = 0
EXIT_FAULT = 2
EXIT_KEYBOARD = 3
EXIT_LOAD_ERROR = 100

DUMP_BYTES_PER_LINE = 16


def parse_int(value: str) -> int:
    """10進数または0x付き16進数の文字列を整数に変換します。"""
    return int(value, 0)


# @intent:responsibility メモリ内容を1行16バイトのHEXダンプ文字列に変換します。
def format_memory_dump(bus: Bus, start: int = 0, length: int = MEMORY_SIZE) -> str:
    lines = []
    for base in range(start, start + length, DUMP_BYTES_PER_LINE):
        count = min(DUMP_BYTES_PER_LINE, start + length - base)
        row = " ".join(f"{bus.peek(base + k):02X}" for k in range(count))
        lines.append(f"{base:03X}: {row}")
    return "\n".join(lines)


# @intent:responsibility レジスタの値を1行の文字列に整形します。
def format_registers(cpu: Chip8Cpu) -> str:
    regs = cpu.get_register_map()
    general = " ".join(f"V{n:X}={regs[f'V{n:X}']:02X}" for n in range(16))
    return (f"{general} I={regs['I']:04X} SP={regs['SP']:X} "
            f"DT={regs['DT']:02X} ST={regs['ST']:02X}")


def _load_image(rom_filename: Path, config_file: Optional[Path]) -> SystemConfig:
    config = ConfigLoader().load_from_file(str(config_file)) if config_file else SystemConfig()
    config.program = str(rom_filename)
    return config


@click.command()
@click.argument('rom_filename', type=Path)
@click.option('--cycles', '-n', default=100, show_default=True, help='Number of cycles to execute.')
@click.option('--config', 'config_file', type=Path, default=None, help='YAML system config.')
@click.option('--buttons', default='0', help='Button bitmask held during the run (e.g. 0x0010).')
@click.option('--seed', type=int, default=None, help='Seed for the RND instruction.')
@click.option('--dump-memory', is_flag=True, help='Dump memory before the run.')
@click.option('--show-screen', is_flag=True, help='Print the framebuffer after the run.')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
def trace(rom_filename: Path, cycles: int, config_file: Optional[Path], buttons: str,
          seed: Optional[int], dump_memory: bool, show_screen: bool, verbose: bool):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)

    try:
        button_mask = parse_int(buttons) & 0xFFFF
        config = _load_image(rom_filename, config_file)
        if seed is not None:
            config.seed = seed
        program = BinaryImageLoader().load_binary(config.program)
        cpu, bus = SystemBuilder().build_system(config, program)
    except (OSError, ValueError, Chip8Fault) as e:
        lg.error(f'Failed to load {rom_filename}: {e}')
        sys.exit(EXIT_LOAD_ERROR)

    if dump_memory:
        click.echo(format_memory_dump(bus))

    exit_code = EXIT_OK
    try:
        for _ in range(cycles):
            pc = cpu.get_state().pc
            snapshot = cpu.step(button_mask)
            if snapshot.is_fault:
                click.echo(f"{pc:03X}  {snapshot.operation.opcode_hex}  FAULT: {snapshot.fault}")
                exit_code = EXIT_FAULT
                break
            wait = "  (waiting for key)" if snapshot.is_awaiting_input else ""
            click.echo(f"{pc:03X}  {snapshot.operation.opcode_hex}  {snapshot.metadata.symbol_info}{wait}")
            click.echo(f"     {format_registers(cpu)}")

    except KeyboardInterrupt:
        lg.info('Execution halted by the user')
        exit_code = EXIT_KEYBOARD

    if show_screen:
        click.echo(render_text(cpu.get_framebuffer()))

    lg.info(f'Executed {cpu.get_cycle_count()} cycles')
    sys.exit(exit_code)


@click.command()
@click.argument('rom_filename', type=Path)
@click.option('--start', default=hex(PROGRAM_START), show_default=True, help='Start address.')
@click.option('--length', default=None, help='Number of bytes (defaults to the image size).')
def disasm(rom_filename: Path, start: str, length: Optional[str]):
    lg.basicConfig(level=lg.INFO)

    try:
        program = BinaryImageLoader().load_binary(rom_filename)
        cpu, _ = SystemBuilder().build_system(SystemConfig(), program)
        start_addr = parse_int(start)
        count = parse_int(length) if length is not None else len(program)
    except (OSError, ValueError, Chip8Fault) as e:
        lg.error(f'Failed to load {rom_filename}: {e}')
        sys.exit(EXIT_LOAD_ERROR)

    for addr, hex_bytes, text in cpu.disassemble(start_addr, count):
        click.echo(f"{addr:03X}  {hex_bytes}  {text}")
    sys.exit(EXIT_OK)


if __name__ == '__main__':
    trace()
