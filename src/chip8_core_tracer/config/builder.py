from typing import Optional, Tuple
import random

from chip8_core_tracer.transport.bus import Bus, RAM
from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.state import MEMORY_SIZE
from chip8_core_tracer.loader.loader import BinaryImageLoader
from .models import SystemConfig

# @intent:responsibility システム構成（Config）に基づいて、Bus、RAM、CPUを生成・接続し、プログラムをロードします。
class SystemBuilder:
    def build_system(self, config: SystemConfig, program: Optional[bytes] = None) -> Tuple[Chip8Cpu, Bus]:
        """
        programが指定された場合はそれを、そうでなければconfig.programのファイルをロードします。
        どちらも無い場合はフォントのみがロードされます。
        """
        bus = Bus()
        bus.register_device(0x000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))

        rng = random.Random(config.seed) if config.seed is not None else random.Random()
        cpu = Chip8Cpu(bus, rng=rng)

        if program is None and config.program:
            program = BinaryImageLoader().load_binary(config.program)
        cpu.load_program(program or b"")

        return cpu, bus
