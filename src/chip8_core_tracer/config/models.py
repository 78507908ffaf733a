from dataclasses import dataclass, field
from typing import Dict, Optional

from chip8_core_tracer.arch.chip8.keypad import DEFAULT_KEY_MAP

@dataclass
class DisplayConfig:
    magnification: int = 8
    foreground: str = "#33FF66"
    background: str = "#101010"

@dataclass
class TimingConfig:
    cycles_per_frame: int = 10   # 1フレームで実行する命令数
    frame_interval_ms: int = 16  # フレームの間隔

@dataclass
class SystemConfig:
    program: Optional[str] = None  # プログラムイメージのパス
    seed: Optional[int] = None     # RND命令用の乱数シード
    trace: bool = False
    display: DisplayConfig = field(default_factory=DisplayConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    keypad: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_MAP))
