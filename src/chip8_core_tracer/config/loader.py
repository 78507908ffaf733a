import yaml
from pathlib import Path
from typing import Dict, Any

from chip8_core_tracer.arch.chip8.state import BUTTON_COUNT
from .models import SystemConfig, DisplayConfig, TimingConfig

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = self._parse_config(data)
        # 相対パスは設定ファイルの位置を基準に解決する
        if config.program and not Path(config.program).is_absolute():
            config.program = str(Path(path).parent / config.program)
        return config

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError("Config root must be a mapping.")

        display_data = data.get("display", {}) or {}
        display = DisplayConfig(
            magnification=self._parse_int(display_data.get("magnification", 8)),
            foreground=str(display_data.get("foreground", "#33FF66")),
            background=str(display_data.get("background", "#101010")),
        )
        if display.magnification < 1:
            raise ValueError(f"Invalid magnification: {display.magnification}")

        timing_data = data.get("timing", {}) or {}
        timing = TimingConfig(
            cycles_per_frame=self._parse_int(timing_data.get("cycles_per_frame", 10)),
            frame_interval_ms=self._parse_int(timing_data.get("frame_interval_ms", 16)),
        )
        if timing.cycles_per_frame < 1 or timing.frame_interval_ms < 1:
            raise ValueError("Timing values must be positive.")

        config = SystemConfig(
            program=data.get("program"),
            seed=self._parse_int(data["seed"]) if data.get("seed") is not None else None,
            trace=bool(data.get("trace", False)),
            display=display,
            timing=timing,
        )

        if "keypad" in data:
            config.keypad = self._parse_keypad(data["keypad"])

        return config

    def _parse_keypad(self, keypad_data: Any) -> Dict[str, int]:
        if not isinstance(keypad_data, dict):
            raise ValueError("keypad must be a mapping of key name to button index.")
        keypad = {}
        for key, button in keypad_data.items():
            index = self._parse_int(button)
            if not 0 <= index < BUTTON_COUNT:
                raise ValueError(f"Button index {index} for key '{key}' is out of range.")
            keypad[str(key).upper()] = index
        return keypad

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
