# src/chip8_core_tracer/arch/chip8/keypad.py
"""
入力ソース（キーパッド）。

物理キー名を論理ボタン番号（0-15）に対応付け、押下中のボタンを16ビットのビットマスクとして提供します。
CPUは入力状態を保持せず、各サイクルでこのビットマスクを受け取ります。
"""
from typing import Dict, Optional

from chip8_core_tracer.arch.chip8.state import BUTTON_COUNT

# @intent:constant 既定のキー配置（キー名 -> ボタン番号）。
DEFAULT_KEY_MAP: Dict[str, int] = {
    "X": 0x0, "1": 0x1, "2": 0x2, "3": 0x3,
    "Q": 0x4, "W": 0x5, "E": 0x6, "A": 0x7,
    "S": 0x8, "D": 0x9, "Z": 0xA, "C": 0xB,
    "4": 0xC, "R": 0xD, "F": 0xE, "V": 0xF,
}

# @intent:responsibility キー押下／解放イベントをボタンのビットマスクに変換します。
class Keypad:
    """
    キー名からボタン番号への対応表を持ち、現在押されているボタンのビットマスクを管理します。
    キー名は大文字小文字を区別しません。
    """
    def __init__(self, key_map: Optional[Dict[str, int]] = None):
        mapping = DEFAULT_KEY_MAP if key_map is None else key_map
        self._key_map: Dict[str, int] = {}
        for key, button in mapping.items():
            if not 0 <= button < BUTTON_COUNT:
                raise ValueError(f"Button index {button} for key '{key}' is out of range 0-{BUTTON_COUNT - 1}.")
            self._key_map[str(key).upper()] = button
        self._bitmask = 0x0000

    @property
    def bitmask(self) -> int:
        return self._bitmask

    def get_key_map(self) -> Dict[str, int]:
        return dict(self._key_map)

    def button_for(self, key: str) -> Optional[int]:
        return self._key_map.get(key.upper())

    # @intent:responsibility キー押下を記録します。対応するボタンがあればTrueを返します。
    def press(self, key: str) -> bool:
        button = self.button_for(key)
        if button is None:
            return False
        self._bitmask |= 1 << button
        return True

    # @intent:responsibility キー解放を記録します。対応するボタンがあればTrueを返します。
    def release(self, key: str) -> bool:
        button = self.button_for(key)
        if button is None:
            return False
        self._bitmask &= ~(1 << button) & 0xFFFF
        return True

    def release_all(self) -> None:
        self._bitmask = 0x0000
