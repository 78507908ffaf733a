# src/chip8_core_tracer/ui/fonts.py
"""
UIフォント管理モジュール。

レジスタ表示や逆アセンブル表示で桁が揃うよう、システムで利用可能な等幅フォントを選択します。
"""
from functools import lru_cache
from typing import Tuple

from PySide6.QtGui import QFont, QFontDatabase

PREFERRED_FAMILIES: Tuple[str, ...] = ("Consolas", "Menlo", "DejaVu Sans Mono", "Courier New")

# @intent:responsibility 利用可能な最適な等幅フォントファミリー名を返します。結果はプロセス内でキャッシュします。
@lru_cache(maxsize=1)
def get_monospace_font_family() -> str:
    available = set(QFontDatabase.families())
    for family in PREFERRED_FAMILIES:
        if family in available:
            return family
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10, bold: bool = False) -> QFont:
    font = QFont(get_monospace_font_family(), size)
    font.setStyleHint(QFont.Monospace)
    font.setBold(bold)
    return font
