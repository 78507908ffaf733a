# src/chip8_core_tracer/ui/code_view.py
"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import List, Tuple
from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor
from PySide6.QtCore import Qt

from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.state import PROGRAM_START, MEMORY_SIZE
from chip8_core_tracer.ui.fonts import get_monospace_font

HIGHLIGHT_COLOR = QColor("#404000")
NORMAL_COLOR = QColor("#101010")

# @intent:responsibility 逆アセンブル結果を表形式で表示し、現在のPCの行をハイライトします。
class CodeView(QWidget):
    """
    逆アセンブルコードを表示するウィジェット。
    プログラム領域を一度だけ逆アセンブルしてキャッシュし、PCの移動はハイライトの移動のみで反映します。
    命令語は2バイト境界に整列しているとは限らないため、キャッシュに無いPCに来た場合はそこから再逆アセンブルします。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        # キー入力は画面ビューが受け取る
        self.table.setFocusPolicy(Qt.NoFocus)
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["Address", "Bytes", "Mnemonic"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.table)

        self._rows: List[Tuple[int, str, str]] = []
        self._highlighted_row = -1

    def _fill(self, cpu: Chip8Cpu, start: int) -> None:
        start = min(start, MEMORY_SIZE - 2)
        self._rows = cpu.disassemble(start, MEMORY_SIZE - start)
        self.table.setRowCount(len(self._rows))
        for row, (addr, hex_bytes, text) in enumerate(self._rows):
            self.table.setItem(row, 0, QTableWidgetItem(f"{addr:03X}"))
            self.table.setItem(row, 1, QTableWidgetItem(hex_bytes))
            self.table.setItem(row, 2, QTableWidgetItem(text))
        self._highlighted_row = -1

    def _row_of(self, pc: int) -> int:
        for row, (addr, _, _) in enumerate(self._rows):
            if addr == pc:
                return row
        return -1

    def _set_row_color(self, row: int, color: QColor) -> None:
        for column in range(3):
            item = self.table.item(row, column)
            if item is not None:
                item.setBackground(color)

    # @intent:responsibility PCの位置をハイライトし、必要であれば逆アセンブルをやり直します。
    def update_code(self, cpu: Chip8Cpu, pc: int) -> None:
        row = self._row_of(pc)
        if row == -1:
            self._fill(cpu, PROGRAM_START if pc >= PROGRAM_START and pc % 2 == 0 else pc)
            row = self._row_of(pc)

        if self._highlighted_row != -1:
            self._set_row_color(self._highlighted_row, NORMAL_COLOR)
        if row != -1:
            self._set_row_color(row, HIGHLIGHT_COLOR)
            self.table.scrollToItem(self.table.item(row, 0), QTableWidget.PositionAtCenter)
        self._highlighted_row = row

    # @intent:responsibility メモリ内容が変わった際に、キャッシュを破棄します。
    def reset_cache(self) -> None:
        self._rows = []
        self._highlighted_row = -1
        self.table.setRowCount(0)

    def get_rows(self) -> List[Tuple[int, str, str]]:
        return list(self._rows)
