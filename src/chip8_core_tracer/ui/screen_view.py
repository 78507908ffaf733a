# src/chip8_core_tracer/ui/screen_view.py
"""
64x32ピクセルの画面を描画するウィジェット。
"""
from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import QPainter, QColor, QPaintEvent
from PySide6.QtCore import Qt, QSize

from chip8_core_tracer.arch.chip8.state import SCREEN_WIDTH, SCREEN_HEIGHT, FRAMEBUFFER_SIZE
from chip8_core_tracer.arch.chip8.instructions.display import iter_lit_pixels

# @intent:responsibility フレームバッファの不変コピーを受け取り、点灯ピクセルを拡大した矩形として描画します。
class ScreenView(QWidget):
    """
    フレームバッファの内容を表示するウィジェット。
    """
    def __init__(self, magnification: int = 8, foreground: str = "#33FF66",
                 background: str = "#101010", parent=None):
        super().__init__(parent)
        self._magnification = magnification
        self._foreground = QColor(foreground)
        self._background = QColor(background)
        self._framebuffer = bytes(FRAMEBUFFER_SIZE)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        self.setFixedSize(self.sizeHint())
        self.setFocusPolicy(Qt.StrongFocus)

    def sizeHint(self) -> QSize:
        return QSize(SCREEN_WIDTH * self._magnification, SCREEN_HEIGHT * self._magnification)

    # @intent:responsibility 拡大率と配色を変更します。
    def set_display(self, magnification: int, foreground: str, background: str) -> None:
        self._magnification = magnification
        self._foreground = QColor(foreground)
        self._background = QColor(background)
        self.setFixedSize(self.sizeHint())
        self.update()

    def get_framebuffer(self) -> bytes:
        return self._framebuffer

    # @intent:responsibility 表示するフレームバッファを更新し、再描画を要求します。
    def update_screen(self, framebuffer: bytes) -> None:
        self._framebuffer = bytes(framebuffer)
        self.update()

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self._background)
        m = self._magnification
        for x, y in iter_lit_pixels(self._framebuffer):
            painter.fillRect(x * m, y * m, m, m, self._foreground)
        painter.end()
