# src/chip8_core_tracer/ui/register_view.py
"""
CPUのレジスタとコールスタックを表示するウィジェット。
get_register_layout() のメタデータを利用して動的にUIを構築します。
"""
from typing import Dict, List, Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QFormLayout, QLabel, QGroupBox, QListWidget
from PySide6.QtCore import Qt

from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.ui.fonts import get_monospace_font, get_monospace_font_family

GROUP_STYLE = """
    QGroupBox {
        font-weight: bold;
        border: 1px solid #222;
        border-radius: 4px;
        margin-top: 20px;
        color: #EEE;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        subcontrol-position: top left;
        padding: 0 5px;
        left: 10px;
        color: #00AAAA;
    }
"""
VALUE_COLOR = "#FFD700"
CHANGED_COLOR = "#FF5555"

# @intent:responsibility レジスタ値とコールスタックを表示し、直前の更新から変化した値を強調します。
class RegisterView(QWidget):
    """
    CPUのレジスタ状態を表示するウィジェット。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._previous_values: Dict[str, int] = {}
        self._stack_list: Optional[QListWidget] = None
        self._cpu: Optional[Chip8Cpu] = None

    # @intent:responsibility 表示対象のCPUを設定し、UIレイアウトを構築します。
    def set_cpu(self, cpu: Chip8Cpu) -> None:
        self._cpu = cpu
        self._setup_ui()
        self.update_registers()

    def _setup_ui(self):
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()
        self._previous_values.clear()

        for group in self._cpu.get_register_layout():
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet(GROUP_STYLE)
            form = QFormLayout(group_box)
            form.setLabelAlignment(Qt.AlignLeft)
            form.setContentsMargins(10, 15, 10, 10)
            form.setSpacing(3)

            for reg in group.registers:
                width = (reg.width + 3) // 4
                value_label = QLabel("0" * width)
                value_label.setAlignment(Qt.AlignRight)
                form.addRow(QLabel(f"{reg.name}:"), value_label)
                self._register_labels[reg.name] = value_label
                self._register_widths[reg.name] = width

            self.layout.addWidget(group_box)

        stack_box = QGroupBox("Call Stack")
        stack_box.setStyleSheet(GROUP_STYLE)
        stack_layout = QVBoxLayout(stack_box)
        self._stack_list = QListWidget()
        self._stack_list.setFocusPolicy(Qt.NoFocus)
        self._stack_list.setFont(get_monospace_font(10))
        stack_layout.addWidget(self._stack_list)
        self.layout.addWidget(stack_box)

    def _render_value(self, name: str, value: int, changed: bool) -> None:
        label = self._register_labels[name]
        color = CHANGED_COLOR if changed else VALUE_COLOR
        label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {color};")
        label.setText(f"{value:0{self._register_widths[name]}X}")

    # @intent:responsibility 現在のCPU状態を取得し、レジスタとコールスタックの表示を更新します。
    def update_registers(self) -> None:
        if not self._cpu:
            return

        reg_map = self._cpu.get_register_map()
        for name, value in reg_map.items():
            if name in self._register_labels:
                previous = self._previous_values.get(name)
                self._render_value(name, value, previous is not None and previous != value)
        self._previous_values = dict(reg_map)

        self._stack_list.clear()
        for depth, address in enumerate(reversed(self._cpu.get_call_stack())):
            self._stack_list.addItem(f"{depth:2d}: ${address:03X}")

    def get_displayed_value(self, name: str) -> str:
        return self._register_labels[name].text()

    def get_call_stack_entries(self) -> List[str]:
        return [self._stack_list.item(i).text() for i in range(self._stack_list.count())]
