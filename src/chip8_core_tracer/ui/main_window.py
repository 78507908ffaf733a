# src/chip8_core_tracer/ui/main_window.py
"""
メインウィンドウの実装。
画面、レジスタ、逆アセンブルの各ビューを保持し、フレームタイマーでCPUを駆動します。
"""
from typing import Dict, Optional
import logging as lg

from PySide6.QtWidgets import (
    QMainWindow, QApplication, QDockWidget, QToolBar, QLabel, QFileDialog, QMessageBox,
)
from PySide6.QtGui import QPalette, QColor, QAction, QKeyEvent, QKeySequence, QCloseEvent
from PySide6.QtCore import Qt, QEvent, QTimer, Slot

from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.keypad import Keypad
from chip8_core_tracer.config.builder import SystemBuilder
from chip8_core_tracer.config.loader import ConfigLoader
from chip8_core_tracer.config.models import SystemConfig
from chip8_core_tracer.core.faults import Chip8Fault
from chip8_core_tracer.core.snapshot import Snapshot
from chip8_core_tracer.loader.loader import BinaryImageLoader
from chip8_core_tracer.transport.bus import Bus
from .code_view import CodeView
from .register_view import RegisterView
from .screen_view import ScreenView
from .fonts import get_monospace_font_family

DARK_PALETTE = {
    QPalette.Window: "#181818",
    QPalette.WindowText: "#D0D0D0",
    QPalette.Base: "#101010",
    QPalette.Text: "#D0D0D0",
    QPalette.Button: "#303030",
    QPalette.ButtonText: "#D0D0D0",
    QPalette.Highlight: "#606000",
}

# @intent:responsibility Qtのキーコードをキーパッド設定のキー名（"W", "1", "Up"など）に変換します。
def key_name(key: int) -> str:
    return QKeySequence(key).toString()

# @intent:responsibility アプリケーションのメインウィンドウを定義し、実行制御とキー入力を仲介します。
class MainWindow(QMainWindow):
    """
    アプリケーションのメインウィンドウクラス。

    Runで開始するとframe_interval_msごとにcycles_per_frame命令を実行します。
    キー入力はKeypadでビットマスクに変換され、各サイクルでCPUに渡されます。
    """
    def __init__(self, config: Optional[SystemConfig] = None, program: Optional[bytes] = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("CHIP-8 Core Tracer")
        self._config = config if config is not None else SystemConfig()
        self._program = program
        self.cpu: Optional[Chip8Cpu] = None
        self.bus: Optional[Bus] = None
        self.last_snapshot: Optional[Snapshot] = None

        self._frame_timer = QTimer(self)
        self._frame_timer.timeout.connect(self._run_frame)

        self._set_dark_theme()
        self._create_views()
        self._create_toolbar()
        self._create_menus()
        self.status_label = QLabel("")
        self.statusBar().addWidget(self.status_label)

        self._held_keys: Dict[int, str] = {}
        self._setup_backend()
        self._update_ui_state(False)

        app = QApplication.instance()
        app.installEventFilter(self)
        app.focusChanged.connect(self._on_focus_changed)
        self._input_hooked = True
        self.screen_view.setFocus()

    # @intent:responsibility 設定に基づいてBus、CPU、Keypadを構築し、ビューを初期化します。
    def _setup_backend(self) -> None:
        self.cpu, self.bus = SystemBuilder().build_system(self._config, self._program)
        self.keypad = Keypad(self._config.keypad)
        self._held_keys.clear()
        self._frame_timer.setInterval(self._config.timing.frame_interval_ms)
        display = self._config.display
        self.screen_view.set_display(display.magnification, display.foreground, display.background)
        self.register_view.set_cpu(self.cpu)
        self.code_view.reset_cache()
        self.last_snapshot = None
        self._refresh_views()

    def _create_views(self) -> None:
        display = self._config.display
        self.screen_view = ScreenView(display.magnification, display.foreground, display.background)
        self.setCentralWidget(self.screen_view)

        code_dock = QDockWidget("Disassembly", self)
        code_dock.setAllowedAreas(Qt.LeftDockWidgetArea)
        self.code_view = CodeView()
        code_dock.setWidget(self.code_view)
        self.addDockWidget(Qt.LeftDockWidgetArea, code_dock)

        register_dock = QDockWidget("Registers", self)
        register_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        self.register_view = RegisterView()
        register_dock.setWidget(self.register_view)
        self.addDockWidget(Qt.RightDockWidgetArea, register_dock)

    # @intent:responsibility 実行制御用のツールバーを作成します。
    def _create_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setFocusPolicy(Qt.NoFocus)
        self.addToolBar(toolbar)

        self.run_action = QAction("Run", self)
        self.run_action.setShortcut("F5")
        self.run_action.triggered.connect(self.run)
        toolbar.addAction(self.run_action)

        self.stop_action = QAction("Stop", self)
        self.stop_action.setShortcut("Shift+F5")
        self.stop_action.triggered.connect(self.stop)
        toolbar.addAction(self.stop_action)

        self.step_action = QAction("Step", self)
        self.step_action.setShortcut("F10")
        self.step_action.triggered.connect(self.step)
        toolbar.addAction(self.step_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self.reset)
        toolbar.addAction(self.reset_action)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("File")

        self.open_rom_action = QAction("Open ROM...", self)
        self.open_rom_action.setShortcut("Ctrl+O")
        self.open_rom_action.triggered.connect(self.open_rom)
        file_menu.addAction(self.open_rom_action)

        self.load_config_action = QAction("Load System Config...", self)
        self.load_config_action.triggered.connect(self._load_system_config)
        file_menu.addAction(self.load_config_action)

    # @intent:responsibility 実行状態に応じてアクションの有効/無効を切り替えます。
    def _update_ui_state(self, is_running: bool) -> None:
        self.open_rom_action.setEnabled(not is_running)
        self.load_config_action.setEnabled(not is_running)
        self.run_action.setEnabled(not is_running)
        self.step_action.setEnabled(not is_running)
        self.stop_action.setEnabled(is_running)

    def is_running(self) -> bool:
        return self._frame_timer.isActive()

    @Slot()
    def run(self) -> None:
        self._update_ui_state(True)
        self._frame_timer.start()

    @Slot()
    def stop(self) -> None:
        self._frame_timer.stop()
        self._update_ui_state(False)
        self._refresh_views()

    @Slot()
    def step(self) -> None:
        self._execute_cycle()
        self._refresh_views()

    # @intent:responsibility CPUをリセットし、同じプログラムを先頭から実行できる状態に戻します。
    @Slot()
    def reset(self) -> None:
        self.stop()
        self._setup_backend()

    # @intent:responsibility 1フレーム分の命令を実行します。フォールトが発生した場合は実行を停止します。
    @Slot()
    def _run_frame(self) -> None:
        for _ in range(self._config.timing.cycles_per_frame):
            snapshot = self._execute_cycle()
            if snapshot.is_fault:
                break
        self._refresh_views()

    def _execute_cycle(self) -> Snapshot:
        snapshot = self.cpu.step(self.keypad.bitmask)
        self.last_snapshot = snapshot
        if snapshot.is_fault:
            self._frame_timer.stop()
            self._update_ui_state(False)
            self._report_fault(snapshot.fault)
        return snapshot

    def _report_fault(self, fault: Chip8Fault) -> None:
        QMessageBox.critical(self, "Fault", f"{type(fault).__name__}: {fault}")

    def _refresh_views(self) -> None:
        state = self.cpu.get_state()
        self.screen_view.update_screen(self.cpu.get_framebuffer())
        self.register_view.update_registers()
        if not self.is_running():
            self.code_view.update_code(self.cpu, state.pc)

        status = f"PC ${state.pc:03X}  cycles {self.cpu.get_cycle_count()}"
        if self.last_snapshot is not None and self.last_snapshot.is_awaiting_input:
            status += "  waiting for key"
        if state.sound_timer > 0:
            status += "  SOUND"
        self.status_label.setText(status)

    # @intent:responsibility ウィンドウ内のどのウィジェットにフォーカスがあっても、割り当て済みのキーをキーパッドへ渡します。
    def eventFilter(self, watched, event) -> bool:
        if event.type() in (QEvent.KeyPress, QEvent.KeyRelease) and watched.isWidgetType() \
                and watched.window() is self:
            if self._handle_key(event, event.type() == QEvent.KeyPress):
                return True
        return super().eventFilter(watched, event)

    def keyPressEvent(self, event: QKeyEvent):
        if not self._handle_key(event, True):
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if not self._handle_key(event, False):
            super().keyReleaseEvent(event)

    # @intent:responsibility キーコードからキー名を求めてビットマスクを更新します。割り当て済みのキーならTrueを返します。
    # @intent:rationale 解放時は押下時に記録したキー名を物理キー（スキャンコード）から引くため、
    #                  押下中にShiftなどの状態が変わってもボタンが押されたまま残りません。
    def _handle_key(self, event: QKeyEvent, pressed: bool) -> bool:
        scan_code = event.nativeScanCode()
        name = key_name(event.key())
        if event.isAutoRepeat():
            return self.keypad.button_for(self._held_keys.get(scan_code, name)) is not None
        if pressed:
            if not self.keypad.press(name):
                return False
            if scan_code:
                self._held_keys[scan_code] = name
            return True
        return self.keypad.release(self._held_keys.pop(scan_code, name))

    # @intent:responsibility フォーカスがこのウィンドウの外へ移ったら全ボタンを解放します。
    @Slot(object, object)
    def _on_focus_changed(self, old, new) -> None:
        if new is None or new.window() is not self:
            self._release_keys()

    def changeEvent(self, event):
        if event.type() == QEvent.ActivationChange and not self.isActiveWindow():
            self._release_keys()
        super().changeEvent(event)

    def _release_keys(self) -> None:
        self.keypad.release_all()
        self._held_keys.clear()
    # @intent:responsibility ファイル選択ダイアログからプログラムイメージを読み込み、システムを再構築します。
    @Slot()
    def open_rom(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self, "Open ROM", "", "CHIP-8 Programs (*.ch8);;All Files (*)"
        )
        if file_name:
            self.load_rom(file_name)

    def load_rom(self, file_name: str) -> bool:
        try:
            self._program = BinaryImageLoader().load_binary(file_name)
            self.stop()
            self._setup_backend()
        except (OSError, Chip8Fault) as e:
            lg.error(f"Failed to load {file_name}: {e}")
            QMessageBox.critical(self, "Error", f"Failed to load ROM: {e}")
            return False
        self.setWindowTitle(f"CHIP-8 Core Tracer - {file_name}")
        return True

    @Slot()
    def _load_system_config(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self, "Open System Config", "", "YAML Files (*.yaml *.yml);;All Files (*)"
        )
        if not file_name:
            return
        try:
            self._config = ConfigLoader().load_from_file(file_name)
            if self._config.program:
                self._program = None
            self.stop()
            self._setup_backend()
        except (OSError, ValueError, Chip8Fault) as e:
            QMessageBox.critical(self, "Error", f"Failed to load system config: {e}")

    # @intent:responsibility 暗色パレットと等幅フォントを適用します。画面ビューの背景色とは独立です。
    def _set_dark_theme(self) -> None:
        palette = QPalette()
        for role, color in DARK_PALETTE.items():
            palette.setColor(role, QColor(color))
        QApplication.setPalette(palette)
        self.setStyleSheet(
            f"QWidget {{ font-family: '{get_monospace_font_family()}', monospace; font-size: 10pt; }}\n"
            "QMainWindow, QToolBar, QStatusBar { background-color: #181818; border: none; }\n"
            "QDockWidget::title { background: #101010; padding: 3px; }"
        )

    def closeEvent(self, event: QCloseEvent):
        self._frame_timer.stop()
        if self._input_hooked:
            app = QApplication.instance()
            app.removeEventFilter(self)
            app.focusChanged.disconnect(self._on_focus_changed)
            self._input_hooked = False
        self._release_keys()
        event.accept()
