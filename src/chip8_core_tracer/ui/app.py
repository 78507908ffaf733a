# src/chip8_core_tracer/ui/app.py
"""
GUIアプリケーションのエントリポイント。
アプリケーションを初期化し、メインウィンドウを起動します。
"""
from pathlib import Path
from typing import Optional
import logging as lg
import sys

import click
from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QTimer

from chip8_core_tracer.config.loader import ConfigLoader
from chip8_core_tracer.config.models import SystemConfig
from chip8_core_tracer.core.faults import Chip8Fault
from .main_window import MainWindow

EXIT_LOAD_ERROR = 100

# @intent:responsibility アプリケーションを起動し、メインウィンドウを表示します。
# @intent:rationale ROMが指定されず設定にも無い場合は、起動直後にファイル選択ダイアログを開きます。
@click.command()
@click.argument('rom_filename', type=Path, required=False)
@click.option('--config', 'config_file', type=Path, default=None, help='YAML system config.')
def main(rom_filename: Optional[Path], config_file: Optional[Path]):
    try:
        config = ConfigLoader().load_from_file(str(config_file)) if config_file else SystemConfig()
    except (OSError, ValueError) as e:
        click.echo(f"Failed to load config {config_file}: {e}", err=True)
        sys.exit(EXIT_LOAD_ERROR)

    lg.basicConfig(level=lg.DEBUG if config.trace else lg.INFO)
    if rom_filename is not None:
        config.program = str(rom_filename)

    app = QApplication(sys.argv)
    try:
        main_win = MainWindow(config)
    except (OSError, Chip8Fault) as e:
        lg.error(f"Failed to load {config.program}: {e}")
        sys.exit(EXIT_LOAD_ERROR)
    main_win.show()

    if not config.program:
        QTimer.singleShot(0, main_win.open_rom)

    sys.exit(app.exec())

if __name__ == '__main__':
    main()
