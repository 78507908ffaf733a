# chip8_core_tracer/loader/loader.py
"""
プログラムイメージローダーモジュール。

ファイルからヘッダ無しの生バイナリ（.ch8）を読み込み、バイト列としてCPUに引き渡します。
コアエンジン自身はファイルI/Oを行いません。
"""
from pathlib import Path
from typing import Union
import logging as lg

from chip8_core_tracer.arch.chip8.state import MAX_PROGRAM_SIZE
from chip8_core_tracer.core.faults import CapacityFault

# @intent:responsibility ファイルからプログラムイメージを読み込みます。
class BinaryImageLoader:
    """
    生バイナリ形式のプログラムイメージを読み込むローダー。
    """
    def load_binary(self, file_path: Union[str, Path]) -> bytes:
        """
        ファイル全体をバイト列として読み込みます。

        Raises:
            FileNotFoundError: ファイルが存在しない場合。
            CapacityFault: イメージがプログラム領域（3584バイト）に収まらない場合。
        """
        path = Path(file_path)
        data = path.read_bytes()
        if len(data) > MAX_PROGRAM_SIZE:
            raise CapacityFault(f"{path.name}: image of {len(data)} bytes exceeds {MAX_PROGRAM_SIZE} bytes")
        lg.debug(f"Read {len(data)} bytes from {path}")
        return data
