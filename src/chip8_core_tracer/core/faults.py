# chip8_core_tracer/core/faults.py
"""
Core Layer (フォールト定義)

命令サイクル中に検出される異常を型付きで表現します。
フォールトはstep()の境界で捕捉され、Snapshotとして呼び出し元に報告されます。
"""
from typing import Optional


# @intent:responsibility 全てのフォールトの基底クラス。問題のオペコードとアドレスを保持します。
class Chip8Fault(Exception):
    """
    実行中に検出されたフォールトの基底クラス。
    """
    def __init__(self, message: str, opcode: Optional[int] = None, address: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.opcode = opcode
        self.address = address

    def __str__(self) -> str:
        location = ""
        if self.address is not None:
            location += f" at ${self.address:04X}"
        if self.opcode is not None:
            location += f" (opcode ${self.opcode:04X})"
        return f"{self.message}{location}"


# @intent:responsibility どの命令パターンにも一致しないオペコード。
class DecodeFault(Chip8Fault):
    pass


# @intent:responsibility メモリ容量を超えるロード、またはメモリ範囲外へのブロック転送。
class CapacityFault(Chip8Fault):
    pass


# @intent:responsibility スタックが満杯の状態でのCALL。
class StackOverflowFault(Chip8Fault):
    pass


# @intent:responsibility スタックが空の状態でのRET。
class StackUnderflowFault(Chip8Fault):
    pass


# @intent:responsibility レジスタ値から得たボタン番号が0-15の範囲外。
class InvalidButtonIndexFault(Chip8Fault):
    pass
