# chip8_core_tracer/common/types.py
"""
UIとトレース出力で共有する型定義。
"""
from typing import List, NamedTuple


# @intent:data_structure 表示用のレジスタ定義。widthはビット幅で、表示桁数（width // 4）を決めます。
class RegisterInfo(NamedTuple):
    name: str
    width: int

# @intent:data_structure "V Registers" や "Timers" のようなレジスタの表示グループ。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
