# chip8_core_tracer/core/state.py
"""
Core Layer (CPU状態)

サイクルエンジンが直接扱うPCとSPだけを持つ基底状態です。
"""
from dataclasses import dataclass

# @intent:responsibility PCとSPの基底状態。PC=0x200などの初期値や残りのレジスタは命令セット側で定義します。
@dataclass
class CpuState:
    pc: int = 0x000
    sp: int = 0
