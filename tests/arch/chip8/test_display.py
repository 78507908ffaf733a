# tests/arch/chip8/test_display.py
"""
スプライト合成とCLS/DRW命令の単体テスト。
"""
import pytest

from chip8_core_tracer.transport.bus import Bus, RAM
from chip8_core_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_core_tracer.arch.chip8.state import FRAMEBUFFER_SIZE, Chip8CpuState
from chip8_core_tracer.arch.chip8.instructions.display import draw_sprite, iter_lit_pixels, render_text
from chip8_core_tracer.core.faults import CapacityFault

# @intent:test_suite XOR合成、衝突検出、画面端での折り返しを検証します。

class TestDrawSprite:
    """
    draw_spriteの単体テスト。
    """
    # @intent:test_case_draw 最上位ビットが左端のピクセルに対応することを検証します。
    def test_draw_single_row(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        assert draw_sprite(fb, 0, 0, bytes([0b1010_0000])) is False
        assert fb[0] == 0b1010_0000
        assert set(iter_lit_pixels(fb)) == {(0, 0), (2, 0)}

    # @intent:test_case_idempotence 同じスプライトを2回描画すると元に戻り、2回目は衝突となることを検証します。
    def test_draw_twice_erases_with_collision(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        sprite = bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])
        assert draw_sprite(fb, 10, 5, sprite) is False
        assert any(fb)
        assert draw_sprite(fb, 10, 5, sprite) is True
        assert fb == bytearray(FRAMEBUFFER_SIZE)

    # @intent:test_case_unaligned バイト境界をまたぐ描画を検証します。
    def test_draw_unaligned(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        draw_sprite(fb, 4, 0, bytes([0xFF]))
        assert fb[0] == 0x0F
        assert fb[1] == 0xF0

    def test_zero_bits_do_not_change_pixels(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        fb[0] = 0xFF
        assert draw_sprite(fb, 0, 0, bytes([0x00])) is False
        assert fb[0] == 0xFF

    # @intent:test_case_wrap 右端と下端で反対側に折り返すことを検証します。
    def test_wrap_horizontal_and_vertical(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        draw_sprite(fb, 62, 31, bytes([0xF0, 0xF0]))
        assert set(iter_lit_pixels(fb)) == {
            (62, 31), (63, 31), (0, 31), (1, 31),
            (62, 0), (63, 0), (0, 0), (1, 0),
        }

    # @intent:test_case_origin_wrap 画面外の開始座標は画面サイズで折り返されることを検証します。
    def test_start_coordinates_wrap(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        draw_sprite(fb, 64 + 3, 32 + 2, bytes([0x80]))
        assert list(iter_lit_pixels(fb)) == [(3, 2)]

    def test_framebuffer_size_is_preserved(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        draw_sprite(fb, 255, 255, bytes([0xFF] * 15))
        assert len(fb) == FRAMEBUFFER_SIZE

    def test_render_text(self):
        fb = bytearray(FRAMEBUFFER_SIZE)
        draw_sprite(fb, 0, 0, bytes([0xC0]))
        lines = render_text(fb).split("\n")
        assert len(lines) == 32
        assert lines[0] == "##" + "." * 62
        assert lines[1] == "." * 64

    def test_state_pixel_accessor(self):
        state = Chip8CpuState()
        draw_sprite(state.framebuffer, 9, 1, bytes([0x80]))
        assert state.pixel(9, 1)
        assert not state.pixel(8, 1)

class TestDisplayInstructions:
    """
    CLS/DRW命令の実行テスト。
    """
    @pytest.fixture
    def cpu(self):
        bus = Bus()
        bus.register_device(0x000, 0xFFF, RAM(0x1000))
        cpu = Chip8Cpu(bus, clock=lambda: 0.0)
        return cpu

    # @intent:test_case_drw フォントグリフを描画し、2回目の描画でVF=1となることを検証します。
    def test_drw_font_glyph(self, cpu):
        # LD V0,#$00 / LD F,V0 / DRW V1,V2,5 / DRW V1,V2,5
        cpu.load_program(bytes([0x60, 0x00, 0xF0, 0x29, 0xD1, 0x25, 0xD1, 0x25]))
        cpu.step()
        cpu.step()
        cpu.step()
        state = cpu.get_state()
        assert state.vf == 0
        assert len(list(iter_lit_pixels(cpu.get_framebuffer()))) == 14
        cpu.step()
        assert state.vf == 1
        assert not any(cpu.get_framebuffer())

    def test_cls(self, cpu):
        cpu.load_program(bytes([0x00, 0xE0]))
        cpu.get_state().framebuffer[10] = 0xFF
        cpu.step()
        assert cpu.get_framebuffer() == bytes(FRAMEBUFFER_SIZE)

    # @intent:test_case_drw_oob スプライトの読み込みがメモリ外に及ぶ場合はCapacityFaultとなり、画面を変更しないことを検証します。
    def test_drw_beyond_memory_faults(self, cpu):
        cpu.load_program(bytes([0xD0, 0x0F]))
        cpu.get_state().i = 0xFF8
        snapshot = cpu.step()
        assert isinstance(snapshot.fault, CapacityFault)
        assert cpu.get_framebuffer() == bytes(FRAMEBUFFER_SIZE)
        assert cpu.get_state().vf == 0

    def test_framebuffer_copy_is_immutable(self, cpu):
        fb = cpu.get_framebuffer()
        assert isinstance(fb, bytes)
        cpu.get_state().framebuffer[0] = 0xFF
        assert fb[0] == 0
