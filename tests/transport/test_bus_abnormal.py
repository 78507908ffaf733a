import unittest
from chip8_core_tracer.transport.bus import Bus, RAM

class TestBusAbnormal(unittest.TestCase):
    def setUp(self):
        self.bus = Bus()
        self.bus.register_device(0x0000, 0x0FFF, RAM(0x1000)) # 4KB RAM

    def test_read_past_end_of_memory(self):
        with self.assertRaises(IndexError):
            self.bus.read(0x1000)

    def test_write_past_end_of_memory(self):
        with self.assertRaises(IndexError):
            self.bus.write(0xFFFF, 0xFF)

    def test_failed_write_is_not_logged(self):
        with self.assertRaises(ValueError):
            self.bus.write(0x0200, 0x100)
        self.assertEqual(self.bus.get_and_clear_activity_log(), [])
        self.assertEqual(self.bus.peek(0x0200), 0x00)

    def test_last_byte_is_accessible(self):
        self.bus.write(0x0FFF, 0x5A)
        self.assertEqual(self.bus.read(0x0FFF), 0x5A)

    def test_ram_invalid_init(self):
        with self.assertRaises(ValueError):
            RAM(-1)
        with self.assertRaises(ValueError):
            RAM(0)
