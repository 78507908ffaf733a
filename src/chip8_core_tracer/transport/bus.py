# chip8_core_tracer/transport/bus.py
"""
Transport Layer (メモリバス)

4 KiBのインタプリタメモリへの読み書きを仲介し、命令実行中のアクセスを記録します。
記録はSnapshotに添付され、デバッガのメモリブレークポイントと巻き戻しに使われます。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Tuple

class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 1回のバスアクセスを記録します。WRITEでは上書き前の値も保持します。
@dataclass(frozen=True)
class BusAccess:
    address: int
    data: int
    access_type: BusAccessType
    previous_data: Optional[int] = None

class Device(ABC):
    """バスに接続されるデバイス。アドレスはデバイス先頭からのオフセットです。"""

    @abstractmethod
    def read(self, address: int) -> int:
        ...

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        ...

# @intent:responsibility バイト配列で構成される読み書き可能なメモリ。
class RAM(Device):
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)

    def _check(self, address: int) -> None:
        if not 0 <= address < len(self._memory):
            raise IndexError(f"Address {address} out of bounds for RAM of size {len(self._memory)}.")

    def read(self, address: int) -> int:
        self._check(address)
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        self._check(address)
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    def get_size(self) -> int:
        return len(self._memory)

class MappedRegion(NamedTuple):
    start: int
    end: int  # inclusive
    device: Device

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end

# @intent:responsibility アドレスをデバイスへ振り分け、命令由来のアクセスだけをログに残します。
# @intent:rationale peekとloadはインスペクタやイメージ配置、巻き戻しのための経路であり、ログには現れません。
class Bus:
    def __init__(self):
        self._regions: List[MappedRegion] = []
        self._activity: List[BusAccess] = []

    # @intent:pre-condition 0 <= start_address <= end_address。RAMの場合は範囲の長さとサイズが一致すること。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        span = end_address - start_address + 1
        if isinstance(device, RAM) and device.get_size() != span:
            raise ValueError(
                f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                f"the specified address range size ({span} bytes)."
            )
        self._regions.append(MappedRegion(start_address, end_address, device))
        self._regions.sort(key=lambda region: region.start)

    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log, self._activity = self._activity, []
        return log

    def get_address_limit(self) -> int:
        """マップ済み領域の最大アドレス+1。未登録なら0。"""
        return max((region.end + 1 for region in self._regions), default=0)

    def is_mapped(self, address: int, length: int = 1) -> bool:
        return all(self._region_for(addr) is not None for addr in range(address, address + length))

    def _region_for(self, address: int) -> Optional[MappedRegion]:
        for region in self._regions:
            if region.contains(address):
                return region
        return None

    def _resolve(self, address: int) -> Tuple[Device, int]:
        region = self._region_for(address)
        if region is None:
            raise IndexError(f"Address {address:#06x} not mapped to any device.")
        return region.device, address - region.start

    def read(self, address: int) -> int:
        device, offset = self._resolve(address)
        data = device.read(offset)
        self._activity.append(BusAccess(address, data, BusAccessType.READ))
        return data

    # @intent:post-condition 書き込みが失敗した場合はログに何も残りません。
    def write(self, address: int, data: int) -> None:
        device, offset = self._resolve(address)
        previous = device.read(offset)
        device.write(offset, data)
        self._activity.append(BusAccess(address, data, BusAccessType.WRITE, previous_data=previous))

    def peek(self, address: int) -> int:
        device, offset = self._resolve(address)
        return device.read(offset)

    def load(self, address: int, data: int) -> None:
        device, offset = self._resolve(address)
        device.write(offset, data)

    # @intent:responsibility 連続したバイト列をログなしで配置します。
    def load_block(self, address: int, data: Iterable[int]) -> None:
        for offset, value in enumerate(data):
            self.load(address + offset, value)
