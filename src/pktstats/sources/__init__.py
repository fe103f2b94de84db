from .base_source import BaseSource
from .device_source import DeviceSource, PsutilNetDevice, unwrap_device
from .packet_source import PacketSource
from .manual_source import ManualSource

__all__ = [
    "BaseSource",
    "DeviceSource",
    "PsutilNetDevice",
    "unwrap_device",
    "PacketSource",
    "ManualSource",
]
