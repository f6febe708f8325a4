"""Conversions between pre-v1beta3 volume requests and the current request shapes."""

from __future__ import annotations

import re
from dataclasses import dataclass

from csiproxy.volume import ListVolumesOnDiskRequest, MountVolumeRequest, ResizeVolumeRequest

_UINT64_MAX = (1 << 64) - 1
_UINT32_MASK = (1 << 32) - 1
_DIGITS = re.compile(r"[0-9]+")


@dataclass
class LegacyListVolumesOnDiskRequest:
    """List request of older API versions, naming the disk by a decimal string."""

    disk_id: str = ""


@dataclass
class LegacyMountVolumeRequest:
    """Mount request of older API versions."""

    volume_id: str = ""
    path: str = ""


@dataclass
class LegacyResizeVolumeRequest:
    """Resize request of older API versions."""

    volume_id: str = ""
    size: int = 0


def _parse_uint64(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"parsing {text!r}: invalid syntax")
    value = int(text)
    if value > _UINT64_MAX:
        raise ValueError(f"parsing {text!r}: value out of range")
    return value


def list_volumes_request_from_legacy(
    request: LegacyListVolumesOnDiskRequest,
) -> ListVolumesOnDiskRequest:
    """Parse the disk id; it is kept to its low 32 bits. Raise ValueError if it is not a number."""
    try:
        disk_id = _parse_uint64(request.disk_id)
    except ValueError as exc:
        raise ValueError(f"Failed to parse diskId: err={exc}") from exc
    return ListVolumesOnDiskRequest(disk_number=disk_id & _UINT32_MASK)


def list_volumes_request_to_legacy(
    request: ListVolumesOnDiskRequest,
) -> LegacyListVolumesOnDiskRequest:
    return LegacyListVolumesOnDiskRequest(disk_id=str(request.disk_number & _UINT32_MASK))


def mount_request_from_legacy(request: LegacyMountVolumeRequest) -> MountVolumeRequest:
    return MountVolumeRequest(volume_id=request.volume_id, target_path=request.path)


def mount_request_to_legacy(request: MountVolumeRequest) -> LegacyMountVolumeRequest:
    return LegacyMountVolumeRequest(volume_id=request.volume_id, path=request.target_path)


def resize_request_from_legacy(request: LegacyResizeVolumeRequest) -> ResizeVolumeRequest:
    return ResizeVolumeRequest(volume_id=request.volume_id, size_bytes=request.size)


def resize_request_to_legacy(request: ResizeVolumeRequest) -> LegacyResizeVolumeRequest:
    return LegacyResizeVolumeRequest(volume_id=request.volume_id, size=request.size_bytes)