"""Volume API server: listing, mounting, formatting and resizing host volumes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from csiproxy.types import ApiVersion, parse_version

logger = logging.getLogger(__name__)

_LEGACY_FORWARD_MIN_VERSION = parse_version("v1beta1")


class VolumeForwardError(RuntimeError):
    """A request kept for older API versions failed in the call it forwards to."""


class VolumeHostAPI(Protocol):
    """Host operations the volume server relies on."""

    def list_volumes_on_disk(self, disk_number: int, partition_number: int) -> list[str]: ...

    def mount_volume(self, volume_id: str, path: str) -> None: ...

    def unmount_volume(self, volume_id: str, path: str) -> None: ...

    def is_volume_formatted(self, volume_id: str) -> bool: ...

    def format_volume(self, volume_id: str) -> None: ...

    def resize_volume(self, volume_id: str, size: int) -> None: ...

    def get_volume_stats(self, volume_id: str) -> tuple[int, int]: ...

    def get_disk_number_from_volume_id(self, volume_id: str) -> int: ...

    def get_volume_id_from_target_path(self, target_path: str) -> str: ...

    def get_closest_volume_id_from_target_path(self, target_path: str) -> str: ...

    def write_volume_cache(self, volume_id: str) -> None: ...


@dataclass
class ListVolumesOnDiskRequest:
    disk_number: int = 0
    partition_number: int = 0


@dataclass
class ListVolumesOnDiskResponse:
    volume_ids: list[str] = field(default_factory=list)


@dataclass
class MountVolumeRequest:
    volume_id: str = ""
    target_path: str = ""


@dataclass
class MountVolumeResponse:
    pass


@dataclass
class IsVolumeFormattedRequest:
    volume_id: str = ""


@dataclass
class IsVolumeFormattedResponse:
    formatted: bool = False


@dataclass
class FormatVolumeRequest:
    volume_id: str = ""


@dataclass
class FormatVolumeResponse:
    pass


@dataclass
class WriteVolumeCacheRequest:
    volume_id: str = ""


@dataclass
class WriteVolumeCacheResponse:
    pass


@dataclass
class UnmountVolumeRequest:
    volume_id: str = ""
    target_path: str = ""


@dataclass
class UnmountVolumeResponse:
    pass


@dataclass
class ResizeVolumeRequest:
    volume_id: str = ""
    size_bytes: int = 0


@dataclass
class ResizeVolumeResponse:
    pass


@dataclass
class GetVolumeStatsRequest:
    volume_id: str = ""


@dataclass
class GetVolumeStatsResponse:
    total_bytes: int = 0
    used_bytes: int = 0


@dataclass
class GetDiskNumberFromVolumeIDRequest:
    volume_id: str = ""


@dataclass
class GetDiskNumberFromVolumeIDResponse:
    disk_number: int = 0


@dataclass
class GetVolumeIDFromTargetPathRequest:
    target_path: str = ""


@dataclass
class GetVolumeIDFromTargetPathResponse:
    volume_id: str = ""


@dataclass
class GetClosestVolumeIDFromTargetPathRequest:
    target_path: str = ""


@dataclass
class GetClosestVolumeIDFromTargetPathResponse:
    volume_id: str = ""


@dataclass
class DismountVolumeRequest:
    volume_id: str = ""
    path: str = ""


@dataclass
class DismountVolumeResponse:
    pass


@dataclass
class VolumeDiskNumberRequest:
    volume_id: str = ""


@dataclass
class VolumeDiskNumberResponse:
    disk_number: int = 0


@dataclass
class VolumeIDFromMountRequest:
    mount: str = ""


@dataclass
class VolumeIDFromMountResponse:
    volume_id: str = ""


@dataclass
class VolumeStatsRequest:
    volume_id: str = ""


@dataclass
class VolumeStatsResponse:
    volume_size: int = 0
    volume_used_size: int = 0


def _require(value: str, message: str) -> None:
    if not value:
        logger.error("%s", message)
        raise ValueError(message)


def _require_version(version: ApiVersion, operation: str) -> None:
    if version.compare(_LEGACY_FORWARD_MIN_VERSION) < 0:
        raise ValueError(
            f"{operation} requires CSI-Proxy API version {_LEGACY_FORWARD_MIN_VERSION} or greater"
        )


class VolumeServer:
    """Serves volume requests by delegating to the host API."""

    def __init__(self, host_api: VolumeHostAPI) -> None:
        self.host_api = host_api

    def list_volumes_on_disk(
        self, request: ListVolumesOnDiskRequest, version: ApiVersion
    ) -> ListVolumesOnDiskResponse:
        logger.info("ListVolumesOnDisk: Request: %s", request)
        try:
            volume_ids = self.host_api.list_volumes_on_disk(
                request.disk_number, request.partition_number
            )
        except Exception as exc:
            logger.error("failed ListVolumeOnDisk %s", exc)
            raise
        return ListVolumesOnDiskResponse(volume_ids=list(volume_ids))

    def mount_volume(self, request: MountVolumeRequest, version: ApiVersion) -> MountVolumeResponse:
        logger.info("MountVolume: Request: %s", request)
        _require(request.volume_id, "MountVolumeRequest.VolumeId is empty")
        _require(request.target_path, "MountVolumeRequest.TargetPath is empty")
        try:
            self.host_api.mount_volume(request.volume_id, request.target_path)
        except Exception as exc:
            logger.error("failed MountVolume %s", exc)
            raise
        return MountVolumeResponse()

    def dismount_volume(
        self, request: DismountVolumeRequest, version: ApiVersion
    ) -> DismountVolumeResponse:
        """Older name for unmount_volume."""
        try:
            self.unmount_volume(
                UnmountVolumeRequest(volume_id=request.volume_id, target_path=request.path),
                version,
            )
        except Exception as exc:
            raise VolumeForwardError(f"Forward to UnmountVolume failed, err={exc}") from exc
        return DismountVolumeResponse()

    def unmount_volume(
        self, request: UnmountVolumeRequest, version: ApiVersion
    ) -> UnmountVolumeResponse:
        logger.info("UnmountVolume: Request: %s", request)
        _require(request.volume_id, "volume id empty")
        _require(request.target_path, "target path empty")
        try:
            self.host_api.unmount_volume(request.volume_id, request.target_path)
        except Exception as exc:
            logger.error("failed UnmountVolume %s", exc)
            raise
        return UnmountVolumeResponse()

    def is_volume_formatted(
        self, request: IsVolumeFormattedRequest, version: ApiVersion
    ) -> IsVolumeFormattedResponse:
        logger.info("IsVolumeFormatted: Request: %s", request)
        _require(request.volume_id, "volume id empty")
        try:
            formatted = self.host_api.is_volume_formatted(request.volume_id)
        except Exception as exc:
            logger.error("failed IsVolumeFormatted %s", exc)
            raise
        logger.debug("IsVolumeFormatted: return: %s", formatted)
        return IsVolumeFormattedResponse(formatted=formatted)

    def format_volume(
        self, request: FormatVolumeRequest, version: ApiVersion
    ) -> FormatVolumeResponse:
        logger.info("FormatVolume: Request: %s", request)
        _require(request.volume_id, "volume id empty")
        try:
            self.host_api.format_volume(request.volume_id)
        except Exception as exc:
            logger.error("failed FormatVolume %s", exc)
            raise
        return FormatVolumeResponse()

    def write_volume_cache(
        self, request: WriteVolumeCacheRequest, version: ApiVersion
    ) -> WriteVolumeCacheResponse:
        logger.info("WriteVolumeCache: Request: %s", request)
        _require(request.volume_id, "volume id empty")
        try:
            self.host_api.write_volume_cache(request.volume_id)
        except Exception as exc:
            logger.error("failed WriteVolumeCache %s", exc)
            raise
        return WriteVolumeCacheResponse()

    def resize_volume(
        self, request: ResizeVolumeRequest, version: ApiVersion
    ) -> ResizeVolumeResponse:
        logger.info("ResizeVolume: Request: %s", request)
        _require(request.volume_id, "volume id empty")
        try:
            self.host_api.resize_volume(request.volume_id, request.size_bytes)
        except Exception as exc:
            logger.error("failed ResizeVolume %s", exc)
            raise
        return ResizeVolumeResponse()

    def volume_stats(self, request: VolumeStatsRequest, version: ApiVersion) -> VolumeStatsResponse:
        """Older form of get_volume_stats; needs API version v1beta1 or newer."""
        _require_version(version, "VolumeStats")
        try:
            stats = self.get_volume_stats(GetVolumeStatsRequest(volume_id=request.volume_id), version)
        except Exception as exc:
            raise VolumeForwardError(f"Forward to GetVolumeStats failed, err={exc}") from exc
        return VolumeStatsResponse(volume_size=stats.total_bytes, volume_used_size=stats.used_bytes)

    def get_volume_stats(
        self, request: GetVolumeStatsRequest, version: ApiVersion
    ) -> GetVolumeStatsResponse:
        logger.info("GetVolumeStats: Request: %s", request)
        if not request.volume_id:
            raise ValueError("volume id empty")
        try:
            total_bytes, used_bytes = self.host_api.get_volume_stats(request.volume_id)
        except Exception as exc:
            logger.error("failed GetVolumeStats %s", exc)
            raise
        logger.info("VolumeStats: returned: Capacity %s Used %s", total_bytes, used_bytes)
        return GetVolumeStatsResponse(total_bytes=total_bytes, used_bytes=used_bytes)

    def get_volume_disk_number(
        self, request: VolumeDiskNumberRequest, version: ApiVersion
    ) -> VolumeDiskNumberResponse:
        """Older form of get_disk_number_from_volume_id; needs API version v1beta1 or newer."""
        _require_version(version, "GetVolumeDiskNumber")
        try:
            response = self.get_disk_number_from_volume_id(
                GetDiskNumberFromVolumeIDRequest(volume_id=request.volume_id), version
            )
        except Exception as exc:
            raise VolumeForwardError(
                f"Forward to GetDiskNumberFromVolumeID failed, err={exc}"
            ) from exc
        return VolumeDiskNumberResponse(disk_number=response.disk_number)

    def get_disk_number_from_volume_id(
        self, request: GetDiskNumberFromVolumeIDRequest, version: ApiVersion
    ) -> GetDiskNumberFromVolumeIDResponse:
        logger.info("GetDiskNumberFromVolumeID: Request: %s", request)
        if not request.volume_id:
            raise ValueError("volume id empty")
        try:
            disk_number = self.host_api.get_disk_number_from_volume_id(request.volume_id)
        except Exception as exc:
            logger.error("failed GetDiskNumberFromVolumeID %s", exc)
            raise
        return GetDiskNumberFromVolumeIDResponse(disk_number=disk_number)

    def get_volume_id_from_mount(
        self, request: VolumeIDFromMountRequest, version: ApiVersion
    ) -> VolumeIDFromMountResponse:
        """Older form of get_volume_id_from_target_path; needs API version v1beta1 or newer."""
        _require_version(version, "GetVolumeIDFromMount")
        try:
            response = self.get_volume_id_from_target_path(
                GetVolumeIDFromTargetPathRequest(target_path=request.mount), version
            )
        except Exception as exc:
            raise VolumeForwardError(
                f"Forward to GetVolumeIDFromTargetPath failed, err={exc}"
            ) from exc
        return VolumeIDFromMountResponse(volume_id=response.volume_id)

    def get_volume_id_from_target_path(
        self, request: GetVolumeIDFromTargetPathRequest, version: ApiVersion
    ) -> GetVolumeIDFromTargetPathResponse:
        logger.info("GetVolumeIDFromTargetPath: Request: %s", request)
        if not request.target_path:
            raise ValueError("target path is empty")
        try:
            volume_id = self.host_api.get_volume_id_from_target_path(request.target_path)
        except Exception as exc:
            logger.error("failed GetVolumeIDFromTargetPath: %s", exc)
            raise
        return GetVolumeIDFromTargetPathResponse(volume_id=volume_id)

    def get_closest_volume_id_from_target_path(
        self, request: GetClosestVolumeIDFromTargetPathRequest, version: ApiVersion
    ) -> GetClosestVolumeIDFromTargetPathResponse:
        logger.info("GetClosestVolumeIDFromTargetPath: Request: %s", request)
        if not request.target_path:
            raise ValueError("target path is empty")
        try:
            volume_id = self.host_api.get_closest_volume_id_from_target_path(request.target_path)
        except Exception as exc:
            logger.error("failed GetClosestVolumeIDFromTargetPath: %s", exc)
            raise
        return GetClosestVolumeIDFromTargetPathResponse(volume_id=volume_id)