from collections import Counter

import pytest

from csiproxy.types import parse_version
from csiproxy.volume import (
    DismountVolumeRequest,
    DismountVolumeResponse,
    FormatVolumeRequest,
    GetClosestVolumeIDFromTargetPathRequest,
    GetDiskNumberFromVolumeIDRequest,
    GetVolumeIDFromTargetPathRequest,
    GetVolumeStatsRequest,
    IsVolumeFormattedRequest,
    ListVolumesOnDiskRequest,
    MountVolumeRequest,
    MountVolumeResponse,
    ResizeVolumeRequest,
    ResizeVolumeResponse,
    UnmountVolumeRequest,
    UnmountVolumeResponse,
    VolumeDiskNumberRequest,
    VolumeForwardError,
    VolumeIDFromMountRequest,
    VolumeServer,
    VolumeStatsRequest,
    WriteVolumeCacheRequest,
    WriteVolumeCacheResponse,
)

V1 = parse_version("v1")
V1ALPHA1 = parse_version("v1alpha1")
V1BETA1 = parse_version("v1beta1")


class FakeVolumeAPI:
    def __init__(self, disk_vol_map=None):
        self.disk_vol_map = dict(disk_vol_map or {})
        self.calls = []

    def _check(self, volume_id):
        if volume_id == "-1":
            raise RuntimeError(f"volume {volume_id} not found")

    def list_volumes_on_disk(self, disk_number, partition_number):
        volumes = self.disk_vol_map.get(disk_number)
        if volumes is None:
            raise RuntimeError(f"returning error for {disk_number} list")
        return volumes

    def mount_volume(self, volume_id, path):
        self._check(volume_id)
        self.calls.append(("mount", volume_id, path))

    def unmount_volume(self, volume_id, path):
        self._check(volume_id)
        self.calls.append(("unmount", volume_id, path))

    def is_volume_formatted(self, volume_id):
        self._check(volume_id)
        return True

    def format_volume(self, volume_id):
        self._check(volume_id)
        self.calls.append(("format", volume_id))

    def resize_volume(self, volume_id, size):
        self._check(volume_id)
        self.calls.append(("resize", volume_id, size))

    def get_disk_number_from_volume_id(self, volume_id):
        self._check(volume_id)
        return 0

    def get_volume_id_from_target_path(self, mount):
        return "id"

    def get_closest_volume_id_from_target_path(self, mount):
        return "id"

    def get_volume_stats(self, volume_id):
        self._check(volume_id)
        return -1, -1

    def write_volume_cache(self, volume_id):
        self._check(volume_id)
        self.calls.append(("cache", volume_id))


@pytest.fixture
def host():
    return FakeVolumeAPI({1: ["volumeID1", "volumeID2"], 2: ["volumeID3"]})


@pytest.fixture
def server(host):
    return VolumeServer(host)


@pytest.mark.parametrize(
    "disk_number, expected",
    [(1, ["volumeID1", "volumeID2"]), (2, ["volumeID3"])],
)
def test_list_volumes_on_disk(server, disk_number, expected):
    response = server.list_volumes_on_disk(ListVolumesOnDiskRequest(disk_number=disk_number), V1)
    assert Counter(response.volume_ids) == Counter(expected)


def test_list_volumes_on_disk_error(server):
    with pytest.raises(RuntimeError) as info:
        server.list_volumes_on_disk(ListVolumesOnDiskRequest(disk_number=3), V1)
    assert str(info.value) == "returning error for 3 list"


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_is_volume_formatted_negative(server, volume_id):
    with pytest.raises((ValueError, RuntimeError)):
        server.is_volume_formatted(IsVolumeFormattedRequest(volume_id=volume_id), V1)


def test_is_volume_formatted(server):
    assert server.is_volume_formatted(IsVolumeFormattedRequest(volume_id="vol"), V1).formatted


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_format_volume_negative(server, volume_id):
    with pytest.raises((ValueError, RuntimeError)):
        server.format_volume(FormatVolumeRequest(volume_id=volume_id), V1)


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_resize_volume_negative(server, volume_id):
    with pytest.raises((ValueError, RuntimeError)):
        server.resize_volume(ResizeVolumeRequest(volume_id=volume_id, size_bytes=2 * 1024 * 1024), V1)


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_mount_volume_negative(server, volume_id):
    with pytest.raises(ValueError):
        server.mount_volume(MountVolumeRequest(volume_id=volume_id, target_path=""), V1)


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_unmount_volume_negative(server, volume_id):
    with pytest.raises(ValueError):
        server.unmount_volume(UnmountVolumeRequest(volume_id=volume_id, target_path=""), V1)


@pytest.mark.parametrize("volume_id", ["", "-1"])
def test_get_volume_stats_negative(server, volume_id):
    with pytest.raises((ValueError, RuntimeError)):
        server.get_volume_stats(GetVolumeStatsRequest(volume_id=volume_id), V1)


def test_mount_volume_messages(server):
    with pytest.raises(ValueError, match="MountVolumeRequest.VolumeId is empty"):
        server.mount_volume(MountVolumeRequest(target_path="C:\\mnt"), V1)
    with pytest.raises(ValueError, match="MountVolumeRequest.TargetPath is empty"):
        server.mount_volume(MountVolumeRequest(volume_id="vol"), V1)


def test_mount_and_unmount_reach_host(server, host):
    mounted = server.mount_volume(MountVolumeRequest(volume_id="vol", target_path="C:\\mnt"), V1)
    unmounted = server.unmount_volume(
        UnmountVolumeRequest(volume_id="vol", target_path="C:\\mnt"), V1
    )
    assert mounted == MountVolumeResponse()
    assert unmounted == UnmountVolumeResponse()
    assert host.calls == [("mount", "vol", "C:\\mnt"), ("unmount", "vol", "C:\\mnt")]


def test_resize_and_cache_reach_host(server, host):
    resized = server.resize_volume(
        ResizeVolumeRequest(volume_id="vol", size_bytes=2 * 1024 * 1024), V1
    )
    cached = server.write_volume_cache(WriteVolumeCacheRequest(volume_id="vol"), V1)
    assert resized == ResizeVolumeResponse()
    assert cached == WriteVolumeCacheResponse()
    assert host.calls == [("resize", "vol", 2 * 1024 * 1024), ("cache", "vol")]


def test_write_volume_cache_empty(server):
    with pytest.raises(ValueError, match="volume id empty"):
        server.write_volume_cache(WriteVolumeCacheRequest(), V1)


def test_dismount_forwards_to_unmount(server, host):
    response = server.dismount_volume(DismountVolumeRequest(volume_id="vol", path="C:\\mnt"), V1)
    assert response == DismountVolumeResponse()
    assert host.calls == [("unmount", "vol", "C:\\mnt")]


def test_dismount_wraps_errors(server):
    with pytest.raises(VolumeForwardError, match="Forward to UnmountVolume failed"):
        server.dismount_volume(DismountVolumeRequest(volume_id="vol"), V1)


def test_get_volume_stats(server):
    response = server.get_volume_stats(GetVolumeStatsRequest(volume_id="vol"), V1)
    assert (response.total_bytes, response.used_bytes) == (-1, -1)


def test_volume_stats_forwards(server):
    response = server.volume_stats(VolumeStatsRequest(volume_id="vol"), V1BETA1)
    assert (response.volume_size, response.volume_used_size) == (-1, -1)


def test_volume_stats_requires_v1beta1(server):
    with pytest.raises(ValueError, match="v1beta1"):
        server.volume_stats(VolumeStatsRequest(volume_id="vol"), V1ALPHA1)


def test_volume_stats_wraps_errors(server):
    with pytest.raises(VolumeForwardError, match="Forward to GetVolumeStats failed"):
        server.volume_stats(VolumeStatsRequest(volume_id=""), V1)


def test_get_disk_number(server):
    response = server.get_disk_number_from_volume_id(
        GetDiskNumberFromVolumeIDRequest(volume_id="vol"), V1
    )
    assert response.disk_number == 0
    legacy = server.get_volume_disk_number(VolumeDiskNumberRequest(volume_id="vol"), V1BETA1)
    assert legacy.disk_number == 0


def test_get_volume_disk_number_requires_v1beta1(server):
    with pytest.raises(ValueError):
        server.get_volume_disk_number(VolumeDiskNumberRequest(volume_id="vol"), V1ALPHA1)


def test_get_volume_disk_number_wraps_errors(server):
    with pytest.raises(VolumeForwardError, match="GetDiskNumberFromVolumeID"):
        server.get_volume_disk_number(VolumeDiskNumberRequest(volume_id="-1"), V1)


def test_get_volume_id_from_target_path(server):
    response = server.get_volume_id_from_target_path(
        GetVolumeIDFromTargetPathRequest(target_path="C:\\mnt"), V1
    )
    assert response.volume_id == "id"
    with pytest.raises(ValueError, match="target path is empty"):
        server.get_volume_id_from_target_path(GetVolumeIDFromTargetPathRequest(), V1)


def test_get_volume_id_from_mount(server):
    response = server.get_volume_id_from_mount(VolumeIDFromMountRequest(mount="C:\\mnt"), V1)
    assert response.volume_id == "id"
    with pytest.raises(VolumeForwardError):
        server.get_volume_id_from_mount(VolumeIDFromMountRequest(), V1)
    with pytest.raises(ValueError):
        server.get_volume_id_from_mount(VolumeIDFromMountRequest(mount="C:\\mnt"), V1ALPHA1)


def test_get_closest_volume_id(server):
    response = server.get_closest_volume_id_from_target_path(
        GetClosestVolumeIDFromTargetPathRequest(target_path="C:\\mnt"), V1
    )
    assert response.volume_id == "id"
    with pytest.raises(ValueError, match="target path is empty"):
        server.get_closest_volume_id_from_target_path(GetClosestVolumeIDFromTargetPathRequest(), V1)