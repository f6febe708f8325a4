"""Filesystem API server: validated path operations on the host."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from csiproxy.types import ApiVersion
from csiproxy.utils import MAX_PATH_LENGTH_WINDOWS

logger = logging.getLogger(__name__)

_INVALID_PATH_CHARS = re.compile(r'["/:?*|]')
_ABS_PATH = re.compile(r"^[a-zA-Z]:\\")


class PathValidationError(ValueError):
    """A path failed the kubelet path restrictions."""


class FilesystemHostAPI(Protocol):
    """Host operations the filesystem server relies on."""

    def path_exists(self, path: str) -> bool: ...

    def path_valid(self, path: str) -> bool: ...

    def mkdir(self, path: str) -> None: ...

    def rmdir(self, path: str, force: bool) -> None: ...

    def rmdir_contents(self, path: str) -> None: ...

    def create_symlink(self, source_path: str, target_path: str) -> None: ...

    def is_symlink(self, path: str) -> bool: ...


@dataclass
class PathExistsRequest:
    path: str = ""


@dataclass
class PathExistsResponse:
    exists: bool = False


@dataclass
class MkdirRequest:
    path: str = ""


@dataclass
class MkdirResponse:
    pass


@dataclass
class RmdirRequest:
    path: str = ""
    force: bool = False


@dataclass
class RmdirResponse:
    pass


@dataclass
class RmdirContentsRequest:
    path: str = ""


@dataclass
class RmdirContentsResponse:
    pass


@dataclass
class CreateSymlinkRequest:
    source_path: str = ""
    target_path: str = ""


@dataclass
class CreateSymlinkResponse:
    pass


@dataclass
class IsSymlinkRequest:
    path: str = ""


@dataclass
class IsSymlinkResponse:
    is_symlink: bool = False


@dataclass
class LinkPathRequest:
    source_path: str = ""
    target_path: str = ""


@dataclass
class LinkPathResponse:
    pass


@dataclass
class IsMountPointRequest:
    path: str = ""


@dataclass
class IsMountPointResponse:
    is_mount_point: bool = False


def is_abs_windows(path: str) -> bool:
    """True for drive-letter absolute paths such as ``C:\\``; UNC paths are not absolute here."""
    return _ABS_PATH.match(path) is not None


def is_unc_path_windows(path: str) -> bool:
    """True if the path starts with a UNC or pipe prefix ``\\\\``."""
    return path.startswith("\\\\")


def contains_invalid_characters_windows(path: str) -> bool:
    """True if the path, past any drive prefix, holds a forbidden character or ``..``."""
    if is_abs_windows(path):
        path = path[3:]
    return bool(_INVALID_PATH_CHARS.search(path)) or ".." in path


class FilesystemServer:
    """Serves filesystem requests, confining paths to the working directories."""

    def __init__(self, working_dirs: Sequence[str], host_api: FilesystemHostAPI) -> None:
        self.working_dirs = list(working_dirs)
        self.host_api = host_api

    def validate_plugin_path(self, path: str) -> None:
        """Raise PathValidationError unless the path meets the kubelet path restrictions."""
        self._validate_path_windows(path)

    def _validate_path_windows(self, path: str) -> None:
        if len(path) > MAX_PATH_LENGTH_WINDOWS:
            raise PathValidationError(
                f"path length {len(path)} exceeds maximum characters: {MAX_PATH_LENGTH_WINDOWS}"
            )
        if path.startswith("\\"):
            raise PathValidationError(f"invalid character \\ at beginning of path: {path}")
        if is_unc_path_windows(path):
            raise PathValidationError(f"unsupported UNC path prefix: {path}")
        if contains_invalid_characters_windows(path):
            raise PathValidationError(f"path contains invalid characters: {path}")
        if not is_abs_windows(path):
            raise PathValidationError(f"not an absolute Windows path: {path}")
        lowered = path.lower()
        if not any(lowered.startswith(d.lower()) for d in self.working_dirs):
            raise PathValidationError(
                f"path: {path} is not within the working directories: {self.working_dirs}"
            )

    def _validated(self, path: str, what: str = "") -> None:
        try:
            self._validate_path_windows(path)
        except PathValidationError as exc:
            logger.error("failed validatePathWindows%s %s", what, exc)
            raise

    def path_exists(self, request: PathExistsRequest, version: ApiVersion) -> PathExistsResponse:
        """Check whether the path exists on the host."""
        logger.info("Request: PathExists with path=%r", request.path)
        self._validated(request.path)
        return PathExistsResponse(exists=self.host_api.path_exists(request.path))

    def path_valid(self, path: str) -> bool:
        """Check whether the path is accessible."""
        logger.info("Request: PathValid with path %r", path)
        return self.host_api.path_valid(path)

    def mkdir(self, request: MkdirRequest, version: ApiVersion) -> MkdirResponse:
        logger.info("Request: Mkdir with path=%r", request.path)
        self._validated(request.path)
        self.host_api.mkdir(request.path)
        return MkdirResponse()

    def rmdir(self, request: RmdirRequest, version: ApiVersion) -> RmdirResponse:
        logger.info("Request: Rmdir with path=%r", request.path)
        self._validated(request.path)
        self.host_api.rmdir(request.path, request.force)
        return RmdirResponse()

    def rmdir_contents(
        self, request: RmdirContentsRequest, version: ApiVersion
    ) -> RmdirContentsResponse:
        logger.info("Request: RmdirContents with path=%r", request.path)
        self._validated(request.path)
        self.host_api.rmdir_contents(request.path)
        return RmdirContentsResponse()

    def link_path(self, request: LinkPathRequest, version: ApiVersion) -> LinkPathResponse:
        """Older name for create_symlink."""
        logger.info(
            "Request: LinkPath with targetPath=%r sourcePath=%r",
            request.target_path,
            request.source_path,
        )
        self.create_symlink(
            CreateSymlinkRequest(source_path=request.source_path, target_path=request.target_path),
            version,
        )
        return LinkPathResponse()

    def create_symlink(
        self, request: CreateSymlinkRequest, version: ApiVersion
    ) -> CreateSymlinkResponse:
        logger.info(
            "Request: CreateSymlink with targetPath=%r sourcePath=%r",
            request.target_path,
            request.source_path,
        )
        self._validated(request.target_path, " for target path")
        self._validated(request.source_path, " for source path")
        self.host_api.create_symlink(request.source_path, request.target_path)
        return CreateSymlinkResponse()

    def is_mount_point(
        self, request: IsMountPointRequest, version: ApiVersion
    ) -> IsMountPointResponse:
        """Older name for is_symlink."""
        logger.info("Request: IsMountPoint with path=%r", request.path)
        response = self.is_symlink(IsSymlinkRequest(path=request.path), version)
        return IsMountPointResponse(is_mount_point=response.is_symlink)

    def is_symlink(self, request: IsSymlinkRequest, version: ApiVersion) -> IsSymlinkResponse:
        logger.info("Request: IsSymlink with path=%r", request.path)
        return IsSymlinkResponse(is_symlink=self.host_api.is_symlink(request.path))