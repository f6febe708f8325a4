"""SMB API server: global SMB mappings and links into the kubelet tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from csiproxy.filesystem import FilesystemServer
from csiproxy.types import ApiVersion

logger = logging.getLogger(__name__)


class SmbLinkError(RuntimeError):
    """Linking a local path to a remote share failed."""


class SmbHostAPI(Protocol):
    """Host operations the SMB server relies on."""

    def new_smb_global_mapping(self, remote_path: str, username: str, password: str) -> None: ...

    def remove_smb_global_mapping(self, remote_path: str) -> None: ...

    def is_smb_mapped(self, remote_path: str) -> bool: ...

    def new_smb_link(self, remote_path: str, local_path: str) -> None: ...


@dataclass
class NewSmbGlobalMappingRequest:
    remote_path: str = ""
    local_path: str = ""
    username: str = ""
    password: str = ""


@dataclass
class NewSmbGlobalMappingResponse:
    pass


@dataclass
class RemoveSmbGlobalMappingRequest:
    remote_path: str = ""


@dataclass
class RemoveSmbGlobalMappingResponse:
    pass


def normalize_windows_path(path: str) -> str:
    """Turn every forward slash into a backslash."""
    return path.replace("/", "\\")


def get_root_mapping_path(path: str) -> str:
    r"""Return ``\\host\share`` in lower case for a remote path; raise ValueError if it has no share."""
    parts = [item for item in path.split("\\") if item][:2]
    if len(parts) != 2:
        logger.error("remote path (%s) is invalid", path)
        raise ValueError(f"remote path ({path}) is invalid")
    host, share = parts
    return f"\\\\{host}\\{share}".lower()


class SmbServer:
    """Serves SMB mapping requests."""

    def __init__(self, host_api: SmbHostAPI, fs_server: FilesystemServer) -> None:
        self.host_api = host_api
        self.fs_server = fs_server

    def new_smb_global_mapping(
        self, request: NewSmbGlobalMappingRequest, version: ApiVersion
    ) -> NewSmbGlobalMappingResponse:
        """Map the share of the remote path, remapping a stale mapping, and link it locally if asked."""
        logger.info("calling NewSmbGlobalMapping with remote path %r", request.remote_path)
        remote_path = normalize_windows_path(request.remote_path)
        local_path = request.local_path

        if not remote_path:
            logger.error("remote path is empty")
            raise ValueError("remote path is empty")

        mapping_path = get_root_mapping_path(remote_path)

        try:
            is_mapped = self.host_api.is_smb_mapped(mapping_path)
        except Exception:
            is_mapped = False

        if is_mapped:
            logger.debug("Remote %s already mapped. Validating...", mapping_path)
            try:
                valid = self.fs_server.path_valid(mapping_path)
            except Exception as exc:
                logger.warning("PathValid(%s) failed with %s, ignore error", mapping_path, exc)
                valid = False

            if not valid:
                logger.debug("RemotePath %s is not valid, removing now", mapping_path)
                try:
                    self.host_api.remove_smb_global_mapping(mapping_path)
                except Exception as exc:
                    logger.error("RemoveSmbGlobalMapping(%s) failed with %s", mapping_path, exc)
                    raise
                is_mapped = False
            else:
                logger.debug("RemotePath %s is valid", mapping_path)

        if not is_mapped:
            logger.debug("Remote %s not mapped. Mapping now!", mapping_path)
            try:
                self.host_api.new_smb_global_mapping(
                    mapping_path, request.username, request.password
                )
            except Exception as exc:
                logger.error("failed NewSmbGlobalMapping %s", exc)
                raise

        if local_path:
            logger.debug("ValidatePluginPath: '%s'", local_path)
            try:
                self.fs_server.validate_plugin_path(local_path)
            except ValueError as exc:
                logger.error("failed validate plugin path %s", exc)
                raise
            try:
                self.host_api.new_smb_link(remote_path, local_path)
            except Exception as exc:
                logger.error("failed NewSmbLink %s", exc)
                raise SmbLinkError(
                    f"creating link {local_path} to {remote_path} failed with error: {exc}"
                ) from exc

        logger.info("NewSmbGlobalMapping on remote path %r is completed", request.remote_path)
        return NewSmbGlobalMappingResponse()

    def remove_smb_global_mapping(
        self, request: RemoveSmbGlobalMappingRequest, version: ApiVersion
    ) -> RemoveSmbGlobalMappingResponse:
        """Remove the global mapping of the share the remote path belongs to."""
        logger.info("calling RemoveSmbGlobalMapping with remote path %r", request.remote_path)
        remote_path = normalize_windows_path(request.remote_path)

        if not remote_path:
            logger.error("remote path is empty")
            raise ValueError("remote path is empty")

        mapping_path = get_root_mapping_path(remote_path)
        try:
            self.host_api.remove_smb_global_mapping(mapping_path)
        except Exception as exc:
            logger.error("failed RemoveSmbGlobalMapping %s", exc)
            raise

        logger.info("RemoveSmbGlobalMapping on remote path %r is completed", request.remote_path)
        return RemoveSmbGlobalMappingResponse()