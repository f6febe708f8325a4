"""iSCSI API server: target portals, target connections and CHAP secrets."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Protocol

from csiproxy.types import ApiVersion, parse_version

logger = logging.getLogger(__name__)

DEFAULT_ISCSI_PORT = 3260
_MUTUAL_CHAP_MIN_VERSION = parse_version("v1alpha2")


class AuthenticationType(enum.IntEnum):
    """How initiator and target authenticate each other."""

    NONE = 0
    ONE_WAY_CHAP = 1
    MUTUAL_CHAP = 2


_AUTH_TYPE_NAMES = {
    AuthenticationType.NONE: "NONE",
    AuthenticationType.ONE_WAY_CHAP: "ONEWAYCHAP",
    AuthenticationType.MUTUAL_CHAP: "MUTUALCHAP",
}


@dataclass
class TargetPortal:
    """An iSCSI target portal as seen by clients; port 0 means the default port."""

    target_address: str = ""
    target_port: int = 0


@dataclass
class HostTargetPortal:
    """An iSCSI target portal as handed to the host."""

    address: str = ""
    port: int = DEFAULT_ISCSI_PORT


class IscsiHostAPI(Protocol):
    """Host operations the iSCSI server relies on."""

    def add_target_portal(self, portal: HostTargetPortal) -> None: ...

    def discover_target_portal(self, portal: HostTargetPortal) -> list[str]: ...

    def list_target_portals(self) -> list[HostTargetPortal]: ...

    def remove_target_portal(self, portal: HostTargetPortal) -> None: ...

    def connect_target(
        self,
        portal: HostTargetPortal,
        iqn: str,
        auth_type: str,
        chap_user: str,
        chap_secret: str,
    ) -> None: ...

    def disconnect_target(self, portal: HostTargetPortal, iqn: str) -> None: ...

    def get_target_disks(self, portal: HostTargetPortal, iqn: str) -> list[str]: ...

    def set_mutual_chap_secret(self, mutual_chap_secret: str) -> None: ...


@dataclass
class AddTargetPortalRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)


@dataclass
class AddTargetPortalResponse:
    pass


@dataclass
class ConnectTargetRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)
    iqn: str = ""
    auth_type: int = AuthenticationType.NONE
    chap_username: str = ""
    chap_secret: str = ""


@dataclass
class ConnectTargetResponse:
    pass


@dataclass
class DisconnectTargetRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)
    iqn: str = ""


@dataclass
class DisconnectTargetResponse:
    pass


@dataclass
class DiscoverTargetPortalRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)


@dataclass
class DiscoverTargetPortalResponse:
    iqns: list[str] = field(default_factory=list)


@dataclass
class GetTargetDisksRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)
    iqn: str = ""


@dataclass
class GetTargetDisksResponse:
    disk_ids: list[str] = field(default_factory=list)


@dataclass
class ListTargetPortalsRequest:
    pass


@dataclass
class ListTargetPortalsResponse:
    target_portals: list[TargetPortal] = field(default_factory=list)


@dataclass
class RemoveTargetPortalRequest:
    target_portal: TargetPortal = field(default_factory=TargetPortal)


@dataclass
class RemoveTargetPortalResponse:
    pass


@dataclass
class SetMutualChapSecretRequest:
    mutual_chap_secret: str = ""


@dataclass
class SetMutualChapSecretResponse:
    pass


def auth_type_to_string(auth_type: int) -> str:
    """Return the host's name for an authentication type; raise ValueError for unknown ones."""
    try:
        return _AUTH_TYPE_NAMES[AuthenticationType(auth_type)]
    except ValueError:
        raise ValueError(f"invalid authentication type authType={auth_type}") from None


def convert_list_target_portals_response(
    response: ListTargetPortalsResponse,
) -> ListTargetPortalsResponse:
    """Return a copy of the response whose portals are fresh copies."""
    return ListTargetPortalsResponse(
        target_portals=[replace(portal) for portal in response.target_portals]
    )


def _to_host_portal(portal: TargetPortal) -> HostTargetPortal:
    return HostTargetPortal(
        address=portal.target_address,
        port=portal.target_port or DEFAULT_ISCSI_PORT,
    )


class IscsiServer:
    """Serves iSCSI initiator requests."""

    def __init__(self, host_api: IscsiHostAPI) -> None:
        self.host_api = host_api

    def add_target_portal(
        self, request: AddTargetPortalRequest, version: ApiVersion
    ) -> AddTargetPortalResponse:
        portal = request.target_portal
        logger.debug(
            "calling AddTargetPortal with portal %s:%d", portal.target_address, portal.target_port
        )
        try:
            self.host_api.add_target_portal(_to_host_portal(portal))
        except Exception as exc:
            logger.error("failed AddTargetPortal %s", exc)
            raise
        return AddTargetPortalResponse()

    def connect_target(
        self, request: ConnectTargetRequest, version: ApiVersion
    ) -> ConnectTargetResponse:
        portal = request.target_portal
        logger.debug(
            "calling ConnectTarget with portal %s:%d and iqn %s auth=%s chapuser=%s",
            portal.target_address,
            portal.target_port,
            request.iqn,
            request.auth_type,
            request.chap_username,
        )
        try:
            auth_type = auth_type_to_string(request.auth_type)
        except ValueError as exc:
            logger.error("Error parsing parameters: %s", exc)
            raise
        try:
            self.host_api.connect_target(
                _to_host_portal(portal),
                request.iqn,
                auth_type,
                request.chap_username,
                request.chap_secret,
            )
        except Exception as exc:
            logger.error("failed ConnectTarget %s", exc)
            raise
        return ConnectTargetResponse()

    def disconnect_target(
        self, request: DisconnectTargetRequest, version: ApiVersion
    ) -> DisconnectTargetResponse:
        portal = request.target_portal
        logger.debug(
            "calling DisconnectTarget with portal %s:%d and iqn %s",
            portal.target_address,
            portal.target_port,
            request.iqn,
        )
        try:
            self.host_api.disconnect_target(_to_host_portal(portal), request.iqn)
        except Exception as exc:
            logger.error("failed DisconnectTarget %s", exc)
            raise
        return DisconnectTargetResponse()

    def discover_target_portal(
        self, request: DiscoverTargetPortalRequest, version: ApiVersion
    ) -> DiscoverTargetPortalResponse:
        portal = request.target_portal
        logger.debug(
            "calling DiscoverTargetPortal with portal %s:%d",
            portal.target_address,
            portal.target_port,
        )
        try:
            iqns = self.host_api.discover_target_portal(_to_host_portal(portal))
        except Exception as exc:
            logger.error("failed DiscoverTargetPortal %s", exc)
            raise
        return DiscoverTargetPortalResponse(iqns=list(iqns))

    def get_target_disks(
        self, request: GetTargetDisksRequest, version: ApiVersion
    ) -> GetTargetDisksResponse:
        portal = request.target_portal
        logger.debug(
            "calling GetTargetDisks with portal %s:%d and iqn %s",
            portal.target_address,
            portal.target_port,
            request.iqn,
        )
        try:
            disks = self.host_api.get_target_disks(_to_host_portal(portal), request.iqn)
        except Exception as exc:
            logger.error("failed GetTargetDisks %s", exc)
            raise
        return GetTargetDisksResponse(disk_ids=list(disks))

    def list_target_portals(
        self, request: ListTargetPortalsRequest, version: ApiVersion
    ) -> ListTargetPortalsResponse:
        logger.debug("calling ListTargetPortals")
        try:
            portals = self.host_api.list_target_portals()
        except Exception as exc:
            logger.error("failed ListTargetPortals %s", exc)
            raise
        return ListTargetPortalsResponse(
            target_portals=[
                TargetPortal(target_address=p.address, target_port=p.port) for p in portals
            ]
        )

    def remove_target_portal(
        self, request: RemoveTargetPortalRequest, version: ApiVersion
    ) -> RemoveTargetPortalResponse:
        portal = request.target_portal
        logger.debug(
            "calling RemoveTargetPortal with portal %s:%d",
            portal.target_address,
            portal.target_port,
        )
        try:
            self.host_api.remove_target_portal(_to_host_portal(portal))
        except Exception as exc:
            logger.error("failed RemoveTargetPortal %s", exc)
            raise
        return RemoveTargetPortalResponse()

    def set_mutual_chap_secret(
        self, request: SetMutualChapSecretRequest, version: ApiVersion
    ) -> SetMutualChapSecretResponse:
        """Set the initiator's mutual CHAP secret; needs API version v1alpha2 or newer."""
        logger.debug("calling SetMutualChapSecret")
        if version.compare(_MUTUAL_CHAP_MIN_VERSION) < 0:
            raise ValueError(
                "SetMutualChapSecret requires CSI-Proxy API version v1alpha2 or greater"
            )
        try:
            self.host_api.set_mutual_chap_secret(request.mutual_chap_secret)
        except Exception as exc:
            logger.error("failed SetMutualChapSecret %s", exc)
            raise
        return SetMutualChapSecretResponse()