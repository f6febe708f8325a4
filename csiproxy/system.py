"""System API server: BIOS serial number and Windows service control."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from csiproxy.types import ApiVersion

logger = logging.getLogger(__name__)


class ServiceStatus(enum.IntEnum):
    """Current state of a service."""

    UNKNOWN = 0
    STOPPED = 1
    START_PENDING = 2
    STOP_PENDING = 3
    RUNNING = 4
    CONTINUE_PENDING = 5
    PAUSE_PENDING = 6
    PAUSED = 7


class StartType(enum.IntEnum):
    """Whether, and in which boot phase, a service starts."""

    BOOT = 0
    SYSTEM = 1
    AUTOMATIC = 2
    MANUAL = 3
    DISABLED = 4


@dataclass
class ServiceInfo:
    """A service as reported by the host."""

    display_name: str = ""
    start_type: int = StartType.BOOT
    status: int = ServiceStatus.UNKNOWN


class SystemHostAPI(Protocol):
    """Host operations the system server relies on."""

    def get_bios_serial_number(self) -> str: ...

    def get_service(self, name: str) -> ServiceInfo: ...

    def start_service(self, name: str) -> None: ...

    def stop_service(self, name: str, force: bool) -> None: ...


@dataclass
class GetBIOSSerialNumberRequest:
    pass


@dataclass
class GetBIOSSerialNumberResponse:
    serial_number: str = ""


@dataclass
class StartServiceRequest:
    name: str = ""


@dataclass
class StartServiceResponse:
    pass


@dataclass
class StopServiceRequest:
    name: str = ""
    force: bool = False


@dataclass
class StopServiceResponse:
    pass


@dataclass
class GetServiceRequest:
    name: str = ""


@dataclass
class GetServiceResponse:
    display_name: str = ""
    start_type: StartType = StartType.BOOT
    status: ServiceStatus = ServiceStatus.UNKNOWN


class SystemServer:
    """Serves system requests by delegating to the host API."""

    def __init__(self, host_api: SystemHostAPI) -> None:
        self.host_api = host_api

    def get_bios_serial_number(
        self, request: GetBIOSSerialNumberRequest, version: ApiVersion
    ) -> GetBIOSSerialNumberResponse:
        logger.debug("calling GetBIOSSerialNumber")
        try:
            serial_number = self.host_api.get_bios_serial_number()
        except Exception as exc:
            logger.error("failed GetBIOSSerialNumber: %s", exc)
            raise
        return GetBIOSSerialNumberResponse(serial_number=serial_number)

    def get_service(self, request: GetServiceRequest, version: ApiVersion) -> GetServiceResponse:
        logger.debug("calling GetService name=%s", request.name)
        try:
            info = self.host_api.get_service(request.name)
        except Exception as exc:
            logger.error("failed GetService: %s", exc)
            raise
        return GetServiceResponse(
            display_name=info.display_name,
            start_type=StartType(info.start_type),
            status=ServiceStatus(info.status),
        )

    def start_service(
        self, request: StartServiceRequest, version: ApiVersion
    ) -> StartServiceResponse:
        logger.debug("calling StartService name=%s", request.name)
        try:
            self.host_api.start_service(request.name)
        except Exception as exc:
            logger.error("failed StartService: %s", exc)
            raise
        return StartServiceResponse()

    def stop_service(self, request: StopServiceRequest, version: ApiVersion) -> StopServiceResponse:
        logger.debug("calling StopService name=%s", request.name)
        try:
            self.host_api.stop_service(request.name, request.force)
        except Exception as exc:
            logger.error("failed StopService: %s", exc)
            raise
        return StopServiceResponse()