"""Volume operations of the containerz service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .messages import (
    CreateVolumeRequest,
    CreateVolumeResponse,
    CustomOptions,
    Driver,
    ListVolumeRequest,
    ListVolumeResponse,
    LocalDriverOptions,
    RemoveVolumeRequest,
    RemoveVolumeResponse,
)
from .server import Server


@dataclass
class VolumeService:
    """Serves the volume requests of a containerz server."""

    server: Server

    def create_volume(self, request: CreateVolumeRequest) -> CreateVolumeResponse:
        """Create a volume, defaulting to the local driver."""
        driver = request.driver
        driver_options: LocalDriverOptions | CustomOptions | None = None
        if driver == Driver.DS_UNSPECIFIED:
            driver = Driver.DS_LOCAL
        elif driver == Driver.DS_LOCAL:
            driver_options = request.local_mount_options
        elif driver == Driver.DS_CUSTOM:
            driver_options = request.custom_options

        name = self.server.mgr.volume_create(
            request.name,
            driver,
            dict(request.labels),
            driver_options=driver_options,
        )
        return CreateVolumeResponse(name=name)

    def list_volume(self, request: ListVolumeRequest) -> Iterator[ListVolumeResponse]:
        """Yield the volumes matching the request's filters."""
        filters: dict[str, list[str]] = {}
        for flt in request.filter:
            filters.setdefault(flt.key, []).extend(flt.value)
        yield from self.server.mgr.volume_list(filters)

    def remove_volume(self, request: RemoveVolumeRequest) -> RemoveVolumeResponse:
        """Remove a volume, forcefully if requested."""
        self.server.mgr.volume_remove(request.name, force=request.force)
        return RemoveVolumeResponse()