"""Container operations of the containerz service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .errors import StatusCode, StatusError
from .messages import (
    ListContainerRequest,
    ListContainerResponse,
    LogRequest,
    LogResponse,
    RemoveContainerRequest,
    RemoveContainerResponse,
    StartContainerRequest,
    StartContainerResponse,
    StopContainerRequest,
    StopContainerResponse,
    UpdateContainerRequest,
    UpdateContainerResponse,
)
from .server import Server


def options_from_start_request(request: StartContainerRequest) -> dict[str, Any]:
    """Return the keyword options a container manager is given to start ``request``."""
    options: dict[str, Any] = {}
    if request.ports:
        options["ports"] = {port.internal: port.external for port in request.ports}
    if request.network:
        options["network"] = request.network
    if request.restart is not None:
        options["restart_policy"] = request.restart
    if request.run_as is not None:
        options["run_as"] = request.run_as
    if request.cap is not None:
        options["capabilities"] = request.cap
    limits = request.limits
    if limits is not None:
        if limits.max_cpu != 0:
            options["cpus"] = limits.max_cpu
        if limits.soft_mem_bytes != 0:
            options["soft_memory"] = limits.soft_mem_bytes
        if limits.hard_mem_bytes != 0:
            options["hard_memory"] = limits.hard_mem_bytes

    options["labels"] = dict(request.labels)
    options["environment"] = dict(request.environment)
    options["instance_name"] = request.instance_name
    options["volumes"] = list(request.volumes)
    options["devices"] = list(request.devices)
    return options


@dataclass
class ContainerService:
    """Serves the container requests of a containerz server."""

    server: Server

    def list_container(self, request: ListContainerRequest) -> Iterator[ListContainerResponse]:
        """Yield the containers matching the request's filters."""
        filters: dict[str, list[str]] = {}
        for flt in request.filter:
            filters.setdefault(flt.key, []).extend(flt.value)
        yield from self.server.mgr.container_list(request.all, request.limit, filters)

    def log(self, request: LogRequest) -> Iterator[LogResponse]:
        """Yield the logs of a container, following them if the request asks for it."""
        yield from self.server.mgr.container_logs(request.instance_name, follow=request.follow)

    def remove_container(self, request: RemoveContainerRequest) -> RemoveContainerResponse:
        """Remove a container, forcefully if requested."""
        self.server.mgr.container_remove(request.name, force=request.force)
        return RemoveContainerResponse()

    def start_container(self, request: StartContainerRequest) -> StartContainerResponse:
        """Start a container and report the instance name it was given."""
        options = options_from_start_request(request)
        instance = self.server.mgr.container_start(
            request.image_name, request.tag, request.cmd, **options
        )
        return StartContainerResponse(instance_name=instance)

    def stop_container(self, request: StopContainerRequest) -> StopContainerResponse:
        """Stop a container, killing it if ``force`` is set."""
        self.server.mgr.container_stop(request.instance_name, force=request.force)
        return StopContainerResponse()

    def update_container(self, request: UpdateContainerRequest) -> UpdateContainerResponse:
        """Move a container to the image described by the request's start parameters."""
        params = request.params
        if params is None:
            raise StatusError(
                StatusCode.FAILED_PRECONDITION,
                "expected request to contain populated params, yet was nil",
            )
        options = options_from_start_request(params)
        instance = self.server.mgr.container_update(
            request.instance_name,
            params.image_name,
            params.tag,
            params.cmd,
            request.asynchronous,
            **options,
        )
        return UpdateContainerResponse(instance_name=instance, is_async=request.asynchronous)