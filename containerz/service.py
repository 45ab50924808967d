"""The full containerz service: a server answering every containerz request."""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from .containers import ContainerService
from .images import ImageService
from .messages import (
    CreateVolumeRequest,
    CreateVolumeResponse,
    DeployRequest,
    DeployResponse,
    ListContainerRequest,
    ListContainerResponse,
    ListImageRequest,
    ListImageResponse,
    ListPluginsRequest,
    ListPluginsResponse,
    ListVolumeRequest,
    ListVolumeResponse,
    LogRequest,
    LogResponse,
    RemoveContainerRequest,
    RemoveContainerResponse,
    RemoveImageRequest,
    RemoveImageResponse,
    RemovePluginRequest,
    RemovePluginResponse,
    RemoveVolumeRequest,
    RemoveVolumeResponse,
    StartContainerRequest,
    StartContainerResponse,
    StartPluginRequest,
    StartPluginResponse,
    StopContainerRequest,
    StopContainerResponse,
    StopPluginRequest,
    StopPluginResponse,
    UpdateContainerRequest,
    UpdateContainerResponse,
)
from .plugins import PluginService
from .server import Server
from .volumes import VolumeService


class ContainerzServer(Server):
    """A server that answers image, container, plugin and volume requests."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._images = ImageService(self)
        self._containers = ContainerService(self)
        self._plugins = PluginService(self)
        self._volumes = VolumeService(self)

    def deploy(self, requests: Iterable[DeployRequest]) -> Iterator[DeployResponse]:
        return self._images.deploy(requests)

    def list_image(self, request: ListImageRequest) -> Iterator[ListImageResponse]:
        return self._images.list_image(request)

    def remove_image(self, request: RemoveImageRequest) -> RemoveImageResponse:
        return self._images.remove_image(request)

    def list_container(self, request: ListContainerRequest) -> Iterator[ListContainerResponse]:
        return self._containers.list_container(request)

    def log(self, request: LogRequest) -> Iterator[LogResponse]:
        return self._containers.log(request)

    def remove_container(self, request: RemoveContainerRequest) -> RemoveContainerResponse:
        return self._containers.remove_container(request)

    def start_container(self, request: StartContainerRequest) -> StartContainerResponse:
        return self._containers.start_container(request)

    def stop_container(self, request: StopContainerRequest) -> StopContainerResponse:
        return self._containers.stop_container(request)

    def update_container(self, request: UpdateContainerRequest) -> UpdateContainerResponse:
        return self._containers.update_container(request)

    def list_plugins(self, request: ListPluginsRequest) -> ListPluginsResponse:
        return self._plugins.list_plugins(request)

    def remove_plugin(self, request: RemovePluginRequest) -> RemovePluginResponse:
        return self._plugins.remove_plugin(request)

    def start_plugin(self, request: StartPluginRequest) -> StartPluginResponse:
        return self._plugins.start_plugin(request)

    def stop_plugin(self, request: StopPluginRequest) -> StopPluginResponse:
        return self._plugins.stop_plugin(request)

    def create_volume(self, request: CreateVolumeRequest) -> CreateVolumeResponse:
        return self._volumes.create_volume(request)

    def list_volume(self, request: ListVolumeRequest) -> Iterator[ListVolumeResponse]:
        return self._volumes.list_volume(request)

    def remove_volume(self, request: RemoveVolumeRequest) -> RemoveVolumeResponse:
        return self._volumes.remove_volume(request)