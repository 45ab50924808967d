"""The containerz server: its configuration, listener and lifecycle."""

from __future__ import annotations

import logging
import socket
from typing import Any, BinaryIO, Iterable, Mapping, Protocol, Sequence

from .errors import StatusCode, StatusError
from .messages import (
    CustomOptions,
    Driver,
    ListContainerResponse,
    ListImageResponse,
    ListPluginsResponse,
    ListVolumeResponse,
    LocalDriverOptions,
    LogResponse,
)

log = logging.getLogger(__name__)

DEFAULT_ADDR = ":9999"
DEFAULT_TMP_LOCATION = "/tmp"
DEFAULT_CHUNK_SIZE = 5_000_000
DEFAULT_PLUGIN_LOCATION = "/plugins"


class ContainerManager(Protocol):
    """The container runtime that the server delegates its work to."""

    def container_list(
        self, all: bool, limit: int, filters: Mapping[str, Sequence[str]]
    ) -> Iterable[ListContainerResponse]:
        """Yield containers, all of them regardless of state if ``all``, at most ``limit``."""
        ...

    def image_pull(self, image: str, tag: str, credentials: Any = None) -> None:
        """Pull ``image:tag`` from a registry."""
        ...

    def image_push(self, file: BinaryIO, name: str, tag: str) -> tuple[str, str]:
        """Load an image tarball and return the image name and tag it was stored under."""
        ...

    def container_remove(self, instance: str, force: bool = False) -> None:
        """Remove a container that is not running."""
        ...

    def container_start(self, image: str, tag: str, cmd: str, **options: Any) -> str:
        """Start a container and return its instance name."""
        ...

    def container_stop(self, instance: str, force: bool = False) -> None:
        """Stop a container, killing it if ``force``."""
        ...

    def container_update(
        self,
        instance: str,
        image: str,
        tag: str,
        cmd: str,
        asynchronous: bool,
        **options: Any,
    ) -> str:
        """Move a container to a new image and return its instance name."""
        ...

    def container_logs(self, instance: str, follow: bool = False) -> Iterable[LogResponse]:
        """Yield the log lines of a container, following them if ``follow``."""
        ...

    def image_list(
        self, all: bool, limit: int, filters: Mapping[str, Sequence[str]]
    ) -> Iterable[ListImageResponse]:
        """Yield the images on the target."""
        ...

    def image_remove(self, image: str, tag: str, force: bool = False) -> None:
        """Remove an image that no running container uses."""
        ...

    def plugin_list(self, instance: str) -> ListPluginsResponse:
        """List plugins, or only the named instance."""
        ...

    def plugin_remove(self, instance: str) -> None:
        """Remove a plugin."""
        ...

    def plugin_start(self, name: str, instance: str, config: str) -> None:
        """Start a plugin with the given configuration."""
        ...

    def plugin_stop(self, instance: str) -> None:
        """Stop a plugin."""
        ...

    def volume_list(self, filters: Mapping[str, Sequence[str]]) -> Iterable[ListVolumeResponse]:
        """Yield the volumes on the target."""
        ...

    def volume_create(
        self,
        name: str,
        driver: Driver,
        labels: Mapping[str, str],
        driver_options: LocalDriverOptions | CustomOptions | None = None,
    ) -> str:
        """Create a volume and return its name, generated when ``name`` is empty."""
        ...

    def volume_remove(self, name: str, force: bool = False) -> None:
        """Remove a volume."""
        ...


class _RpcHost(Protocol):
    """What the server needs from the transport that hosts it."""

    def register(self, service: Any) -> None: ...

    def serve(self, listener: socket.socket) -> Any: ...

    def stop(self) -> None: ...

    def graceful_stop(self) -> None: ...


def _parse_address(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError as exc:
        raise ValueError(f"invalid port in address {addr!r}") from exc
    return host, port_number


def _listen(addr: str) -> socket.socket:
    host, port = _parse_address(addr)
    if not host and socket.has_dualstack_ipv6():
        return socket.create_server(("", port), family=socket.AF_INET6, dualstack_ipv6=True)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return socket.create_server((host, port), family=family)


class Server:
    """A containerz service bound to a container manager and a listening socket."""

    def __init__(
        self,
        mgr: ContainerManager,
        addr: str = DEFAULT_ADDR,
        tmp_location: str = DEFAULT_TMP_LOCATION,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        rpc_server: _RpcHost | None = None,
        plugin_location: str = DEFAULT_PLUGIN_LOCATION,
    ) -> None:
        self.mgr = mgr
        self.addr = addr
        self.tmp_location = tmp_location
        self.chunk_size = chunk_size
        self.plugin_location = plugin_location
        self._rpc_server = rpc_server
        # The listener is only opened when an address is configured.
        self.listener: socket.socket | None = _listen(addr) if addr else None

    @property
    def rpc_server(self) -> _RpcHost | None:
        return self._rpc_server

    @rpc_server.setter
    def rpc_server(self, host: _RpcHost | None) -> None:
        """Replace the hosting transport, stopping the previous one."""
        if self._rpc_server is not None:
            self._rpc_server.stop()
        self._rpc_server = host

    @property
    def address(self) -> tuple[str, int] | None:
        """The host and port the listener is bound to, if listening."""
        if self.listener is None:
            return None
        sockname = self.listener.getsockname()
        return sockname[0], sockname[1]

    def serve(self) -> Any:
        """Register this service with the transport and serve on the listener."""
        if self._rpc_server is None or not self.addr or self.listener is None:
            msg = (
                "cannot serve Containerz service without rpc server, listener, and address."
                f" rpc server={self._rpc_server!r}, listener={self.listener!r},"
                f" address={self.addr!r}"
            )
            log.info(msg)
            raise StatusError(StatusCode.FAILED_PRECONDITION, msg)

        log.info("server-start")
        self._rpc_server.register(self)
        log.info("Starting up on Containerz server, listening on: %s", self.address)
        log.info("server-ready")
        return self._rpc_server.serve(self.listener)

    def halt(self) -> None:
        """Stop the server gracefully."""
        if self._rpc_server is None:
            log.info("halted a server which was not running (this was a no-op)")
            return
        log.info("server-stopping")
        self._rpc_server.graceful_stop()
        if self.listener is not None:
            self.listener.close()
            self.listener = None
        log.info("server stopped")

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.halt()