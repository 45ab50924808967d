"""Plugin operations of the containerz service."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import StatusCode, StatusError
from .messages import (
    ListPluginsRequest,
    ListPluginsResponse,
    RemovePluginRequest,
    RemovePluginResponse,
    StartPluginRequest,
    StartPluginResponse,
    StopPluginRequest,
    StopPluginResponse,
)
from .server import Server


def _wrap(action: str, exc: Exception) -> StatusError:
    """Wrap a manager failure, keeping the status code of the underlying error."""
    status = StatusError.from_exception(exc)
    code = status.code if status is not None else StatusCode.UNKNOWN
    return StatusError(code, f"unable to {action} plugin: {exc}")


@dataclass
class PluginService:
    """Serves the plugin requests of a containerz server."""

    server: Server

    def list_plugins(self, request: ListPluginsRequest) -> ListPluginsResponse:
        """List the plugins on the target, or only the named instance."""
        return self.server.mgr.plugin_list(request.instance_name)

    def remove_plugin(self, request: RemovePluginRequest) -> RemovePluginResponse:
        """Remove a plugin instance."""
        try:
            self.server.mgr.plugin_remove(request.instance_name)
        except Exception as exc:
            raise _wrap("remove", exc) from exc
        return RemovePluginResponse()

    def start_plugin(self, request: StartPluginRequest) -> StartPluginResponse:
        """Start a plugin and report the instance name it runs under."""
        try:
            self.server.mgr.plugin_start(request.name, request.instance_name, request.config)
        except Exception as exc:
            raise _wrap("start", exc) from exc
        return StartPluginResponse(instance_name=request.instance_name)

    def stop_plugin(self, request: StopPluginRequest) -> StopPluginResponse:
        """Stop a plugin instance."""
        try:
            self.server.mgr.plugin_stop(request.instance_name)
        except Exception as exc:
            raise _wrap("stop", exc) from exc
        return StopPluginResponse()