# containerz

`containerz` is a container management service. It answers requests to
deploy images, start, stop, update and remove containers, stream their
logs, and manage plugins and volumes. The real work goes to a container
manager that you supply.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Modules

- `containerz.messages` holds plain dataclasses for every request and
  response, such as `StartContainerRequest`, `DeployRequest`,
  `CreateVolumeRequest` and `ListPluginsResponse`. It also holds the enums
  `Driver`, `RemoveImageCode`, `RestartPolicy` and `DevicePermission`.
- `containerz.errors` defines `StatusError`, which carries a `StatusCode`
  (`NOT_FOUND`, `UNAVAILABLE`, `RESOURCE_EXHAUSTED`, ...) and a message.
  `StatusError.from_exception` finds a status error in an exception or in
  the chain of its causes.
- `containerz.server` defines `ContainerManager`, the protocol your backend
  implements, and `Server`, which holds the configuration and the listening
  socket.
- `containerz.images` has `ImageService` (`deploy`, `list_image`,
  `remove_image`) and the helpers `disk_space`, `check_disk_space` and
  `move_file`.
- `containerz.containers` has `ContainerService` (`list_container`, `log`,
  `remove_container`, `start_container`, `stop_container`,
  `update_container`) and `options_from_start_request`.
- `containerz.plugins` has `PluginService` (`list_plugins`, `remove_plugin`,
  `start_plugin`, `stop_plugin`).
- `containerz.volumes` has `VolumeService` (`create_volume`, `list_volume`,
  `remove_volume`).
- `containerz.service` has `ContainerzServer`, a `Server` subclass that
  offers every operation above as its own method.

## Example

```python
from containerz.messages import Port, StartContainerRequest, StopContainerRequest
from containerz.service import ContainerzServer

# `manager` is any object that implements containerz.server.ContainerManager.
server = ContainerzServer(manager, addr="")  # an empty addr opens no socket

started = server.start_container(
    StartContainerRequest(
        image_name="web",
        tag="latest",
        cmd="serve",
        ports=[Port(internal=80, external=8080)],
    )
)
print(started.instance_name)

server.stop_container(StopContainerRequest(instance_name=started.instance_name))
```

`start_container` and `update_container` pass options to the manager as
keyword arguments. These are `ports` (a mapping from internal to external
port), `network`, `restart_policy`, `run_as`, `capabilities`, `cpus`,
`soft_memory` and `hard_memory`, each sent only when the request sets it.
`labels`, `environment`, `instance_name`, `volumes` and `devices` are always
sent. `update_container` raises `StatusError(FAILED_PRECONDITION)` when the
request has no `params`.

## Deploying an image

`ImageService.deploy` (or `ContainerzServer.deploy`) takes an iterable of
`DeployRequest` messages and yields `DeployResponse` messages:

1. The first request must carry an `ImageTransfer` with the name, tag and
   total `image_size`. If it starts with content or an `ImageTransferEnd`,
   the service raises `StatusError(UNAVAILABLE)`.
2. The service checks that the server's `tmp_location` has enough free
   space. If not, it raises `StatusError(RESOURCE_EXHAUSTED)`. It then
   yields an `ImageTransferReady` with the server's `chunk_size`.
3. Each content chunk is written to a temporary file, and the service yields
   an `ImageTransferProgress` with the total bytes received. If more bytes
   arrive than announced, it raises `StatusError(INVALID_ARGUMENT)`.
4. On `ImageTransferEnd`, the file goes to the manager's `image_push`, and
   the service yields an `ImageTransferSuccess`. A plugin (`is_plugin=True`)
   is not pushed. It is moved to `<plugin_location>/<name>.tar` instead.

If the stream ends before `ImageTransferEnd`, the service raises
`StatusError(UNKNOWN)`. If the `ImageTransfer` has a `remote_download`, the
manager's `image_pull` is called with its credentials. Success is reported
at once, and no content is expected.

## Other behaviour

- `remove_image` does not raise for the usual failures. A `NOT_FOUND` status
  from the manager becomes `RemoveImageCode.NOT_FOUND`, and `UNAVAILABLE`
  becomes `RUNNING`. A non-status error also becomes `RUNNING`, with the
  detail "unknown containerz state: ...". Any other status error is raised
  again.
- Plugin start, stop and remove failures are raised as a `StatusError` with
  the message "unable to <action> plugin: ...". The error keeps the original
  status code, or uses `UNKNOWN` if the failure had none.
- `create_volume` uses the local driver when no driver is given. The
  request's local or custom driver options are passed on only for
  `DS_LOCAL` or `DS_CUSTOM`.
- The list operations merge filters that share a key. `list_image` always
  asks the manager for all images, whatever their state.

## Server

By default, `Server` (and `ContainerzServer`) listens on `:9999`, writes
uploads to `/tmp`, uses 5,000,000-byte chunks and stores plugins in
`/plugins`. The constructor arguments `addr`, `tmp_location`, `chunk_size`,
`plugin_location` and `rpc_server` override these.

The listening socket opens as soon as the server is built, unless `addr` is
empty. The bound host and port are available as `server.address`.

## What this package does not include

The package contains no network transport and no command-line program.
`Server.serve()` needs an `rpc_server` object that provides `register`,
`serve`, `stop` and `graceful_stop`, and you must supply that object
yourself. Without it, `serve()` raises `StatusError(FAILED_PRECONDITION)`.

Setting `rpc_server` again stops the previous transport. `halt()`, also
called when a server is used as a context manager, stops the transport
gracefully and closes the listener.

The package also does not include a container manager. Container runtime
work happens only in the object you pass as `mgr`.