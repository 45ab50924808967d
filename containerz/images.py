"""Image operations of the containerz service: deploy, list and remove."""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import StatusCode, StatusError
from .messages import (
    DeployRequest,
    DeployResponse,
    ImageTransfer,
    ImageTransferProgress,
    ImageTransferReady,
    ImageTransferSuccess,
    ListImageRequest,
    ListImageResponse,
    RemoveImageCode,
    RemoveImageRequest,
    RemoveImageResponse,
)
from .server import Server


def disk_space(location: str | os.PathLike[str]) -> int:
    """Return the bytes available to unprivileged users on the filesystem holding ``location``."""
    return shutil.disk_usage(location).free


def check_disk_space(location: str | os.PathLike[str], bytes_needed: int) -> None:
    """Raise a status error unless ``location`` has room for ``bytes_needed`` bytes."""
    try:
        available = disk_space(location)
    except OSError as exc:
        raise StatusError(StatusCode.INTERNAL, f"unable to check free space: {exc}") from exc
    if available < bytes_needed:
        raise StatusError(StatusCode.RESOURCE_EXHAUSTED, "not enough space to store image")


def move_file(source_path: str | os.PathLike[str], dest_path: str | os.PathLike[str]) -> None:
    """Move a file by copying it and deleting the source, so it works across devices."""
    dest_dir = os.path.dirname(os.fspath(dest_path)) or "."
    try:
        os.makedirs(dest_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise OSError(f"failed to create {dest_dir} with error {exc}") from exc
    try:
        source = open(source_path, "rb")
    except OSError as exc:
        raise OSError(f"unable to open source file: {exc}") from exc
    with source:
        try:
            dest = open(dest_path, "wb")
        except OSError as exc:
            raise OSError(f"unable to open dest file: {exc}") from exc
        with dest:
            try:
                shutil.copyfileobj(source, dest)
            except OSError as exc:
                raise OSError(f"writing to output file failed: {exc}") from exc
    try:
        os.remove(source_path)
    except OSError as exc:
        raise OSError(f"failed removing original file: {exc}") from exc


def _type_name(value: object) -> str:
    return "<nil>" if value is None else type(value).__name__


@dataclass
class ImageService:
    """Serves the image requests of a containerz server."""

    server: Server

    def deploy(self, requests: Iterable[DeployRequest]) -> Iterator[DeployResponse]:
        """Receive an image stream and yield the responses sent back to the client."""
        stream = iter(requests)
        try:
            first = next(stream, None)
        except StatusError:
            raise
        except Exception as exc:
            raise StatusError(StatusCode.INTERNAL, str(exc)) from exc
        if first is None:
            return

        if first.content is not None or first.image_transfer_end is not None:
            raise StatusError(
                StatusCode.UNAVAILABLE, "must send send a TransferImage message first"
            )
        transfer = first.image_transfer
        if transfer is None:
            raise StatusError(
                StatusCode.INVALID_ARGUMENT,
                f"unknown request type {_type_name(first.request)}",
            )

        if transfer.remote_download is not None:
            self.server.mgr.image_pull(
                transfer.name,
                transfer.tag,
                credentials=transfer.remote_download.credentials,
            )
            yield DeployResponse(ImageTransferSuccess(name=transfer.name, tag=transfer.tag))
            return

        yield from self._receive_image(stream, transfer)

    def _receive_image(
        self, stream: Iterator[DeployRequest], transfer: ImageTransfer
    ) -> Iterator[DeployResponse]:
        server = self.server
        check_disk_space(server.tmp_location, transfer.image_size)

        try:
            handle = tempfile.NamedTemporaryFile(
                dir=server.tmp_location, prefix="containerz-", suffix=".tar", delete=False
            )
        except OSError as exc:
            raise StatusError(StatusCode.INTERNAL, str(exc)) from exc
        path = handle.name

        try:
            with handle:
                yield DeployResponse(ImageTransferReady(chunk_size=server.chunk_size))
                received = 0
                for request in stream:
                    content = request.content
                    if content is not None:
                        handle.write(content)
                        received += len(content)
                        if received > transfer.image_size:
                            raise StatusError(
                                StatusCode.INVALID_ARGUMENT, "too much data received"
                            )
                        yield DeployResponse(ImageTransferProgress(bytes_received=received))
                    elif request.image_transfer_end is not None:
                        handle.flush()
                        if transfer.is_plugin:
                            handle.close()
                            dest = os.path.join(server.plugin_location, f"{transfer.name}.tar")
                            try:
                                move_file(path, dest)
                            except OSError as exc:
                                raise StatusError(
                                    StatusCode.INTERNAL, f"unable to move plugin: {exc}"
                                ) from exc
                            yield DeployResponse(
                                ImageTransferSuccess(name=transfer.name, image_size=received)
                            )
                            return
                        handle.seek(0)
                        image, tag = server.mgr.image_push(handle, transfer.name, transfer.tag)
                        yield DeployResponse(
                            ImageTransferSuccess(name=image, tag=tag, image_size=received)
                        )
                        return
                    else:
                        raise StatusError(
                            StatusCode.INTERNAL,
                            f"unexpected message type {_type_name(request.request)}",
                        )
                raise StatusError(
                    StatusCode.UNKNOWN, "unexpected EOF while receiving image: EOF"
                )
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(path)

    def list_image(self, request: ListImageRequest) -> Iterator[ListImageResponse]:
        """Yield every image matching the request's filters, regardless of state."""
        filters: dict[str, list[str]] = {}
        for flt in request.filter:
            filters.setdefault(flt.key, []).extend(flt.value)
        yield from self.server.mgr.image_list(True, request.limit, filters)

    def remove_image(self, request: RemoveImageRequest) -> RemoveImageResponse:
        """Remove an image, reporting a missing or in-use image in the response."""
        try:
            self.server.mgr.image_remove(request.name, request.tag, force=request.force)
        except Exception as exc:
            status = StatusError.from_exception(exc)
            if status is None:
                return RemoveImageResponse(
                    code=RemoveImageCode.RUNNING,
                    detail=f"unknown containerz state: {exc}",
                )
            if status.code == StatusCode.NOT_FOUND:
                return RemoveImageResponse(code=RemoveImageCode.NOT_FOUND, detail=status.message)
            if status.code == StatusCode.UNAVAILABLE:
                return RemoveImageResponse(code=RemoveImageCode.RUNNING, detail=status.message)
            raise
        return RemoveImageResponse(code=RemoveImageCode.SUCCESS)