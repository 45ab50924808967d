import os

import pytest

from containerz.errors import StatusCode, StatusError
from containerz.images import ImageService, check_disk_space, disk_space, move_file
from containerz.messages import (
    DeployRequest,
    DeployResponse,
    Filter,
    ImageTransfer,
    ImageTransferEnd,
    ImageTransferProgress,
    ImageTransferReady,
    ImageTransferSuccess,
    ListImageRequest,
    ListImageResponse,
    RemoteDownload,
    RemoveImageCode,
    RemoveImageRequest,
    RemoveImageResponse,
)
from containerz.server import Server


class FakeManager:
    def __init__(self, images=None, remove_error=None):
        self.image = ""
        self.tag = ""
        self.contents = ""
        self.credentials = None
        self.all = False
        self.limit = 0
        self.filters = None
        self.removed = None
        self.images = images or []
        self.remove_error = remove_error

    def image_pull(self, image, tag, credentials=None):
        self.image = image
        self.tag = tag
        self.credentials = credentials

    def image_push(self, file, name, tag):
        self.contents = file.read().decode()
        return "", ""

    def image_list(self, all, limit, filters):
        self.all = all
        self.limit = limit
        self.filters = filters
        yield from self.images

    def image_remove(self, image, tag, force=False):
        self.removed = (image, tag, force)
        if self.remove_error is not None:
            raise self.remove_error


def make_service(tmp_path, mgr, chunk_size=8):
    server = Server(
        mgr,
        addr="",
        tmp_location=str(tmp_path),
        chunk_size=chunk_size,
        plugin_location=str(tmp_path / "plugins"),
    )
    return ImageService(server)


def collect(gen):
    responses = []
    try:
        for resp in gen:
            responses.append(resp)
    except StatusError as exc:
        return responses, exc
    return responses, None


def transfer(**kwargs):
    return DeployRequest(ImageTransfer(**kwargs))


def content(data):
    return DeployRequest(data)


END = DeployRequest(ImageTransferEnd())


def test_deploy_invalid_protocol(tmp_path):
    service = make_service(tmp_path, FakeManager())
    responses, err = collect(service.deploy([END]))
    assert responses == []
    assert err == StatusError(
        StatusCode.UNAVAILABLE, "must send send a TransferImage message first"
    )


def test_deploy_content_first_is_rejected(tmp_path):
    service = make_service(tmp_path, FakeManager())
    _, err = collect(service.deploy([content(b"abc")]))
    assert err.code == StatusCode.UNAVAILABLE


def test_deploy_empty_stream_yields_nothing(tmp_path):
    service = make_service(tmp_path, FakeManager())
    assert list(service.deploy([])) == []


def test_deploy_gigantic_contents(tmp_path):
    service = make_service(tmp_path, FakeManager())
    reqs = [transfer(name="some-image", tag="some-tag", image_size=10**16)]
    responses, err = collect(service.deploy(reqs))
    assert responses == []
    assert err == StatusError(StatusCode.RESOURCE_EXHAUSTED, "not enough space to store image")


def test_deploy_remote_download(tmp_path):
    mgr = FakeManager()
    service = make_service(tmp_path, mgr)
    reqs = [transfer(name="some-image", tag="some-tag", remote_download=RemoteDownload())]
    responses, err = collect(service.deploy(reqs))
    assert err is None
    assert responses == [DeployResponse(ImageTransferSuccess(name="some-image", tag="some-tag"))]
    assert (mgr.image, mgr.tag) == ("some-image", "some-tag")
    assert mgr.contents == ""


def test_deploy_too_much_data(tmp_path):
    service = make_service(tmp_path, FakeManager())
    reqs = [
        transfer(name="some-image", tag="some-tag", image_size=16),
        content(b"exactly "),
        content(b"16 bytes"),
        content(b"16 bytes"),
    ]
    responses, err = collect(service.deploy(reqs))
    assert responses == [
        DeployResponse(ImageTransferReady(chunk_size=8)),
        DeployResponse(ImageTransferProgress(bytes_received=8)),
        DeployResponse(ImageTransferProgress(bytes_received=16)),
    ]
    assert err == StatusError(StatusCode.INVALID_ARGUMENT, "too much data received")


def test_deploy_successful_image_transfer(tmp_path):
    mgr = FakeManager()
    service = make_service(tmp_path, mgr)
    reqs = [
        transfer(name="some-image", tag="some-tag", image_size=16),
        content(b"exactly "),
        content(b"16 bytes"),
        END,
    ]
    responses, err = collect(service.deploy(reqs))
    assert err is None
    assert responses == [
        DeployResponse(ImageTransferReady(chunk_size=8)),
        DeployResponse(ImageTransferProgress(bytes_received=8)),
        DeployResponse(ImageTransferProgress(bytes_received=16)),
        DeployResponse(ImageTransferSuccess(image_size=16)),
    ]
    assert mgr.contents == "exactly 16 bytes"
    assert os.listdir(tmp_path) == []


def test_deploy_successful_plugin_transfer(tmp_path):
    mgr = FakeManager()
    service = make_service(tmp_path, mgr)
    reqs = [
        transfer(name="some-image", tag="some-tag", image_size=16, is_plugin=True),
        content(b"exactly "),
        content(b"16 bytes"),
        END,
    ]
    responses, err = collect(service.deploy(reqs))
    assert err is None
    assert responses[-1] == DeployResponse(
        ImageTransferSuccess(name="some-image", image_size=16)
    )
    assert len(responses) == 4
    assert (tmp_path / "plugins" / "some-image.tar").read_bytes() == b"exactly 16 bytes"
    assert mgr.contents == ""
    assert mgr.image == ""


def test_deploy_eof_during_transfer(tmp_path):
    service = make_service(tmp_path, FakeManager())
    reqs = [transfer(name="img", tag="t", image_size=16), content(b"abc")]
    responses, err = collect(service.deploy(reqs))
    assert len(responses) == 2
    assert err.code == StatusCode.UNKNOWN


def test_deploy_second_transfer_header_is_unexpected(tmp_path):
    service = make_service(tmp_path, FakeManager())
    reqs = [transfer(name="img", image_size=16), transfer(name="other")]
    _, err = collect(service.deploy(reqs))
    assert err == StatusError(StatusCode.INTERNAL, "unexpected message type ImageTransfer")


def test_list_image_no_images(tmp_path):
    mgr = FakeManager()
    service = make_service(tmp_path, mgr)
    assert list(service.list_image(ListImageRequest(limit=10))) == []
    assert mgr.all is True
    assert mgr.limit == 10


def test_list_image_images(tmp_path):
    images = [ListImageResponse(id="some-id"), ListImageResponse(id="other-id")]
    mgr = FakeManager(images=images)
    service = make_service(tmp_path, mgr)
    got = list(service.list_image(ListImageRequest(limit=10)))
    assert got == [ListImageResponse(id="some-id"), ListImageResponse(id="other-id")]
    assert (mgr.all, mgr.limit) == (True, 10)


def test_list_image_merges_filters(tmp_path):
    mgr = FakeManager()
    service = make_service(tmp_path, mgr)
    request = ListImageRequest(
        filter=[Filter("name", ["a"]), Filter("tag", ["x"]), Filter("name", ["b", "c"])]
    )
    list(service.list_image(request))
    assert mgr.filters == {"name": ["a", "b", "c"], "tag": ["x"]}


@pytest.mark.parametrize(
    "error, expected",
    [
        (None, RemoveImageResponse(code=RemoveImageCode.SUCCESS)),
        (
            StatusError(StatusCode.NOT_FOUND, "image not found"),
            RemoveImageResponse(code=RemoveImageCode.NOT_FOUND, detail="image not found"),
        ),
        (
            StatusError(StatusCode.UNAVAILABLE, "container running"),
            RemoveImageResponse(code=RemoveImageCode.RUNNING, detail="container running"),
        ),
        (
            RuntimeError("boom"),
            RemoveImageResponse(
                code=RemoveImageCode.RUNNING, detail="unknown containerz state: boom"
            ),
        ),
    ],
)
def test_remove_image(tmp_path, error, expected):
    mgr = FakeManager(remove_error=error)
    service = make_service(tmp_path, mgr)
    assert service.remove_image(RemoveImageRequest(name="img", tag="t", force=True)) == expected
    assert mgr.removed == ("img", "t", True)


def test_remove_image_other_status_is_raised(tmp_path):
    mgr = FakeManager(remove_error=StatusError(StatusCode.INTERNAL, "broken"))
    service = make_service(tmp_path, mgr)
    with pytest.raises(StatusError) as info:
        service.remove_image(RemoveImageRequest(name="img"))
    assert info.value == StatusError(StatusCode.INTERNAL, "broken")


def test_check_disk_space_too_large(tmp_path):
    with pytest.raises(StatusError) as info:
        check_disk_space(tmp_path, 10**16)
    assert info.value.code == StatusCode.RESOURCE_EXHAUSTED


def test_check_disk_space_missing_location(tmp_path):
    with pytest.raises(StatusError) as info:
        check_disk_space(tmp_path / "missing", 1)
    assert info.value.code == StatusCode.INTERNAL
    assert info.value.message.startswith("unable to check free space:")


def test_disk_space_missing_location(tmp_path):
    with pytest.raises(OSError):
        disk_space(tmp_path / "missing")


def test_disk_space_is_non_negative(tmp_path):
    assert disk_space(tmp_path) >= 0


def test_move_file_creates_directories_and_removes_source(tmp_path):
    source = tmp_path / "src.bin"
    source.write_bytes(b"payload")
    dest = tmp_path / "a" / "b" / "dest.bin"
    move_file(source, dest)
    assert dest.read_bytes() == b"payload"
    assert not source.exists()


def test_move_file_missing_source(tmp_path):
    with pytest.raises(OSError, match="unable to open source file"):
        move_file(tmp_path / "missing", tmp_path / "dest")