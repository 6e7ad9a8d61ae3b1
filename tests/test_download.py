import pytest
import requests

from civitdl.core.download import ALREADY_EXISTS, COMPLETED, TransferEngine
from civitdl.core.errors import (
    ContentLengthUnavailable, FetchFailed, FilenameUnavailable, LocalIOError,
)
from civitdl.core.models import ModelFormat, ResourceFile, ResourceType
from civitdl.core.progress import ProgressBoard
from tests.conftest import FakeResponse, FakeSession, download_response

URL = "https://civitai.com/api/download/models/1"


def selected(size_kb=None):
    return ResourceFile(id=1, name="model.safetensors", size_kb=size_kb,
                        resource_type=ResourceType.MODEL, format=ModelFormat.SAFETENSOR)


def engine_for(resp, board=None, chunk_size=4):
    session = FakeSession({URL: resp})
    return TransferEngine(session, progress=board, chunk_size=chunk_size), session


def test_streams_to_destination_named_by_header(tmp_path):
    body = b"0123456789abcdef"
    eng, session = engine_for(download_response(body, "real name.safetensors"))
    out = eng.transfer(URL, tmp_path / "models" / "Lora", selected())
    assert out.status == COMPLETED
    assert out.path == tmp_path / "models" / "Lora" / "real name.safetensors"
    assert out.path.read_bytes() == body
    assert out.bytes_written == len(body)
    assert session.calls[0]["stream"] is True


def test_filename_quotes_and_separators_are_cleaned(tmp_path):
    eng, _ = engine_for(download_response(b"xy", filename="../evil.pt"))
    out = eng.transfer(URL, tmp_path, selected())
    assert out.path.parent == tmp_path
    assert "/" not in out.filename


def test_existing_file_with_same_size_is_skipped(tmp_path):
    existing = tmp_path / "model.safetensors"
    existing.write_bytes(b"\0" * 3 * 1024)
    resp = download_response(b"new content")
    eng, _ = engine_for(resp)
    out = eng.transfer(URL, tmp_path, selected(size_kb=3.0))
    assert out.status == ALREADY_EXISTS
    assert out.bytes_written == 0
    assert existing.read_bytes() == b"\0" * 3 * 1024
    assert not resp.consumed


def test_existing_file_with_other_size_is_overwritten(tmp_path):
    existing = tmp_path / "model.safetensors"
    existing.write_bytes(b"\0" * 2 * 1024)
    eng, _ = engine_for(download_response(b"fresh"))
    out = eng.transfer(URL, tmp_path, selected(size_kb=3.0))
    assert out.status == COMPLETED
    assert existing.read_bytes() == b"fresh"


def test_unknown_expected_size_overwrites(tmp_path):
    existing = tmp_path / "model.safetensors"
    existing.write_bytes(b"\0" * 1024)
    eng, _ = engine_for(download_response(b"fresh"))
    assert eng.transfer(URL, tmp_path, selected(size_kb=None)).status == COMPLETED
    assert existing.read_bytes() == b"fresh"


def test_missing_disposition_is_fatal(tmp_path):
    eng, _ = engine_for(download_response(b"abc", filename=None))
    with pytest.raises(FilenameUnavailable):
        eng.transfer(URL, tmp_path, selected())
    assert list(tmp_path.iterdir()) == []


def test_missing_content_length_is_fatal(tmp_path):
    eng, _ = engine_for(download_response(b"abc", length=None))
    with pytest.raises(ContentLengthUnavailable):
        eng.transfer(URL, tmp_path, selected())
    assert list(tmp_path.iterdir()) == []


def test_http_error_and_connection_error(tmp_path):
    eng, _ = engine_for(FakeResponse(404, headers={"Content-Disposition": 'filename="a"'}))
    with pytest.raises(FetchFailed) as ei:
        eng.transfer(URL, tmp_path, selected())
    assert ei.value.url == URL

    eng, _ = engine_for(requests.ConnectionError("refused"))
    with pytest.raises(FetchFailed):
        eng.transfer(URL, tmp_path, selected())


def test_empty_url_is_fetch_failure(tmp_path):
    eng, session = engine_for(download_response(b"x"))
    with pytest.raises(FetchFailed):
        eng.transfer("", tmp_path, selected())
    assert session.calls == []


def test_broken_stream_leaves_partial_file(tmp_path):
    resp = download_response(b"12345678", length=100,
                             chunk_error=requests.exceptions.ChunkedEncodingError("cut"))
    eng, _ = engine_for(resp)
    with pytest.raises(LocalIOError):
        eng.transfer(URL, tmp_path, selected())
    assert (tmp_path / "model.safetensors").read_bytes() == b"12345678"


def test_unwritable_destination_is_io_error(tmp_path):
    blocker = tmp_path / "models"
    blocker.write_text("a file where a folder should be")
    eng, _ = engine_for(download_response(b"abc"))
    with pytest.raises(LocalIOError):
        eng.transfer(URL, blocker / "Lora", selected())


def test_progress_is_reported_under_label(tmp_path):
    board = ProgressBoard()
    events = []
    board.subscribe(events.append)
    body = b"x" * 10
    eng, _ = engine_for(download_response(body, length=8), board=board, chunk_size=4)
    eng.transfer(URL, tmp_path, selected(), label="my-label")
    counts = [e.downloaded for e in events]
    assert counts == sorted(counts)
    assert max(counts) == 8  # clamped to the announced total
    assert events[-1].finished
    assert {e.label for e in events} == {"my-label"}
