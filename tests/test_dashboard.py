import base64
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import FakeModel, png_bytes
from photo_restore.client.dashboard import DOWNLOAD_FILENAME, RestoreDashboard
from photo_restore.core.data_url import decode_bytes, encode_bytes
from photo_restore.core.models import ContentPart, ImagePayload
from photo_restore.gemini.restoration import PhotoRestorer
from photo_restore.main import create_app

IMAGE_A = "data:image/png;base64,AAAA"
IMAGE_B = "data:image/png;base64,CCCC"


def _mock_http(handler):
    calls = []

    def record(request):
        calls.append(json.loads(request.content))
        return handler(request)

    return httpx.Client(transport=httpx.MockTransport(record), base_url="http://testserver"), calls


def _ok(restored="data:image/png;base64,BBBB"):
    return lambda request: httpx.Response(
        200,
        json={"restoredImage": restored, "analysis": "a", "message": "m", "outcome": "restored"},
    )


def test_restore_stores_result_success():
    http, calls = _mock_http(_ok())
    dash = RestoreDashboard(http)
    dash.select_image(IMAGE_A)

    assert dash.restore() is True
    assert calls == [{"image": IMAGE_A}]
    assert dash.restored_image == "data:image/png;base64,BBBB"
    assert dash.outcome == "restored"
    assert dash.loading is False
    assert dash.error is None


def test_selecting_new_image_clears_stale_result_success():
    http, calls = _mock_http(_ok())
    dash = RestoreDashboard(http)
    dash.select_image(IMAGE_A)
    dash.restore()
    dash.error = "old error"

    dash.select_image(IMAGE_B)
    # cleared before any new request goes out
    assert len(calls) == 1
    assert dash.selected_image == IMAGE_B
    assert dash.restored_image is None
    assert dash.error is None
    assert dash.can_download is False


def test_restore_requires_selection_and_idle_failure():
    http, calls = _mock_http(_ok())
    dash = RestoreDashboard(http)
    assert dash.can_restore is False
    assert dash.restore() is False

    dash.select_image(IMAGE_A)
    dash.loading = True
    assert dash.can_restore is False
    assert dash.restore() is False
    assert calls == []


def test_restore_marks_in_flight_during_request_success():
    seen = []

    def handler(request):
        seen.append((dash.loading, dash.can_restore))
        return _ok()(request)

    http, _ = _mock_http(handler)
    dash = RestoreDashboard(http)
    dash.select_image(IMAGE_A)
    dash.restore()
    assert seen == [(True, False)]
    assert dash.loading is False


@pytest.mark.parametrize("status", [400, 401, 500])
def test_restore_http_error_keeps_images_failure(status):
    http, _ = _mock_http(lambda request: httpx.Response(status, json={"error": "nope"}))
    dash = RestoreDashboard(http)
    dash.select_image(IMAGE_A)
    dash.restored_image = "data:image/png;base64,PREVIOUS"

    assert dash.restore() is False
    assert dash.error == "Failed to restore image"
    assert dash.selected_image == IMAGE_A
    assert dash.restored_image == "data:image/png;base64,PREVIOUS"
    assert dash.loading is False


def test_restore_transport_error_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    http, _ = _mock_http(handler)
    dash = RestoreDashboard(http)
    dash.select_image(IMAGE_A)
    assert dash.restore() is False
    assert dash.error == "connection refused"
    assert dash.restored_image is None
    assert dash.loading is False


def test_select_file_encodes_data_url_success(tmp_path):
    data = png_bytes()
    path = tmp_path / "old.PNG"
    path.write_bytes(data)

    dash = RestoreDashboard(httpx.Client())
    dash.select_file(path)
    assert dash.selected_image == encode_bytes("image/png", data)


@pytest.mark.parametrize("name, content", [("notes.txt", b"hello"), ("fake.png", b"not_an_image")])
def test_select_file_rejects_non_images_failure(tmp_path, name, content):
    path = tmp_path / name
    path.write_bytes(content)
    dash = RestoreDashboard(httpx.Client())
    with pytest.raises(ValueError):
        dash.select_file(path)
    assert dash.selected_image is None


def test_download_writes_png_success(tmp_path):
    data = png_bytes(color=(0, 128, 255))
    dash = RestoreDashboard(httpx.Client())
    with pytest.raises(RuntimeError):
        dash.download(tmp_path)

    dash.restored_image = encode_bytes("image/png", data)
    target = dash.download(tmp_path)
    assert target == tmp_path / DOWNLOAD_FILENAME
    assert target.read_bytes() == data


def test_download_converts_jpeg_to_png_success(tmp_path):
    dash = RestoreDashboard(httpx.Client())
    dash.restored_image = encode_bytes("image/jpeg", png_bytes(size=(4, 3), fmt="JPEG"))
    target = dash.download(tmp_path)
    with Image.open(target) as img:
        assert img.format == "PNG"
        assert img.size == (4, 3)


def test_dashboard_against_api_success(tmp_path, clerk_auth):
    restored = png_bytes(color=(10, 20, 30))
    model = FakeModel(
        parts=[ContentPart(inline_data=ImagePayload(mime_type="image/png", data=base64.b64encode(restored).decode()))]
    )
    client = TestClient(create_app(restorer=PhotoRestorer(model)))
    client.headers["Authorization"] = f"Bearer {clerk_auth()}"

    source = tmp_path / "scan.jpg"
    source.write_bytes(png_bytes(fmt="JPEG"))

    dash = RestoreDashboard(client)
    dash.select_file(source)
    assert dash.selected_image.startswith("data:image/jpeg;base64,")
    assert dash.restore() is True
    assert dash.outcome == "restored"
    assert decode_bytes(dash.restored_image) == ("image/png", restored)
    assert dash.download(tmp_path).read_bytes() == restored
