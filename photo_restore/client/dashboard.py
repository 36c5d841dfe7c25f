"""Client-side controller mirroring the restoration dashboard.

Holds the selected photo, the restored result, an in-flight flag and the
last error, and talks to `POST /restore` through an `httpx.Client`.
"""
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import httpx
import structlog
from PIL import Image

from ..core.data_url import decode_bytes, encode_bytes

logger = structlog.get_logger(__name__)

ALLOWED_IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp"}
DOWNLOAD_FILENAME = "restored-photo.png"
RESTORE_FAILED = "Failed to restore image"


class RestoreDashboard:
    def __init__(self, http: httpx.Client, endpoint: str = "/restore"):
        self.http = http
        self.endpoint = endpoint
        self.selected_image: Optional[str] = None
        self.restored_image: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        self.analysis: Optional[str] = None
        self.message: Optional[str] = None
        self.outcome: Optional[str] = None

    def _clear_result(self) -> None:
        self.restored_image = None
        self.error = None
        self.analysis = None
        self.message = None
        self.outcome = None

    def select_image(self, data_url: str) -> None:
        """Make `data_url` the current photo; any previous result is stale."""
        self.selected_image = data_url
        self._clear_result()

    def select_file(self, path: Union[str, Path]) -> None:
        path = Path(path)
        if path.suffix.lower() not in ALLOWED_IMAGE_EXTS:
            raise ValueError("unsupported_image_type")
        data = path.read_bytes()
        try:
            with Image.open(BytesIO(data)) as img:
                mime_type = Image.MIME.get(img.format or "")
        except Exception:
            raise ValueError("unsupported_image_type")
        if not mime_type:
            raise ValueError("unsupported_image_type")
        self.select_image(encode_bytes(mime_type, data))

    def clear(self) -> None:
        self.selected_image = None
        self._clear_result()

    @property
    def can_restore(self) -> bool:
        return self.selected_image is not None and not self.loading

    @property
    def can_download(self) -> bool:
        return self.restored_image is not None

    def restore(self) -> bool:
        """Send the selected photo for restoration. Returns True on success.

        A failed request only sets `error`; the selected and restored images
        are left as they were.
        """
        if not self.can_restore:
            return False

        self.loading = True
        self.error = None
        try:
            response = self.http.post(self.endpoint, json={"image": self.selected_image})
            if not response.is_success:
                logger.warning("restore_request_failed", status_code=response.status_code)
                self.error = RESTORE_FAILED
                return False
            data = response.json()
            self.restored_image = data["restoredImage"]
            self.analysis = data.get("analysis")
            self.message = data.get("message")
            self.outcome = data.get("outcome")
            return True
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning("restore_request_error", error=str(e))
            self.error = str(e) or "An error occurred"
            return False
        finally:
            self.loading = False

    def download(self, directory: Union[str, Path] = ".") -> Path:
        """Write the restored photo as PNG into `directory` and return its path."""
        if not self.can_download:
            raise RuntimeError("nothing_to_download")
        mime_type, data = decode_bytes(self.restored_image)
        if mime_type != "image/png":
            with Image.open(BytesIO(data)) as img:
                buf = BytesIO()
                img.save(buf, format="PNG")
                data = buf.getvalue()
        target = Path(directory) / DOWNLOAD_FILENAME
        target.write_bytes(data)
        return target
