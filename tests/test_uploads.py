import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from errors import UploadTooLargeError, ValidationError
from uploads import discard_uploads, save_upload


def _upload(data: bytes, filename="pic.png", content_type="image/png") -> UploadFile:
    return UploadFile(io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


def _save(upload, directory, **kwargs):
    return asyncio.run(save_upload(upload, directory, **kwargs))


def test_save_upload_stores_file(tmp_path):
    stored = _save(_upload(b"12345"), tmp_path)
    assert stored.url.startswith("/uploads/") and stored.url.endswith(".png")
    with open(stored.path, "rb") as f:
        assert f.read() == b"12345"


def test_empty_field_is_none(tmp_path):
    assert _save(None, tmp_path) is None
    assert _save(_upload(b"", filename=""), tmp_path) is None


def test_non_image_is_rejected(tmp_path):
    with pytest.raises(ValidationError, match="Only images"):
        _save(_upload(b"hello", filename="a.txt", content_type="text/plain"), tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_oversized_upload_is_rejected_and_removed(tmp_path):
    with pytest.raises(UploadTooLargeError) as exc:
        _save(_upload(b"x" * 11), tmp_path, max_bytes=10)
    assert exc.value.status_code == 413
    assert list(tmp_path.iterdir()) == []


def test_upload_at_limit_is_kept(tmp_path):
    stored = _save(_upload(b"x" * 10), tmp_path, max_bytes=10)
    assert len(list(tmp_path.iterdir())) == 1
    discard_uploads(stored, None)
    assert list(tmp_path.iterdir()) == []
