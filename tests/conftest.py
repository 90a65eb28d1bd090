import os
import tempfile
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

# Keep the module-level app (created on import of image_uploader.main) out of
# the working tree, and pin settings a developer .env might override.
os.environ["UPLOAD_STORAGE_PATH"] = tempfile.mkdtemp(prefix="image-uploader-tests-")
os.environ["UPLOAD_BASE_URL"] = "http://localhost:5220"
os.environ["UPLOAD_CREATE_DATE_DIR"] = "false"
os.environ["UPLOAD_ENABLE_TIMESTAMP"] = "false"
os.environ["OTEL_ENABLED"] = "false"

from image_uploader.config import settings as base_settings  # noqa: E402
from image_uploader.services.image_upload import ImageUploader  # noqa: E402
from image_uploader.services.upload_config import UploadConfig  # noqa: E402
from tests.images import FakeClock  # noqa: E402


@pytest.fixture()
def storage_root(tmp_path):
    return tmp_path / "storage"


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def upload_config(storage_root):
    return UploadConfig(storage_path=str(storage_root))


@pytest.fixture()
def uploader(upload_config, clock):
    return ImageUploader(upload_config, clock=clock)


@pytest.fixture()
def app_settings(storage_root):
    return replace(
        base_settings,
        upload_storage_path=str(storage_root),
        upload_max_size="10mb",
        upload_allowed_extensions="jpg,jpeg,png,webp,gif,bmp,svg",
        upload_base_url="http://localhost:5220",
        upload_enable_timestamp=False,
        upload_create_date_dir=False,
        upload_route_prefix="/upload",
        static_route="/storage",
    )


@pytest.fixture()
def client(app_settings):
    from image_uploader.main import create_app

    app = create_app(app_settings)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
