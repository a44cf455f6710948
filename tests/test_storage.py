import re

import pytest

from registry.config import Settings
from registry.core.exceptions import StoredFileNotFound, ValidationFailed
from registry.infrastructure.storage.base import (
    generate_filename,
    timestamp_from_filename,
    validate_image_upload,
)
from registry.infrastructure.storage.cloudinary import CloudinaryStorage
from registry.infrastructure.storage.factory import create_file_storage
from registry.infrastructure.storage.local import LocalFileStorage
from registry.infrastructure.storage.memory import MemoryFileStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def test_generated_filename_carries_field_timestamp_and_extension():
    name = generate_filename("passportPhoto", "me.png")
    assert re.fullmatch(r"passportPhoto-\d+-\d+\.png", name)
    assert timestamp_from_filename(name) is not None
    assert timestamp_from_filename("legacy.png") is None


def test_memory_round_trip_and_delete(storage):
    saved = storage.save_file(PNG_BYTES, "me.png", "passportPhoto", "image/png")

    assert saved["path"] is None
    assert saved["storageType"] == "memory"
    assert saved["url"] == f"/api/uploads/passports/{saved['filename']}"

    stored = storage.get_file(saved["filename"], "passportPhoto")
    assert stored["content"] == PNG_BYTES
    assert stored["content_type"] == "image/png"

    assert storage.delete_file(saved["filename"], "passportPhoto") is True
    assert storage.delete_file(saved["filename"], "passportPhoto") is False
    with pytest.raises(StoredFileNotFound):
        storage.get_file(saved["filename"], "passportPhoto")


def test_memory_not_found_lists_files_of_same_field(storage):
    photo = storage.save_file(PNG_BYTES, "a.png", "passportPhoto", "image/png")
    storage.save_file(PNG_BYTES, "b.png", "signature", "image/png")

    with pytest.raises(StoredFileNotFound) as exc:
        storage.get_file("passportPhoto-1-1.png", "passportPhoto")

    assert exc.value.status_code == 404
    assert exc.value.details["availableFiles"] == [photo["filename"]]


def test_memory_list_files_filters_by_field(storage):
    storage.save_file(PNG_BYTES, "a.png", "passportPhoto", "image/png")
    storage.save_file(PNG_BYTES, "b.png", "signature", "image/png")

    assert storage.list_files()["total"] == 2
    only_signatures = storage.list_files("signature")
    assert only_signatures["passports"] == []
    assert len(only_signatures["signatures"]) == 1
    assert only_signatures["total"] == 1


def test_local_storage_writes_into_field_directory(tmp_path):
    local = LocalFileStorage(str(tmp_path))
    saved = local.save_file(PNG_BYTES, "sig.png", "signature", "image/png")

    assert saved["path"] == str(tmp_path / "signatures" / saved["filename"])
    assert (tmp_path / "signatures" / saved["filename"]).read_bytes() == PNG_BYTES

    stored = local.get_file(saved["filename"], "signature")
    assert stored["content"] == PNG_BYTES
    assert stored["content_type"] == "image/png"
    assert local.list_files()["signatures"] == [saved["filename"]]

    assert local.delete_file(saved["filename"], "signature") is True
    with pytest.raises(StoredFileNotFound):
        local.get_file(saved["filename"], "signature")


def test_local_storage_ignores_path_components(tmp_path):
    local = LocalFileStorage(str(tmp_path / "uploads"))
    (tmp_path / "secret.txt").write_text("nope")

    with pytest.raises(StoredFileNotFound):
        local.get_file("../../secret.txt", "passportPhoto")


@pytest.mark.parametrize(
    "filename,content_type",
    [("doc.pdf", "application/pdf"), ("photo.png", "text/plain"), ("noext", "image/png")],
)
def test_non_images_are_rejected(filename, content_type):
    with pytest.raises(ValidationFailed):
        validate_image_upload(filename, content_type, 10)


def test_oversized_images_are_rejected():
    with pytest.raises(ValidationFailed, match="too large"):
        validate_image_upload("big.jpg", "image/jpeg", 5 * 1024 * 1024 + 1)


def test_factory_honours_explicit_types(tmp_path):
    assert isinstance(create_file_storage(Settings(STORAGE_TYPE="local", UPLOAD_DIR=str(tmp_path))), LocalFileStorage)
    assert isinstance(create_file_storage(Settings(STORAGE_TYPE="memory")), MemoryFileStorage)
    with pytest.raises(ValueError):
        create_file_storage(Settings(STORAGE_TYPE="s3"))


def test_factory_auto_detects_cloud_deployment(tmp_path):
    local = create_file_storage(Settings(STORAGE_TYPE="auto", UPLOAD_DIR=str(tmp_path)))
    assert isinstance(local, LocalFileStorage)

    on_render = create_file_storage(Settings(STORAGE_TYPE="auto", RENDER="true"))
    assert isinstance(on_render, MemoryFileStorage)

    with_cloudinary = create_file_storage(Settings(
        STORAGE_TYPE="auto",
        RENDER="true",
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
    ))
    assert isinstance(with_cloudinary, CloudinaryStorage)
    assert isinstance(with_cloudinary.fallback, MemoryFileStorage)


def test_cloudinary_upload_returns_secure_url(cloudinary_storage, fake_cloudinary):
    saved = cloudinary_storage.save_file(PNG_BYTES, "me.png", "passportPhoto", "image/png")

    assert saved["storageType"] == "cloudinary"
    assert saved["url"].startswith("https://res.cloudinary.com/demo/image/upload/NARAP/passportPhoto/")
    assert re.fullmatch(r"passportPhoto-\d+-\d+\.png", saved["filename"])
    assert saved["cloudinaryId"] == f"NARAP/passportPhoto/{saved['filename'][:-4]}"
    assert fake_cloudinary.resources[saved["cloudinaryId"]]["bytes"] == len(PNG_BYTES)


def test_cloudinary_upload_failure_falls_back(cloudinary_storage, fake_cloudinary):
    fake_cloudinary.fail_uploads = True

    saved = cloudinary_storage.save_file(PNG_BYTES, "me.png", "signature", "image/png")

    assert saved["storageType"] == "memory"
    assert cloudinary_storage.fallback.get_file(saved["filename"], "signature")["content"] == PNG_BYTES
    assert cloudinary_storage.list_files()["signatures"] == [saved["filename"]]


def test_cloudinary_get_returns_url_or_not_found(cloudinary_storage, fake_cloudinary):
    fake_cloudinary.add("NARAP/passportPhoto/passportPhoto-1-2", "png")

    stored = cloudinary_storage.get_file("passportPhoto-1-2.png", "passportPhoto")
    assert stored["url"] == "https://res.cloudinary.com/demo/image/upload/NARAP/passportPhoto/passportPhoto-1-2.png"
    with pytest.raises(StoredFileNotFound):
        cloudinary_storage.get_file("passportPhoto-3-4.png", "passportPhoto")


def test_cloudinary_delete_reports_not_found(cloudinary_storage, fake_cloudinary):
    fake_cloudinary.add("NARAP/passportPhoto/passportPhoto-1-2", "png")

    assert cloudinary_storage.delete_file("passportPhoto-1-2.png", "passportPhoto") is True
    assert cloudinary_storage.delete_file("passportPhoto-9-9.png", "passportPhoto") is False
    assert fake_cloudinary.destroyed == [
        "NARAP/passportPhoto/passportPhoto-1-2",
        "NARAP/passportPhoto/passportPhoto-9-9",
    ]


def test_cloudinary_listing_keeps_stored_extension(cloudinary_storage):
    saved = cloudinary_storage.save_file(PNG_BYTES, "me.JPEG", "passportPhoto", "image/jpeg")

    assert saved["filename"].endswith(".JPEG")
    assert cloudinary_storage.list_files()["passports"] == [saved["filename"]]


def test_cloudinary_listing_without_context_uses_reported_format(cloudinary_storage, fake_cloudinary):
    fake_cloudinary.add("NARAP/signature/signature-1-2", "jpg")

    assert cloudinary_storage.list_files("signature") == {
        "passports": [],
        "signatures": ["signature-1-2.jpg"],
        "total": 1,
    }
