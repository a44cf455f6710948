import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["STORAGE_TYPE"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "admin@narap.org"
os.environ["ADMIN_PASSWORD"] = "admin123"

import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from registry.main import app
from registry.application.services.auth_service import issue_admin_token
from registry.infrastructure.database import Base, get_db
from registry.infrastructure.storage.cloudinary import CloudinaryStorage
from registry.infrastructure.storage.factory import get_file_storage
from registry.infrastructure.storage.memory import MemoryFileStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def storage():
    return MemoryFileStorage(blobs={})


@pytest.fixture()
def client(session_factory, storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    # No context manager: lifespan (create_all on the real engine, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {issue_admin_token('admin@narap.org')}"}


@pytest.fixture()
def raise_limits(client, auth_headers):
    def _raise(members=10, certificates=10):
        response = client.post(
            "/api/increase-limits",
            json={"memberLimit": members, "certificateLimit": certificates},
            headers=auth_headers,
        )
        assert response.status_code == 200
        return response.json()["limits"]
    return _raise


@pytest.fixture()
def add_member(client, auth_headers):
    def _add(code="X1", with_photo=True, with_signature=False, **fields):
        data = {"name": "A", "password": "p", "code": code, "state": "Lagos", "zone": "SW"}
        data.update(fields)
        files = {}
        if with_photo:
            files["passportPhoto"] = ("photo.png", PNG_BYTES, "image/png")
        if with_signature:
            files["signature"] = ("sign.png", PNG_BYTES, "image/png")
        return client.post("/api/addUser", data=data, files=files or None, headers=auth_headers)
    return _add


class FakeCloudinary:
    """In-process stand-in for the Cloudinary upload and admin APIs."""

    def __init__(self):
        self.resources = {}
        self.destroyed = []
        self.fail_uploads = False

    def add(self, public_id, fmt, filename=None):
        resource = {
            "public_id": public_id,
            "format": fmt,
            "bytes": 10,
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/{public_id}.{fmt}",
        }
        if filename:
            resource["context"] = {"custom": {"filename": filename}}
        self.resources[public_id] = resource
        return resource

    def upload(self, file, **options):
        if self.fail_uploads:
            raise cloudinary.exceptions.Error("Upload failed")
        ext = os.path.splitext(options["filename"])[1].lstrip(".").lower()
        resource = self.add(
            f"{options['folder']}/{options['public_id']}",
            "jpg" if ext == "jpeg" else ext,
            options["context"]["filename"],
        )
        resource["bytes"] = len(file.read())
        return dict(resource)

    def destroy(self, public_id, **options):
        self.destroyed.append(public_id)
        return {"result": "ok" if self.resources.pop(public_id, None) else "not found"}

    def resource(self, public_id, **options):
        if public_id not in self.resources:
            raise cloudinary.exceptions.NotFound(f"Resource not found - {public_id}")
        return self.resources[public_id]

    def list_resources(self, prefix="", **options):
        return {"resources": [r for key, r in sorted(self.resources.items()) if key.startswith(prefix)]}


@pytest.fixture()
def fake_cloudinary(monkeypatch):
    fake = FakeCloudinary()
    monkeypatch.setattr(cloudinary.uploader, "upload", fake.upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake.destroy)
    monkeypatch.setattr(cloudinary.api, "resource", fake.resource)
    monkeypatch.setattr(cloudinary.api, "resources", fake.list_resources)
    return fake


@pytest.fixture()
def cloudinary_storage(fake_cloudinary):
    return CloudinaryStorage(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        folder="NARAP",
        fallback=MemoryFileStorage(blobs={}),
    )
