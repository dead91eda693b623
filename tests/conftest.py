import io
import os
import tempfile

# Must be set before the app module builds its engine and mounts the upload dir
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="agridoctor-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agridoctor.core import config
from agridoctor.core.database import Base, get_db
from agridoctor.core.security import get_password_hash, token_for_user
from agridoctor.core.stats import visit_counter
from agridoctor.main import app
from agridoctor.models.models import Category, User


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    visit_counter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, email, role, name="Test User", password="secret123"):
    user = User(name=name, email=email, password=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin@agridoctor.vn", "admin", name="Admin")


@pytest.fixture
def farmer_user(db):
    return make_user(db, "farmer@agridoctor.vn", "farmer", name="Farmer")


@pytest.fixture
def admin_headers(admin_user):
    return {"x-auth-token": token_for_user(admin_user)}


@pytest.fixture
def farmer_headers(farmer_user):
    return {"x-auth-token": token_for_user(farmer_user)}


@pytest.fixture
def category(db):
    db_category = Category(name="Fungal", description="Fungal diseases")
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def image(name="leaf.jpg", content=b"\x89fake-image-bytes"):
    return ("images", (name, io.BytesIO(content), "image/jpeg"))


def disease_form(category_id, name="Rice Blast", **overrides):
    form = {
        "name": name,
        "description": "Lesions on leaves",
        "symptoms": "Diamond shaped spots",
        "causes": "Magnaporthe oryzae",
        "prevention": "Resistant varieties",
        "treatment": "Fungicide spray",
        "category_id": str(category_id),
    }
    form.update(overrides)
    return form


def uploaded_files(upload_dir):
    return sorted(p.name for p in upload_dir.iterdir())
