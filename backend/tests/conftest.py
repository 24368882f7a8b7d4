import pytest
from fastapi.testclient import TestClient

from student_records.config import Settings
from student_records.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite:///{}".format(tmp_path / "records.db"),
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.database.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def upload_dir(settings):
    return settings.upload_dir


@pytest.fixture
def files(app):
    return app.state.file_store


@pytest.fixture
def db(app):
    session = app.state.database.SessionLocal()
    yield session
    session.close()