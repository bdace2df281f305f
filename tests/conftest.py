import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from cvflow import create_app
from cvflow.extensions import db
from cvflow.services.store import CandidateStore


class ScriptedLLM:
    """Stands in for Ollama: returns queued completions and records prompts."""

    def __init__(self):
        self.responses = []
        self.prompts = []
        self.error = None

    def generate(self, prompt, options=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def list_models(self):
        return [{"name": "qwen2.5:latest"}]


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "STORAGE_BACKEND": "local",
        "LOCAL_STORAGE_DIR": str(tmp_path / "storage"),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return CandidateStore(db.session)


@pytest.fixture
def storage(app):
    return app.extensions["cvflow"]["storage"]


@pytest.fixture
def llm(app):
    fake = ScriptedLLM()
    app.extensions["cvflow"]["llm"] = fake
    return fake


@pytest.fixture
def client(app):
    return app.test_client()
