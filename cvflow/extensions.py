from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask import current_app


class ServiceClients:
    """Holds the per-app storage and inference clients.

    Clients are built once from the app config and stored in
    ``app.extensions`` so request handlers pass them explicitly to the
    services instead of reaching for module globals. Tests swap them by
    assigning ``app.extensions['cvflow']['llm']``.
    """

    key = "cvflow"

    def init_app(self, app):
        from .services.ollama import OllamaClient
        from .services.storage import build_storage

        app.extensions[self.key] = {
            "storage": build_storage(app.config),
            "llm": OllamaClient(
                base_url=app.config.get("OLLAMA_HOST"),
                model=app.config.get("OLLAMA_MODEL"),
                timeout=app.config.get("OLLAMA_TIMEOUT", 300),
            ),
        }

    @property
    def storage(self):
        return current_app.extensions[self.key]["storage"]

    @property
    def llm(self):
        return current_app.extensions[self.key]["llm"]


db = SQLAlchemy()
migrate = Migrate()
clients = ServiceClients()
