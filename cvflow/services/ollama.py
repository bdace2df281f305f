"""Thin client for the Ollama text-generation HTTP API.

We call the REST endpoints directly with `requests` rather than an SDK. One
attempt per call: connection errors, timeouts and error statuses surface as
``ModelError`` and the caller decides what to do.
"""
import logging
from typing import Any, Dict, Optional

import requests

from ..errors import ModelError

logger = logging.getLogger(__name__)

# locked decoding: no creativity for extraction
DETERMINISTIC_OPTIONS = {
    "temperature": 0,
    "top_p": 0.1,
    "repeat_penalty": 1.1,
    "num_ctx": 4096,
    "num_predict": 500,
}


class OllamaClient:
    def __init__(self, base_url: str, model: str, timeout: float = 300):
        self.base_url = (base_url or "").rstrip("/")
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> str:
        """Return the full completion text for ``prompt``."""
        body = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": dict(DETERMINISTIC_OPTIONS, **(options or {})),
        }
        url = f"{self.base_url}/api/generate"
        logger.info("ollama generate model=%s prompt_chars=%d", self.model, len(prompt))
        try:
            r = requests.post(url, json=body, timeout=self.timeout)
            r.raise_for_status()
            jr = r.json()
        except requests.exceptions.ConnectionError as e:
            logger.error("ollama unreachable at %s: %s", self.base_url, e)
            raise ModelError("Ollama service is not running", endpoint=self.base_url) from e
        except requests.exceptions.Timeout as e:
            logger.error("ollama timed out after %ss", self.timeout)
            raise ModelError("Ollama request timed out", endpoint=self.base_url) from e
        except requests.exceptions.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            body_text = getattr(e.response, "text", "") or ""
            logger.error("ollama HTTP error %s: %s", status, body_text[:1000])
            raise ModelError(f"Ollama returned HTTP {status}", endpoint=self.base_url) from e
        except ValueError as e:
            # body was not JSON
            raise ModelError("Ollama returned a malformed response", endpoint=self.base_url) from e
        except requests.exceptions.RequestException as e:
            logger.error("ollama request failed: %s", e)
            raise ModelError("Ollama request failed", endpoint=self.base_url) from e

        text = jr.get("response") if isinstance(jr, dict) else None
        if not isinstance(text, str):
            raise ModelError("Ollama response has no completion text", endpoint=self.base_url)
        if isinstance(jr, dict) and jr.get("total_duration"):
            logger.debug("ollama total_duration=%.2fs", jr["total_duration"] / 1e9)
        return text

    def list_models(self) -> list:
        try:
            r = requests.get(f"{self.base_url}/api/tags", timeout=10)
            r.raise_for_status()
            jr = r.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ModelError(str(e), endpoint=self.base_url) from e
        return jr.get("models") or []
