import io
from types import SimpleNamespace

import pytest
from google.genai import types
from PIL import Image


class FakeModels:
    """Stands in for `client.aio.models`, recording each generate_content call."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(response=None, error=None):
    models = FakeModels(response=response, error=error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def response_with_parts(*parts):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def png_bytes(color=(255, 0, 0)):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def logo_png():
    return png_bytes()
