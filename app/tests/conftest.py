import io
from types import SimpleNamespace

import pytest
from PIL import Image

from swatchplan.file_io import EncodedImage


def make_png(color=(200, 180, 150), size=(8, 6)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def image_response(data: bytes, mime_type: str = 'image/png'):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def text_only_response():
    part = SimpleNamespace(inline_data=None, text="I can't do that.")
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


@pytest.fixture
def room_image():
    return EncodedImage(make_png((230, 230, 220), (16, 9)), 'image/png')


@pytest.fixture
def swatch_image():
    return EncodedImage(make_png((40, 90, 60), (4, 4)), 'image/png')


@pytest.fixture
def composite_png():
    return make_png((10, 20, 30), (16, 9))


@pytest.fixture
def fake_client_factory():
    """Return a builder: make(response=..., error=...) -> (factory, models)."""
    def make(response=None, error=None):
        models = FakeModels(response=response, error=error)
        client = SimpleNamespace(models=models)
        keys = []

        def factory(api_key):
            keys.append(api_key)
            return client

        factory.keys = keys
        return factory, models
    return make
