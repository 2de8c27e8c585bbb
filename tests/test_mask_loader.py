import threading

import pytest
from PIL import Image

from tattoo_preview.controllers.mask_loader import MaskLoader
from tattoo_preview.errors import SegmenterUnavailableError


@pytest.fixture
def loader_factory():
    loaders = []

    def make(generate_mask):
        loader = MaskLoader(generate_mask)
        loaders.append(loader)
        return loader

    yield make
    for loader in loaders:
        loader.shutdown()


def _wait(loader):
    future = loader.pending
    assert future is not None
    future.exception(timeout=5)


def test_poll_returns_none_until_done(loader_factory):
    gate = threading.Event()

    def generate(image):
        gate.wait(5)
        return image

    loader = loader_factory(generate)
    assert loader.poll() is None
    loader.submit(Image.new("RGBA", (8, 8)))
    assert loader.poll() is None
    gate.set()
    _wait(loader)

    result = loader.poll()
    assert result.ok
    assert result.generation == 1
    assert loader.pending is None
    assert loader.poll() is None


def test_superseded_result_is_discarded(loader_factory):
    gate = threading.Event()
    started = threading.Event()

    def generate(image):
        started.set()
        gate.wait(5)
        return image

    loader = loader_factory(generate)
    loader.submit(Image.new("RGBA", (10, 10)))
    started.wait(5)
    generation = loader.submit(Image.new("RGBA", (20, 20)))
    gate.set()
    _wait(loader)

    result = loader.poll()
    assert result.generation == generation == 2
    assert result.mask.size == (20, 20)


def test_invalidate_drops_pending_result(loader_factory):
    loader = loader_factory(lambda image: image)
    loader.submit(Image.new("RGBA", (4, 4)))
    loader.invalidate()
    assert loader.pending is None
    assert loader.poll() is None


def test_failure_is_reported_as_result(loader_factory):
    def generate(_image):
        raise SegmenterUnavailableError()

    loader = loader_factory(generate)
    loader.submit(Image.new("RGBA", (4, 4)))
    _wait(loader)

    result = loader.poll()
    assert not result.ok
    assert isinstance(result.error, SegmenterUnavailableError)


def test_submit_works_on_a_copy(loader_factory):
    seen = []
    loader = loader_factory(lambda image: seen.append(image) or image)
    original = Image.new("RGBA", (4, 4))
    loader.submit(original)
    _wait(loader)
    assert seen[0] is not original
