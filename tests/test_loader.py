import asyncio
import threading
import time
from dataclasses import dataclass, field

import pytest

from hypermine.loader import Asset, Loader, QueueFull

CTX = "context"


@dataclass
class Resource:
    name: str
    ctx: object
    cleaned: list = field(default_factory=list)

    def cleanup(self, ctx):
        self.cleaned.append(ctx)


@dataclass
class Named:
    name: str
    made: list = field(default_factory=list)

    async def load(self, ctx):
        resource = Resource(self.name, ctx)
        self.made.append(resource)
        return resource


@dataclass
class Other:
    name: str

    def load(self, ctx):
        return Resource(self.name, ctx)


@dataclass
class Broken:
    async def load(self, ctx):
        raise ValueError("boom")


@dataclass
class Gated:
    name: str
    gate: threading.Event
    made: list = field(default_factory=list)

    async def load(self, ctx):
        while not self.gate.is_set():
            await asyncio.sleep(0.001)
        resource = Resource(self.name, ctx)
        self.made.append(resource)
        return resource


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.001)
    return False


def _drive_until_loaded(loader, asset):
    def loaded():
        loader.drive()
        return loader.get(asset) is not None

    return _wait_until(loaded)


@pytest.fixture
def loader():
    instance = Loader(CTX)
    yield instance
    instance.close()


def test_load_then_drive(loader):
    asset = loader.load("mesh", Named("cube"))
    assert loader.get(asset) is None
    assert _drive_until_loaded(loader, asset)
    value = loader.get(asset)
    assert value.name == "cube"
    assert value.ctx == CTX


def test_tables_are_per_type(loader):
    a = loader.load("a", Named("a"))
    b = loader.load("b", Named("b"))
    c = loader.load("c", Other("c"))
    assert (a.table, a.index) == (0, 0)
    assert (b.table, b.index) == (0, 1)
    assert (c.table, c.index) == (1, 0)
    assert _drive_until_loaded(loader, c)
    assert loader.get(c).name == "c"


def test_failed_load_is_logged(loader, caplog):
    asset = loader.load("texture", Broken())
    assert _wait_until(
        lambda: any("texture load failed" in r.getMessage() for r in caplog.records)
    )
    loader.drive()
    assert loader.get(asset) is None


def test_unknown_asset_raises(loader):
    with pytest.raises(KeyError):
        loader.get(Asset(3, 0))


def test_close_cleans_up_loaded_values():
    loader = Loader(CTX)
    asset = loader.load("mesh", Named("cube"))
    assert _drive_until_loaded(loader, asset)
    value = loader.get(asset)
    loader.close()
    assert value.cleaned == [CTX]


def test_load_after_close_raises():
    loader = Loader(CTX)
    loader.close()
    with pytest.raises(RuntimeError):
        loader.load("mesh", Named("late"))


def test_work_queue_respects_capacity(loader):
    gate = threading.Event()
    work = loader.make_queue(2)
    work.load(Gated("one", gate))
    work.load(Gated("two", gate))
    third = Gated("three", gate)
    with pytest.raises(QueueFull) as info:
        work.load(third)
    assert info.value.item is third
    assert work.fill == 2
    gate.set()
    results = []
    assert _wait_until(lambda: (r := work.poll()) is not None and results.append(r) is None and len(results) == 2 or len(results) == 2)
    assert sorted(r.name for r in results) == ["one", "two"]
    assert work.fill == 0
    work.load(third)
    assert work.fill == 1


def test_poll_empty_queue(loader):
    work = loader.make_queue(1)
    assert work.poll() is None
    assert work.fill == 0


def test_close_cleans_completed_results(loader):
    item = Named("chunk")
    work = loader.make_queue(1)
    work.load(item)
    assert _wait_until(lambda: len(item.made) == 1)
    time.sleep(0.01)
    work.close()
    assert item.made[0].cleaned == [CTX]
    assert work.poll() is None
    assert work.fill == 0


def test_results_after_close_are_cleaned(loader):
    gate = threading.Event()
    item = Gated("late", gate)
    work = loader.make_queue(1)
    work.load(item)
    work.close()
    gate.set()
    assert _wait_until(lambda: item.made and item.made[0].cleaned == [CTX])
    assert work.poll() is None
    with pytest.raises(QueueFull):
        work.load(Gated("refused", gate))