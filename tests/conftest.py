import os

import pytest

# Disable telemetry for tests
os.environ["DISABLE_CLOUD_TELEMETRY"] = "true"


class MockResource:
    """Simple pooled resource with transient state."""

    def __init__(self, serial: int):
        self.serial = serial
        self.active = False
        self.payload: list[str] = []
        self.closed = False

    def __repr__(self) -> str:
        return f"MockResource({self.serial}, active={self.active})"


class HookRecorder:
    """Factory plus lifecycle hooks that record every call in order."""

    def __init__(self):
        self.created = 0
        self.events: list[tuple[str, int]] = []

    def factory(self) -> MockResource:
        self.created += 1
        resource = MockResource(self.created)
        self.events.append(("factory", resource.serial))
        return resource

    def on_acquire(self, resource: MockResource) -> None:
        resource.active = True
        self.events.append(("acquire", resource.serial))

    def on_release(self, resource: MockResource) -> None:
        resource.active = False
        resource.payload.clear()
        self.events.append(("release", resource.serial))

    def on_evict(self, resource: MockResource) -> None:
        resource.closed = True
        self.events.append(("evict", resource.serial))

    def calls(self, hook: str, serial: int | None = None) -> int:
        return sum(
            1 for name, s in self.events if name == hook and (serial is None or s == serial)
        )

    def hooks(self) -> dict:
        return {
            "on_acquire": self.on_acquire,
            "on_release": self.on_release,
            "on_evict": self.on_evict,
        }


@pytest.fixture
def recorder() -> HookRecorder:
    return HookRecorder()


@pytest.fixture
def make_pool(recorder):
    """Build an ObjectPool wired to the recorder; shuts every pool down afterwards."""
    from reusepool.pools.object_pool import ObjectPool

    pools = []

    def _make(max_size: int = 4, prewarm_count: int = 0, name: str = "test-pool", **overrides):
        hooks = recorder.hooks()
        hooks.update(overrides)
        factory = hooks.pop("factory", recorder.factory)
        pool = ObjectPool(
            factory, max_size=max_size, prewarm_count=prewarm_count, name=name, **hooks
        )
        pools.append(pool)
        return pool

    yield _make

    for pool in pools:
        if not pool.closed:
            pool.shutdown()


@pytest.fixture(autouse=True)
def _clear_pool_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("REUSE_POOL_"):
            monkeypatch.delenv(key, raising=False)
    from reusepool.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
