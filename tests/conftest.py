import pytest

from memberdash.repository import DocumentStore


class _FailingCollection:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def count(self, where=None) -> int:
        raise self.exc

    def query(self, where=None, order_by=None, limit=None, numeric=False) -> "_FailingCollection":
        return self

    async def fetch(self) -> list:
        raise self.exc


class FailingStore:
    """Real store, except reads on the named collections raise."""

    def __init__(self, inner: DocumentStore, failing: dict[str, Exception]) -> None:
        self.inner = inner
        self.failing = failing

    def collection(self, name: str):
        if name in self.failing:
            return _FailingCollection(self.failing[name])
        return self.inner.collection(name)


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    return DocumentStore(tmp_path / "memberdash.sqlite3")


@pytest.fixture
def failing_store(store):
    def _make(**failing: Exception) -> FailingStore:
        return FailingStore(store, failing)

    return _make
