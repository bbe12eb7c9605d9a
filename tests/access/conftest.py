from __future__ import annotations

import pytest

from tests.access.access_fixtures import AccessStore


@pytest.fixture
def access_store(monkeypatch: pytest.MonkeyPatch) -> AccessStore:
    store = AccessStore()
    store.install(monkeypatch)
    return store
