from collections.abc import Mapping
from typing import Any

import pytest

from slate.infrastructure.arango.query_builder import AQLQueryBuilder, new_query

_UNSET = object()


class FakeCursor:
    """In-memory QueryCursor recording how often it was released."""

    def __init__(self, documents: list[Any], count: Any = _UNSET, fail_on_read: Exception | None = None):
        self.documents = list(documents)
        self.reported_count = len(self.documents) if count is _UNSET else count
        self.fail_on_read = fail_on_read
        self.position = 0
        self.close_calls = 0

    def has_more(self) -> bool:
        return self.position < len(self.documents)

    def read_next(self) -> Any:
        if self.fail_on_read is not None:
            raise self.fail_on_read
        document = self.documents[self.position]
        self.position += 1
        return document

    def count(self) -> int | None:
        return self.reported_count

    def close(self) -> None:
        self.close_calls += 1


class FakeExecutor:
    """In-memory QueryExecutor returning canned documents."""

    def __init__(
        self,
        documents: list[Any] | None = None,
        error: Exception | None = None,
        count: Any = _UNSET,
        fail_on_read: Exception | None = None,
    ):
        self.documents = documents or []
        self.error = error
        self.count = count
        self.fail_on_read = fail_on_read
        self.calls: list[tuple[str, dict[str, Any], Any]] = []
        self.cursors: list[FakeCursor] = []

    def execute(self, query: str, bind_vars: Mapping[str, Any], context: Any = None) -> FakeCursor:
        self.calls.append((query, dict(bind_vars), context))
        if self.error is not None:
            raise self.error
        cursor = FakeCursor(self.documents, count=self.count, fail_on_read=self.fail_on_read)
        self.cursors.append(cursor)
        return cursor


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def users(executor: FakeExecutor) -> AQLQueryBuilder:
    return new_query("users", executor)
