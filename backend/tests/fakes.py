"""Scripted stand-ins for an ``AsyncSession``.

Each ``execute`` call pops the next queued value, so a test lists the values
in the same order the code under test issues its queries.
"""

from __future__ import annotations

import uuid


class _Scalars:
    def __init__(self, values) -> None:
        self._values = list(values or [])

    def all(self):
        return list(self._values)


class FakeResult:
    def __init__(self, value) -> None:
        self.value = value

    def scalar_one_or_none(self):
        return self.value

    def scalar_one(self):
        return self.value

    def scalars(self):
        return _Scalars(self.value)

    def all(self):
        return list(self.value or [])

    def first(self):
        return self.value


class FakeAsyncSession:
    def __init__(self, *results, commit_error: Exception | None = None) -> None:
        self.results = list(results)
        self.commit_error = commit_error
        self.executed = []
        self.added = []
        self.deleted = []
        self.flushes = 0
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, stmt):
        self.executed.append(stmt)
        if not self.results:
            raise AssertionError(f"Unexpected query: {stmt}")
        return FakeResult(self.results.pop(0))

    def add(self, obj) -> None:
        self.added.append(obj)

    def add_all(self, objs) -> None:
        for obj in objs:
            self.add(obj)

    async def delete(self, obj) -> None:
        self.deleted.append(obj)

    async def flush(self) -> None:
        self.flushes += 1
        self._assign_ids()

    async def commit(self) -> None:
        if self.commit_error is not None:
            raise self.commit_error
        self.commits += 1
        self._assign_ids()

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def refresh(self, obj) -> None:
        return None

    def _assign_ids(self) -> None:
        for obj in self.added:
            if getattr(obj, "id", None) is None:
                obj.id = uuid.uuid4()

    def added_of(self, cls) -> list:
        return [obj for obj in self.added if isinstance(obj, cls)]
