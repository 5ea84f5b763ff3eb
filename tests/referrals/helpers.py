from __future__ import annotations


class DummyTransaction:
    def __init__(self, session: DummySession) -> None:
        self._session = session

    async def __aenter__(self) -> DummySession:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._session.rollbacks += 1
        return False


class DummySession:
    def __init__(self) -> None:
        self.nested_calls = 0
        self.rollbacks = 0

    def begin_nested(self) -> DummyTransaction:
        self.nested_calls += 1
        return DummyTransaction(self)


class DummySessionLocal:
    def __init__(self, session: DummySession | None = None) -> None:
        self.session = session or DummySession()
        self.begin_calls = 0
        self.plain_calls = 0

    def begin(self) -> DummyTransaction:
        self.begin_calls += 1
        return DummyTransaction(self.session)

    def __call__(self) -> DummyTransaction:
        self.plain_calls += 1
        return DummyTransaction(self.session)
