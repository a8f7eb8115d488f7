import json

import pytest


class FakeConnection:
    """Stands in for a websocket: records what the relay sends and closes."""

    def __init__(self, name: str = "", fail: bool = False):
        self.name = name
        self.fail = fail
        self.sent = []
        self.closed = None

    async def send(self, text):
        if self.fail:
            raise ConnectionError(f"{self.name} is gone")
        self.sent.append(text)

    async def close(self, code=1000, reason=""):
        self.closed = (code, reason)

    def messages(self):
        return [json.loads(t) for t in self.sent]

    def __repr__(self):
        return f"<FakeConnection {self.name}>"


@pytest.fixture
def make_conn():
    return FakeConnection
