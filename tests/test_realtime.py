import asyncio
from realtime import ConnectionManager
from schemas.catalog import ChangeEvent, ChangeKind


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def event(kind=ChangeKind.ADD, payload=None):
    return ChangeEvent(kind=kind, catalog="comics", payload=payload or {"title": "A"})


def test_broadcast_with_no_clients_is_noop():
    hub = ConnectionManager()
    asyncio.run(hub.broadcast(event()))
    assert hub.connection_count == 0


def test_broadcast_reaches_every_client():
    async def _run():
        hub = ConnectionManager()
        a, b = FakeSocket(), FakeSocket()
        await hub.connect(a)
        await hub.register(b)
        await hub.broadcast(event())
        return hub, a, b
    hub, a, b = asyncio.run(_run())
    assert a.accepted
    assert a.sent == b.sent == [{"kind": "add", "catalog": "comics", "payload": {"title": "A"}}]


def test_failed_send_unregisters_only_that_client():
    async def _run():
        hub = ConnectionManager()
        good, bad = FakeSocket(), FakeSocket(fail=True)
        await hub.register(good)
        await hub.register(bad)
        await hub.broadcast(event())
        count_after_first = hub.connection_count
        bad.fail = False
        await hub.broadcast(event(ChangeKind.DELETE))
        return good, bad, count_after_first
    good, bad, count = asyncio.run(_run())
    assert count == 1
    assert len(good.sent) == 2
    assert bad.sent == []


def test_unregistered_client_gets_nothing_and_unregister_is_idempotent():
    async def _run():
        hub = ConnectionManager()
        ws = FakeSocket()
        await hub.register(ws)
        await hub.unregister(ws)
        await hub.unregister(ws)
        await hub.broadcast(event())
        return hub, ws
    hub, ws = asyncio.run(_run())
    assert ws.sent == []
    assert hub.connection_count == 0
