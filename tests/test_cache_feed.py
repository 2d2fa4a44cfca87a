from __future__ import annotations

import logging

import anyio
import pytest

from refgraph.cache import CacheFeed, DeleteUpdate, NoOpUpdate, UpsertUpdate


def test_feed_apply_swaps_snapshot() -> None:
    feed = CacheFeed()
    before = feed.current
    after = feed.apply(UpsertUpdate(url="/a", value=1))
    assert feed.current is after
    assert dict(before) == {}
    assert dict(after) == {"/a": 1}
    assert feed.applied == 1


def test_feed_apply_payload() -> None:
    feed = CacheFeed()
    feed.apply_payload({"url": "/a", "value": "x"})
    feed.apply_payload(None)
    feed.apply_payload({"url": "/a"})
    assert dict(feed.current) == {}
    assert feed.applied == 3


@pytest.mark.anyio
async def test_feed_follows_stream_in_arrival_order() -> None:
    feed = CacheFeed()
    send, receive = anyio.create_memory_object_stream(10)
    async with send:
        await send.send(UpsertUpdate(url="/a", value=1))
        await send.send(NoOpUpdate())
        await send.send(UpsertUpdate(url="/b", value=2))
        await send.send(DeleteUpdate(url="/a"))
    async with receive:
        count = await feed.follow(receive)
    assert count == 4
    assert dict(feed.current) == {"/b": 2}


@pytest.mark.anyio
async def test_feed_follows_concurrent_producer() -> None:
    feed = CacheFeed()
    send, receive = anyio.create_memory_object_stream(0)

    async def produce() -> None:
        async with send:
            for i in range(5):
                await send.send(UpsertUpdate(url=f"/n{i}", value=i))

    async with anyio.create_task_group() as tg:
        tg.start_soon(produce)
        async with receive:
            await feed.follow(receive)

    assert dict(feed.current) == {f"/n{i}": i for i in range(5)}


def test_feed_logs_applied_updates(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="refgraph.cache")
    feed = CacheFeed()
    feed.apply(NoOpUpdate())
    feed.apply(UpsertUpdate(url="/a", value=1))
    assert "kind=upsert, url=/a" in caplog.text
    assert caplog.text.count("Cache update applied") == 1


@pytest.mark.anyio
async def test_feed_closes_stream_when_done() -> None:
    feed = CacheFeed()
    send, receive = anyio.create_memory_object_stream(1)
    async with send:
        await send.send(UpsertUpdate(url="/a", value=1))
    assert await feed.follow(receive) == 1
    with pytest.raises(anyio.ClosedResourceError):
        receive.receive_nowait()
