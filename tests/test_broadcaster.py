"""Room registry and event delivery of the Broadcaster."""

from __future__ import annotations

import pytest
from channels.layers import InMemoryChannelLayer

from apps.realtime.broadcaster import (
    Broadcaster,
    BroadcasterNotInitialized,
    project_room,
    user_room,
)
from conftest import drain


def test_room_names_are_valid_group_names():
    assert project_room(7) == 'project_7'
    assert user_room('12') == 'user_12'


def test_publish_before_start_raises():
    broadcaster = Broadcaster()

    assert broadcaster.started is False
    with pytest.raises(BroadcasterNotInitialized):
        broadcaster.publish(project_room(1), 'taskDeleted', '1')


def test_start_without_layer_raises():
    with pytest.raises(BroadcasterNotInitialized):
        Broadcaster().start(None)


@pytest.mark.asyncio
async def test_join_before_start_raises():
    broadcaster = Broadcaster()

    with pytest.raises(BroadcasterNotInitialized):
        await broadcaster.join(project_room(1), 'specific.inmemory!abc')


@pytest.mark.asyncio
async def test_publish_reaches_only_current_members():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    member = await layer.new_channel()
    outsider = await layer.new_channel()

    await broadcaster.join(project_room(1), member)
    await broadcaster.apublish(project_room(1), 'taskDeleted', '42')

    assert await drain(layer, member) == [
        {'type': 'room.event', 'event': 'taskDeleted', 'payload': '42'},
    ]
    assert await drain(layer, outsider) == []


@pytest.mark.asyncio
async def test_join_is_idempotent():
    """Joining twice still delivers each event exactly once."""
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()

    await broadcaster.join(project_room(1), channel)
    await broadcaster.join(project_room(1), channel)
    await broadcaster.apublish(project_room(1), 'taskCreated', {'id': '1'})

    assert len(await drain(layer, channel)) == 1
    assert broadcaster.rooms_of(channel) == {'project_1'}


@pytest.mark.asyncio
async def test_connection_can_be_in_many_rooms():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()

    await broadcaster.join(user_room(5), channel)
    await broadcaster.join(project_room(1), channel)
    await broadcaster.join(project_room(2), channel)

    assert broadcaster.rooms_of(channel) == {'user_5', 'project_1', 'project_2'}
    assert broadcaster.members(project_room(2)) == {channel}


@pytest.mark.asyncio
async def test_leave_stops_delivery():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()

    await broadcaster.join(project_room(1), channel)
    await broadcaster.leave(project_room(1), channel)
    await broadcaster.leave(project_room(1), channel)
    await broadcaster.apublish(project_room(1), 'taskDeleted', '1')

    assert await drain(layer, channel) == []
    assert broadcaster.rooms_of(channel) == set()


@pytest.mark.asyncio
async def test_leave_all_removes_connection_from_every_room():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()
    other = await layer.new_channel()

    await broadcaster.join(user_room(5), channel)
    await broadcaster.join(project_room(1), channel)
    await broadcaster.join(project_room(1), other)
    await broadcaster.leave_all(channel)

    await broadcaster.apublish(project_room(1), 'taskDeleted', '1')
    await broadcaster.apublish(user_room(5), 'allNotificationsRead')

    assert await drain(layer, channel) == []
    assert len(await drain(layer, other)) == 1
    assert broadcaster.rooms_of(channel) == set()
    assert broadcaster.members(project_room(1)) == {other}


@pytest.mark.asyncio
async def test_no_replay_for_late_joiners():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()

    await broadcaster.apublish(project_room(1), 'taskCreated', {'id': '1'})
    await broadcaster.join(project_room(1), channel)

    assert await drain(layer, channel) == []


@pytest.mark.asyncio
async def test_close_forgets_rooms_and_stops():
    layer = InMemoryChannelLayer()
    broadcaster = Broadcaster(layer)
    channel = await layer.new_channel()
    await broadcaster.join(project_room(1), channel)

    broadcaster.close()

    assert broadcaster.started is False
    assert broadcaster.rooms_of(channel) == set()
    with pytest.raises(BroadcasterNotInitialized):
        await broadcaster.apublish(project_room(1), 'taskDeleted', '1')
