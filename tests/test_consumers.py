"""WebSocket sync consumer: rooms, chat, heartbeat and live mutations."""

from __future__ import annotations

import pytest
from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from apps.board.consumers import SyncConsumer
from apps.board.services import ProjectService, TaskService
from apps.core.auth_service import auth_service
from apps.core.models import Message
from apps.realtime.middleware import TokenAuthMiddleware


async def connect(user, path='/ws/sync/', application=None):
    communicator = WebsocketCommunicator(application or SyncConsumer.as_asgi(), path)
    if user is not None:
        communicator.scope['user'] = user
    connected, _ = await communicator.connect()
    assert connected
    hello = await communicator.receive_json_from()
    assert hello['type'] == 'connected'
    return communicator


async def command(communicator, payload):
    await communicator.send_json_to(payload)


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_anonymous_connection_is_closed(live_broadcaster):
    communicator = WebsocketCommunicator(SyncConsumer.as_asgi(), '/ws/sync/')
    communicator.scope['user'] = AnonymousUser()

    connected, _ = await communicator.connect()

    assert connected is False


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_connected_frame_and_ping(live_broadcaster, u1):
    communicator = WebsocketCommunicator(SyncConsumer.as_asgi(), '/ws/sync/')
    communicator.scope['user'] = u1
    await communicator.connect()

    hello = await communicator.receive_json_from()
    await command(communicator, {'type': 'ping'})
    pong = await communicator.receive_json_from()

    assert hello['message'] == {'userId': str(u1.pk), 'heartbeatInterval': 30}
    assert pong == {'type': 'pong'}
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_token_in_query_string_authenticates(live_broadcaster, u1):
    token = await database_sync_to_async(auth_service.emitir_token)(u1)
    application = TokenAuthMiddleware(SyncConsumer.as_asgi())

    communicator = await connect(None, f'/ws/sync/?token={token}', application)

    await communicator.disconnect()


# ---------------------------------------------------------------------------
# Room commands
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_outsider_cannot_join_project(live_broadcaster, u1, u2, project):
    communicator = await connect(u2)

    await command(communicator, {'type': 'joinProject', 'projectId': str(project.pk)})
    error = await communicator.receive_json_from()

    assert error['type'] == 'error'
    assert error['message']['command'] == 'joinProject'
    assert live_broadcaster.members(f'project_{project.pk}') == set()
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_cannot_join_another_users_room(live_broadcaster, u1, u2):
    communicator = await connect(u1)

    await command(communicator, {'type': 'joinUserRoom', 'userId': str(u2.pk)})
    error = await communicator.receive_json_from()

    assert error == {
        'type': 'error',
        'message': {'command': 'joinUserRoom', 'error': "Cannot join another user's room"},
    }
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_unknown_command_and_bad_json(live_broadcaster, u1):
    communicator = await connect(u1)

    await command(communicator, {'type': 'dance'})
    unknown = await communicator.receive_json_from()
    await communicator.send_to(text_data='{not json')
    invalid = await communicator.receive_json_from()

    assert unknown['message']['error'] == 'Unknown command'
    assert invalid['message']['error'] == 'Invalid JSON'
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_disconnect_leaves_every_room(live_broadcaster, u2, team_project):
    communicator = await connect(u2)
    await command(communicator, {'type': 'joinUserRoom', 'userId': u2.pk})
    await command(communicator, {'type': 'joinProject', 'projectId': team_project.pk})
    await command(communicator, {'type': 'ping'})
    await communicator.receive_json_from()

    assert len(live_broadcaster.members(f'project_{team_project.pk}')) == 1
    assert len(live_broadcaster.members(f'user_{u2.pk}')) == 1

    await communicator.disconnect()

    assert live_broadcaster.members(f'project_{team_project.pk}') == set()
    assert live_broadcaster.members(f'user_{u2.pk}') == set()


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_chat_message_is_persisted_and_broadcast(live_broadcaster, u1, u2, team_project):
    sender = await connect(u1)
    listener = await connect(u2)
    for communicator in (sender, listener):
        await command(communicator, {'type': 'joinProject', 'projectId': str(team_project.pk)})
        await command(communicator, {'type': 'ping'})
        assert (await communicator.receive_json_from())['type'] == 'pong'

    await command(sender, {
        'type': 'sendMessage',
        'projectId': str(team_project.pk),
        'sender': str(u1.pk),
        'content': '  hello team  ',
    })

    received = await listener.receive_json_from()
    echoed = await sender.receive_json_from()
    assert received['type'] == 'newMessage'
    assert received['message']['content'] == 'hello team'
    assert received['message']['sender'] == {'id': str(u1.pk), 'username': 'u1'}
    assert echoed == received
    stored = await database_sync_to_async(Message.objects.get)()
    assert stored.content == 'hello team'

    await sender.disconnect()
    await listener.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_chat_rejects_spoofed_sender(live_broadcaster, u1, u2, team_project):
    communicator = await connect(u1)

    await command(communicator, {
        'type': 'sendMessage',
        'projectId': str(team_project.pk),
        'sender': str(u2.pk),
        'content': 'hi',
    })
    error = await communicator.receive_json_from()

    assert error['message']['command'] == 'sendMessage'
    assert await database_sync_to_async(Message.objects.count)() == 0
    await communicator.disconnect()


# ---------------------------------------------------------------------------
# Live mutations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_two_clients_see_task_deletion(live_broadcaster, u1, u2, task):
    first = await connect(u1)
    second = await connect(u2)
    for communicator in (first, second):
        await command(communicator, {'type': 'joinProject', 'projectId': str(task.project_id)})
        await command(communicator, {'type': 'ping'})
        assert (await communicator.receive_json_from())['type'] == 'pong'
    await command(second, {'type': 'joinUserRoom', 'userId': str(u2.pk)})
    await command(second, {'type': 'ping'})
    assert (await second.receive_json_from())['type'] == 'pong'

    task_id = str(task.pk)
    await database_sync_to_async(TaskService().delete_task)(task, u1)

    assert await first.receive_json_from() == {'type': 'taskDeleted', 'message': task_id}
    assert await second.receive_json_from() == {'type': 'taskDeleted', 'message': task_id}
    notification = await second.receive_json_from()
    assert notification['type'] == 'newNotification'
    assert notification['message']['type'] == 'task_deleted'
    assert notification['message']['task'] is None
    assert await first.receive_nothing()
    assert await second.receive_nothing()

    await first.disconnect()
    await second.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_chat_message_is_kept_when_broadcast_fails(live_broadcaster, u1, team_project):
    communicator = await connect(u1)
    live_broadcaster.close()

    await command(communicator, {
        'type': 'sendMessage',
        'projectId': str(team_project.pk),
        'sender': str(u1.pk),
        'content': 'still saved',
    })
    await command(communicator, {'type': 'ping'})

    # The stored message is not reported back as a failure
    assert await communicator.receive_json_from() == {'type': 'pong'}
    assert await database_sync_to_async(Message.objects.count)() == 1
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_join_without_broadcaster_reports_unavailable(live_broadcaster, u2, team_project):
    communicator = await connect(u2)
    live_broadcaster.close()

    await command(communicator, {'type': 'joinProject', 'projectId': str(team_project.pk)})
    error = await communicator.receive_json_from()

    assert error == {
        'type': 'error',
        'message': {'command': 'joinProject', 'error': 'Realtime service unavailable'},
    }
    await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
async def test_removed_member_keeps_room_but_cannot_post(live_broadcaster, u1, u2, u3, team_project):
    communicator = await connect(u2)
    await command(communicator, {'type': 'joinProject', 'projectId': str(team_project.pk)})
    await command(communicator, {'type': 'ping'})
    assert (await communicator.receive_json_from())['type'] == 'pong'

    await database_sync_to_async(ProjectService().update_project)(team_project, u1, {}, [u3])

    # The open connection stays subscribed until it leaves or disconnects
    assert (await communicator.receive_json_from())['type'] == 'projectUpdated'
    await command(communicator, {
        'type': 'sendMessage',
        'projectId': str(team_project.pk),
        'sender': str(u2.pk),
        'content': 'still here?',
    })
    error = await communicator.receive_json_from()

    assert error['message'] == {'command': 'sendMessage', 'error': 'Not authorized to post in this project'}
    assert await database_sync_to_async(Message.objects.count)() == 0
    await communicator.disconnect()
