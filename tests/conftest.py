"""Shared test fixtures and configuration.

Users, projects and tasks are created directly through the ORM. The
process broadcaster is swapped per test so no event leaks between tests.
"""

from __future__ import annotations

import asyncio

import pytest
from asgiref.sync import async_to_sync
from channels.layers import InMemoryChannelLayer, get_channel_layer
from django.apps import apps
from django.test import Client

from apps.core.auth_service import auth_service
from apps.core.models import Project, Task, User
from apps.realtime.broadcaster import Broadcaster, BroadcasterNotInitialized


# ---------------------------------------------------------------------------
# Broadcasters
# ---------------------------------------------------------------------------


class RecordingBroadcaster(Broadcaster):
    """Broadcaster that keeps every sync publish for later inspection."""

    def __init__(self, layer=None):
        super().__init__(layer)
        self.published = []

    def publish(self, room, event, payload=None):
        if not self.started:
            raise BroadcasterNotInitialized()
        self.published.append((room, event, payload))

    def events(self, room, event=None):
        return [
            payload if event else (name, payload)
            for target, name, payload in self.published
            if target == room and (event is None or name == event)
        ]


@pytest.fixture()
def recorder(monkeypatch):
    """Started recording broadcaster installed as the process broadcaster."""
    instance = RecordingBroadcaster(InMemoryChannelLayer())
    monkeypatch.setattr(apps.get_app_config('realtime'), 'broadcaster', instance)
    return instance


@pytest.fixture()
def stopped_broadcaster(monkeypatch):
    """Broadcaster that was never started."""
    instance = RecordingBroadcaster()
    monkeypatch.setattr(apps.get_app_config('realtime'), 'broadcaster', instance)
    return instance


@pytest.fixture()
def live_broadcaster(monkeypatch):
    """Real broadcaster on the default layer, shared with the consumers."""
    layer = get_channel_layer()
    instance = Broadcaster(layer)
    monkeypatch.setattr(apps.get_app_config('realtime'), 'broadcaster', instance)
    yield instance
    async_to_sync(layer.flush)()


async def drain(layer, channel, timeout=0.05):
    """Everything currently queued on a channel."""
    received = []
    while True:
        try:
            received.append(await asyncio.wait_for(layer.receive(channel), timeout=timeout))
        except asyncio.TimeoutError:
            return received


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------


def make_user(username):
    return User.objects.create_user(
        username=username,
        email=f'{username}@hive.test',
        password='secret123',
    )


@pytest.fixture()
def u1(db):
    return make_user('u1')


@pytest.fixture()
def u2(db):
    return make_user('u2')


@pytest.fixture()
def u3(db):
    return make_user('u3')


@pytest.fixture()
def project(u1):
    """Project owned by u1 without members."""
    return Project.objects.create(owner=u1, name='Apollo', description='Launch')


@pytest.fixture()
def team_project(u1, u2, u3):
    """Project owned by u1 with u2 and u3 as members."""
    projeto = Project.objects.create(owner=u1, name='Gemini')
    projeto.members.add(u2, u3)
    return projeto


@pytest.fixture()
def task(team_project, u1, u2):
    """Task in team_project created by u1 and assigned to u2."""
    return Task.objects.create(
        project=team_project,
        title='Write docs',
        created_by=u1,
        assigned_to=u2,
    )


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client():
    """Factory of test clients authenticated with a bearer token."""

    def _client(user=None):
        headers = {}
        if user is not None:
            headers['Authorization'] = f'Bearer {auth_service.emitir_token(user)}'
        return Client(headers=headers)

    return _client
