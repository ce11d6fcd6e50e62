"""Project routes: CRUD, membership, dashboard and chat history."""

from __future__ import annotations

import json

import pytest

from apps.core.models import Message, Project, Task


def send_json(client, method, url, data):
    return getattr(client, method)(url, data=json.dumps(data), content_type='application/json')


@pytest.mark.django_db
def test_list_shows_owned_and_member_projects(api_client, recorder, u1, u2, team_project, project):
    Project.objects.create(owner=u2, name='Private')

    names = [p['name'] for p in api_client(u2).get('/api/projects/').json()]

    assert sorted(names) == ['Gemini', 'Private']


@pytest.mark.django_db
def test_create_project_with_member_usernames(api_client, recorder, u1, u2):
    response = send_json(api_client(u1), 'post', '/api/projects/', {
        'name': 'Mercury',
        'description': 'First flight',
        'members': ['u2', 'u1'],
    })

    assert response.status_code == 201
    body = response.json()
    assert body['owner'] == {'id': str(u1.pk), 'username': 'u1'}
    # The owner never appears in members
    assert body['members'] == [{'id': str(u2.pk), 'username': 'u2'}]
    assert len(recorder.events(f'user_{u2.pk}', 'newNotification')) == 1


@pytest.mark.django_db
def test_create_project_validation(api_client, recorder, u1, project):
    client = api_client(u1)

    assert send_json(client, 'post', '/api/projects/', {'description': 'no name'}).status_code == 400
    assert send_json(client, 'post', '/api/projects/', {'name': 'Apollo'}).status_code == 400
    unknown = send_json(client, 'post', '/api/projects/', {'name': 'X', 'members': ['ghost']})
    assert unknown.status_code == 400
    assert unknown.json()['error'] == 'Unknown users: ghost'


@pytest.mark.django_db
def test_same_name_is_allowed_for_different_owners(api_client, recorder, u2, project):
    response = send_json(api_client(u2), 'post', '/api/projects/', {'name': 'Apollo'})

    assert response.status_code == 201


@pytest.mark.django_db
def test_project_detail_access(api_client, recorder, u1, u2, u3, team_project, project):
    assert api_client(u2).get(f'/api/projects/{team_project.pk}/').status_code == 200
    assert api_client(u2).get(f'/api/projects/{project.pk}/').status_code == 403
    assert api_client(u1).get('/api/projects/99999/').status_code == 404
    assert api_client(u1).get('/api/projects/abc/').status_code == 400


@pytest.mark.django_db
def test_only_owner_updates_project(api_client, recorder, u1, u2, team_project):
    url = f'/api/projects/{team_project.pk}/'

    denied = send_json(api_client(u2), 'put', url, {'name': 'Hijacked'})
    allowed = send_json(api_client(u1), 'put', url, {'name': 'Gemini II'})

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()['name'] == 'Gemini II'
    assert recorder.events(f'project_{team_project.pk}', 'projectUpdated')[0]['name'] == 'Gemini II'


@pytest.mark.django_db
def test_owner_deletes_project(api_client, recorder, u1, u2, task):
    projeto_id = task.project_id
    url = f'/api/projects/{projeto_id}/'

    assert api_client(u2).delete(url).status_code == 403
    response = api_client(u1).delete(url)

    assert response.status_code == 200
    assert not Task.objects.filter(project_id=projeto_id).exists()
    assert recorder.events(f'project_{projeto_id}', 'projectDeleted') == [str(projeto_id)]


@pytest.mark.django_db
def test_dashboard_summary(api_client, recorder, u1, u2, team_project):
    Task.objects.create(project=team_project, title='a', created_by=u1, assigned_to=u2)
    Task.objects.create(project=team_project, title='b', created_by=u1, assigned_to=u2, status='Done')
    Task.objects.create(project=team_project, title='c', created_by=u1)

    body = api_client(u1).get(f'/api/projects/{team_project.pk}/dashboard-summary/').json()

    assert body['tasksByStatus'] == [
        {'status': 'To Do', 'count': 2},
        {'status': 'Done', 'count': 1},
    ]
    assert sorted(body['tasksByAssignee'], key=lambda row: row['username']) == [
        {'assigneeId': None, 'username': 'Unassigned', 'count': 1},
        {'assigneeId': str(u2.pk), 'username': 'u2', 'count': 2},
    ]


@pytest.mark.django_db
def test_chat_history_is_ascending_and_member_only(api_client, recorder, u1, u2, team_project, project):
    Message.objects.create(project=team_project, sender=u1, content='first')
    Message.objects.create(project=team_project, sender=u2, content='second')

    body = api_client(u2).get(f'/api/projects/{team_project.pk}/chat/').json()

    assert [m['content'] for m in body] == ['first', 'second']
    assert body[0]['sender'] == {'id': str(u1.pk), 'username': 'u1'}
    assert api_client(u2).get(f'/api/projects/{project.pk}/chat/').status_code == 403
