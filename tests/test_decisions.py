"""Pure notification decision rules."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from apps.notifications.decisions import (
    ATTACHMENT,
    CREATE,
    DELETE,
    UPDATE,
    TaskSnapshot,
    decide_member_notifications,
    decide_task_notifications,
)

ACTOR = 1
ALICE = 2
BOB = 3


def snapshot(**overrides):
    base = TaskSnapshot(id=10, title='Ship it', project_name='Apollo', assignee_id=ALICE)
    return replace(base, **overrides)


# ---------------------------------------------------------------------------
# create / delete / attachment
# ---------------------------------------------------------------------------


def test_create_with_assignee_notifies_assignee():
    drafts = decide_task_notifications(CREATE, ACTOR, 'owner', after=snapshot())

    assert len(drafts) == 1
    assert drafts[0].recipient_id == ALICE
    assert drafts[0].type == 'task_assigned'
    assert drafts[0].message == 'You\'ve been assigned to new task: "Ship it" in project "Apollo".'


def test_create_assigned_to_actor_or_nobody_is_silent():
    assert decide_task_notifications(CREATE, ACTOR, 'owner', after=snapshot(assignee_id=ACTOR)) == []
    assert decide_task_notifications(CREATE, ACTOR, 'owner', after=snapshot(assignee_id=None)) == []


def test_delete_notifies_assignee_other_than_actor():
    drafts = decide_task_notifications(DELETE, ACTOR, 'owner', before=snapshot())

    assert [(d.recipient_id, d.type) for d in drafts] == [(ALICE, 'task_deleted')]
    assert drafts[0].message == 'Your assigned task: "Ship it" was deleted by owner from project "Apollo".'
    assert decide_task_notifications(DELETE, ALICE, 'alice', before=snapshot()) == []


def test_attachment_notifies_assignee_as_update():
    drafts = decide_task_notifications(ATTACHMENT, ACTOR, 'owner', after=snapshot())

    assert [(d.recipient_id, d.type) for d in drafts] == [(ALICE, 'task_updated')]
    assert 'added an attachment' in drafts[0].message


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


def test_assignee_swap_produces_assigned_and_unassigned():
    drafts = decide_task_notifications(
        UPDATE, ACTOR, 'owner',
        before=snapshot(assignee_id=ALICE), after=snapshot(assignee_id=BOB),
    )

    assert sorted((d.recipient_id, d.type) for d in drafts) == [
        (ALICE, 'task_unassigned'),
        (BOB, 'task_assigned'),
    ]


def test_assignee_swap_skips_the_actor_side():
    drafts = decide_task_notifications(
        UPDATE, ALICE, 'alice',
        before=snapshot(assignee_id=ALICE), after=snapshot(assignee_id=BOB),
    )

    assert [(d.recipient_id, d.type) for d in drafts] == [(BOB, 'task_assigned')]


def test_unassign_notifies_previous_assignee():
    drafts = decide_task_notifications(
        UPDATE, ACTOR, 'owner',
        before=snapshot(), after=snapshot(assignee_id=None),
    )

    assert [(d.recipient_id, d.type) for d in drafts] == [(ALICE, 'task_unassigned')]


def test_status_change_only_produces_one_status_notification():
    drafts = decide_task_notifications(
        UPDATE, ACTOR, 'owner',
        before=snapshot(status='To Do'), after=snapshot(status='Done', title='Renamed'),
    )

    assert len(drafts) == 1
    assert drafts[0].type == 'task_status_change'
    assert drafts[0].message == (
        'owner changed status of your task "Renamed" to "Done" in project "Apollo".'
    )


def test_status_change_for_actor_or_unassigned_is_silent():
    for assignee in (ACTOR, None):
        drafts = decide_task_notifications(
            UPDATE, ACTOR, 'owner',
            before=snapshot(assignee_id=assignee),
            after=snapshot(assignee_id=assignee, status='Done'),
        )
        assert drafts == []


def test_detail_change_produces_task_updated():
    drafts = decide_task_notifications(
        UPDATE, ACTOR, 'owner',
        before=snapshot(), after=snapshot(due_date=date(2030, 1, 1)),
    )

    assert [d.type for d in drafts] == ['task_updated']
    assert drafts[0].message == 'owner updated details of your task: "Ship it" in project "Apollo".'


def test_update_without_changes_is_silent():
    assert decide_task_notifications(UPDATE, ACTOR, 'owner', before=snapshot(), after=snapshot()) == []


# ---------------------------------------------------------------------------
# project members
# ---------------------------------------------------------------------------


def test_only_new_members_other_than_actor_are_notified():
    drafts = decide_member_notifications(
        ACTOR, 'owner', 'Apollo',
        previous_member_ids=[ALICE],
        new_member_ids=[ALICE, BOB, ACTOR],
    )

    assert [(d.recipient_id, d.type) for d in drafts] == [(BOB, 'project_member_added')]
    assert drafts[0].message == 'owner added you to project "Apollo".'
