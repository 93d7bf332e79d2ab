"""
Participation reconciliation and dashboard statistics
"""
from datetime import date

import pytest

from helpers.ParticipationReconciler import (
    DIRECT_REGISTRATION_TEAM_NAME,
    ParticipationReconciler,
    parse_event_date,
)
from models.models import MembershipStatus, ParticipationKind

TODAY = date(2025, 6, 15)
USER_ID = "user-1"


def event(event_id, event_date="2025-07-01", category="education"):
    return {"id": event_id, "title": f"Event {event_id}", "event_date": event_date, "category": category}


def team(team_id, ev, captain_id="captain-1", name=None):
    return {
        "id": team_id,
        "name": name or f"Team {team_id}",
        "event_id": ev["id"] if ev else None,
        "captain_id": captain_id,
        "event": ev,
        "captain": {"id": captain_id, "full_name": "Cap", "email": "cap@example.org"},
        "members": [],
    }


def membership(membership_id, tm, role="volunteer", status="active"):
    return {
        "id": membership_id,
        "team_id": tm["id"],
        "user_id": USER_ID,
        "role_in_team": role,
        "status": status,
        "joined_at": "2025-05-01T10:00:00",
        "team": tm,
    }


def registration(registration_id, ev, status="confirmed"):
    return {"id": registration_id, "event_id": ev["id"] if ev else None, "status": status, "event": ev}


@pytest.fixture
def reconciler():
    return ParticipationReconciler(USER_ID, today=TODAY, user_name="Ana", user_email="ana@example.org")


def test_empty_inputs(reconciler):
    participations = reconciler.reconcile([], [], [])
    stats = reconciler.stats(participations, [])

    assert participations == []
    assert stats.total_participations == 0
    assert stats.active_participations == 0
    assert stats.completed_events == 0
    assert stats.average_rating == 0
    assert stats.total_evaluations == 0
    assert stats.favorite_category == ""


def test_none_inputs_are_treated_as_empty(reconciler):
    assert reconciler.reconcile(None, None, None) == []


def test_captain_beats_direct_registration(reconciler):
    ev = event("e1")
    captained = team("t1", ev, captain_id=USER_ID)

    result = reconciler.reconcile([], [captained], [registration("r1", ev)])

    assert len(result) == 1
    assert result[0].kind == ParticipationKind.CAPTAIN
    assert result[0].id == "captain_t1"
    assert result[0].can_leave is False


def test_team_membership_beats_direct_registration(reconciler):
    ev = event("e1")
    member = membership("m1", team("t1", ev))

    result = reconciler.reconcile([member], [], [registration("r1", ev)])

    assert len(result) == 1
    assert result[0].kind == ParticipationKind.MEMBER
    assert result[0].id == "m1"
    assert result[0].team.name == "Team t1"


def test_captain_membership_beats_volunteer_membership(reconciler):
    ev = event("e1")
    as_volunteer = membership("m1", team("t1", ev))
    as_captain = membership("m2", team("t2", ev), role="captain")

    result = reconciler.reconcile([as_volunteer, as_captain], [], [])

    assert [p.id for p in result] == ["m2"]
    assert result[0].kind == ParticipationKind.CAPTAIN
    assert result[0].can_leave is False


def test_active_wins_a_priority_tie(reconciler):
    ev = event("e1")
    left = membership("m1", team("t1", ev), status="inactive")
    current = membership("m2", team("t2", ev), status="active")

    result = reconciler.reconcile([left, current], [], [])
    assert [p.id for p in result] == ["m2"]

    result = reconciler.reconcile([current, left], [], [])
    assert [p.id for p in result] == ["m2"]


def test_first_seen_wins_an_exact_tie(reconciler):
    ev = event("e1")
    first = membership("m1", team("t1", ev))
    second = membership("m2", team("t2", ev))

    result = reconciler.reconcile([first, second], [], [])
    assert [p.id for p in result] == ["m1"]


def test_no_duplicate_events_across_sources(reconciler):
    e1, e2, e3 = event("e1"), event("e2", "2025-08-01"), event("e3", "2025-05-01")
    memberships = [membership("m1", team("t1", e1)), membership("m2", team("t2", e2))]
    captained = [team("t3", e2, captain_id=USER_ID)]
    registrations = [registration("r1", e1), registration("r2", e3), registration("r3", e3, status="pending")]

    result = reconciler.reconcile(memberships, captained, registrations)

    event_ids = [p.event.id for p in result]
    assert sorted(event_ids) == ["e1", "e2", "e3"]
    assert len(event_ids) == len(set(event_ids))


def test_missing_event_is_dropped(reconciler):
    orphan_membership = membership("m1", team("t1", None))
    no_team = {"id": "m2", "team_id": "gone", "status": "active", "role_in_team": "volunteer", "team": None}
    orphan_registration = registration("r1", None)
    kept = membership("m3", team("t3", event("e3")))

    result = reconciler.reconcile([orphan_membership, no_team, kept], [team("t4", None)], [orphan_registration])

    assert [p.id for p in result] == ["m3"]


@pytest.mark.parametrize("status", [None, "pending", "archived"])
def test_membership_with_unknown_status_is_skipped(reconciler, status):
    broken = membership("m1", team("t1", event("e1")), status=status)
    kept = membership("m2", team("t2", event("e2")))

    result = reconciler.reconcile([broken, kept], [], [])

    assert [p.id for p in result] == ["m2"]


def test_malformed_records_do_not_break_reconciliation(reconciler):
    no_id = membership("m1", team("t1", event("e1")))
    del no_id["id"]
    bad_role = membership("m2", team("t2", event("e2")), role="organizer")
    bad_roster = team("t3", event("e3"), captain_id=USER_ID)
    bad_roster["members"] = [{"id": "x", "status": "gone", "role_in_team": "volunteer"}]
    kept = registration("r1", event("e4"))

    result = reconciler.reconcile([no_id, bad_role], [bad_roster], [kept])

    assert [p.id for p in result] == ["reg_r1"]


def test_direct_registration_placeholder_team(reconciler):
    ev = event("e1")
    result = reconciler.reconcile([], [], [registration("r1", ev, status="pending")])

    participation = result[0]
    assert participation.kind == ParticipationKind.DIRECT_REGISTRATION
    assert participation.id == "reg_r1"
    assert participation.registration_id == "r1"
    assert participation.team.name == DIRECT_REGISTRATION_TEAM_NAME
    assert participation.team.id == "direct_e1"
    assert participation.team.captain.id == USER_ID
    assert participation.team.members[0].user.full_name == "Ana"
    assert participation.status == MembershipStatus.ACTIVE
    assert participation.can_leave is True


def test_can_leave_depends_on_status_and_date(reconciler):
    future = membership("m1", team("t1", event("e1", "2025-07-01")))
    today = membership("m2", team("t2", event("e2", "2025-06-15")))
    past = membership("m3", team("t3", event("e3", "2025-06-14")))
    inactive = membership("m4", team("t4", event("e4", "2025-07-01")), status="inactive")
    undated = membership("m5", team("t5", event("e5", None)))
    past_registration = registration("r1", event("e6", "2025-01-01"))

    result = reconciler.reconcile([future, today, past, inactive, undated], [], [past_registration])
    can_leave = {p.id: p.can_leave for p in result}

    assert can_leave == {
        "m1": True,
        "m2": True,
        "m3": False,
        "m4": False,
        "m5": True,
        "reg_r1": False,
    }


def test_output_sorted_by_event_date_descending(reconciler):
    memberships = [
        membership("m1", team("t1", event("e1", "2025-01-10"))),
        membership("m2", team("t2", event("e2", None))),
        membership("m3", team("t3", event("e3", "2025-09-01"))),
        membership("m4", team("t4", event("e4", "2025-06-20"))),
    ]

    result = reconciler.reconcile(memberships, [], [])
    assert [p.id for p in result] == ["m3", "m4", "m1", "m2"]


def test_statistics_relative_to_today(reconciler):
    memberships = [
        membership("m1", team("t1", event("e1", "2025-06-15"))),
        membership("m2", team("t2", event("e2", "2025-07-01"))),
        membership("m3", team("t3", event("e3", "2025-07-02")), status="inactive"),
        membership("m4", team("t4", event("e4", "2025-06-14"))),
        membership("m5", team("t5", event("e5", "2024-12-31")), status="removed"),
        membership("m6", team("t6", event("e6", None))),
    ]

    participations = reconciler.reconcile(memberships, [], [])
    stats = reconciler.stats(participations, [])

    assert stats.total_participations == 6
    assert stats.active_participations == 2
    assert stats.completed_events == 2


def test_average_rating():
    reconciler = ParticipationReconciler(USER_ID, today=TODAY)
    evaluations = [{"rating": 4}, {"rating": 5}, {"rating": 3}]

    assert reconciler.stats([], evaluations).average_rating == 4.0
    assert reconciler.stats([], evaluations).total_evaluations == 3
    assert reconciler.stats([], []).average_rating == 0


def test_average_rating_rounds_half_up():
    reconciler = ParticipationReconciler(USER_ID, today=TODAY)
    evaluations = [{"rating": 4}, {"rating": 4}, {"rating": 5}, {"rating": 4}]  # 4.25

    assert reconciler.stats([], evaluations).average_rating == 4.3


def test_favorite_category(reconciler):
    memberships = [
        membership("m1", team("t1", event("e1", "2025-07-03", "education"))),
        membership("m2", team("t2", event("e2", "2025-07-02", "social"))),
        membership("m3", team("t3", event("e3", "2025-07-01", "education"))),
    ]

    participations = reconciler.reconcile(memberships, [], [])
    assert reconciler.stats(participations, []).favorite_category == "education"


def test_favorite_category_tie_goes_to_first_seen(reconciler):
    memberships = [
        membership("m1", team("t1", event("e1", "2025-07-03", "social"))),
        membership("m2", team("t2", event("e2", "2025-07-02", "education"))),
    ]

    participations = reconciler.reconcile(memberships, [], [])
    assert reconciler.stats(participations, []).favorite_category == "social"


def test_missing_category_counts_as_other(reconciler):
    memberships = [membership("m1", team("t1", event("e1", category=None)))]

    participations = reconciler.reconcile(memberships, [], [])
    assert reconciler.stats(participations, []).favorite_category == "other"


@pytest.mark.parametrize("value, expected", [
    ("2025-06-15", date(2025, 6, 15)),
    ("2025-06-15T08:30:00+00:00", date(2025, 6, 15)),
    (None, None),
    ("", None),
    ("not a date", None),
])
def test_parse_event_date(value, expected):
    assert parse_event_date(value) == expected
