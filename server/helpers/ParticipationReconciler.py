import logging
import math
from collections import Counter
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from pydantic import ValidationError

from models.models import (
    EventRef,
    MembershipStatus,
    OPEN_REGISTRATION_STATUSES,
    Participation,
    ParticipationKind,
    ParticipationStats,
    TeamMemberView,
    TeamRole,
    TeamView,
    UserRef,
)

logger = logging.getLogger(__name__)

DIRECT_REGISTRATION_TEAM_NAME = "Direct Registration"

_PRIORITY = {
    ParticipationKind.DIRECT_REGISTRATION: 1,
    ParticipationKind.MEMBER: 2,
    ParticipationKind.CAPTAIN: 3,
}


def parse_event_date(value) -> Optional[date]:
    """Parse a stored event date ("YYYY-MM-DD" or full ISO timestamp); None when absent or unreadable"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).split("T")[0])
    except ValueError:
        return None


def average_rating(ratings) -> float:
    """Mean of the ratings to one decimal, halves rounded up; 0 when there are none"""
    ratings = list(ratings)
    if not ratings:
        return 0
    return math.floor(sum(ratings) / len(ratings) * 10 + 0.5) / 10


class ParticipationReconciler:
    """
    Merges a user's team memberships, captained teams and direct registrations
    into one participation per event.

    Inputs are the raw documents returned by the repository, already expanded
    (membership -> team -> event/captain/members, registration -> event).
    Nothing here touches the database; the same inputs always give the same
    output for a given ``today``.
    """

    def __init__(self, user_id: str, today: Optional[date] = None, user_name: str = "", user_email: str = ""):
        self.user_id = user_id
        self.user_name = user_name
        self.user_email = user_email
        self.today = today or datetime.now(timezone.utc).date()

    def is_past(self, event: EventRef) -> bool:
        event_date = parse_event_date(event.event_date)
        return event_date is not None and event_date < self.today

    def _event(self, raw) -> Optional[EventRef]:
        if not isinstance(raw, dict) or not raw.get("id"):
            return None
        return EventRef.model_validate(raw)

    def _team_view(self, team: dict, event: EventRef) -> TeamView:
        captain = team.get("captain")
        members = []
        for member in team.get("members") or []:
            user = member.get("user")
            members.append(TeamMemberView(
                id=member.get("id", ""),
                role_in_team=member.get("role_in_team", TeamRole.VOLUNTEER),
                status=member.get("status", MembershipStatus.ACTIVE),
                user=UserRef.model_validate(user) if user else None,
            ))
        return TeamView(
            id=team.get("id", ""),
            name=team.get("name", ""),
            description=team.get("description"),
            max_volunteers=team.get("max_volunteers") or 0,
            current_volunteers=team.get("current_volunteers") or 0,
            event=event,
            captain=UserRef.model_validate(captain) if captain else None,
            members=members,
        )

    def from_membership(self, membership: dict) -> Optional[Participation]:
        team = membership.get("team") or {}
        event = self._event(team.get("event"))
        if event is None:
            return None

        status = MembershipStatus(membership.get("status", MembershipStatus.ACTIVE))
        role = TeamRole(membership.get("role_in_team", TeamRole.VOLUNTEER))
        kind = ParticipationKind.CAPTAIN if role == TeamRole.CAPTAIN else ParticipationKind.MEMBER
        return Participation(
            id=membership["id"],
            kind=kind,
            team_id=membership.get("team_id") or team.get("id", ""),
            role_in_team=role,
            status=status,
            joined_at=membership.get("joined_at"),
            left_at=membership.get("left_at"),
            can_leave=(
                kind != ParticipationKind.CAPTAIN
                and status == MembershipStatus.ACTIVE
                and not self.is_past(event)
            ),
            team=self._team_view(team, event),
        )

    def from_captained_team(self, team: dict) -> Optional[Participation]:
        event = self._event(team.get("event"))
        if event is None:
            return None

        return Participation(
            id=f"captain_{team['id']}",
            kind=ParticipationKind.CAPTAIN,
            team_id=team["id"],
            role_in_team=TeamRole.CAPTAIN,
            status=MembershipStatus.ACTIVE,
            joined_at=team.get("created_at"),
            can_leave=False,
            team=self._team_view(team, event),
        )

    def from_registration(self, registration: dict) -> Optional[Participation]:
        event = self._event(registration.get("event"))
        if event is None:
            return None

        is_open = registration.get("status") in OPEN_REGISTRATION_STATUSES
        me = UserRef(id=self.user_id, full_name=self.user_name, email=self.user_email)
        placeholder = TeamView(
            id=f"direct_{event.id}",
            name=DIRECT_REGISTRATION_TEAM_NAME,
            max_volunteers=event.max_volunteers or 0,
            current_volunteers=1,
            event=event,
            captain=me,
            members=[TeamMemberView(id=f"member_{self.user_id}", user=me)],
        )
        return Participation(
            id=f"reg_{registration['id']}",
            kind=ParticipationKind.DIRECT_REGISTRATION,
            team_id=placeholder.id,
            registration_id=registration["id"],
            status=MembershipStatus.ACTIVE if is_open else MembershipStatus.INACTIVE,
            joined_at=registration.get("registered_at"),
            can_leave=is_open and not self.is_past(event),
            team=placeholder,
        )

    @staticmethod
    def _normalize(convert, record) -> Optional[Participation]:
        """Run one converter; a record with an unreadable shape is skipped"""
        try:
            return convert(record)
        except (KeyError, TypeError, AttributeError, ValueError, ValidationError) as e:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping malformed {convert.__name__[5:]} record {record_id}: {e}")
            return None

    @staticmethod
    def _outranks(candidate: Participation, current: Participation) -> bool:
        if _PRIORITY[candidate.kind] != _PRIORITY[current.kind]:
            return _PRIORITY[candidate.kind] > _PRIORITY[current.kind]
        return candidate.status == MembershipStatus.ACTIVE and current.status != MembershipStatus.ACTIVE

    def reconcile(self, memberships: Iterable[dict], captained_teams: Iterable[dict],
                  registrations: Iterable[dict]) -> List[Participation]:
        candidates = []
        candidates.extend(self._normalize(self.from_membership, m) for m in memberships or [])
        candidates.extend(self._normalize(self.from_captained_team, t) for t in captained_teams or [])
        candidates.extend(self._normalize(self.from_registration, r) for r in registrations or [])

        by_event = {}
        for candidate in candidates:
            if candidate is None:
                continue
            event_id = candidate.event.id
            current = by_event.get(event_id)
            if current is None or self._outranks(candidate, current):
                by_event[event_id] = candidate

        dated = [p for p in by_event.values() if parse_event_date(p.event.event_date)]
        undated = [p for p in by_event.values() if not parse_event_date(p.event.event_date)]
        dated.sort(key=lambda p: parse_event_date(p.event.event_date), reverse=True)
        return dated + undated

    def stats(self, participations: List[Participation], evaluations: Iterable[dict]) -> ParticipationStats:
        active = 0
        completed = 0
        categories = Counter()
        for participation in participations:
            event_date = parse_event_date(participation.event.event_date)
            if event_date is not None:
                if event_date < self.today:
                    completed += 1
                elif participation.status == MembershipStatus.ACTIVE:
                    active += 1
            categories[participation.event.category or "other"] += 1

        ratings = [e["rating"] for e in evaluations or [] if e.get("rating") is not None]
        favorite = categories.most_common(1)[0][0] if categories else ""

        return ParticipationStats(
            total_participations=len(participations),
            active_participations=active,
            completed_events=completed,
            average_rating=average_rating(ratings),
            total_evaluations=len(ratings),
            favorite_category=favorite,
        )
