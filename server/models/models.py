from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    VOLUNTEER = "volunteer"
    CAPTAIN = "captain"
    ADMIN = "admin"


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    REMOVED = "removed"


class TeamRole(str, Enum):
    CAPTAIN = "captain"
    VOLUNTEER = "volunteer"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


OPEN_REGISTRATION_STATUSES = [RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value]


class ParticipationKind(str, Enum):
    """Where a participation record came from, in increasing priority order"""
    DIRECT_REGISTRATION = "direct_registration"
    MEMBER = "member"
    CAPTAIN = "captain"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class User(BaseModel):
    id: str
    email: str
    full_name: str = ""
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role = Role.VOLUNTEER
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_first_login: bool = True


class UserRef(BaseModel):
    id: str
    full_name: Optional[str] = ""
    email: Optional[str] = ""


class EventRef(BaseModel):
    id: str
    title: str = ""
    event_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    max_volunteers: Optional[int] = 0


class TeamMemberView(BaseModel):
    id: str
    role_in_team: TeamRole = TeamRole.VOLUNTEER
    status: MembershipStatus = MembershipStatus.ACTIVE
    user: Optional[UserRef] = None


class TeamView(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    max_volunteers: int = 0
    current_volunteers: int = 0
    event: EventRef
    captain: Optional[UserRef] = None
    members: List[TeamMemberView] = Field(default_factory=list)


class Participation(BaseModel):
    """One reconciled relationship between a user and an event"""
    id: str
    kind: ParticipationKind
    team_id: str
    registration_id: Optional[str] = None
    role_in_team: TeamRole = TeamRole.VOLUNTEER
    status: MembershipStatus = MembershipStatus.ACTIVE
    joined_at: Optional[str] = None
    left_at: Optional[str] = None
    can_leave: bool = False
    team: TeamView

    @property
    def event(self) -> EventRef:
        return self.team.event


class ParticipationStats(BaseModel):
    total_participations: int = 0
    active_participations: int = 0
    completed_events: int = 0
    average_rating: float = 0
    total_evaluations: int = 0
    favorite_category: str = ""


class ParticipationDashboard(BaseModel):
    participations: List[Participation] = Field(default_factory=list)
    stats: ParticipationStats = Field(default_factory=ParticipationStats)
    evaluations: List[dict] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# Request payloads

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None


class EventCreate(BaseModel):
    title: str
    description: str = ""
    location: str
    event_date: str
    start_time: str
    end_time: str
    category: Optional[str] = None
    max_volunteers: int = 10
    status: EventStatus = EventStatus.PUBLISHED
    terms_content: Optional[str] = None
    image_url: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category: Optional[str] = None
    max_volunteers: Optional[int] = None
    status: Optional[EventStatus] = None
    terms_content: Optional[str] = None
    image_url: Optional[str] = None


class RegistrationCreate(BaseModel):
    accept_terms: bool = False


class TeamCreate(BaseModel):
    event_id: str
    name: str
    description: Optional[str] = None
    max_volunteers: int = 10


class TeamMemberAdd(BaseModel):
    user_id: str
    role_in_team: TeamRole = TeamRole.VOLUNTEER


class EvaluationCreate(BaseModel):
    volunteer_id: str
    event_id: str
    team_id: str
    rating: int = Field(ge=1, le=5)
    teamwork_rating: Optional[int] = Field(default=None, ge=1, le=5)
    punctuality_rating: Optional[int] = Field(default=None, ge=1, le=5)
    communication_rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: str = ""
    would_work_again: bool = True


class RoleUpdate(BaseModel):
    role: Role
