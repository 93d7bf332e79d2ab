from .DateTimeSerializer import DateTimeSerializerVisitor
from .ParticipationReconciler import ParticipationReconciler, DIRECT_REGISTRATION_TEAM_NAME, average_rating, parse_event_date
from . import AccessPolicy

__all__ = [
    'DateTimeSerializerVisitor',
    'ParticipationReconciler',
    'DIRECT_REGISTRATION_TEAM_NAME',
    'average_rating',
    'parse_event_date',
    'AccessPolicy',
]
