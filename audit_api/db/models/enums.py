from __future__ import annotations

import enum

from sqlalchemy import Enum


class ControlStatus(enum.IntEnum):
    NotStarted = 0
    InProgress = 1
    Completed = 2
    Failed = 3
    Archived = 4


class EvidenceStatus(enum.IntEnum):
    Pending = 0
    Approved = 1
    Rejected = 2
    UnderReview = 3


class RiskStatus(enum.IntEnum):
    Open = 0
    InProgress = 1
    Mitigated = 2
    Closed = 3


class RiskTier(enum.IntEnum):
    Low = 0
    Medium = 1
    High = 2
    Critical = 3


class QuestionnaireStatus(enum.IntEnum):
    Draft = 0
    Pending = 1
    InProgress = 2
    Completed = 3
    Approved = 4


class QuestionType(enum.IntEnum):
    Text = 0
    MultipleChoice = 1
    YesNo = 2
    Document = 3


class TaskStatus(enum.IntEnum):
    Open = 0
    InProgress = 1
    InReview = 2
    Completed = 3
    Cancelled = 4


class TaskPriority(enum.IntEnum):
    Low = 0
    Medium = 1
    High = 2
    Critical = 3


def enum_column(enum_cls: type[enum.Enum]) -> Enum:
    """Portable column type persisting an enumeration by member name."""
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)
