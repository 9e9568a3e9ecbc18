"""
Domain services orchestrating repositories inside one unit of work per call.
"""

from .base import BaseService, parse_enum
from .compliance import ComplianceService
from .integrations import IntegrationService
from .risks import RiskService, risk_score
from .tasks import TaskService

__all__ = [
    "BaseService",
    "ComplianceService",
    "IntegrationService",
    "RiskService",
    "TaskService",
    "parse_enum",
    "risk_score",
]
