"""
ORM models for the compliance domain: tenancy, frameworks/controls/evidence,
risks, vendors, remediation tasks and integrations.

Importing this package ensures model classes are registered with the Base
metadata for schema creation and runtime usage.
"""

from .enums import (  # noqa: F401
    ControlStatus,
    EvidenceStatus,
    QuestionnaireStatus,
    QuestionType,
    RiskStatus,
    RiskTier,
    TaskPriority,
    TaskStatus,
)
from .tenancy import (  # noqa: F401
    Tenant,
    User,
    Role,
    UserRole,
)
from .compliance import (  # noqa: F401
    Framework,
    Control,
    FrameworkControl,
    Policy,
    Evidence,
    EvidenceAuditLog,
)
from .risk import (  # noqa: F401
    Risk,
    RiskControl,
)
from .vendor import (  # noqa: F401
    Vendor,
    VendorQuestionnaire,
    VendorQuestion,
    VendorRisk,
)
from .tasks import (  # noqa: F401
    RemediationTask,
    TaskNotification,
)
from .integration import (  # noqa: F401
    Integration,
    IntegrationEvent,
)
