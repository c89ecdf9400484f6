from enum import Enum

class Topic(str, Enum):
    ARCHITECTURE = "architecture"
    OPERATIONS = "operations"
    CARVEOUT_INTEGRATION = "carveout-integration"
    SECURITY_RISK = "security-risk"

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    STANDARD = "standard"

class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class ExitImpact(str, Enum):
    MULTIPLE_EXPANDER = "Multiple Expander"
    VALUATION_DRAG = "Valuation Drag"
    OPERATIONAL_RISK = "Operational Risk"

class InputType(str, Enum):
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    COMPOUND = "compound"

class WizardPhase(str, Enum):
    WIZARD = "WIZARD"
    OUTPUT = "OUTPUT"

class StepStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    REACHABLE = "reachable"
    LOCKED = "locked"

# Lower rank sorts first.
PRIORITY_RANK = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.STANDARD: 2,
}

SEVERITY_RANK = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}
