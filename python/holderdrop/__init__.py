"""holderdrop - proportional SOL distributions to SPL token holders.

Usage:
    ```python
    from holderdrop import Settings, create_svm_coordinator, create_svm_gateway

    settings = Settings.from_env()
    gateway = create_svm_gateway(settings)
    coordinator = create_svm_coordinator(settings, gateway)
    report = coordinator.distribute(signer, holders, 0.9)
    print(report.to_dict())
    ```
"""

from .config import Settings
from .errors import (
    BatchSubmissionError,
    ConfirmationTimeout,
    DistributionError,
    InputError,
    InsufficientBudget,
    LedgerUnavailable,
    NoEligibleRecipients,
    ScheduleValidationError,
    SubmissionUncertain,
    TransferRejected,
    ValidationGateDeclined,
)
from .mechanisms.svm.register import (
    create_rpc_client,
    create_svm_coordinator,
    create_svm_gateway,
    create_svm_holder_snapshot,
    create_svm_scheduler,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    # Errors
    "BatchSubmissionError",
    "ConfirmationTimeout",
    "DistributionError",
    "InputError",
    "InsufficientBudget",
    "LedgerUnavailable",
    "NoEligibleRecipients",
    "ScheduleValidationError",
    "SubmissionUncertain",
    "TransferRejected",
    "ValidationGateDeclined",
    # Construction
    "create_rpc_client",
    "create_svm_coordinator",
    "create_svm_gateway",
    "create_svm_holder_snapshot",
    "create_svm_scheduler",
]
