"""
Activation package.

- activation_service: activation state machine (balance or approved
  deposits at or above the threshold)
"""

from app.services.activation.activation_service import (
    ActivationResult,
    ActivationService,
    decide_activation,
    missing_for_activation,
)


__all__ = [
    "ActivationResult",
    "ActivationService",
    "decide_activation",
    "missing_for_activation",
]
