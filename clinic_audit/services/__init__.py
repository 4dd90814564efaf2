from .scoring import (
    Goals,
    ScoringInput,
    Scorecard,
    calculate_metrics,
    score_audit,
    register_rule,
)

from .email_service import send_invitation_email, send_password_reset_email

__all__ = [
    # Scoring
    "Goals",
    "ScoringInput",
    "Scorecard",
    "calculate_metrics",
    "score_audit",
    "register_rule",
    # Email Services
    "send_invitation_email",
    "send_password_reset_email",
]
