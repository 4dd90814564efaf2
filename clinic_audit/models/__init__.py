from .clinic import Clinic
from .user import User
from .goals import GlobalGoals
from .monthly_audit import MonthlyAudit, PayrollItem, AdditionalExpense, ServiceRecord
from .invitation import Invitation
from .password_reset import PasswordResetToken
from .audit_log import AuditLog

__all__ = ["Clinic", "User", "GlobalGoals", "MonthlyAudit", "PayrollItem", "AdditionalExpense", "ServiceRecord", "Invitation", "PasswordResetToken", "AuditLog"]
