"""
Request Schemas

Input is validated here before it reaches the services, which assume typed
and complete data. Field names accept both the camelCase the web app sends
and snake_case.
"""
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from clinic_audit.errors import ValidationError
from clinic_audit.utils.months import normalize_month

MIN_PASSWORD_LENGTH = 8


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _zero_if_blank(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    return value


def _normalize_email(value):
    if not isinstance(value, str) or '@' not in value or value.startswith('@') or value.endswith('@'):
        raise ValueError('must be a valid email address')
    return value.strip().lower()


# =============================================================================
# Monthly audits
# =============================================================================

class PayrollItemInput(Schema):
    name: str = Field(min_length=1, max_length=255)
    amount: Decimal = Decimal('0')

    blank_amount = field_validator('amount', mode='before')(_zero_if_blank)


class ExpenseInput(Schema):
    name: str = Field(min_length=1, max_length=255)
    amount: Decimal = Decimal('0')
    notes: Optional[str] = None

    blank_amount = field_validator('amount', mode='before')(_zero_if_blank)


class ServiceInput(Schema):
    name: str = Field(min_length=1, max_length=255)
    provider_hours: Decimal = Decimal('0')
    booked_hours: Decimal = Decimal('0')
    revenue: Decimal = Decimal('0')
    commission: Decimal = Decimal('0')
    allocated_expenses: Decimal = Decimal('0')

    blank_numbers = field_validator(
        'provider_hours', 'booked_hours', 'revenue', 'commission', 'allocated_expenses', mode='before'
    )(_zero_if_blank)


class AuditInput(Schema):
    audit_month: date
    clinic_name: Optional[str] = None

    revenue: Decimal = Decimal('0')
    operating_expenses: Decimal = Decimal('0')
    cogs: Decimal = Decimal('0')
    marketing_spend: Decimal = Decimal('0')

    website_visits: int = Field(default=0, ge=0)
    website_conversion_rate: Decimal = Decimal('0')
    new_client_visits: int = Field(default=0, ge=0)
    clients_converting_to_treatment: int = Field(default=0, ge=0)
    total_clients: int = Field(default=0, ge=0)
    total_appointments: int = Field(default=0, ge=0)

    payroll: List[PayrollItemInput] = Field(default_factory=list)
    expenses: List[ExpenseInput] = Field(default_factory=list)
    services: List[ServiceInput] = Field(default_factory=list)

    blank_numbers = field_validator(
        'revenue', 'operating_expenses', 'cogs', 'marketing_spend', 'website_visits',
        'website_conversion_rate', 'new_client_visits', 'clients_converting_to_treatment',
        'total_clients', 'total_appointments', mode='before'
    )(_zero_if_blank)

    @field_validator('audit_month', mode='before')
    @classmethod
    def first_of_month(cls, value):
        return normalize_month(value)

    @field_validator('payroll', 'expenses', 'services', mode='before')
    @classmethod
    def none_is_empty(cls, value):
        return [] if value is None else value


# =============================================================================
# Goals
# =============================================================================

class GoalsInput(Schema):
    revenue_goal: Decimal = Field(ge=0)
    profit_margin_goal: Decimal = Field(ge=0)
    capacity_goal: Decimal = Field(ge=0)


# =============================================================================
# Identity
# =============================================================================

class SignupInput(Schema):
    email: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    clinic_name: str = Field(min_length=1, max_length=255)
    clinic_location: Optional[str] = Field(default=None, max_length=255)

    normalize_email = field_validator('email')(_normalize_email)


class LoginInput(Schema):
    email: str
    password: str = Field(min_length=1)

    normalize_email = field_validator('email')(_normalize_email)


class ForgotPasswordInput(Schema):
    email: str

    normalize_email = field_validator('email')(_normalize_email)


class ResetPasswordInput(Schema):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class AcceptInvitationInput(Schema):
    token: str = Field(min_length=1)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class InviteInput(Schema):
    email: str
    role: Literal['admin', 'member']

    normalize_email = field_validator('email')(_normalize_email)


def load(model, payload):
    """
    Validate a request payload against ``model``.

    Raises:
        ValidationError: payload is missing or does not fit the schema
    """
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be JSON')
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            field = '.'.join(str(part) for part in err.get('loc', ()))
            problems.append(f"{field}: {err.get('msg')}" if field else err.get('msg'))
        raise ValidationError('; '.join(problems)) from e
