"""
Clinic Scoring Engine

Turns one month of raw audit inputs plus the clinic goals into derived
metrics, four category scores (25 points each) and a total out of 100:

- Financial       revenue vs goal, profit margin vs goal
- Capacity        booked hours / provider hours vs capacity goal
- New client flow new client visits, treatment plan conversion
- Marketing       website visits, website conversion, new client visits

Pure functions only: no database, no Flask. Every ratio with a zero or
negative denominator contributes 0 instead of raising or producing NaN.
"""
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

CATEGORY_MAX = 25.0

# Fixed benchmarks (the clinic-configurable goals live in Goals)
NEW_CLIENT_VISITS_TARGET = 30
TREATMENT_CONVERSION_TARGET = 0.5
WEBSITE_VISITS_TARGET = 1200
WEBSITE_CONVERSION_TARGET = 0.02
MARKETING_NEW_CLIENT_TARGET = 24

DEFAULT_REVENUE_GOAL = 100000.0
DEFAULT_PROFIT_MARGIN_GOAL = 30.0
DEFAULT_CAPACITY_GOAL = 80.0


def _num(value):
    """Decimal/int/None -> float, None and non-finite as 0"""
    if value is None:
        return 0.0
    result = float(value)
    return result if math.isfinite(result) else 0.0


def _ratio(numerator, denominator):
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def _capped(value, cap):
    return max(0.0, min(cap, value))


@dataclass
class Goals:
    revenue_goal: float = DEFAULT_REVENUE_GOAL
    profit_margin_goal: float = DEFAULT_PROFIT_MARGIN_GOAL  # percent
    capacity_goal: float = DEFAULT_CAPACITY_GOAL  # percent

    @classmethod
    def from_model(cls, goals):
        """GlobalGoals row (or None) -> Goals, defaults for anything unset"""
        if goals is None:
            return cls()
        return cls(
            revenue_goal=_num(goals.revenue_goal) if goals.revenue_goal is not None else DEFAULT_REVENUE_GOAL,
            profit_margin_goal=_num(goals.profit_margin_goal) if goals.profit_margin_goal is not None else DEFAULT_PROFIT_MARGIN_GOAL,
            capacity_goal=_num(goals.capacity_goal) if goals.capacity_goal is not None else DEFAULT_CAPACITY_GOAL,
        )


@dataclass
class ScoringInput:
    """Raw monthly inputs, normalized to floats"""
    revenue: float = 0.0
    operating_expenses: float = 0.0
    cogs: float = 0.0
    marketing_spend: float = 0.0
    website_visits: float = 0.0
    website_conversion_rate: float = 0.0  # whole-number percent as entered
    new_client_visits: float = 0.0
    clients_converting_to_treatment: float = 0.0
    total_clients: float = 0.0
    total_appointments: float = 0.0
    payroll: List[float] = field(default_factory=list)
    expenses: List[float] = field(default_factory=list)
    services: List[Tuple[float, float]] = field(default_factory=list)  # (provider_hours, booked_hours)

    @classmethod
    def from_audit(cls, audit):
        """Build from a MonthlyAudit and its loaded children"""
        return cls(
            revenue=_num(audit.revenue),
            operating_expenses=_num(audit.operating_expenses),
            cogs=_num(audit.cogs),
            marketing_spend=_num(audit.marketing_spend),
            website_visits=_num(audit.website_visits),
            website_conversion_rate=_num(audit.website_conversion_rate),
            new_client_visits=_num(audit.new_client_visits),
            clients_converting_to_treatment=_num(audit.clients_converting_to_treatment),
            total_clients=_num(audit.total_clients),
            total_appointments=_num(audit.total_appointments),
            payroll=[_num(item.amount) for item in audit.payroll_items],
            expenses=[_num(item.amount) for item in audit.expenses],
            services=[(_num(s.provider_hours), _num(s.booked_hours)) for s in audit.services],
        )


@dataclass
class DerivedMetrics:
    total_payroll: float
    total_additional_expenses: float
    total_operating_expenses: float
    total_provider_hours: float
    total_booked_hours: float
    capacity: float  # fraction
    profit: float
    profit_margin: float  # percent
    client_value: float
    website_conversion_rate: float  # fraction
    treatment_plan_conversion_rate: float  # fraction


def calculate_metrics(inputs: ScoringInput) -> DerivedMetrics:
    """Derived metrics for one month"""
    total_payroll = sum(inputs.payroll)
    total_additional_expenses = sum(inputs.expenses)
    total_operating_expenses = inputs.operating_expenses + total_additional_expenses
    total_provider_hours = sum(provider for provider, _ in inputs.services)
    total_booked_hours = sum(booked for _, booked in inputs.services)
    profit = inputs.revenue - total_operating_expenses - total_payroll - inputs.cogs

    return DerivedMetrics(
        total_payroll=total_payroll,
        total_additional_expenses=total_additional_expenses,
        total_operating_expenses=total_operating_expenses,
        total_provider_hours=total_provider_hours,
        total_booked_hours=total_booked_hours,
        capacity=_ratio(total_booked_hours, total_provider_hours),
        profit=profit,
        profit_margin=_ratio(profit, inputs.revenue) * 100,
        client_value=_ratio(inputs.revenue, inputs.total_clients),
        website_conversion_rate=inputs.website_conversion_rate / 100,
        treatment_plan_conversion_rate=_ratio(inputs.clients_converting_to_treatment, inputs.new_client_visits),
    )


def financial_score(inputs, metrics, goals):
    half = CATEGORY_MAX / 2
    revenue_part = _capped(_ratio(inputs.revenue, goals.revenue_goal) * half, half)
    margin_part = _capped(_ratio(metrics.profit_margin, goals.profit_margin_goal) * half, half)
    return revenue_part + margin_part


def capacity_score(metrics, goals):
    return _capped(_ratio(metrics.capacity, goals.capacity_goal / 100) * CATEGORY_MAX, CATEGORY_MAX)


def new_client_flow_score(inputs, metrics):
    visits_part = _capped(inputs.new_client_visits / NEW_CLIENT_VISITS_TARGET * 15, 15)
    conversion_part = _capped(metrics.treatment_plan_conversion_rate / TREATMENT_CONVERSION_TARGET * 10, 10)
    return visits_part + conversion_part


def marketing_score(inputs, metrics):
    visits_part = _capped(inputs.website_visits / WEBSITE_VISITS_TARGET * 10, 10)
    conversion_part = _capped(metrics.website_conversion_rate / WEBSITE_CONVERSION_TARGET * 10, 10)
    new_client_part = _capped(inputs.new_client_visits / MARKETING_NEW_CLIENT_TARGET * 5, 5)
    return visits_part + conversion_part + new_client_part


@dataclass
class Recommendation:
    level: str  # danger, warning, info
    title: str
    message: str
    metric: str
    percent_of_goal: float
    goal: float


@dataclass
class Scorecard:
    inputs: ScoringInput
    goals: Goals
    metrics: DerivedMetrics
    financial: float
    capacity: float
    new_client_flow: float
    marketing: float

    @property
    def total(self):
        return self.financial + self.capacity + self.new_client_flow + self.marketing

    def recommendations(self) -> Iterator[Recommendation]:
        """Advice, generated lazily in rule order"""
        return iter_recommendations(self)

    def to_dict(self):
        return {
            'metrics': asdict(self.metrics),
            'goals': asdict(self.goals),
            'scores': {
                'financial': self.financial,
                'capacity': self.capacity,
                'new_client_flow': self.new_client_flow,
                'marketing': self.marketing,
                'total': self.total,
            },
            'recommendations': [asdict(r) for r in self.recommendations()],
        }


def score_audit(inputs: ScoringInput, goals: Optional[Goals] = None) -> Scorecard:
    """Score one month against the clinic goals"""
    goals = goals or Goals()
    metrics = calculate_metrics(inputs)
    return Scorecard(
        inputs=inputs,
        goals=goals,
        metrics=metrics,
        financial=financial_score(inputs, metrics, goals),
        capacity=capacity_score(metrics, goals),
        new_client_flow=new_client_flow_score(inputs, metrics),
        marketing=marketing_score(inputs, metrics),
    )


# =============================================================================
# Recommendations
# =============================================================================

def _currency(value):
    return f"${value:,.0f}"


def _percent(value):
    return f"{value:g}%"


def _fraction_percent(value):
    return f"{value * 100:g}%"


def _count(value):
    return f"{value:,.0f}"


@dataclass(frozen=True)
class RecommendationRule:
    """Fires when actual / goal drops below ``threshold``"""
    metric: str
    label: str
    title: str
    level: str
    threshold: float
    actual: Callable[[Scorecard], float]
    goal: Callable[[Scorecard], float]
    format_goal: Callable[[float], str] = _count

    def evaluate(self, scorecard):
        goal = self.goal(scorecard)
        if goal <= 0:
            return None
        ratio = self.actual(scorecard) / goal
        if ratio >= self.threshold:
            return None
        percent = round(ratio * 100, 1)
        return Recommendation(
            level=self.level,
            title=self.title,
            message=f"{self.label} is at {percent:g}% of goal ({self.format_goal(goal)}).",
            metric=self.metric,
            percent_of_goal=percent,
            goal=goal,
        )


RECOMMENDATION_RULES: List[RecommendationRule] = [
    RecommendationRule(
        metric='revenue', label='Revenue', title='Revenue Below Goal', level='danger', threshold=0.9,
        actual=lambda s: s.inputs.revenue, goal=lambda s: s.goals.revenue_goal, format_goal=_currency,
    ),
    RecommendationRule(
        metric='profit_margin', label='Profit margin', title='Profit Margin Below Goal', level='warning', threshold=0.9,
        actual=lambda s: s.metrics.profit_margin, goal=lambda s: s.goals.profit_margin_goal, format_goal=_percent,
    ),
    RecommendationRule(
        metric='capacity', label='Capacity utilization', title='Capacity Below Goal', level='warning', threshold=0.9,
        actual=lambda s: s.metrics.capacity, goal=lambda s: s.goals.capacity_goal / 100, format_goal=_fraction_percent,
    ),
    RecommendationRule(
        metric='new_client_visits', label='New client visits', title='Low New Client Flow', level='warning', threshold=0.8,
        actual=lambda s: s.inputs.new_client_visits, goal=lambda s: NEW_CLIENT_VISITS_TARGET,
    ),
    RecommendationRule(
        metric='treatment_plan_conversion_rate', label='Treatment plan conversion', title='Treatment Plan Conversion Low',
        level='warning', threshold=0.8,
        actual=lambda s: s.metrics.treatment_plan_conversion_rate, goal=lambda s: TREATMENT_CONVERSION_TARGET,
        format_goal=_fraction_percent,
    ),
    RecommendationRule(
        metric='website_visits', label='Website visits', title='Website Traffic Below Target', level='info', threshold=0.8,
        actual=lambda s: s.inputs.website_visits, goal=lambda s: WEBSITE_VISITS_TARGET,
    ),
    RecommendationRule(
        metric='website_conversion_rate', label='Website conversion', title='Website Conversion Below Target',
        level='info', threshold=0.8,
        actual=lambda s: s.metrics.website_conversion_rate, goal=lambda s: WEBSITE_CONVERSION_TARGET,
        format_goal=_fraction_percent,
    ),
]


def register_rule(rule: RecommendationRule) -> None:
    """Append a rule; existing rules keep their order"""
    RECOMMENDATION_RULES.append(rule)


def iter_recommendations(scorecard: Scorecard) -> Iterator[Recommendation]:
    for rule in list(RECOMMENDATION_RULES):
        recommendation = rule.evaluate(scorecard)
        if recommendation is not None:
            yield recommendation
