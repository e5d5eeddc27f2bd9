"""Directory filter predicates and their SQL compilation.

``build_filter_conditions`` turns a ``BusinessFilter`` request into a list of
plain predicate values. ``compile_conditions`` interprets those values against
the ``Business`` table. The two halves only share the column names below.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union

from sqlalchemy import and_, case, distinct, func, or_, select

from localoco.core.config import settings
from localoco.models.business import PRICE_TIER_RANK, Business, BusinessPaymentOption
from localoco.schemas.business import BusinessFilter, SortField


@dataclass(frozen=True)
class Equals:
    column: str
    value: Any


@dataclass(frozen=True)
class InSet:
    column: str
    values: tuple


@dataclass(frozen=True)
class Range:
    """Inclusive bounds; a missing bound is open."""

    column: str
    lower: Any = None
    upper: Any = None


@dataclass(frozen=True)
class SubstringMatch:
    """Case-insensitive ``needle`` in any of ``columns``."""

    columns: tuple
    needle: str


@dataclass(frozen=True)
class AggregateHaving:
    """Business must hold every value of ``values`` in the ``relation`` set."""

    relation: str
    values: frozenset


Predicate = Union[Equals, InSet, Range, SubstringMatch, AggregateHaving]

# Columns predicates may reference
FILTERABLE_COLUMNS = {
    "business_name": Business.business_name,
    "description": Business.description,
    "price_tier": Business.price_tier,
    "business_category": Business.business_category,
    "created_at": Business.created_at,
    "open247": Business.open247,
    "offers_delivery": Business.offers_delivery,
    "offers_pickup": Business.offers_pickup,
}

# Multi-valued relations: (uen column, value column)
AGGREGATE_RELATIONS = {
    "payment_options": (BusinessPaymentOption.uen, BusinessPaymentOption.payment_option),
}

BOOLEAN_FLAGS = ("open247", "offers_delivery", "offers_pickup")


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _membership(column: str, value: Any) -> Optional[Predicate]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        values = tuple(dict.fromkeys(_plain(v) for v in value))
        if not values:
            return None
        return InSet(column, values)
    return Equals(column, _plain(value))


def build_filter_conditions(
    filters: BusinessFilter,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
) -> list[Predicate]:
    """Translate a filter request into a conjunction of predicates.

    Absent fields, empty lists and false flags contribute nothing; boolean
    flags are only ever used to include, never to exclude.
    """
    conditions: list[Predicate] = []

    if filters.search_query and filters.search_query.strip():
        conditions.append(
            SubstringMatch(("business_name", "description"), filters.search_query.strip())
        )

    for column in ("price_tier", "business_category"):
        predicate = _membership(column, getattr(filters, column))
        if predicate is not None:
            conditions.append(predicate)

    if filters.newly_added:
        now = now or datetime.now(timezone.utc)
        days = window_days if window_days is not None else settings.NEWLY_ADDED_WINDOW_DAYS
        conditions.append(Range("created_at", lower=now - timedelta(days=days)))

    for flag in BOOLEAN_FLAGS:
        if getattr(filters, flag):
            conditions.append(Equals(flag, True))

    if filters.payment_options:
        conditions.append(
            AggregateHaving(
                "payment_options",
                frozenset(_plain(option) for option in filters.payment_options),
            )
        )

    return conditions


def _compile(predicate: Predicate):
    if isinstance(predicate, Equals):
        return FILTERABLE_COLUMNS[predicate.column] == predicate.value

    if isinstance(predicate, InSet):
        return FILTERABLE_COLUMNS[predicate.column].in_(predicate.values)

    if isinstance(predicate, Range):
        column = FILTERABLE_COLUMNS[predicate.column]
        bounds = []
        if predicate.lower is not None:
            bounds.append(column >= predicate.lower)
        if predicate.upper is not None:
            bounds.append(column <= predicate.upper)
        return and_(*bounds)

    if isinstance(predicate, SubstringMatch):
        return or_(
            *(
                FILTERABLE_COLUMNS[column].icontains(predicate.needle, autoescape=True)
                for column in predicate.columns
            )
        )

    if isinstance(predicate, AggregateHaving):
        uen_column, value_column = AGGREGATE_RELATIONS[predicate.relation]
        matching_uens = (
            select(uen_column)
            .where(value_column.in_(sorted(predicate.values)))
            .group_by(uen_column)
            .having(func.count(distinct(value_column)) == len(predicate.values))
        )
        return Business.uen.in_(matching_uens)

    raise TypeError(f"Unsupported predicate: {predicate!r}")


def compile_conditions(predicates: list[Predicate]) -> list:
    """Compile predicates into SQLAlchemy clauses meant to be AND-ed together."""
    return [_compile(predicate) for predicate in predicates]


def build_sort_clause(sort_by: Optional[str], sort_order: Optional[str]) -> list:
    """ORDER BY for the directory listing.

    Unknown ``sort_by`` falls back to creation date. Direction is ascending
    only when explicitly requested. Price tiers sort by rank, not spelling.
    """
    if sort_by == SortField.BUSINESS_NAME.value:
        key = Business.business_name
    elif sort_by == SortField.PRICE_TIER.value:
        key = case(PRICE_TIER_RANK, value=Business.price_tier, else_=len(PRICE_TIER_RANK))
    else:
        key = Business.created_at

    if sort_order == "asc":
        return [key.asc(), Business.uen.asc()]
    return [key.desc(), Business.uen.asc()]
