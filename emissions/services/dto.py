"""
Value objects passed between the aggregation services.

Everything here is immutable. A computation builds new instances instead of
updating existing ones, so results can be cached and shared between threads.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, List, Optional, Tuple

from organizations.models import OrganizationTypeChoices
from organizations.services.hierarchy import ROOT_PATH, normalize_tree_path

from ..exceptions import InvalidContextError, InvalidPeriodError

ZERO = Decimal("0")

MIN_REPORTING_YEAR = 1990
MAX_REPORTING_YEAR = 2100


def _parse_int(value, label: str, error_class) -> Optional[int]:
    """Parse an optional integer identifier coming from a request."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise error_class(f"{label} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise error_class(f"{label} must be an integer, got {value!r}")


@dataclass(frozen=True)
class ReportingPeriod:
    """A reporting year, optionally narrowed to one month."""
    year: int
    month: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.year, int) or isinstance(self.year, bool):
            raise InvalidPeriodError(f"Reporting year must be an integer, got {self.year!r}")
        if not MIN_REPORTING_YEAR <= self.year <= MAX_REPORTING_YEAR:
            raise InvalidPeriodError(
                f"Reporting year must be between {MIN_REPORTING_YEAR} and {MAX_REPORTING_YEAR}, got {self.year}"
            )
        if self.month is not None:
            if not isinstance(self.month, int) or isinstance(self.month, bool):
                raise InvalidPeriodError(f"Reporting month must be an integer, got {self.month!r}")
            if not 1 <= self.month <= 12:
                raise InvalidPeriodError(f"Reporting month must be between 1 and 12, got {self.month}")

    @classmethod
    def from_values(cls, year, month=None) -> "ReportingPeriod":
        parsed_year = _parse_int(year, "year", InvalidPeriodError)
        if parsed_year is None:
            raise InvalidPeriodError("Reporting year is required")
        return cls(year=parsed_year, month=_parse_int(month, "month", InvalidPeriodError))

    @property
    def is_full_year(self) -> bool:
        return self.month is None

    def __str__(self):
        if self.is_full_year:
            return str(self.year)
        return f"{self.year}-{self.month:02d}"


@dataclass(frozen=True)
class OrgContext:
    """
    Who is asking: a headquarters (root) or one of its partners.

    The context is resolved by the caller (usually from the authenticated
    request) and is trusted as-is apart from structural validation.
    """
    organization_type: str
    headquarters_id: int
    partner_id: Optional[int] = None
    tree_path: Optional[str] = None

    def __post_init__(self):
        if self.organization_type not in OrganizationTypeChoices.values:
            raise InvalidContextError(f"Unknown organization type: {self.organization_type!r}")
        if not isinstance(self.headquarters_id, int) or isinstance(self.headquarters_id, bool):
            raise InvalidContextError("A headquarters id is required")
        if self.is_root:
            return
        if not isinstance(self.partner_id, int) or isinstance(self.partner_id, bool):
            raise InvalidContextError("A partner context requires a partner id")
        path = normalize_tree_path(self.tree_path)
        if path is None or path == ROOT_PATH:
            raise InvalidContextError(f"A partner context requires a tree path, got {self.tree_path!r}")
        object.__setattr__(self, "tree_path", path)

    @classmethod
    def for_headquarters(cls, headquarters_id: int) -> "OrgContext":
        return cls(
            organization_type=OrganizationTypeChoices.HEADQUARTERS,
            headquarters_id=headquarters_id,
        )

    @classmethod
    def for_partner(cls, headquarters_id: int, partner_id: int, tree_path: str) -> "OrgContext":
        return cls(
            organization_type=OrganizationTypeChoices.PARTNER,
            headquarters_id=headquarters_id,
            partner_id=partner_id,
            tree_path=tree_path,
        )

    @classmethod
    def from_values(cls, headquarters_id, partner_id=None, tree_path=None) -> "OrgContext":
        """
        Build a context from raw request values.

        A context with a partner id is a partner context; without one it is the
        headquarters itself.
        """
        parsed_headquarters_id = _parse_int(headquarters_id, "headquarters_id", InvalidPeriodError)
        if parsed_headquarters_id is None:
            raise InvalidContextError("headquarters_id is required")
        parsed_partner_id = _parse_int(partner_id, "partner_id", InvalidPeriodError)
        if parsed_partner_id is None:
            return cls.for_headquarters(parsed_headquarters_id)
        return cls.for_partner(parsed_headquarters_id, parsed_partner_id, tree_path)

    @property
    def is_root(self) -> bool:
        return self.organization_type == OrganizationTypeChoices.HEADQUARTERS

    @property
    def organization_id(self) -> int:
        return self.headquarters_id if self.is_root else self.partner_id

    @property
    def descendant_prefix(self) -> str:
        """Path prefix used to find the organizations below this one."""
        return ROOT_PATH if self.is_root else self.tree_path

    def self_scope(self, period: ReportingPeriod) -> "SumScope":
        """Records entered by this organization itself."""
        if self.is_root:
            return SumScope.headquarters_direct(self.headquarters_id, period)
        return SumScope.for_partner(self.headquarters_id, self.partner_id, period)

    def subtree_scope(self, period: ReportingPeriod) -> "SumScope":
        """Records of this organization and everything below it."""
        if self.is_root:
            return SumScope.tenant(self.headquarters_id, period)
        return SumScope.subtree(self.headquarters_id, self.tree_path, period)


@dataclass(frozen=True)
class SumScope:
    """
    Record filter for one scoped sum.

    Exactly one narrowing applies: a specific partner, the headquarters' direct
    records (no partner), a partner subtree by path prefix, or, when none is
    set, every record of the headquarters tenant.
    """
    headquarters_id: int
    period: ReportingPeriod
    partner_id: Optional[int] = None
    direct_only: bool = False
    tree_path_prefix: Optional[str] = None

    @classmethod
    def headquarters_direct(cls, headquarters_id: int, period: ReportingPeriod) -> "SumScope":
        return cls(headquarters_id=headquarters_id, period=period, direct_only=True)

    @classmethod
    def for_partner(cls, headquarters_id: int, partner_id: int, period: ReportingPeriod) -> "SumScope":
        return cls(headquarters_id=headquarters_id, period=period, partner_id=partner_id)

    @classmethod
    def subtree(cls, headquarters_id: int, tree_path: str, period: ReportingPeriod) -> "SumScope":
        return cls(headquarters_id=headquarters_id, period=period, tree_path_prefix=tree_path)

    @classmethod
    def tenant(cls, headquarters_id: int, period: ReportingPeriod) -> "SumScope":
        return cls(headquarters_id=headquarters_id, period=period)


@dataclass(frozen=True)
class EmissionComponents:
    """Raw buckets read once per organization and shared by all four formulas."""
    scope1_total: Decimal = ZERO
    scope1_mobile: Decimal = ZERO
    scope1_factory: Decimal = ZERO
    scope1_wastewater: Decimal = ZERO
    scope2_total: Decimal = ZERO
    scope2_factory: Decimal = ZERO
    scope3_category1: Decimal = ZERO
    scope3_category2: Decimal = ZERO
    scope3_category4: Decimal = ZERO
    scope3_category5: Decimal = ZERO


@dataclass(frozen=True)
class CategoryDetail:
    own_total: Decimal
    children_total: Decimal
    final_total: Decimal

    category_number: ClassVar[int] = 0


@dataclass(frozen=True)
class Category1Detail(CategoryDetail):
    """Purchased goods and services: whatever Scope 1/2 is not attributed elsewhere."""
    scope1_total: Decimal
    scope1_mobile: Decimal
    scope1_factory: Decimal
    scope1_wastewater: Decimal
    scope1_remaining: Decimal
    scope2_total: Decimal
    scope2_factory: Decimal
    scope2_remaining: Decimal
    scope3_category1: Decimal

    category_number: ClassVar[int] = 1


@dataclass(frozen=True)
class Category2Detail(CategoryDetail):
    """Capital goods: facility-tagged Scope 1/2 plus Scope 3 category 2."""
    scope1_factory: Decimal
    scope2_factory: Decimal
    scope3_category2: Decimal

    category_number: ClassVar[int] = 2


@dataclass(frozen=True)
class Category4Detail(CategoryDetail):
    """Upstream transportation: mobile combustion plus Scope 3 category 4."""
    scope1_mobile: Decimal
    scope3_category4: Decimal

    category_number: ClassVar[int] = 4


@dataclass(frozen=True)
class Category5Detail(CategoryDetail):
    """Waste: wastewater treatment plus Scope 3 category 5."""
    scope1_wastewater: Decimal
    scope3_category5: Decimal

    category_number: ClassVar[int] = 5


@dataclass(frozen=True)
class RecomposedCategories:
    category1: Category1Detail
    category2: Category2Detail
    category4: Category4Detail
    category5: Category5Detail

    def details(self) -> Tuple[CategoryDetail, ...]:
        return (self.category1, self.category2, self.category4, self.category5)

    @property
    def own_total(self) -> Decimal:
        return sum((detail.own_total for detail in self.details()), ZERO)

    @property
    def final_total(self) -> Decimal:
        return sum((detail.final_total for detail in self.details()), ZERO)


@dataclass(frozen=True)
class ScopeSummary:
    scope1: Decimal = ZERO
    scope2: Decimal = ZERO
    scope3: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.scope1 + self.scope2 + self.scope3


@dataclass(frozen=True)
class AggregationResult:
    period: ReportingPeriod
    context: OrgContext
    summary: ScopeSummary
    category1: Category1Detail
    category2: Category2Detail
    category4: Category4Detail
    category5: Category5Detail
    descendant_count: int = 0

    @property
    def special_total(self) -> Decimal:
        return (
            self.category1.final_total
            + self.category2.final_total
            + self.category4.final_total
            + self.category5.final_total
        )

    @property
    def grand_total(self) -> Decimal:
        return self.special_total


@dataclass(frozen=True)
class CategoryBreakdownRow:
    category_number: int
    category_name: str
    total_emission: Decimal
    record_count: int


@dataclass(frozen=True)
class CategoryBreakdown:
    emission_class: str
    rows: List[CategoryBreakdownRow] = field(default_factory=list)

    @property
    def total_emission(self) -> Decimal:
        return sum((row.total_emission for row in self.rows), ZERO)

    @property
    def record_count(self) -> int:
        return sum(row.record_count for row in self.rows)


@dataclass(frozen=True)
class CategoryMonthRow:
    year: int
    month: int
    breakdown: CategoryBreakdown


@dataclass(frozen=True)
class Scope3CombinedResult:
    special_total: Decimal
    regular_total: Decimal
    regular_categories: List[CategoryBreakdownRow]
    record_count: int

    @property
    def combined_total(self) -> Decimal:
        return self.special_total + self.regular_total


@dataclass(frozen=True)
class MonthlySummaryRow:
    year: int
    month: int
    summary: ScopeSummary
    record_count: int


@dataclass(frozen=True)
class OrganizationLabel:
    name: str
    level: int
    tree_path: str


@dataclass(frozen=True)
class HierarchicalSummaryRow:
    organization_id: int
    tree_path: str
    name: str
    level: int
    summary: ScopeSummary
    child_count: int
