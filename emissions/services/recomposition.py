"""
Scope 3 special-category recomposition.

Categories 1, 2, 4 and 5 of Scope 3 are rebuilt from Scope 1 and Scope 2
buckets:

    Category 1 = [S1 - S1 mobile - S1 factory - S1 wastewater]
                 + [S2 - S2 factory] + S3 cat.1
    Category 2 = S1 factory + S2 factory + S3 cat.2
    Category 4 = S1 mobile + S3 cat.4
    Category 5 = S1 wastewater + S3 cat.5

All formulas read the same ``EmissionComponents`` snapshot for one
organization. Results carry ``own_total`` only; roll-up fills in the rest.
"""

import logging

from .dto import (
    ZERO,
    Category1Detail,
    Category2Detail,
    Category4Detail,
    Category5Detail,
    EmissionComponents,
    RecomposedCategories,
)

logger = logging.getLogger(__name__)


def recompose_category1(components: EmissionComponents) -> Category1Detail:
    scope1_remaining = (
        components.scope1_total
        - components.scope1_mobile
        - components.scope1_factory
        - components.scope1_wastewater
    )
    scope2_remaining = components.scope2_total - components.scope2_factory
    own_total = scope1_remaining + scope2_remaining + components.scope3_category1

    if own_total < ZERO:
        # Overlapping tags (e.g. a facility-tagged vehicle) can over-subtract
        logger.warning(
            f"Category 1 evaluated to {own_total} (scope1 remaining {scope1_remaining}, "
            f"scope2 remaining {scope2_remaining})"
        )

    return Category1Detail(
        own_total=own_total,
        children_total=ZERO,
        final_total=own_total,
        scope1_total=components.scope1_total,
        scope1_mobile=components.scope1_mobile,
        scope1_factory=components.scope1_factory,
        scope1_wastewater=components.scope1_wastewater,
        scope1_remaining=scope1_remaining,
        scope2_total=components.scope2_total,
        scope2_factory=components.scope2_factory,
        scope2_remaining=scope2_remaining,
        scope3_category1=components.scope3_category1,
    )


def recompose_category2(components: EmissionComponents) -> Category2Detail:
    own_total = components.scope1_factory + components.scope2_factory + components.scope3_category2
    return Category2Detail(
        own_total=own_total,
        children_total=ZERO,
        final_total=own_total,
        scope1_factory=components.scope1_factory,
        scope2_factory=components.scope2_factory,
        scope3_category2=components.scope3_category2,
    )


def recompose_category4(components: EmissionComponents) -> Category4Detail:
    own_total = components.scope1_mobile + components.scope3_category4
    return Category4Detail(
        own_total=own_total,
        children_total=ZERO,
        final_total=own_total,
        scope1_mobile=components.scope1_mobile,
        scope3_category4=components.scope3_category4,
    )


def recompose_category5(components: EmissionComponents) -> Category5Detail:
    own_total = components.scope1_wastewater + components.scope3_category5
    return Category5Detail(
        own_total=own_total,
        children_total=ZERO,
        final_total=own_total,
        scope1_wastewater=components.scope1_wastewater,
        scope3_category5=components.scope3_category5,
    )


def recompose(components: EmissionComponents) -> RecomposedCategories:
    """Evaluate all four formulas for one organization's own records."""
    return RecomposedCategories(
        category1=recompose_category1(components),
        category2=recompose_category2(components),
        category4=recompose_category4(components),
        category5=recompose_category5(components),
    )
