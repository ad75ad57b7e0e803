"""
Roll-up of recomposed category totals over the organization tree.

A headquarters reports its own total plus everything below it. A partner
reports only what is below it: its own records are counted when its parent
aggregates, not in its own view. The descendant set is flat, so each
organization is evaluated exactly once and never walked recursively.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, Set, TypeVar

from .dto import ZERO, CategoryDetail, OrgContext, RecomposedCategories

logger = logging.getLogger(__name__)

DetailT = TypeVar("DetailT", bound=CategoryDetail)


def roll_up(detail: DetailT, children_total: Decimal, include_self: bool) -> DetailT:
    """
    Combine one category's own total with its descendants' total.

    Args:
        detail: The organization's own recomposed category
        children_total: Sum of the same category's own totals over all descendants
        include_self: True for a headquarters, False for a partner

    Returns:
        A copy of ``detail`` with ``children_total`` and ``final_total`` set
    """
    final_total = detail.own_total + children_total if include_self else children_total
    return replace(detail, children_total=children_total, final_total=final_total)


def sum_children(children: Iterable[RecomposedCategories]) -> Dict[int, Decimal]:
    """Per-category sum of descendant own totals, keyed by category number."""
    totals = {1: ZERO, 2: ZERO, 4: ZERO, 5: ZERO}
    for child in children:
        for detail in child.details():
            totals[detail.category_number] += detail.own_total
    return totals


def roll_up_categories(
    own: RecomposedCategories,
    children: Iterable[RecomposedCategories],
    include_self: bool,
) -> RecomposedCategories:
    children_totals = sum_children(children)
    return RecomposedCategories(
        category1=roll_up(own.category1, children_totals[1], include_self),
        category2=roll_up(own.category2, children_totals[2], include_self),
        category4=roll_up(own.category4, children_totals[4], include_self),
        category5=roll_up(own.category5, children_totals[5], include_self),
    )


def resolve_rollup_descendants(source, context: OrgContext) -> Set[int]:
    """
    Organizations whose own totals roll into ``context``.

    Headquarters: every partner of the tenant. Partner: every organization
    under its tree path. The requester itself is never part of the set.
    """
    descendants = set(source.list_descendant_organization_ids(context.headquarters_id, context.descendant_prefix))
    descendants.discard(context.organization_id)
    logger.debug(f"{len(descendants)} descendants roll into organization {context.organization_id}")
    return descendants
