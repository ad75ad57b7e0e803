import logging
from typing import List, Tuple

from django.db import transaction

from ..models import Organization, OrganizationTypeChoices
from .hierarchy import normalize_tree_path

logger = logging.getLogger(__name__)


@transaction.atomic
def register_headquarters(name: str) -> Organization:
    """
    Create a headquarters organization. Its tree path is ``/<id>/``.
    """
    headquarters = Organization.objects.create(
        name=name,
        organization_type=OrganizationTypeChoices.HEADQUARTERS,
        tree_path="/",
        level=0,
    )
    headquarters.tree_path = f"/{headquarters.pk}/"
    headquarters.save(update_fields=['tree_path'])
    logger.info(f"Registered headquarters {headquarters.pk} ({name}) at {headquarters.tree_path}")
    return headquarters


@transaction.atomic
def register_partner(parent: Organization, name: str, code: str = None) -> Organization:
    """
    Create a partner directly below ``parent`` (a headquarters or another partner).

    Args:
        parent: The organization the partner reports to
        name: Display name
        code: Optional path segment; defaults to ``L<level>-<nnn>``

    Returns:
        The created partner
    """
    level = parent.level + 1
    if code is None:
        sequence = Organization.objects.filter(parent=parent).count() + 1
        code = f"L{level}-{sequence:03d}"
    if "/" in code or not code.strip():
        raise ValueError(f"Invalid partner path segment: {code!r}")

    tree_path = normalize_tree_path(f"{parent.tree_path}{code}/")
    if tree_path is None:
        raise ValueError(f"Parent {parent.pk} has a malformed tree path: {parent.tree_path!r}")

    partner = Organization.objects.create(
        name=name,
        organization_type=OrganizationTypeChoices.PARTNER,
        headquarters_id=parent.headquarters_id_for_scope,
        parent=parent,
        tree_path=tree_path,
        level=level,
    )
    logger.info(f"Registered partner {partner.pk} ({name}) at {tree_path}")
    return partner


def get_partner_paths(headquarters_id: int) -> List[Tuple[int, str]]:
    """All registered partners of a headquarters as ``(id, tree_path)`` pairs."""
    return list(
        Organization.objects.filter(
            headquarters_id=headquarters_id,
            organization_type=OrganizationTypeChoices.PARTNER,
        ).values_list('id', 'tree_path')
    )
