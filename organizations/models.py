"""
Database tables definition for the organization hierarchy
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class OrganizationTypeChoices(models.TextChoices):
    HEADQUARTERS = "HEADQUARTERS", _("Headquarters")
    PARTNER = "PARTNER", _("Partner")


class Organization(models.Model):
    """
    A node in the headquarters / partner tree.

    The position in the tree is stored twice: as explicit ``parent`` links and as
    a slash-delimited ``tree_path`` (``/1/L1-001/L2-003/``). Emission records copy
    the path, and prefix equality on it is the descendant test.
    """
    name = models.CharField(max_length=100)
    organization_type = models.CharField(
        max_length=20,
        choices=OrganizationTypeChoices.choices
    )
    headquarters = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='tenant_organizations',
        help_text="Owning headquarters (empty for a headquarters itself)"
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children'
    )
    tree_path = models.CharField(max_length=500, db_index=True)
    level = models.PositiveSmallIntegerField(
        default=0,
        help_text="0 for headquarters, 1 for first-tier partners, and so on"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['tree_path']
        verbose_name = "Organization"
        verbose_name_plural = "Organizations"

    def __str__(self):
        return f"{self.name} ({self.get_organization_type_display()})"

    @property
    def is_headquarters(self):
        return self.organization_type == OrganizationTypeChoices.HEADQUARTERS

    @property
    def headquarters_id_for_scope(self):
        """Tenant id used to scope emission queries."""
        return self.pk if self.is_headquarters else self.headquarters_id
