"""
Emission line items read by the aggregation services.

Records are written by the data-entry service; this app only reads them.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from organizations.models import Organization
from organizations.services.hierarchy import normalize_tree_path


class EmissionClassChoices(models.TextChoices):
    SCOPE1 = "SCOPE1", _("Direct emissions")
    SCOPE2 = "SCOPE2", _("Indirect emissions - energy")
    SCOPE3 = "SCOPE3", _("Other indirect emissions")


class Scope1GroupChoices(models.TextChoices):
    STATIONARY_COMBUSTION = "STATIONARY_COMBUSTION", _("Stationary combustion")
    MOBILE_COMBUSTION = "MOBILE_COMBUSTION", _("Mobile combustion")
    PROCESS_EMISSIONS = "PROCESS_EMISSIONS", _("Process emissions")
    REFRIGERANT_LEAKAGE = "REFRIGERANT_LEAKAGE", _("Refrigerant leakage")


# Scope 1 category number -> (name, group)
SCOPE1_CATEGORIES = {
    1: ("Liquid fuel", Scope1GroupChoices.STATIONARY_COMBUSTION),
    2: ("Gaseous fuel", Scope1GroupChoices.STATIONARY_COMBUSTION),
    3: ("Solid fuel", Scope1GroupChoices.STATIONARY_COMBUSTION),
    4: ("Vehicles", Scope1GroupChoices.MOBILE_COMBUSTION),
    5: ("Aircraft", Scope1GroupChoices.MOBILE_COMBUSTION),
    6: ("Ships", Scope1GroupChoices.MOBILE_COMBUSTION),
    7: ("Manufacturing process", Scope1GroupChoices.PROCESS_EMISSIONS),
    8: ("Wastewater treatment", Scope1GroupChoices.PROCESS_EMISSIONS),
    9: ("Refrigeration and air-conditioning refrigerant", Scope1GroupChoices.REFRIGERANT_LEAKAGE),
    10: ("Fire extinguisher release", Scope1GroupChoices.REFRIGERANT_LEAKAGE),
}

SCOPE2_CATEGORIES = {
    1: "Electric power",
    2: "Steam and heat",
}

SCOPE3_CATEGORIES = {
    1: "Purchased goods and services",
    2: "Capital goods",
    3: "Fuel- and energy-related activities",
    4: "Upstream transportation and distribution",
    5: "Waste generated in operations",
    6: "Business travel",
    7: "Employee commuting",
    8: "Upstream leased assets",
    9: "Downstream transportation and distribution",
    10: "Processing of sold products",
    11: "Use of sold products",
    12: "End-of-life treatment of sold products",
    13: "Downstream leased assets",
    14: "Franchises",
    15: "Investments",
}

# Scope 1 bucket carved out of Category 1 and fed into Category 5
WASTEWATER_TREATMENT_CATEGORY = 8

# Scope 3 categories recomposed from Scope 1 / Scope 2 buckets
SPECIAL_SCOPE3_CATEGORIES = (1, 2, 4, 5)


def get_category_name(emission_class: str, category_number: int) -> str:
    """Human-readable category name, or a generic label for unknown numbers."""
    if emission_class == EmissionClassChoices.SCOPE1:
        entry = SCOPE1_CATEGORIES.get(category_number)
        name = entry[0] if entry else None
    elif emission_class == EmissionClassChoices.SCOPE2:
        name = SCOPE2_CATEGORIES.get(category_number)
    else:
        name = SCOPE3_CATEGORIES.get(category_number)
    return name or f"Category {category_number}"


def get_scope1_group(category_number: int) -> str:
    entry = SCOPE1_CATEGORIES.get(category_number)
    return entry[1] if entry else ""


class EmissionRecord(models.Model):
    """
    A single emission line item.

    Headquarters-owned records leave ``partner`` empty; partner records carry
    both the headquarters (tenant) and the partner. ``tree_path`` is copied from
    the owning organization at write time.
    """
    headquarters = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='headquarters_emissions'
    )
    partner = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='partner_emissions',
        help_text="Empty for records entered by the headquarters itself"
    )
    tree_path = models.CharField(max_length=500)

    reporting_year = models.PositiveSmallIntegerField()
    reporting_month = models.PositiveSmallIntegerField()

    emission_class = models.CharField(max_length=10, choices=EmissionClassChoices.choices)
    category_number = models.PositiveSmallIntegerField()
    category_name = models.CharField(max_length=100, blank=True)
    category_group = models.CharField(
        max_length=30,
        choices=Scope1GroupChoices.choices,
        blank=True,
        help_text="Scope 1 process group, derived from the category number"
    )
    factory_enabled = models.BooleanField(
        default=False,
        help_text="Attributable to factory equipment (facility-tagged)"
    )

    total_emission = models.DecimalField(max_digits=15, decimal_places=6)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-reporting_year', '-reporting_month', 'tree_path']
        indexes = [
            models.Index(fields=['headquarters', 'reporting_year', 'reporting_month'], name='emission_hq_period_idx'),
            models.Index(fields=['partner', 'emission_class', 'reporting_year', 'reporting_month'], name='emission_partner_class_idx'),
            models.Index(fields=['tree_path'], name='emission_tree_path_idx'),
            models.Index(fields=['emission_class', 'category_number'], name='emission_class_category_idx'),
        ]
        verbose_name = "Emission Record"
        verbose_name_plural = "Emission Records"

    def __str__(self):
        owner = self.partner_id or self.headquarters_id
        return f"{self.get_emission_class_display()} cat.{self.category_number} {self.total_emission} for {owner} ({self.reporting_year}-{self.reporting_month:02d})"

    def save(self, *args, **kwargs):
        # Canonical /a/b/ form; subtree sums match on this prefix
        self.tree_path = normalize_tree_path(self.tree_path) or self.tree_path
        if not self.category_name:
            self.category_name = get_category_name(self.emission_class, self.category_number)
        if self.emission_class == EmissionClassChoices.SCOPE1 and not self.category_group:
            self.category_group = get_scope1_group(self.category_number)
        super().save(*args, **kwargs)
