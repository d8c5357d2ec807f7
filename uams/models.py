"""Core data models for the UAMS backend.

Reference data (regions, districts, roles), user profiles, performance targets
and the field records captured by engineers: overhead line, substation and VIT
inspections, load monitoring readings, fault/outage reports, equipment failures
and substation status snapshots. Every field record carries the region and
district it belongs to; that pair drives the access scoping in
:mod:`uams.services.access_scope`.
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from . import roles
from .utils import MONTH_PATTERN, extract_coordinates

# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class Region(models.Model):
    """Operational region of the utility."""

    name = models.CharField(max_length=150, unique=True)
    code = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.name


class District(models.Model):
    """District lookup linked to its parent region."""

    name = models.CharField(max_length=150)
    region = models.ForeignKey(Region, on_delete=models.CASCADE, related_name="districts")

    class Meta:
        unique_together = ("name", "region")
        ordering = ["region__name", "name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.name} ({self.region.name})"


class Role(models.Model):
    """Administrator-managed role definition and its geographic reach."""

    ACCESS_GLOBAL = "global"
    ACCESS_REGIONAL = "regional"
    ACCESS_DISTRICT = "district"
    ACCESS_LEVEL_CHOICES = [
        (ACCESS_GLOBAL, "Global"),
        (ACCESS_REGIONAL, "Regional"),
        (ACCESS_DISTRICT, "District"),
    ]

    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    priority = models.PositiveIntegerField()
    access_level = models.CharField(max_length=10, choices=ACCESS_LEVEL_CHOICES)
    allowed_regions = models.ManyToManyField(Region, blank=True, related_name="roles")
    allowed_districts = models.ManyToManyField(District, blank=True, related_name="roles")
    permissions = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.CharField(max_length=150, blank=True)
    updated_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-priority", "name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.display_name or self.name


class UserProfile(models.Model):
    """Role and area assignment of an application user."""

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField(max_length=50, default=roles.PENDING)
    region = models.ForeignKey(Region, null=True, blank=True, on_delete=models.SET_NULL, related_name="users")
    district = models.ForeignKey(District, null=True, blank=True, on_delete=models.SET_NULL, related_name="users")
    staff_id = models.CharField(max_length=50, blank=True)
    display_name = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["user__username"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.user} ({self.role})"

    @property
    def name(self) -> str:
        full_name = self.user.get_full_name() if self.user_id else ""
        return self.display_name or full_name or self.user.get_username()


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class Target(models.Model):
    """Monthly numeric goal for a region, optionally narrowed to one district."""

    LOAD_MONITORING = "loadMonitoring"
    SUBSTATION_INSPECTION = "substationInspection"
    OVERHEAD_LINE = "overheadLine"
    TARGET_TYPE_CHOICES = [
        (LOAD_MONITORING, "Load monitoring records"),
        (SUBSTATION_INSPECTION, "Substation inspections"),
        (OVERHEAD_LINE, "Overhead line feeder length (km)"),
    ]
    TARGET_TYPES = tuple(value for value, _label in TARGET_TYPE_CHOICES)

    region = models.ForeignKey(Region, on_delete=models.CASCADE, related_name="targets")
    district = models.ForeignKey(
        District, null=True, blank=True, on_delete=models.CASCADE, related_name="targets"
    )
    month = models.CharField(
        max_length=7,
        validators=[RegexValidator(MONTH_PATTERN, "Invalid month format. Expected YYYY-MM")],
    )
    target_type = models.CharField(max_length=30, choices=TARGET_TYPE_CHOICES)
    target_value = models.FloatField(validators=[MinValueValidator(0)])
    created_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-month", "region__name", "target_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["region", "district", "month", "target_type"],
                name="unique_district_target",
            ),
            models.UniqueConstraint(
                fields=["region", "month", "target_type"],
                condition=Q(district__isnull=True),
                name="unique_region_wide_target",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        scope = self.district.name if self.district_id else "region-wide"
        return f"{self.region.name} / {scope} {self.month} {self.target_type}"


# ---------------------------------------------------------------------------
# Field records
# ---------------------------------------------------------------------------


class ScopedRecord(models.Model):
    """Common columns of every record that is visible by region/district."""

    region = models.ForeignKey(Region, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    district = models.ForeignKey(District, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.district_id and not self.region_id:
            self.region_id = self.district.region_id
        super().save(*args, **kwargs)


class GeotaggedRecord(ScopedRecord):
    """Record with a GPS fix.

    Older mobile clients submitted the fix as ``gps_coordinates`` (object,
    array or text) or as free ``gps_location`` text instead of the numeric
    latitude/longitude pair; all encodings are kept as captured.
    """

    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    gps_coordinates = models.JSONField(null=True, blank=True)
    gps_location = models.CharField(max_length=100, blank=True)

    class Meta:
        abstract = True

    @property
    def coordinates(self):
        return extract_coordinates(self)


class Feeder(ScopedRecord):
    name = models.CharField(max_length=150)
    voltage_level = models.CharField(max_length=20, blank=True)
    bsp_pss = models.CharField("BSP/PSS", max_length=150, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.name


class OverheadLineInspection(GeotaggedRecord):
    """Pole-by-pole overhead line inspection along a feeder."""

    feeder_name = models.CharField(max_length=150, blank=True)
    voltage_level = models.CharField(max_length=20, blank=True)
    reference_pole = models.CharField(max_length=100, blank=True)
    date = models.DateField(null=True, blank=True)
    time = models.TimeField(null=True, blank=True)
    inspection_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=30, default="pending")
    inspector_name = models.CharField(max_length=150, blank=True)
    ground_condition = models.CharField(max_length=50, blank=True)
    findings = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.feeder_name} @ {self.reference_pole or self.pk}"


class SubstationInspection(ScopedRecord):
    substation_name = models.CharField(max_length=150, blank=True)
    substation_number = models.CharField(max_length=50, blank=True)
    substation_type = models.CharField(max_length=30, blank=True)
    date = models.DateField(null=True, blank=True)
    time = models.TimeField(null=True, blank=True)
    inspection_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=30, default="pending")
    inspector_name = models.CharField(max_length=150, blank=True)
    checklist = models.JSONField(default=dict, blank=True)
    remarks = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.substation_number or self.substation_name} ({self.date})"


class LoadMonitoringRecord(ScopedRecord):
    """Transformer load reading taken at a substation."""

    substation_name = models.CharField(max_length=150, blank=True)
    substation_number = models.CharField(max_length=50, blank=True)
    feeder_name = models.CharField(max_length=150, blank=True)
    voltage_level = models.CharField(max_length=20, blank=True)
    location = models.CharField(max_length=255, blank=True)
    date = models.DateField(null=True, blank=True)
    time = models.TimeField(null=True, blank=True)
    rating = models.FloatField(null=True, blank=True)
    peak_load_status = models.CharField(max_length=20, blank=True)
    red_phase_bulk_load = models.FloatField(null=True, blank=True)
    yellow_phase_bulk_load = models.FloatField(null=True, blank=True)
    blue_phase_bulk_load = models.FloatField(null=True, blank=True)
    average_current = models.FloatField(null=True, blank=True)
    rated_load = models.FloatField(null=True, blank=True)
    percentage_load = models.FloatField(null=True, blank=True)
    feeder_legs = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.substation_number or self.substation_name} ({self.date})"


class VITAsset(GeotaggedRecord):
    """Voltage injection transformer / switchgear asset."""

    serial_number = models.CharField(max_length=100)
    type_of_unit = models.CharField(max_length=50, blank=True)
    voltage_level = models.CharField(max_length=20, blank=True)
    feeder_name = models.CharField(max_length=150, blank=True)
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=30, default="Operational")
    protection = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["serial_number"]
        verbose_name = "VIT asset"

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.serial_number


class VITInspection(ScopedRecord):
    asset = models.ForeignKey(VITAsset, on_delete=models.CASCADE, related_name="inspections")
    date = models.DateField(null=True, blank=True)
    inspector_name = models.CharField(max_length=150, blank=True)
    checklist = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=30, blank=True)
    remarks = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "VIT inspection"

    def save(self, *args, **kwargs):
        if self.asset_id and not self.district_id and not self.region_id:
            self.region_id = self.asset.region_id
            self.district_id = self.asset.district_id
        super().save(*args, **kwargs)


class OP5Fault(ScopedRecord):
    """Fault recorded on the OP5 form (distribution network)."""

    occurrence_date = models.DateTimeField()
    restoration_date = models.DateTimeField(null=True, blank=True)
    fault_type = models.CharField(max_length=50, blank=True)
    specific_fault_type = models.CharField(max_length=100, blank=True)
    substation_name = models.CharField(max_length=150, blank=True)
    fault_location = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    affected_population = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, default="pending")

    class Meta:
        ordering = ["-occurrence_date"]
        verbose_name = "OP5 fault"

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"OP5 {self.fault_type} {self.occurrence_date:%Y-%m-%d}"


class ControlOutage(ScopedRecord):
    """Outage logged by the control room."""

    occurrence_date = models.DateTimeField()
    restoration_date = models.DateTimeField(null=True, blank=True)
    fault_type = models.CharField(max_length=50, blank=True)
    reason = models.TextField(blank=True)
    area_affected = models.CharField(max_length=255, blank=True)
    customers_affected = models.JSONField(default=dict, blank=True)
    load_mw = models.FloatField(null=True, blank=True)
    status = models.CharField(max_length=20, default="pending")

    class Meta:
        ordering = ["-occurrence_date"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"Outage {self.fault_type} {self.occurrence_date:%Y-%m-%d}"


class EquipmentFailureReport(ScopedRecord):
    """Failure of a piece of material or equipment, as reported from the field."""

    date = models.DateField()
    material_equipment_name = models.CharField(max_length=150)
    type_of_material_equipment = models.CharField(max_length=100)
    location_of_material_equipment = models.CharField(max_length=255)
    ghana_post_gps = models.CharField(max_length=50, blank=True)
    name_of_manufacturer = models.CharField(max_length=150, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    manufacturing_date = models.DateField(null=True, blank=True)
    country_of_origin = models.CharField(max_length=100, blank=True)
    date_of_installation = models.DateField(null=True, blank=True)
    date_of_commission = models.DateField(null=True, blank=True)
    description_of_material_equipment = models.TextField(blank=True)
    cause_of_failure = models.TextField(blank=True)
    frequency_of_repairs = models.CharField(max_length=100, blank=True)
    history_of_repairs = models.TextField(blank=True)
    initial_observations = models.TextField(blank=True)
    immediate_actions_taken = models.TextField(blank=True)
    severity_of_fault = models.CharField(max_length=30, blank=True)
    prepared_by = models.CharField(max_length=150, blank=True)
    contact = models.CharField(max_length=50, blank=True)
    updated_by = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["-date", "-created_at"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.material_equipment_name} ({self.date})"


class SubstationStatus(GeotaggedRecord):
    """Condition snapshot of a substation.

    Mobile clients retry submissions, so each form carries a
    ``submission_id`` that may be stored only once.
    """

    substation_name = models.CharField(max_length=150)
    substation_number = models.CharField(max_length=50)
    status = models.CharField(max_length=30, blank=True)
    location = models.CharField(max_length=255, blank=True)
    transformer_conditions = models.JSONField(default=dict, blank=True)
    fuse_conditions = models.JSONField(default=dict, blank=True)
    earthing_conditions = models.JSONField(default=dict, blank=True)
    general_notes = models.TextField(blank=True)
    submission_id = models.CharField(max_length=100, null=True, blank=True, unique=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "substation statuses"

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.substation_number} {self.status}"


class StaffId(ScopedRecord):
    """Staff number issued by the utility, used to verify new accounts."""

    staff_id = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=150)
    role = models.CharField(max_length=50, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "staff ID"

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.staff_id} {self.name}"
