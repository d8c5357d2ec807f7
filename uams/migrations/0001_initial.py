import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _scoped_fields():
    return [
        ("created_by", models.CharField(blank=True, max_length=150)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        (
            "district",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="uams.district",
            ),
        ),
        (
            "region",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="uams.region",
            ),
        ),
    ]


def _geo_fields():
    return [
        ("latitude", models.FloatField(blank=True, null=True)),
        ("longitude", models.FloatField(blank=True, null=True)),
        ("gps_coordinates", models.JSONField(blank=True, null=True)),
        ("gps_location", models.CharField(blank=True, max_length=100)),
    ]


def _id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Region",
            fields=[
                _id(),
                ("name", models.CharField(max_length=150, unique=True)),
                ("code", models.CharField(blank=True, max_length=20)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="District",
            fields=[
                _id(),
                ("name", models.CharField(max_length=150)),
                (
                    "region",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="districts", to="uams.region"
                    ),
                ),
            ],
            options={"ordering": ["region__name", "name"], "unique_together": {("name", "region")}},
        ),
        migrations.CreateModel(
            name="Role",
            fields=[
                _id(),
                ("name", models.CharField(max_length=50, unique=True)),
                ("display_name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                ("priority", models.PositiveIntegerField()),
                (
                    "access_level",
                    models.CharField(
                        choices=[("global", "Global"), ("regional", "Regional"), ("district", "District")],
                        max_length=10,
                    ),
                ),
                ("permissions", models.JSONField(blank=True, default=list)),
                ("is_active", models.BooleanField(default=True)),
                ("created_by", models.CharField(blank=True, max_length=150)),
                ("updated_by", models.CharField(blank=True, max_length=150)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("allowed_districts", models.ManyToManyField(blank=True, related_name="roles", to="uams.district")),
                ("allowed_regions", models.ManyToManyField(blank=True, related_name="roles", to="uams.region")),
            ],
            options={"ordering": ["-priority", "name"]},
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                _id(),
                ("role", models.CharField(default="pending", max_length=50)),
                ("staff_id", models.CharField(blank=True, max_length=50)),
                ("display_name", models.CharField(blank=True, max_length=150)),
                (
                    "district",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="users",
                        to="uams.district",
                    ),
                ),
                (
                    "region",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="users",
                        to="uams.region",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["user__username"]},
        ),
        migrations.CreateModel(
            name="Target",
            fields=[
                _id(),
                (
                    "month",
                    models.CharField(
                        max_length=7,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^\\d{4}-(0[1-9]|1[0-2])$", "Invalid month format. Expected YYYY-MM"
                            )
                        ],
                    ),
                ),
                (
                    "target_type",
                    models.CharField(
                        choices=[
                            ("loadMonitoring", "Load monitoring records"),
                            ("substationInspection", "Substation inspections"),
                            ("overheadLine", "Overhead line feeder length (km)"),
                        ],
                        max_length=30,
                    ),
                ),
                ("target_value", models.FloatField(validators=[django.core.validators.MinValueValidator(0)])),
                ("created_by", models.CharField(blank=True, max_length=150)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "district",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="targets",
                        to="uams.district",
                    ),
                ),
                (
                    "region",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="targets", to="uams.region"
                    ),
                ),
            ],
            options={"ordering": ["-month", "region__name", "target_type"]},
        ),
        migrations.AddConstraint(
            model_name="target",
            constraint=models.UniqueConstraint(
                fields=("region", "district", "month", "target_type"), name="unique_district_target"
            ),
        ),
        migrations.AddConstraint(
            model_name="target",
            constraint=models.UniqueConstraint(
                condition=models.Q(("district__isnull", True)),
                fields=("region", "month", "target_type"),
                name="unique_region_wide_target",
            ),
        ),
        migrations.CreateModel(
            name="Feeder",
            fields=[
                _id(),
                *_scoped_fields(),
                ("name", models.CharField(max_length=150)),
                ("voltage_level", models.CharField(blank=True, max_length=20)),
                ("bsp_pss", models.CharField(blank=True, max_length=150, verbose_name="BSP/PSS")),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="OverheadLineInspection",
            fields=[
                _id(),
                *_scoped_fields(),
                *_geo_fields(),
                ("feeder_name", models.CharField(blank=True, max_length=150)),
                ("voltage_level", models.CharField(blank=True, max_length=20)),
                ("reference_pole", models.CharField(blank=True, max_length=100)),
                ("date", models.DateField(blank=True, null=True)),
                ("time", models.TimeField(blank=True, null=True)),
                ("inspection_date", models.DateTimeField(blank=True, null=True)),
                ("status", models.CharField(default="pending", max_length=30)),
                ("inspector_name", models.CharField(blank=True, max_length=150)),
                ("ground_condition", models.CharField(blank=True, max_length=50)),
                ("findings", models.JSONField(blank=True, default=dict)),
                ("notes", models.TextField(blank=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="SubstationInspection",
            fields=[
                _id(),
                *_scoped_fields(),
                ("substation_name", models.CharField(blank=True, max_length=150)),
                ("substation_number", models.CharField(blank=True, max_length=50)),
                ("substation_type", models.CharField(blank=True, max_length=30)),
                ("date", models.DateField(blank=True, null=True)),
                ("time", models.TimeField(blank=True, null=True)),
                ("inspection_date", models.DateTimeField(blank=True, null=True)),
                ("status", models.CharField(default="pending", max_length=30)),
                ("inspector_name", models.CharField(blank=True, max_length=150)),
                ("checklist", models.JSONField(blank=True, default=dict)),
                ("remarks", models.TextField(blank=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="LoadMonitoringRecord",
            fields=[
                _id(),
                *_scoped_fields(),
                ("substation_name", models.CharField(blank=True, max_length=150)),
                ("substation_number", models.CharField(blank=True, max_length=50)),
                ("feeder_name", models.CharField(blank=True, max_length=150)),
                ("voltage_level", models.CharField(blank=True, max_length=20)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("date", models.DateField(blank=True, null=True)),
                ("time", models.TimeField(blank=True, null=True)),
                ("rating", models.FloatField(blank=True, null=True)),
                ("peak_load_status", models.CharField(blank=True, max_length=20)),
                ("red_phase_bulk_load", models.FloatField(blank=True, null=True)),
                ("yellow_phase_bulk_load", models.FloatField(blank=True, null=True)),
                ("blue_phase_bulk_load", models.FloatField(blank=True, null=True)),
                ("average_current", models.FloatField(blank=True, null=True)),
                ("rated_load", models.FloatField(blank=True, null=True)),
                ("percentage_load", models.FloatField(blank=True, null=True)),
                ("feeder_legs", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(blank=True, max_length=30)),
                ("notes", models.TextField(blank=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="VITAsset",
            fields=[
                _id(),
                *_scoped_fields(),
                *_geo_fields(),
                ("serial_number", models.CharField(max_length=100)),
                ("type_of_unit", models.CharField(blank=True, max_length=50)),
                ("voltage_level", models.CharField(blank=True, max_length=20)),
                ("feeder_name", models.CharField(blank=True, max_length=150)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("status", models.CharField(default="Operational", max_length=30)),
                ("protection", models.CharField(blank=True, max_length=100)),
            ],
            options={"ordering": ["serial_number"], "verbose_name": "VIT asset"},
        ),
        migrations.CreateModel(
            name="VITInspection",
            fields=[
                _id(),
                *_scoped_fields(),
                ("date", models.DateField(blank=True, null=True)),
                ("inspector_name", models.CharField(blank=True, max_length=150)),
                ("checklist", models.JSONField(blank=True, default=dict)),
                ("status", models.CharField(blank=True, max_length=30)),
                ("remarks", models.TextField(blank=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="inspections", to="uams.vitasset"
                    ),
                ),
            ],
            options={"ordering": ["-created_at"], "verbose_name": "VIT inspection"},
        ),
        migrations.CreateModel(
            name="OP5Fault",
            fields=[
                _id(),
                *_scoped_fields(),
                ("occurrence_date", models.DateTimeField()),
                ("restoration_date", models.DateTimeField(blank=True, null=True)),
                ("fault_type", models.CharField(blank=True, max_length=50)),
                ("specific_fault_type", models.CharField(blank=True, max_length=100)),
                ("substation_name", models.CharField(blank=True, max_length=150)),
                ("fault_location", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("affected_population", models.JSONField(blank=True, default=dict)),
                ("status", models.CharField(default="pending", max_length=20)),
            ],
            options={"ordering": ["-occurrence_date"], "verbose_name": "OP5 fault"},
        ),
        migrations.CreateModel(
            name="ControlOutage",
            fields=[
                _id(),
                *_scoped_fields(),
                ("occurrence_date", models.DateTimeField()),
                ("restoration_date", models.DateTimeField(blank=True, null=True)),
                ("fault_type", models.CharField(blank=True, max_length=50)),
                ("reason", models.TextField(blank=True)),
                ("area_affected", models.CharField(blank=True, max_length=255)),
                ("customers_affected", models.JSONField(blank=True, default=dict)),
                ("load_mw", models.FloatField(blank=True, null=True)),
                ("status", models.CharField(default="pending", max_length=20)),
            ],
            options={"ordering": ["-occurrence_date"]},
        ),
    ]
