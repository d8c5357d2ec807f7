import django.db.models.deletion
import django.utils.timezone
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


def _id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    dependencies = [
        ("uams", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="EquipmentFailureReport",
            fields=[
                _id(),
                *_scoped_fields(),
                ("date", models.DateField()),
                ("material_equipment_name", models.CharField(max_length=150)),
                ("type_of_material_equipment", models.CharField(max_length=100)),
                ("location_of_material_equipment", models.CharField(max_length=255)),
                ("ghana_post_gps", models.CharField(blank=True, max_length=50)),
                ("name_of_manufacturer", models.CharField(blank=True, max_length=150)),
                ("serial_number", models.CharField(blank=True, max_length=100)),
                ("manufacturing_date", models.DateField(blank=True, null=True)),
                ("country_of_origin", models.CharField(blank=True, max_length=100)),
                ("date_of_installation", models.DateField(blank=True, null=True)),
                ("date_of_commission", models.DateField(blank=True, null=True)),
                ("description_of_material_equipment", models.TextField(blank=True)),
                ("cause_of_failure", models.TextField(blank=True)),
                ("frequency_of_repairs", models.CharField(blank=True, max_length=100)),
                ("history_of_repairs", models.TextField(blank=True)),
                ("initial_observations", models.TextField(blank=True)),
                ("immediate_actions_taken", models.TextField(blank=True)),
                ("severity_of_fault", models.CharField(blank=True, max_length=30)),
                ("prepared_by", models.CharField(blank=True, max_length=150)),
                ("contact", models.CharField(blank=True, max_length=50)),
                ("updated_by", models.CharField(blank=True, max_length=150)),
            ],
            options={"ordering": ["-date", "-created_at"]},
        ),
        migrations.CreateModel(
            name="SubstationStatus",
            fields=[
                _id(),
                *_scoped_fields(),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                ("gps_coordinates", models.JSONField(blank=True, null=True)),
                ("gps_location", models.CharField(blank=True, max_length=100)),
                ("substation_name", models.CharField(max_length=150)),
                ("substation_number", models.CharField(max_length=50)),
                ("status", models.CharField(blank=True, max_length=30)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("transformer_conditions", models.JSONField(blank=True, default=dict)),
                ("fuse_conditions", models.JSONField(blank=True, default=dict)),
                ("earthing_conditions", models.JSONField(blank=True, default=dict)),
                ("general_notes", models.TextField(blank=True)),
                ("submission_id", models.CharField(blank=True, max_length=100, null=True, unique=True)),
            ],
            options={"ordering": ["-created_at"], "verbose_name_plural": "substation statuses"},
        ),
        migrations.CreateModel(
            name="StaffId",
            fields=[
                _id(),
                *_scoped_fields(),
                ("staff_id", models.CharField(max_length=50, unique=True)),
                ("name", models.CharField(max_length=150)),
                ("role", models.CharField(blank=True, max_length=50)),
            ],
            options={"ordering": ["-created_at"], "verbose_name": "staff ID"},
        ),
    ]
