import datetime

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from openpyxl import load_workbook

from uams import roles
from uams.models import District, Region, Role
from uams.serializers import RoleSerializer
from uams.tests.fixtures import make_load_readings, make_target


@pytest.mark.django_db
def test_seed_reference_data_is_idempotent(tmp_path):
    csv_path = tmp_path / "areas.csv"
    csv_path.write_text("region,district\nVOLTA REGION,Ho\nVOLTA REGION,Keta\nACCRA EAST REGION,Adenta\n")

    call_command("seed_reference_data", regions_csv=str(csv_path))
    call_command("seed_reference_data", regions_csv=str(csv_path))

    assert Role.objects.filter(name=roles.SYSTEM_ADMIN, access_level=Role.ACCESS_GLOBAL).exists()
    assert not Role.objects.filter(name=roles.PENDING).exists()
    assert District.objects.filter(region__name="VOLTA REGION").count() == 2
    ashsubt = Role.objects.get(name=roles.ASHSUBT)
    assert set(ashsubt.allowed_regions.values_list("name", flat=True)) == set(
        roles.SUBTRANSMISSION_REGIONS[roles.ASHSUBT]
    )
    assert Region.objects.filter(name="SUBTRANSMISSION ASHANTI").count() == 1


@pytest.mark.django_db
def test_seeded_regional_roles_pass_role_validation():
    call_command("seed_reference_data")

    regional = Role.objects.filter(access_level=Role.ACCESS_REGIONAL)
    assert set(regional.values_list("name", flat=True)) >= set(roles.REGIONAL_ROLES)
    for role in regional:
        serializer = RoleSerializer(role, data={"displayName": role.display_name}, partial=True)
        assert serializer.is_valid(), (role.name, serializer.errors)


@pytest.mark.django_db
def test_seed_reference_data_rejects_bad_csv(tmp_path):
    csv_path = tmp_path / "areas.csv"
    csv_path.write_text("name\nVOLTA REGION\n")
    with pytest.raises(CommandError, match="Missing columns"):
        call_command("seed_reference_data", regions_csv=str(csv_path))
    with pytest.raises(CommandError, match="File not found"):
        call_command("seed_reference_data", regions_csv=str(tmp_path / "missing.csv"))


@pytest.mark.django_db
def test_compute_performance_prints_rows(areas, capsys):
    make_target(areas["ASHANTI EAST REGION"], "2024-05", "loadMonitoring", 100)
    make_load_readings(areas["Ejisu"], datetime.date(2024, 5, 3), 45)

    call_command("compute_performance", "ashanti east region", "2024-05")
    output = capsys.readouterr().out

    assert "ASHANTI EAST REGION - 2024-05" in output
    assert "Ejisu" in output
    assert "variance=-55" in output
    assert "(45.00%)" in output
    assert "2 row(s) computed." in output


@pytest.mark.django_db
def test_compute_performance_validates_input(areas):
    with pytest.raises(CommandError, match="Region not found"):
        call_command("compute_performance", "NOWHERE", "2024-05")
    with pytest.raises(CommandError, match="YYYY-MM"):
        call_command("compute_performance", "VOLTA REGION", "2024-5")


@pytest.mark.django_db
def test_export_performance_report_writes_workbook(areas, tmp_path):
    region = areas["ASHANTI EAST REGION"]
    make_target(region, "2024-05", "loadMonitoring", 100)
    out = tmp_path / "reports" / "ashanti.xlsx"

    call_command("export_performance_report", str(region.pk), "2024-05", out=str(out))

    sheet = load_workbook(out).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0][0] == "Region"
    assert [row[1] for row in rows[1:]] == ["Ejisu", "Konongo"]
