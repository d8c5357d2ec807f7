from __future__ import annotations

import datetime
from typing import Iterable, Optional, Sequence, Tuple

import pytest
from django.contrib.auth import get_user_model

from uams import roles
from uams.models import (
    District,
    LoadMonitoringRecord,
    OverheadLineInspection,
    Region,
    SubstationInspection,
    Target,
    UserProfile,
)

# Regions and districts shared by the API tests.
AREAS: Sequence[Tuple[str, Sequence[str]]] = (
    ("ACCRA EAST REGION", ("Accra East", "Adenta")),
    ("ASHANTI EAST REGION", ("Ejisu", "Konongo")),
    ("SUBTRANSMISSION ACCRA", ("Tema Bulk",)),
    ("VOLTA REGION", ("Ho",)),
)

F1_POINTS = ((5.0, -0.2), (5.01, -0.2), (5.02, -0.2))


def make_area(region_name: str, district_names: Iterable[str] = ()) -> Tuple[Region, list]:
    region, _ = Region.objects.get_or_create(name=region_name)
    districts = [District.objects.get_or_create(name=name, region=region)[0] for name in district_names]
    return region, districts


def make_areas():
    created = {}
    for region_name, district_names in AREAS:
        region, districts = make_area(region_name, district_names)
        created[region_name] = region
        for district in districts:
            created[district.name] = district
    return created


def make_user(
    username: str,
    role: str,
    region: Optional[Region] = None,
    district: Optional[District] = None,
):
    user = get_user_model().objects.create_user(username=username, password="pass12345")
    if district is not None and region is None:
        region = district.region
    UserProfile.objects.create(user=user, role=role, region=region, district=district)
    return user


def make_target(region, month, target_type, value, district=None):
    return Target.objects.create(
        region=region, district=district, month=month, target_type=target_type, target_value=value
    )


def make_load_readings(district, day: datetime.date, count: int):
    return [
        LoadMonitoringRecord.objects.create(
            district=district,
            substation_number=f"SS-{index:03d}",
            date=day,
            percentage_load=50,
        )
        for index in range(count)
    ]


def make_substation_inspections(district, day: datetime.date, count: int):
    return [
        SubstationInspection.objects.create(district=district, substation_number=f"SI-{index}", date=day)
        for index in range(count)
    ]


def make_feeder_walk(district, feeder_name, points, day: datetime.date, start_hour: int = 8):
    records = []
    for offset, (lat, lng) in enumerate(points):
        records.append(
            OverheadLineInspection.objects.create(
                district=district,
                feeder_name=feeder_name,
                latitude=lat,
                longitude=lng,
                date=day,
                time=datetime.time(start_hour + offset, 0),
            )
        )
    return records


@pytest.fixture
def areas(db):
    return make_areas()


@pytest.fixture
def system_admin(db):
    return make_user("admin", roles.SYSTEM_ADMIN)


@pytest.fixture
def accra_east_engineer(areas):
    return make_user("ae.engineer", roles.DISTRICT_ENGINEER, district=areas["Accra East"])
