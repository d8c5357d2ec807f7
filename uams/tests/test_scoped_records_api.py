"""API tests for the region/district scoped record collections."""

from __future__ import annotations

import datetime

import pytest
from django.test import override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from uams import roles
from uams.models import ControlOutage, LoadMonitoringRecord, OP5Fault, OverheadLineInspection, Role
from uams.tests.fixtures import make_areas, make_user


class ScopedDataMixin:
    def setUp(self):
        super().setUp()
        self.areas = make_areas()
        self.accra_east = self.areas["Accra East"]
        self.adenta = self.areas["Adenta"]
        self.ho = self.areas["Ho"]
        self.day = datetime.date(2024, 5, 10)
        for district in (self.accra_east, self.accra_east, self.adenta, self.ho):
            OverheadLineInspection.objects.create(district=district, feeder_name="F1", date=self.day)

    def login(self, role, **assignment):
        user = make_user(role, role, **assignment)
        self.client.force_authenticate(user=user)
        return user


class ScopedListTests(ScopedDataMixin, APITestCase):
    url = "/api/overhead-line-inspections/"

    def test_district_engineer_only_sees_own_district(self):
        self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual({row["district"] for row in body["data"]}, {"Accra East"})
        self.assertEqual(body["page"], 1)
        self.assertFalse(body["hasNextPage"])
        self.assertFalse(body["hasPreviousPage"])

    def test_regional_engineer_sees_whole_region(self):
        self.login(roles.REGIONAL_ENGINEER, region=self.accra_east.region)
        body = self.client.get(self.url).json()
        self.assertEqual(body["total"], 3)

    def test_admin_sees_everything_and_can_narrow_by_region(self):
        self.login(roles.SYSTEM_ADMIN)
        self.assertEqual(self.client.get(self.url).json()["total"], 4)
        body = self.client.get(self.url, {"regionId": self.ho.region_id}).json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["data"][0]["region"], "VOLTA REGION")

    def test_override_outside_scope_is_forbidden(self):
        self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        response = self.client.get(self.url, {"districtId": self.ho.pk})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @override_settings(UAMS_SCOPE_OVERRIDE_POLICY="bypass")
    def test_bypass_policy_honours_override(self):
        self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        body = self.client.get(self.url, {"districtId": self.ho.pk}).json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["data"][0]["district"], "Ho")

    def test_count_only_uses_same_filters(self):
        self.login(roles.SYSTEM_ADMIN)
        OverheadLineInspection.objects.create(district=self.ho, feeder_name="F2", date=self.day)
        response = self.client.get(self.url, {"countOnly": "true", "feederName": "F1", "limit": "1"})
        self.assertEqual(response.json(), {"total": 4})

    def test_pagination_envelope(self):
        self.login(roles.SYSTEM_ADMIN)
        body = self.client.get(self.url, {"limit": "3", "offset": "3", "sort": "createdAt"}).json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["page"], 2)
        self.assertEqual(body["totalPages"], 2)
        self.assertTrue(body["hasPreviousPage"])
        self.assertFalse(body["hasNextPage"])

    def test_unknown_filter_and_sort_are_rejected(self):
        self.login(roles.SYSTEM_ADMIN)
        response = self.client.get(self.url, {"password": "x"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", response.json()["detail"])
        response = self.client.get(self.url, {"sort": "1; DROP TABLE"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_user_is_forbidden(self):
        self.login(roles.PENDING)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_user_is_rejected(self):
        response = self.client.get(self.url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_active_custom_role_uses_its_definition(self):
        role = Role.objects.create(name="auditor", display_name="Auditor", priority=5, access_level="regional")
        role.allowed_regions.add(self.ho.region)
        self.login("auditor")
        body = self.client.get(self.url).json()
        self.assertEqual(body["total"], 1)

    def test_ict_role_reads_through_its_stored_definition(self):
        Role.objects.create(name=roles.ICT, display_name="ICT", priority=85, access_level="global")
        self.login(roles.ICT, district=self.ho)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["total"], 4)

    def test_load_monitoring_editor_is_limited_to_own_district(self):
        Role.objects.create(
            name=roles.LOAD_MONITORING_EDIT, display_name="Load monitoring editor", priority=30, access_level="district"
        )
        self.login(roles.LOAD_MONITORING_EDIT, district=self.accra_east)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual({row["district"] for row in body["data"]}, {"Accra East"})

    def test_builtin_role_without_stored_definition_sees_nothing(self):
        self.login(roles.ICT)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["total"], 0)


class ScopedDetailTests(ScopedDataMixin, APITestCase):
    url = "/api/overhead-line-inspections/"

    def test_record_outside_scope_is_not_found(self):
        self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        record = OverheadLineInspection.objects.get(district=self.ho)
        response = self.client.get(f"{self.url}{record.pk}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_defaults_to_user_district_and_sets_author(self):
        user = self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        payload = {"feederName": "F9", "date": "2024-05-11", "latitude": 5.6, "longitude": -0.18}
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.content)
        body = response.json()
        self.assertEqual(body["district"], "Accra East")
        self.assertEqual(body["region"], "ACCRA EAST REGION")
        self.assertEqual(body["createdBy"], user.username)

    def test_create_outside_scope_is_forbidden(self):
        self.login(roles.DISTRICT_ENGINEER, district=self.accra_east)
        payload = {"feederName": "F9", "districtId": self.ho.pk}
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(OverheadLineInspection.objects.filter(feeder_name="F9").exists())

    def test_create_accepts_region_and_district_names(self):
        self.login(roles.SYSTEM_ADMIN)
        payload = {"feederName": "F9", "region": "VOLTA REGION", "district": "Ho"}
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.content)
        self.assertEqual(response.json()["districtId"], self.ho.pk)

    def test_district_must_belong_to_region(self):
        self.login(roles.SYSTEM_ADMIN)
        payload = {"feederName": "F9", "regionId": self.accra_east.region_id, "districtId": self.ho.pk}
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_latitude_range_is_validated(self):
        self.login(roles.SYSTEM_ADMIN)
        payload = {"feederName": "F9", "districtId": self.ho.pk, "latitude": 120}
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_moving_record_out_of_scope_is_forbidden(self):
        self.login(roles.REGIONAL_ENGINEER, region=self.accra_east.region)
        record = OverheadLineInspection.objects.filter(district=self.adenta).first()
        response = self.client.patch(f"{self.url}{record.pk}/", {"districtId": self.ho.pk}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class LoadMonitoringFilterTests(ScopedDataMixin, APITestCase):
    url = "/api/load-monitoring/"

    def test_load_status_filter(self):
        for percentage in (40, 75, 99.9, 100, 130):
            LoadMonitoringRecord.objects.create(district=self.ho, date=self.day, percentage_load=percentage)
        self.login(roles.SYSTEM_ADMIN)
        self.assertEqual(self.client.get(self.url, {"loadStatus": "OVERLOAD"}).json()["total"], 2)
        self.assertEqual(self.client.get(self.url, {"loadStatus": "Action Required"}).json()["total"], 2)
        self.assertEqual(self.client.get(self.url, {"loadStatus": "OKAY"}).json()["total"], 1)
        self.assertEqual(self.client.get(self.url, {"loadStatus": "all"}).json()["total"], 5)

    def test_month_and_date_filters(self):
        LoadMonitoringRecord.objects.create(district=self.ho, date=datetime.date(2024, 5, 31))
        LoadMonitoringRecord.objects.create(district=self.ho, date=datetime.date(2024, 6, 1))
        self.login(roles.SYSTEM_ADMIN)
        self.assertEqual(self.client.get(self.url, {"month": "2024-05"}).json()["total"], 1)
        self.assertEqual(self.client.get(self.url, {"date": "2024-06-01"}).json()["total"], 1)
        body = self.client.get(self.url, {"startDate": "2024-05-01", "endDate": "2024-05-31"}).json()
        self.assertEqual(body["total"], 1)


class CombinedFaultTests(ScopedDataMixin, APITestCase):
    url = "/api/faults/"

    def setUp(self):
        super().setUp()
        base = timezone.make_aware(datetime.datetime(2024, 5, 1, 8, 0))
        OP5Fault.objects.create(district=self.accra_east, occurrence_date=base, fault_type="Unplanned")
        OP5Fault.objects.create(district=self.ho, occurrence_date=base + datetime.timedelta(days=2))
        ControlOutage.objects.create(
            district=self.accra_east, occurrence_date=base + datetime.timedelta(days=1), fault_type="Planned"
        )

    def test_rows_are_merged_and_tagged(self):
        self.login(roles.SYSTEM_ADMIN)
        body = self.client.get(self.url).json()
        self.assertEqual(body["total"], 3)
        self.assertEqual([row["faultSource"] for row in body["data"]], ["op5", "controlOutage", "op5"])

    def test_scope_and_pagination_apply_to_both_sources(self):
        self.login(roles.DISTRICT_MANAGER, district=self.accra_east)
        body = self.client.get(self.url, {"limit": "1", "sort": "occurrenceDate", "order": "asc"}).json()
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["totalPages"], 2)
        self.assertEqual(body["data"][0]["faultSource"], "op5")
        body = self.client.get(self.url, {"limit": "1", "offset": "1", "sort": "occurrenceDate", "order": "asc"}).json()
        self.assertEqual(body["data"][0]["faultSource"], "controlOutage")

    def test_count_only_sums_both_sources(self):
        self.login(roles.SYSTEM_ADMIN)
        response = self.client.get(self.url, {"countOnly": "true", "faultType": "Planned"})
        self.assertEqual(response.json(), {"total": 1})


@pytest.mark.django_db
def test_token_login_gives_access_to_own_records(api_client, accra_east_engineer, areas):
    OverheadLineInspection.objects.create(district=areas["Accra East"], feeder_name="F1")
    OverheadLineInspection.objects.create(district=areas["Ho"], feeder_name="F1")

    response = api_client.post("/api/auth/login/", {"username": "ae.engineer", "password": "pass12345"}, format="json")
    assert response.status_code == 200
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.json()['access']}")

    body = api_client.get("/api/overhead-line-inspections/").json()
    assert body["total"] == 1
    assert body["data"][0]["district"] == "Accra East"


@pytest.mark.django_db
def test_unknown_region_id_is_a_bad_request(admin_api_client, areas):
    response = admin_api_client.get("/api/op5-faults/", {"regionId": "999999"})
    assert response.status_code == 400
