"""API tests for monthly performance targets."""

from __future__ import annotations

from unittest import mock

from django.db import IntegrityError
from django.db.models import QuerySet
from rest_framework import status
from rest_framework.test import APITestCase

from uams import roles
from uams.models import Target
from uams.services.targets import normalize_district, upsert_target
from uams.tests.fixtures import make_areas, make_target, make_user


class TargetApiTests(APITestCase):
    url = "/api/targets/"

    def setUp(self):
        self.areas = make_areas()
        self.ashanti = self.areas["ASHANTI EAST REGION"]
        self.ejisu = self.areas["Ejisu"]
        self.volta = self.areas["VOLTA REGION"]
        self.admin = make_user("admin", roles.SYSTEM_ADMIN)
        self.client.force_authenticate(user=self.admin)

    def payload(self, **overrides):
        data = {
            "regionId": self.ashanti.pk,
            "districtId": self.ejisu.pk,
            "month": "2024-05",
            "targetType": "loadMonitoring",
            "targetValue": 100,
        }
        data.update(overrides)
        return data

    def test_create_then_update_keeps_the_same_target(self):
        first = self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.content)
        self.assertEqual(first.json()["createdBy"], "admin")

        second = self.client.post(self.url, self.payload(targetValue=120), format="json")
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.json()["id"], first.json()["id"])
        self.assertEqual(second.json()["targetValue"], 120)
        self.assertEqual(Target.objects.count(), 1)

    def test_region_wide_markers_store_no_district(self):
        for marker in ("__all__", "", None):
            response = self.client.post(self.url, self.payload(districtId=marker), format="json")
            self.assertIn(response.status_code, (status.HTTP_200_OK, status.HTTP_201_CREATED))
            self.assertIsNone(response.json()["districtId"])
        self.assertEqual(Target.objects.filter(district__isnull=True).count(), 1)

    def test_region_wide_and_district_targets_coexist(self):
        self.client.post(self.url, self.payload(districtId="__all__"), format="json")
        self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(Target.objects.count(), 2)

    def test_invalid_payloads_are_rejected(self):
        cases = [
            {"month": "2024-5"},
            {"month": "2024-13"},
            {"targetValue": -1},
            {"targetType": "vitInspection"},
            {"districtId": self.areas["Ho"].pk},
        ]
        for overrides in cases:
            with self.subTest(overrides=overrides):
                response = self.client.post(self.url, self.payload(**overrides), format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Target.objects.exists())

    def test_month_error_message(self):
        response = self.client.post(self.url, self.payload(month="May 2024"), format="json")
        self.assertIn("Invalid month format. Expected YYYY-MM", response.json()["month"])

    def test_delete_reports_the_removed_id(self):
        target = make_target(self.ashanti, "2024-05", "loadMonitoring", 10)
        response = self.client.delete(f"{self.url}{target.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"message": "Target deleted successfully", "id": target.pk})
        self.assertFalse(Target.objects.exists())

    def test_update_into_an_existing_slot_is_rejected(self):
        make_target(self.ashanti, "2024-05", "loadMonitoring", 10)
        other = make_target(self.ashanti, "2024-06", "loadMonitoring", 10)
        response = self.client.patch(f"{self.url}{other.pk}/", {"month": "2024-05"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_paginated_and_filterable(self):
        make_target(self.ashanti, "2024-05", "loadMonitoring", 10)
        make_target(self.ashanti, "2024-05", "overheadLine", 3)
        make_target(self.ashanti, "2024-06", "loadMonitoring", 12)
        body = self.client.get(self.url, {"month": "2024-05"}).json()
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["pageSize"], 50)
        body = self.client.get(self.url, {"targetType": "overheadLine"}).json()
        self.assertEqual([row["targetValue"] for row in body["data"]], [3])

    def test_regional_engineer_reads_own_region_only(self):
        make_target(self.ashanti, "2024-05", "loadMonitoring", 10)
        make_target(self.ashanti, "2024-05", "loadMonitoring", 4, district=self.ejisu)
        make_target(self.volta, "2024-05", "loadMonitoring", 8)
        user = make_user("ash.regional", roles.REGIONAL_ENGINEER, region=self.ashanti)
        self.client.force_authenticate(user=user)

        body = self.client.get(self.url).json()
        self.assertEqual(body["total"], 2)
        self.assertEqual({row["region"] for row in body["data"]}, {"ASHANTI EAST REGION"})

        response = self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_district_roles_cannot_read_targets(self):
        user = make_user("ejisu.engineer", roles.DISTRICT_ENGINEER, district=self.ejisu)
        self.client.force_authenticate(user=user)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_region_month_lookup(self):
        make_target(self.ashanti, "2024-05", "loadMonitoring", 10)
        make_target(self.ashanti, "2024-05", "overheadLine", 3, district=self.ejisu)
        make_target(self.ashanti, "2024-06", "loadMonitoring", 12)

        url = f"{self.url}region/{self.ashanti.pk}/month/2024-05/"
        rows = self.client.get(url).json()
        self.assertEqual(len(rows), 2)
        rows = self.client.get(url, {"targetType": "overheadLine"}).json()
        self.assertEqual([row["district"] for row in rows], ["Ejisu"])

        response = self.client.get(f"{self.url}region/{self.ashanti.pk}/month/24-05/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_region_month_lookup_outside_scope_is_forbidden(self):
        user = make_user("ash.regional", roles.REGIONAL_ENGINEER, region=self.ashanti)
        self.client.force_authenticate(user=user)
        response = self.client.get(f"{self.url}region/{self.volta.pk}/month/2024-05/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UpsertTargetTests(APITestCase):
    def test_normalize_district_markers(self):
        for marker in (None, "", " __all__ ", "all", "null"):
            self.assertIsNone(normalize_district(marker))
        self.assertEqual(normalize_district(7), 7)
        self.assertEqual(normalize_district("7"), "7")

    def test_upsert_replaces_value_only(self):
        areas = make_areas()
        region = areas["VOLTA REGION"]
        target, created = upsert_target(region, None, "2024-05", "overheadLine", 5, user="planner")
        self.assertTrue(created)
        self.assertEqual(target.created_by, "planner")

        again, created = upsert_target(region, None, "2024-05", "overheadLine", 7, user="someone-else")
        self.assertFalse(created)
        self.assertEqual(again.pk, target.pk)
        self.assertEqual(again.target_value, 7)
        self.assertEqual(again.created_by, "planner")

    def test_lost_insert_race_updates_the_winning_row(self):
        areas = make_areas()
        region = areas["VOLTA REGION"]
        winner = make_target(region, "2024-05", "overheadLine", 5)

        with mock.patch.object(QuerySet, "update_or_create", side_effect=IntegrityError("duplicate key")):
            target, created = upsert_target(region, None, "2024-05", "overheadLine", 9, user="planner")

        self.assertFalse(created)
        self.assertEqual(target.pk, winner.pk)
        winner.refresh_from_db()
        self.assertEqual(winner.target_value, 9)
        self.assertEqual(Target.objects.count(), 1)
