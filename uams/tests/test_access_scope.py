"""Unit tests for role based record scoping."""

from __future__ import annotations

import pytest

from uams import roles
from uams.services.access_scope import (
    POLICY_BYPASS,
    RoleDefinition,
    ScopeOverride,
    ScopeViolation,
    UserContext,
    resolve_scope,
    role_scope,
)

RECORDS = [
    {"region": "ACCRA EAST REGION", "district": "Accra East"},
    {"region": "ACCRA EAST REGION", "district": "Adenta"},
    {"region": "ACCRA WEST REGION", "district": "Kaneshie"},
    {"region": "ASHANTI EAST REGION", "district": "Ejisu"},
    {"region": "ASHANTI WEST REGION", "district": "Obuasi"},
    {"region": "ASHANTI SOUTH REGION", "district": "Bekwai"},
    {"region": "SUBTRANSMISSION ASHANTI", "district": "Kumasi Bulk"},
    {"region": "SUBTRANSMISSION ACCRA", "district": "Tema Bulk"},
    {"region": "VOLTA REGION", "district": "Ho"},
]


def visible(scope):
    return [record for record in RECORDS if scope.matches(record)]


@pytest.mark.parametrize("role", sorted(roles.UNRESTRICTED_ROLES))
def test_unrestricted_roles_see_everything(role):
    scope = role_scope(UserContext(role=role, region="VOLTA REGION", district="Ho"))
    assert scope.unrestricted
    assert visible(scope) == RECORDS


@pytest.mark.parametrize("role", sorted(roles.DISTRICT_ROLES))
def test_district_roles_only_see_their_district(role):
    scope = role_scope(UserContext(role=role, region="ACCRA EAST REGION", district="Accra East"))
    assert visible(scope) == [RECORDS[0]]


@pytest.mark.parametrize("role", sorted(roles.REGIONAL_ROLES))
def test_regional_roles_only_see_their_region(role):
    scope = role_scope(UserContext(role=role, region="ACCRA EAST REGION"))
    assert visible(scope) == RECORDS[:2]


def test_missing_assignment_skips_the_restriction():
    assert role_scope(UserContext(role=roles.DISTRICT_ENGINEER)).unrestricted
    assert role_scope(UserContext(role=roles.REGIONAL_ENGINEER)).unrestricted


def test_ashanti_subtransmission_sees_exactly_four_regions():
    scope = role_scope(UserContext(role=roles.ASHSUBT))
    assert {record["region"] for record in visible(scope)} == {
        "SUBTRANSMISSION ASHANTI",
        "ASHANTI EAST REGION",
        "ASHANTI WEST REGION",
        "ASHANTI SOUTH REGION",
    }


def test_accra_subtransmission_sees_exactly_three_regions():
    scope = role_scope(UserContext(role=roles.ACCSUBT, region="VOLTA REGION"))
    assert {record["region"] for record in visible(scope)} == {
        "SUBTRANSMISSION ACCRA",
        "ACCRA EAST REGION",
        "ACCRA WEST REGION",
    }


def test_pending_and_unknown_roles_are_denied():
    assert visible(role_scope(UserContext(role=roles.PENDING))) == []
    assert visible(role_scope(UserContext(role=""))) == []
    scope = role_scope(UserContext(role="auditor", region="VOLTA REGION"))
    assert scope.deny
    assert visible(scope) == []


def test_stored_role_definitions_drive_custom_roles():
    regional = RoleDefinition(name="auditor", access_level="regional", allowed_regions=("VOLTA REGION",))
    assert visible(role_scope(UserContext(role="auditor"), regional)) == [RECORDS[-1]]

    global_role = RoleDefinition(name="analyst", access_level="global")
    assert role_scope(UserContext(role="analyst"), global_role).unrestricted

    district = RoleDefinition(name="meter_reader", access_level="district")
    scope = role_scope(UserContext(role="meter_reader", district="Ejisu"), district)
    assert visible(scope) == [RECORDS[3]]

    inactive = RoleDefinition(name="auditor", access_level="global", is_active=False)
    assert role_scope(UserContext(role="auditor"), inactive).deny


def test_region_override_is_checked_against_role_scope():
    user = UserContext(role=roles.REGIONAL_ENGINEER, region="ACCRA EAST REGION")
    with pytest.raises(ScopeViolation):
        resolve_scope(user, ScopeOverride(region="VOLTA REGION"))

    scope = resolve_scope(user, ScopeOverride(region="ACCRA EAST REGION"))
    assert visible(scope) == RECORDS[:2]


def test_district_override_narrows_within_region():
    user = UserContext(role=roles.REGIONAL_ENGINEER, region="ACCRA EAST REGION")
    scope = resolve_scope(user, ScopeOverride(district="Adenta", district_region="ACCRA EAST REGION"))
    assert visible(scope) == [RECORDS[1]]

    with pytest.raises(ScopeViolation):
        resolve_scope(user, ScopeOverride(district="Ho", district_region="VOLTA REGION"))


def test_district_user_may_not_widen_to_another_district():
    user = UserContext(role=roles.DISTRICT_ENGINEER, region="ACCRA EAST REGION", district="Accra East")
    with pytest.raises(ScopeViolation):
        resolve_scope(user, ScopeOverride(district="Adenta", district_region="ACCRA EAST REGION"))
    scope = resolve_scope(user, ScopeOverride(region="ACCRA EAST REGION"))
    assert visible(scope) == [RECORDS[0]]


def test_bypass_policy_lets_overrides_replace_role_scope():
    user = UserContext(role=roles.DISTRICT_ENGINEER, region="ACCRA EAST REGION", district="Accra East")
    scope = resolve_scope(
        user, ScopeOverride(district="Ho", district_region="VOLTA REGION"), policy=POLICY_BYPASS
    )
    assert visible(scope) == [RECORDS[-1]]


def test_bypass_policy_keeps_denied_roles_denied():
    scope = resolve_scope(UserContext(role=roles.PENDING), ScopeOverride(region="VOLTA REGION"), policy=POLICY_BYPASS)
    assert visible(scope) == []


def test_admin_override_filters_by_requested_region():
    scope = resolve_scope(UserContext(role=roles.SYSTEM_ADMIN), ScopeOverride(region="VOLTA REGION"))
    assert visible(scope) == [RECORDS[-1]]


def test_scope_accepts_model_like_records():
    class Named:
        def __init__(self, name):
            self.name = name

    class Record:
        region = Named("ACCRA EAST REGION")
        district = Named("Accra East")

    scope = role_scope(UserContext(role=roles.TECHNICIAN, district="Accra East"))
    assert scope(Record())
