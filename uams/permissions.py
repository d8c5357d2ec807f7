"""Role checks and scope resolution for API requests."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from django.conf import settings
from rest_framework import permissions

from . import roles
from .models import District, Region, Role
from .services.access_scope import (
    POLICY_VALIDATE,
    RoleDefinition,
    ScopeFilter,
    ScopeOverride,
    UserContext,
    resolve_scope,
)
from .services.query_filters import FilterValidationError

logger = logging.getLogger(__name__)


def get_user_context(user) -> UserContext:
    """Role and assignment of ``user`` as seen by the access rules.

    Superusers without a profile act as system administrators; any other
    account without a profile is still pending.
    """

    profile = getattr(user, "profile", None) if getattr(user, "pk", None) else None
    if profile is not None:
        return UserContext(
            role=profile.role,
            region=profile.region.name if profile.region_id else None,
            district=profile.district.name if profile.district_id else None,
            username=user.get_username(),
        )
    if getattr(user, "is_superuser", False):
        return UserContext(role=roles.SYSTEM_ADMIN, username=user.get_username())
    return UserContext(role=roles.PENDING, username=getattr(user, "username", ""))


def role_definition(role_name: str) -> Optional[RoleDefinition]:
    if not role_name or role_name in roles.POLICY_TABLE_ROLES:
        return None
    role = Role.objects.filter(name=role_name).prefetch_related("allowed_regions", "allowed_districts").first()
    if role is None:
        return None
    return RoleDefinition.from_model(role)


def is_active_custom_role(role_name: str) -> bool:
    if not role_name or role_name in roles.BUILTIN_ROLES:
        return False
    return Role.objects.filter(name=role_name, is_active=True).exists()


def override_policy() -> str:
    return getattr(settings, "UAMS_SCOPE_OVERRIDE_POLICY", POLICY_VALIDATE)


def _lookup_name(model, raw_id: str, label: str):
    try:
        obj = model.objects.select_related(*(["region"] if model is District else [])).get(pk=int(raw_id))
    except (TypeError, ValueError, model.DoesNotExist) as exc:
        raise FilterValidationError(f"Unknown {label} id '{raw_id}'.") from exc
    return obj


def overrides_from_params(params) -> ScopeOverride:
    """Read ``region``/``district`` names and ``regionId``/``districtId`` ids."""

    def given(key):
        value = params.get(key)
        return None if value in (None, "", "all") else value

    region = given("region")
    district = given("district")
    district_region = None

    region_id = given("regionId")
    if region_id and not region:
        region = _lookup_name(Region, region_id, "region").name

    district_id = given("districtId")
    if district_id and not district:
        record = _lookup_name(District, district_id, "district")
        district = record.name
        district_region = record.region.name
    elif district:
        parents = list(
            District.objects.filter(name=district).values_list("region__name", flat=True).distinct()[:2]
        )
        if len(parents) == 1:
            district_region = parents[0]
        elif region in parents:
            district_region = region

    return ScopeOverride(region=region, district=district, district_region=district_region)


def scope_for(user, params=None) -> ScopeFilter:
    """Scope of ``user``, narrowed by the overrides found in ``params``."""

    context = get_user_context(user)
    overrides = overrides_from_params(params) if params is not None else None
    return resolve_scope(
        context,
        overrides,
        definition=role_definition(context.role),
        policy=override_policy(),
    )


def has_role(user, allowed: Optional[Sequence[str]], *, allow_custom: bool = False) -> bool:
    if not user or not user.is_authenticated:
        return False
    if allowed is None:
        return True
    role = get_user_context(user).role
    if role in allowed:
        return True
    return allow_custom and is_active_custom_role(role)


class HasRole(permissions.BasePermission):
    """Allow a request when the caller's role is listed on the view.

    Views declare ``read_roles``, ``write_roles`` and optionally
    ``delete_roles`` and ``action_roles`` (per action). ``None`` means any
    authenticated user.
    """

    message = "Your role does not allow this operation."

    def allowed_roles(self, request, view) -> Optional[Sequence[str]]:
        action_roles = getattr(view, "action_roles", {}) or {}
        action = getattr(view, "action", None)
        if action in action_roles:
            return action_roles[action]
        if request.method in permissions.SAFE_METHODS:
            return getattr(view, "read_roles", None)
        if request.method == "DELETE" and getattr(view, "delete_roles", None) is not None:
            return view.delete_roles
        return getattr(view, "write_roles", None)

    def has_permission(self, request, view) -> bool:
        allowed = self.allowed_roles(request, view)
        granted = has_role(request.user, allowed, allow_custom=getattr(view, "allow_custom_roles", False))
        if not granted and request.user and request.user.is_authenticated:
            logger.info(
                "Role %s denied %s on %s", get_user_context(request.user).role, request.method, view.__class__.__name__
            )
        return granted
