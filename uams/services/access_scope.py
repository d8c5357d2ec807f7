"""Role based record scoping.

Given the role and the region/district assignment of a user this module
produces a :class:`ScopeFilter`: a declarative list of clauses over the
``region`` and ``district`` of a record. The same clauses are evaluated in
memory (:meth:`ScopeFilter.matches`) or translated into a Django ``Q`` object
(:meth:`ScopeFilter.as_q`), so both forms always agree.

Policy
------

* ``system_admin`` and ``global_engineer`` see everything.
* District roles see their own district, regional roles their own region. The
  restriction is skipped when the user has no such assignment.
* The subtransmission teams (``ashsubt``/``accsubt``) see a fixed group of
  regions.
* Any other role is resolved through its stored :class:`~uams.models.Role`
  definition and denied when there is none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional, Tuple

from django.db.models import Q

from uams import roles

logger = logging.getLogger(__name__)

REGION = "region"
DISTRICT = "district"
DIMENSIONS = (REGION, DISTRICT)

POLICY_VALIDATE = "validate"
POLICY_BYPASS = "bypass"


class ScopeViolation(PermissionError):
    """Raised when a request asks for records outside the caller's scope."""


@dataclass(frozen=True)
class UserContext:
    role: str
    region: Optional[str] = None
    district: Optional[str] = None
    username: str = ""


@dataclass(frozen=True)
class RoleDefinition:
    """Plain copy of a stored role, detached from the ORM."""

    name: str
    access_level: str
    allowed_regions: Tuple[str, ...] = ()
    allowed_districts: Tuple[str, ...] = ()
    is_active: bool = True

    @classmethod
    def from_model(cls, role) -> "RoleDefinition":
        return cls(
            name=role.name,
            access_level=role.access_level,
            allowed_regions=tuple(role.allowed_regions.values_list("name", flat=True)),
            allowed_districts=tuple(role.allowed_districts.values_list("name", flat=True)),
            is_active=role.is_active,
        )


@dataclass(frozen=True)
class ScopeOverride:
    """Explicit region/district narrowing requested by the caller."""

    region: Optional[str] = None
    district: Optional[str] = None
    # Parent region of ``district``; needed to check it against regional scopes.
    district_region: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.region or self.district)


@dataclass(frozen=True)
class Clause:
    dimension: str
    values: Tuple[str, ...]

    def accepts(self, value: Optional[str]) -> bool:
        return value is not None and value in self.values


def _dimension_value(record: Any, dimension: str) -> Optional[str]:
    if isinstance(record, dict):
        value = record.get(dimension)
    else:
        value = getattr(record, dimension, None)
    if value is None:
        return None
    name = getattr(value, "name", None)
    if name is not None:
        return name
    return str(value)


@dataclass(frozen=True)
class ScopeFilter:
    """Conjunction of region/district clauses, or a scope that admits nothing."""

    clauses: Tuple[Clause, ...] = ()
    deny: bool = False
    reason: str = field(default="", compare=False)

    @property
    def unrestricted(self) -> bool:
        return not self.deny and not self.clauses

    def restricts(self, dimension: str) -> bool:
        return any(clause.dimension == dimension for clause in self.clauses)

    def values_for(self, dimension: str) -> Optional[Tuple[str, ...]]:
        for clause in self.clauses:
            if clause.dimension == dimension:
                return clause.values
        return None

    def matches(self, record: Any) -> bool:
        if self.deny:
            return False
        return all(clause.accepts(_dimension_value(record, clause.dimension)) for clause in self.clauses)

    __call__ = matches

    def as_q(self, region_field: str = "region__name", district_field: str = "district__name") -> Q:
        if self.deny:
            return Q(pk__in=[])
        lookups = {REGION: region_field, DISTRICT: district_field}
        query = Q()
        for clause in self.clauses:
            lookup = lookups[clause.dimension]
            if len(clause.values) == 1:
                query &= Q(**{lookup: clause.values[0]})
            else:
                query &= Q(**{f"{lookup}__in": list(clause.values)})
        return query

    def without(self, dimension: str) -> "ScopeFilter":
        return replace(self, clauses=tuple(c for c in self.clauses if c.dimension != dimension))

    def narrowed(self, dimension: str, value: str) -> "ScopeFilter":
        base = self.without(dimension)
        return replace(base, clauses=base.clauses + (Clause(dimension, (value,)),))


UNRESTRICTED = ScopeFilter()


def _only(dimension: str, values: Iterable[str]) -> ScopeFilter:
    return ScopeFilter(clauses=(Clause(dimension, tuple(values)),))


def _denied(reason: str) -> ScopeFilter:
    return ScopeFilter(deny=True, reason=reason)


def _scope_from_definition(user: UserContext, definition: Optional[RoleDefinition]) -> ScopeFilter:
    if definition is None:
        logger.warning("No access rule for role %r (user %s); denying access", user.role, user.username)
        return _denied(f"Role '{user.role}' has no access definition.")
    if not definition.is_active:
        logger.warning("Role %r is inactive (user %s); denying access", user.role, user.username)
        return _denied(f"Role '{user.role}' is inactive.")

    if definition.access_level == "global":
        return UNRESTRICTED
    if definition.access_level == "regional":
        if not definition.allowed_regions:
            return _denied(f"Role '{user.role}' does not allow any region.")
        return _only(REGION, definition.allowed_regions)
    if definition.access_level == "district":
        if definition.allowed_districts:
            return _only(DISTRICT, definition.allowed_districts)
        if user.district:
            return _only(DISTRICT, (user.district,))
        return _denied(f"Role '{user.role}' requires a district assignment.")

    logger.warning("Role %r has unknown access level %r", user.role, definition.access_level)
    return _denied(f"Role '{user.role}' has an invalid access level.")


def role_scope(user: UserContext, definition: Optional[RoleDefinition] = None) -> ScopeFilter:
    """Return the scope implied by the user's role and assignment alone."""

    role = user.role
    if role in roles.UNRESTRICTED_ROLES:
        return UNRESTRICTED

    if role in roles.DISTRICT_ROLES:
        if user.district:
            return _only(DISTRICT, (user.district,))
        logger.info("District role %s without a district; district filter skipped", user.username)
        return UNRESTRICTED

    if role in roles.REGIONAL_ROLES:
        if user.region:
            return _only(REGION, (user.region,))
        logger.info("Regional role %s without a region; region filter skipped", user.username)
        return UNRESTRICTED

    if role in roles.SUBTRANSMISSION_REGIONS:
        return _only(REGION, roles.SUBTRANSMISSION_REGIONS[role])

    if not role or role == roles.PENDING:
        return _denied("Account is pending role assignment.")

    return _scope_from_definition(user, definition)


def _admits(scope: ScopeFilter, user: UserContext, dimension: str, override: ScopeOverride) -> bool:
    if scope.deny:
        return False
    if dimension == REGION:
        allowed_regions = scope.values_for(REGION)
        if allowed_regions is not None:
            return override.region in allowed_regions
        if scope.restricts(DISTRICT):
            # District-scoped users may only name the region of their district.
            return override.region == user.region
        return True
    candidate = {REGION: override.district_region, DISTRICT: override.district}
    return scope.matches(candidate)


def resolve_scope(
    user: UserContext,
    overrides: Optional[ScopeOverride] = None,
    *,
    definition: Optional[RoleDefinition] = None,
    policy: str = POLICY_VALIDATE,
) -> ScopeFilter:
    """Combine the role scope with explicit region/district overrides.

    An accepted override replaces the role restriction for its dimension by an
    equality on the requested value. Under the ``validate`` policy an override
    that falls outside the role scope raises :class:`ScopeViolation`; under
    ``bypass`` it is accepted unchecked.
    """

    scope = role_scope(user, definition)
    if not overrides:
        return scope

    base = scope
    for dimension in DIMENSIONS:
        value = getattr(overrides, dimension)
        if not value:
            continue
        if policy != POLICY_BYPASS and not _admits(base, user, dimension, overrides):
            logger.warning(
                "Rejected %s override %r for user %s (role %s)", dimension, value, user.username, user.role
            )
            raise ScopeViolation(f"You do not have access to {dimension} '{value}'.")
        if scope.deny:
            continue
        scope = scope.narrowed(dimension, value)
    return scope
