"""REST API views for the UAMS backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from . import models, roles, schemas, serializers
from .permissions import HasRole, get_user_context, has_role, scope_for
from .reports import performance_workbook, workbook_response
from .services import performance
from .services.access_scope import DISTRICT, REGION, UNRESTRICTED, ScopeFilter, ScopeViolation
from .services.query_filters import FilterValidationError, build_query_spec, page_envelope
from .services.storage import StorageError, get_record_store
from .services.targets import upsert_target

logger = logging.getLogger(__name__)


def service_error_response(exc: Exception) -> Response:
    if isinstance(exc, (FilterValidationError, performance.PerformanceInputError)):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ScopeViolation):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    logger.error("Storage failure: %s", exc)
    return Response({"detail": "The record store is unavailable."}, status=status.HTTP_503_SERVICE_UNAVAILABLE)


SERVICE_ERRORS = (FilterValidationError, performance.PerformanceInputError, ScopeViolation, StorageError)


class ServiceErrorMixin:
    """Turn service exceptions raised inside a view into JSON responses."""

    def handle_exception(self, exc):
        if isinstance(exc, SERVICE_ERRORS):
            return service_error_response(exc)
        return super().handle_exception(exc)


def _location_of(serializer, instance=None) -> Dict[str, Any]:
    data = serializer.validated_data
    region = data.get("region", getattr(instance, "region", None))
    district = data.get("district", getattr(instance, "district", None))
    return {
        REGION: region.name if region is not None else None,
        DISTRICT: district.name if district is not None else None,
    }


class ScopedRecordViewSet(ServiceErrorMixin, viewsets.ModelViewSet):
    """CRUD over one record collection, restricted to the caller's scope.

    Subclasses name the ``collection``, its ``schema`` and serializer and the
    roles allowed to read and write.
    """

    collection: str = ""
    schema = None
    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = roles.FIELD_ROLES
    write_roles = roles.FIELD_ROLES
    delete_roles = None
    allow_custom_roles = True
    records_have_author = True

    @property
    def store(self):
        return get_record_store()

    def record_scope(self, params=None) -> ScopeFilter:
        return scope_for(self.request.user, params)

    def get_queryset(self) -> QuerySet:
        return self.store.queryset(self.collection).filter(self.record_scope().as_q())

    def list(self, request: Request, *args, **kwargs):
        scope = self.record_scope(request.query_params)
        spec = build_query_spec(request.query_params, self.schema, scope)
        result = self.store.query(self.collection, spec)
        if spec.count_only:
            return Response({"total": result.total})
        data = self.get_serializer(result.records, many=True).data
        return Response(page_envelope(data, result.total, spec.offset, spec.limit))

    def check_location(self, serializer, instance=None) -> None:
        location = _location_of(serializer, instance)
        if not self.record_scope().matches(location):
            raise ScopeViolation("The record is outside your region/district.")

    def _fill_location(self, serializer) -> None:
        data = serializer.validated_data
        if "region" in data or "district" in data:
            return
        profile = getattr(self.request.user, "profile", None)
        if profile is not None:
            data["region"] = profile.region
            data["district"] = profile.district

    def perform_create(self, serializer):
        self._fill_location(serializer)
        self.check_location(serializer)
        if self.records_have_author:
            serializer.save(created_by=self.request.user.get_username())
        else:
            serializer.save()

    def perform_update(self, serializer):
        self.check_location(serializer, serializer.instance)
        serializer.save()


class OverheadLineInspectionViewSet(ScopedRecordViewSet):
    collection = "overheadLineInspections"
    schema = schemas.OVERHEAD_LINE_INSPECTIONS
    serializer_class = serializers.OverheadLineInspectionSerializer


class SubstationInspectionViewSet(ScopedRecordViewSet):
    collection = "substationInspections"
    schema = schemas.SUBSTATION_INSPECTIONS
    serializer_class = serializers.SubstationInspectionSerializer


class LoadMonitoringViewSet(ScopedRecordViewSet):
    collection = "loadMonitoring"
    schema = schemas.LOAD_MONITORING
    serializer_class = serializers.LoadMonitoringRecordSerializer


class VITAssetViewSet(ScopedRecordViewSet):
    collection = "vitAssets"
    schema = schemas.VIT_ASSETS
    serializer_class = serializers.VITAssetSerializer


class VITInspectionViewSet(ScopedRecordViewSet):
    collection = "vitInspections"
    schema = schemas.VIT_INSPECTIONS
    serializer_class = serializers.VITInspectionSerializer


class OP5FaultViewSet(ScopedRecordViewSet):
    collection = "op5Faults"
    schema = schemas.OP5_FAULTS
    serializer_class = serializers.OP5FaultSerializer


class ControlOutageViewSet(ScopedRecordViewSet):
    collection = "controlOutages"
    schema = schemas.CONTROL_OUTAGES
    serializer_class = serializers.ControlOutageSerializer


class EquipmentFailureReportViewSet(ScopedRecordViewSet):
    collection = "equipmentFailureReports"
    schema = schemas.EQUIPMENT_FAILURE_REPORTS
    serializer_class = serializers.EquipmentFailureReportSerializer

    def perform_update(self, serializer):
        self.check_location(serializer, serializer.instance)
        serializer.save(updated_by=self.request.user.get_username())


class SubstationStatusViewSet(ScopedRecordViewSet):
    collection = "substationStatus"
    schema = schemas.SUBSTATION_STATUS
    serializer_class = serializers.SubstationStatusSerializer

    def create(self, request: Request, *args, **kwargs):
        submission_id = request.data.get("submissionId") if hasattr(request.data, "get") else None
        if submission_id and models.SubstationStatus.objects.filter(submission_id=submission_id).exists():
            logger.info("Duplicate substation status submission %s from %s", submission_id, request.user)
            return Response({"detail": "Duplicate submission detected"}, status=status.HTTP_409_CONFLICT)
        try:
            with transaction.atomic():
                return super().create(request, *args, **kwargs)
        except IntegrityError:
            return Response({"detail": "Duplicate submission detected"}, status=status.HTTP_409_CONFLICT)


class StaffIdViewSet(ScopedRecordViewSet):
    """Directory of issued staff numbers; visible across all regions."""

    collection = "staffIds"
    schema = schemas.STAFF_IDS
    serializer_class = serializers.StaffIdSerializer
    read_roles = roles.STAFF_ID_READ_ROLES
    write_roles = (roles.SYSTEM_ADMIN,)
    allow_custom_roles = False

    def record_scope(self, params=None) -> ScopeFilter:
        return UNRESTRICTED

    def _fill_location(self, serializer) -> None:
        return None


class FeederViewSet(ScopedRecordViewSet):
    collection = "feeders"
    schema = schemas.FEEDERS
    serializer_class = serializers.FeederSerializer
    write_roles = roles.FEEDER_WRITE_ROLES
    delete_roles = roles.ADMIN_ROLES
    allow_custom_roles = False


class UserProfileViewSet(ScopedRecordViewSet):
    collection = "users"
    schema = schemas.USERS
    serializer_class = serializers.UserProfileSerializer
    read_roles = None
    write_roles = (roles.SYSTEM_ADMIN,)
    allow_custom_roles = False
    records_have_author = False

    def _fill_location(self, serializer) -> None:
        return None

    def check_location(self, serializer, instance=None) -> None:
        return None

    @action(detail=False, methods=["get"])
    def me(self, request: Request):
        profile = models.UserProfile.objects.filter(user=request.user).select_related("region", "district").first()
        if profile is None:
            context = get_user_context(request.user)
            return Response({"username": context.username, "role": context.role, "region": None, "district": None})
        return Response(self.get_serializer(profile).data)


class FaultListView(ServiceErrorMixin, APIView):
    """OP5 faults and control outages as one list.

    Both collections are queried with the same scope, filters and window;
    the merged rows are ordered by occurrence date and cut to the page.
    """

    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = roles.FIELD_ROLES
    allow_custom_roles = True

    sources = (
        ("op5", serializers.OP5FaultSerializer),
        ("controlOutage", serializers.ControlOutageSerializer),
    )

    def get(self, request: Request):
        store = get_record_store()
        scope = scope_for(request.user, request.query_params)
        specs = {
            source: build_query_spec(request.query_params, schemas.FAULT_SOURCES[source], scope)
            for source, _serializer in self.sources
        }
        first = next(iter(specs.values()))

        if first.count_only:
            total = sum(store.count(schemas.FAULT_SOURCES[source].collection, spec) for source, spec in specs.items())
            return Response({"total": total})

        offset, limit = first.offset, first.limit
        window = offset + limit
        rows: List[Dict[str, Any]] = []
        total = 0
        for source, serializer_class in self.sources:
            spec = specs[source]
            spec.offset, spec.limit = 0, window
            result = store.query(schemas.FAULT_SOURCES[source].collection, spec)
            total += result.total
            for row in serializer_class(result.records, many=True).data:
                row["faultSource"] = source
                rows.append(row)

        sort_field = first.ordering[0].lstrip("-")
        descending = first.ordering[0].startswith("-")
        sort_key = "id" if sort_field == "pk" else serializers.camel_case(sort_field)
        rows.sort(key=lambda row: (row.get(sort_key) is not None, row.get(sort_key) or ""), reverse=descending)
        return Response(page_envelope(rows[offset:window], total, offset, limit))


class RegionViewSet(viewsets.ModelViewSet):
    queryset = models.Region.objects.all()
    serializer_class = serializers.RegionSerializer
    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = None
    write_roles = (roles.SYSTEM_ADMIN,)


class DistrictViewSet(viewsets.ModelViewSet):
    queryset = models.District.objects.select_related("region").all()
    serializer_class = serializers.DistrictSerializer
    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = None
    write_roles = roles.DISTRICT_WRITE_ROLES
    delete_roles = (roles.SYSTEM_ADMIN,)

    def get_queryset(self):
        queryset = super().get_queryset()
        region_id = self.request.query_params.get("regionId")
        if region_id:
            queryset = queryset.filter(region_id=region_id)
        return queryset


class RoleViewSet(viewsets.ModelViewSet):
    queryset = models.Role.objects.prefetch_related("allowed_regions", "allowed_districts").all()
    serializer_class = serializers.RoleSerializer
    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = roles.ADMIN_ROLES
    write_roles = (roles.SYSTEM_ADMIN,)

    def _name_taken(self, name, instance=None) -> bool:
        existing = models.Role.objects.filter(name=name)
        if instance is not None:
            existing = existing.exclude(pk=instance.pk)
        return existing.exists()

    def create(self, request: Request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if self._name_taken(serializer.validated_data["name"]):
            return Response({"detail": "Role with this name already exists"}, status=status.HTTP_409_CONFLICT)
        username = request.user.get_username()
        serializer.save(created_by=username, updated_by=username)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        name = serializer.validated_data.get("name")
        if name and self._name_taken(name, instance):
            return Response({"detail": "Role with this name already exists"}, status=status.HTTP_409_CONFLICT)
        serializer.save(updated_by=request.user.get_username())
        return Response(serializer.data)


class TargetViewSet(ServiceErrorMixin, viewsets.ModelViewSet):
    serializer_class = serializers.TargetSerializer
    permission_classes = [permissions.IsAuthenticated, HasRole]
    read_roles = roles.TARGET_READ_ROLES
    write_roles = roles.ADMIN_ROLES

    def get_queryset(self):
        scope = scope_for(self.request.user)
        return get_record_store().queryset("targets").filter(scope.without(DISTRICT).as_q())

    def list(self, request: Request, *args, **kwargs):
        scope = scope_for(request.user, request.query_params)
        spec = build_query_spec(request.query_params, schemas.TARGETS, scope)
        result = get_record_store().query("targets", spec)
        if spec.count_only:
            return Response({"total": result.total})
        data = self.get_serializer(result.records, many=True).data
        return Response(page_envelope(data, result.total, spec.offset, spec.limit))

    def create(self, request: Request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        target, created = upsert_target(
            data["region"],
            data.get("district"),
            data["month"],
            data["target_type"],
            data["target_value"],
            user=request.user.get_username(),
        )
        return Response(
            self.get_serializer(target).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def perform_update(self, serializer):
        try:
            with transaction.atomic():
                serializer.save()
        except IntegrityError as exc:
            raise ValidationError({"detail": "A target already exists for this region, district, month and type."}) from exc

    def destroy(self, request: Request, *args, **kwargs):
        target = self.get_object()
        target_id = target.pk
        target.delete()
        return Response({"message": "Target deleted successfully", "id": target_id})

    @action(detail=False, methods=["get"], url_path=r"region/(?P<region_id>\d+)/month/(?P<month>[^/]+)")
    def region_month(self, request: Request, region_id: str, month: str):
        performance.validate_month(month)
        target_type = performance.validate_target_type(request.query_params.get("targetType"))
        region = get_object_or_404(models.Region, pk=region_id)
        if not scope_for(request.user).without(DISTRICT).matches({REGION: region.name}):
            raise ScopeViolation(f"You do not have access to region '{region.name}'.")
        targets = self.get_queryset().filter(region=region, month=month)
        if target_type:
            targets = targets.filter(target_type=target_type)
        return Response(self.get_serializer(targets.order_by("district__name", "target_type"), many=True).data)


def _require_role(request: Request, allowed) -> None:
    if not has_role(request.user, allowed):
        raise PermissionDenied("Your role does not allow viewing performance data.")


def _find_district(district_id):
    return models.District.objects.select_related("region").filter(pk=district_id).first()


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def district_performance(request: Request, district_id: int, month: str):
    """Actual versus target figures of one district for a month."""

    _require_role(request, roles.DISTRICT_PERFORMANCE_ROLES)
    district = _find_district(district_id)
    if district is None:
        return Response({"detail": "District not found"}, status=status.HTTP_404_NOT_FOUND)
    try:
        performance.validate_month(month)
        target_type = performance.validate_target_type(request.query_params.get("targetType"))
        location = {REGION: district.region.name, DISTRICT: district.name}
        if not scope_for(request.user).matches(location):
            raise ScopeViolation(f"You do not have access to district '{district.name}'.")
        rows = performance.compute_district_performance(district, month, target_type)
    except SERVICE_ERRORS as exc:
        return service_error_response(exc)
    return Response([row.as_dict() for row in rows])


def _region_rows(request: Request, region_ref: str, month: str):
    _require_role(request, roles.TARGET_READ_ROLES)
    region = performance.resolve_region(region_ref)
    if region is None:
        return None, Response({"detail": "Region not found"}, status=status.HTTP_404_NOT_FOUND)
    try:
        performance.validate_month(month)
        target_type = performance.validate_target_type(request.query_params.get("targetType"))
        if not scope_for(request.user).without(DISTRICT).matches({REGION: region.name}):
            raise ScopeViolation(f"You do not have access to region '{region.name}'.")
        rows = performance.compute_region_performance(region, month, target_type)
    except SERVICE_ERRORS as exc:
        return None, service_error_response(exc)
    return (region, rows), None


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def region_performance(request: Request, region_ref: str, month: str):
    """Actual versus target figures of every district of a region."""

    result, error = _region_rows(request, region_ref, month)
    if error is not None:
        return error
    _region, rows = result
    return Response([row.as_dict() for row in rows])


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def region_performance_export(request: Request, region_ref: str, month: str):
    result, error = _region_rows(request, region_ref, month)
    if error is not None:
        return error
    region, rows = result
    workbook = performance_workbook(f"{region.name} {month}", rows)
    filename = f"performance_{region.name.replace(' ', '_').lower()}_{month}.xlsx"
    return workbook_response(filename, workbook)
