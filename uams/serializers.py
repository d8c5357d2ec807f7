"""Serializers for the UAMS REST API.

The web and mobile clients exchange camelCase JSON, so the model serializers
translate keys at the boundary and keep snake_case field names internally.
"""

import re

from django.contrib.auth import get_user_model
from rest_framework import serializers

from . import models, roles
from .services.targets import normalize_district
from .utils import MONTH_PATTERN

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class CamelCaseModelSerializer(serializers.ModelSerializer):
    def to_internal_value(self, data):
        if hasattr(data, "items"):
            data = {snake_case(key): value for key, value in data.items()}
        return super().to_internal_value(data)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        return {camel_case(key): value for key, value in data.items()}


class ScopedRecordSerializer(CamelCaseModelSerializer):
    """Base for records located by region and district.

    Clients send ``regionId``/``districtId`` or the region/district names;
    responses carry both.
    """

    region_id = serializers.PrimaryKeyRelatedField(
        source="region", queryset=models.Region.objects.all(), required=False, allow_null=True
    )
    district_id = serializers.PrimaryKeyRelatedField(
        source="district", queryset=models.District.objects.select_related("region"), required=False, allow_null=True
    )
    region = serializers.SlugRelatedField(slug_field="name", read_only=True)
    district = serializers.SlugRelatedField(slug_field="name", read_only=True)

    base_fields = ["id", "region_id", "region", "district_id", "district", "created_by", "created_at", "updated_at"]
    base_read_only = ("created_by", "created_at", "updated_at")

    def to_internal_value(self, data):
        if hasattr(data, "items"):
            data = {snake_case(key): value for key, value in data.items()}
            if data.get("region") and "region_id" not in data:
                region = models.Region.objects.filter(name=data["region"]).first()
                if region is None:
                    raise serializers.ValidationError({"region": [f"Unknown region '{data['region']}'."]})
                data["region_id"] = region.pk
            if data.get("district") and "district_id" not in data:
                districts = models.District.objects.filter(name=data["district"])
                if data.get("region_id"):
                    districts = districts.filter(region_id=data["region_id"])
                district = districts.first()
                if district is None:
                    raise serializers.ValidationError({"district": [f"Unknown district '{data['district']}'."]})
                data["district_id"] = district.pk
        return super().to_internal_value(data)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        district = attrs.get("district", getattr(self.instance, "district", None))
        if attrs.get("district") is not None and "region" not in attrs:
            # A district moves the record into its region.
            attrs["region"] = district.region
        region = attrs.get("region", getattr(self.instance, "region", None))
        if district is not None and region is not None and district.region_id != region.pk:
            raise serializers.ValidationError({"districtId": "District does not belong to the selected region."})
        return attrs


def _fields(*names):
    return ScopedRecordSerializer.base_fields + list(names)


class GeotaggedFieldsMixin(serializers.Serializer):
    def validate_latitude(self, value):
        if value is not None and not -90 <= value <= 90:
            raise serializers.ValidationError("Latitude must be between -90 and 90.")
        return value

    def validate_longitude(self, value):
        if value is not None and not -180 <= value <= 180:
            raise serializers.ValidationError("Longitude must be between -180 and 180.")
        return value


_GEO_FIELDS = ("latitude", "longitude", "gps_coordinates", "gps_location")


class FeederSerializer(ScopedRecordSerializer):
    class Meta:
        model = models.Feeder
        fields = _fields("name", "voltage_level", "bsp_pss")
        read_only_fields = ScopedRecordSerializer.base_read_only


class OverheadLineInspectionSerializer(GeotaggedFieldsMixin, ScopedRecordSerializer):
    class Meta:
        model = models.OverheadLineInspection
        fields = _fields(
            *_GEO_FIELDS,
            "feeder_name",
            "voltage_level",
            "reference_pole",
            "date",
            "time",
            "inspection_date",
            "status",
            "inspector_name",
            "ground_condition",
            "findings",
            "notes",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class SubstationInspectionSerializer(ScopedRecordSerializer):
    class Meta:
        model = models.SubstationInspection
        fields = _fields(
            "substation_name",
            "substation_number",
            "substation_type",
            "date",
            "time",
            "inspection_date",
            "status",
            "inspector_name",
            "checklist",
            "remarks",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class LoadMonitoringRecordSerializer(ScopedRecordSerializer):
    class Meta:
        model = models.LoadMonitoringRecord
        fields = _fields(
            "substation_name",
            "substation_number",
            "feeder_name",
            "voltage_level",
            "location",
            "date",
            "time",
            "rating",
            "peak_load_status",
            "red_phase_bulk_load",
            "yellow_phase_bulk_load",
            "blue_phase_bulk_load",
            "average_current",
            "rated_load",
            "percentage_load",
            "feeder_legs",
            "status",
            "notes",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class VITAssetSerializer(GeotaggedFieldsMixin, ScopedRecordSerializer):
    class Meta:
        model = models.VITAsset
        fields = _fields(
            *_GEO_FIELDS,
            "serial_number",
            "type_of_unit",
            "voltage_level",
            "feeder_name",
            "location",
            "status",
            "protection",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class VITInspectionSerializer(ScopedRecordSerializer):
    asset_id = serializers.PrimaryKeyRelatedField(source="asset", queryset=models.VITAsset.objects.all())

    class Meta:
        model = models.VITInspection
        fields = _fields("asset_id", "date", "inspector_name", "checklist", "status", "remarks")
        read_only_fields = ScopedRecordSerializer.base_read_only

    def validate(self, attrs):
        asset = attrs.get("asset")
        if asset is not None and "district" not in attrs and "region" not in attrs:
            attrs["region"] = asset.region
            attrs["district"] = asset.district
        return super().validate(attrs)


class FaultWindowMixin(serializers.Serializer):
    def validate(self, attrs):
        attrs = super().validate(attrs)
        occurred = attrs.get("occurrence_date", getattr(self.instance, "occurrence_date", None))
        restored = attrs.get("restoration_date", getattr(self.instance, "restoration_date", None))
        if occurred and restored and restored < occurred:
            raise serializers.ValidationError({"restorationDate": "Restoration cannot precede the occurrence."})
        return attrs


class OP5FaultSerializer(FaultWindowMixin, ScopedRecordSerializer):
    class Meta:
        model = models.OP5Fault
        fields = _fields(
            "occurrence_date",
            "restoration_date",
            "fault_type",
            "specific_fault_type",
            "substation_name",
            "fault_location",
            "description",
            "affected_population",
            "status",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class ControlOutageSerializer(FaultWindowMixin, ScopedRecordSerializer):
    class Meta:
        model = models.ControlOutage
        fields = _fields(
            "occurrence_date",
            "restoration_date",
            "fault_type",
            "reason",
            "area_affected",
            "customers_affected",
            "load_mw",
            "status",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only


class EquipmentFailureReportSerializer(ScopedRecordSerializer):
    class Meta:
        model = models.EquipmentFailureReport
        fields = _fields(
            "date",
            "material_equipment_name",
            "type_of_material_equipment",
            "location_of_material_equipment",
            "ghana_post_gps",
            "name_of_manufacturer",
            "serial_number",
            "manufacturing_date",
            "country_of_origin",
            "date_of_installation",
            "date_of_commission",
            "description_of_material_equipment",
            "cause_of_failure",
            "frequency_of_repairs",
            "history_of_repairs",
            "initial_observations",
            "immediate_actions_taken",
            "severity_of_fault",
            "prepared_by",
            "contact",
            "updated_by",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only + ("updated_by",)


class SubstationStatusSerializer(GeotaggedFieldsMixin, ScopedRecordSerializer):
    class Meta:
        model = models.SubstationStatus
        fields = _fields(
            *_GEO_FIELDS,
            "substation_name",
            "substation_number",
            "status",
            "location",
            "transformer_conditions",
            "fuse_conditions",
            "earthing_conditions",
            "general_notes",
            "submission_id",
        )
        read_only_fields = ScopedRecordSerializer.base_read_only
        # Repeated submissions are reported by the view with 409.
        extra_kwargs = {"submission_id": {"validators": []}}

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is None and attrs.get("district") is None:
            raise serializers.ValidationError({"district": "Region and district are required."})
        return attrs


class StaffIdSerializer(ScopedRecordSerializer):
    class Meta:
        model = models.StaffId
        fields = _fields("staff_id", "name", "role")
        read_only_fields = ScopedRecordSerializer.base_read_only


class RegionSerializer(CamelCaseModelSerializer):
    class Meta:
        model = models.Region
        fields = ["id", "name", "code"]


class DistrictSerializer(CamelCaseModelSerializer):
    region_id = serializers.PrimaryKeyRelatedField(source="region", queryset=models.Region.objects.all())
    region_name = serializers.CharField(source="region.name", read_only=True)

    class Meta:
        model = models.District
        fields = ["id", "name", "region_id", "region_name"]


class RoleSerializer(CamelCaseModelSerializer):
    allowed_regions = serializers.SlugRelatedField(
        slug_field="name", many=True, queryset=models.Region.objects.all(), required=False
    )
    allowed_districts = serializers.PrimaryKeyRelatedField(
        many=True, queryset=models.District.objects.all(), required=False
    )

    class Meta:
        model = models.Role
        fields = [
            "id",
            "name",
            "display_name",
            "description",
            "priority",
            "access_level",
            "allowed_regions",
            "allowed_districts",
            "permissions",
            "is_active",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("created_by", "updated_by", "created_at", "updated_at")
        # Duplicate names are reported by the view with 409.
        extra_kwargs = {"name": {"validators": []}}

    def validate(self, attrs):
        attrs = super().validate(attrs)
        access_level = attrs.get("access_level", getattr(self.instance, "access_level", None))
        name = attrs.get("name", getattr(self.instance, "name", None))
        # Built-in roles take their regions from the user's assignment or a fixed list.
        if access_level == models.Role.ACCESS_REGIONAL and name not in roles.POLICY_TABLE_ROLES:
            if "allowed_regions" in attrs:
                regions = attrs["allowed_regions"]
            elif self.instance is not None:
                regions = list(self.instance.allowed_regions.all())
            else:
                regions = []
            if not regions:
                raise serializers.ValidationError(
                    {"allowedRegions": "Regional roles must have at least one allowed region."}
                )
        return attrs


class TargetSerializer(CamelCaseModelSerializer):
    region_id = serializers.PrimaryKeyRelatedField(source="region", queryset=models.Region.objects.all())
    district_id = serializers.PrimaryKeyRelatedField(
        source="district",
        queryset=models.District.objects.select_related("region"),
        required=False,
        allow_null=True,
    )
    region = serializers.SlugRelatedField(slug_field="name", read_only=True)
    district = serializers.SlugRelatedField(slug_field="name", read_only=True)
    month = serializers.RegexField(
        MONTH_PATTERN, error_messages={"invalid": "Invalid month format. Expected YYYY-MM"}
    )
    target_value = serializers.FloatField(min_value=0)

    class Meta:
        model = models.Target
        fields = [
            "id",
            "region_id",
            "region",
            "district_id",
            "district",
            "month",
            "target_type",
            "target_value",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("created_by", "created_at", "updated_at")
        # Creation is an upsert on (region, district, month, type).
        validators = []

    def to_internal_value(self, data):
        if hasattr(data, "items"):
            data = {snake_case(key): value for key, value in data.items()}
            if "district_id" in data:
                data["district_id"] = normalize_district(data["district_id"])
        return super().to_internal_value(data)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        region = attrs.get("region", getattr(self.instance, "region", None))
        district = attrs.get("district", getattr(self.instance, "district", None))
        if district is not None and region is not None and district.region_id != region.pk:
            raise serializers.ValidationError({"districtId": "District does not belong to the selected region."})
        return attrs


class UserProfileSerializer(CamelCaseModelSerializer):
    username = serializers.CharField(source="user.username")
    email = serializers.EmailField(source="user.email", required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, required=False, min_length=8)
    name = serializers.CharField(read_only=True)
    region_id = serializers.PrimaryKeyRelatedField(
        source="region", queryset=models.Region.objects.all(), required=False, allow_null=True
    )
    district_id = serializers.PrimaryKeyRelatedField(
        source="district", queryset=models.District.objects.all(), required=False, allow_null=True
    )
    region = serializers.SlugRelatedField(slug_field="name", read_only=True)
    district = serializers.SlugRelatedField(slug_field="name", read_only=True)

    class Meta:
        model = models.UserProfile
        fields = [
            "id",
            "username",
            "email",
            "password",
            "name",
            "display_name",
            "staff_id",
            "role",
            "region_id",
            "region",
            "district_id",
            "district",
        ]

    def validate_role(self, value):
        if value in roles.BUILTIN_ROLES:
            return value
        if models.Role.objects.filter(name=value, is_active=True).exists():
            return value
        raise serializers.ValidationError(f"Unknown role '{value}'.")

    def validate_username(self, value):
        users = get_user_model().objects.filter(username=value)
        if self.instance is not None:
            users = users.exclude(pk=self.instance.user_id)
        if users.exists():
            raise serializers.ValidationError("A user with that username already exists.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        district = attrs.get("district", getattr(self.instance, "district", None))
        if district is not None and "region" not in attrs and getattr(self.instance, "region", None) is None:
            attrs["region"] = district.region
        return attrs

    def create(self, validated_data):
        user_data = validated_data.pop("user", {})
        password = validated_data.pop("password", None)
        user = get_user_model().objects.create_user(
            username=user_data["username"], email=user_data.get("email", ""), password=password
        )
        return models.UserProfile.objects.create(user=user, **validated_data)

    def update(self, instance, validated_data):
        user_data = validated_data.pop("user", {})
        password = validated_data.pop("password", None)
        user = instance.user
        for attr, value in user_data.items():
            setattr(user, attr, value)
        if password:
            user.set_password(password)
        user.save()
        return super().update(instance, validated_data)
