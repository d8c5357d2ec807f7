from __future__ import annotations

from django.contrib import admin
from django.contrib.admin import AdminSite
from django.contrib.auth.admin import GroupAdmin, UserAdmin
from django.contrib.auth.models import Group, User

from . import models


class UAMSAdminSite(AdminSite):
    site_header = "UAMS Administration"
    site_title = "UAMS Admin"
    index_title = "Utility Asset Management System"
    site_url = "/"


uams_admin_site = UAMSAdminSite(name="uams_admin")
uams_admin_site.register(User, UserAdmin)
uams_admin_site.register(Group, GroupAdmin)


class ScopedRecordAdmin(admin.ModelAdmin):
    """Shared list options of records located by region and district."""

    list_filter = ("region", "district")
    list_select_related = ("region", "district")
    readonly_fields = ("created_by", "created_at", "updated_at")


@admin.register(models.Region, site=uams_admin_site)
class RegionAdmin(admin.ModelAdmin):
    list_display = ("name", "code")
    search_fields = ("name", "code")


@admin.register(models.District, site=uams_admin_site)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ("name", "region")
    list_filter = ("region",)
    search_fields = ("name", "region__name")


@admin.register(models.Role, site=uams_admin_site)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "display_name", "access_level", "priority", "is_active")
    list_filter = ("access_level", "is_active")
    search_fields = ("name", "display_name")
    filter_horizontal = ("allowed_regions", "allowed_districts")


@admin.register(models.UserProfile, site=uams_admin_site)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "region", "district", "staff_id")
    list_filter = ("role", "region")
    search_fields = ("user__username", "display_name", "staff_id")
    autocomplete_fields = ("user",)


@admin.register(models.Target, site=uams_admin_site)
class TargetAdmin(admin.ModelAdmin):
    list_display = ("month", "region", "district", "target_type", "target_value")
    list_filter = ("target_type", "region", "month")
    search_fields = ("region__name", "district__name")


@admin.register(models.Feeder, site=uams_admin_site)
class FeederAdmin(ScopedRecordAdmin):
    list_display = ("name", "voltage_level", "bsp_pss", "region", "district")
    search_fields = ("name", "bsp_pss")


@admin.register(models.OverheadLineInspection, site=uams_admin_site)
class OverheadLineInspectionAdmin(ScopedRecordAdmin):
    list_display = ("feeder_name", "reference_pole", "date", "coordinates", "status", "region", "district")
    list_filter = ScopedRecordAdmin.list_filter + ("status",)
    search_fields = ("feeder_name", "reference_pole", "inspector_name")
    date_hierarchy = "date"


@admin.register(models.SubstationInspection, site=uams_admin_site)
class SubstationInspectionAdmin(ScopedRecordAdmin):
    list_display = ("substation_number", "substation_name", "date", "status", "region", "district")
    search_fields = ("substation_name", "substation_number")
    date_hierarchy = "date"


@admin.register(models.LoadMonitoringRecord, site=uams_admin_site)
class LoadMonitoringRecordAdmin(ScopedRecordAdmin):
    list_display = ("substation_number", "feeder_name", "date", "percentage_load", "region", "district")
    search_fields = ("substation_name", "substation_number", "feeder_name")
    date_hierarchy = "date"


@admin.register(models.VITAsset, site=uams_admin_site)
class VITAssetAdmin(ScopedRecordAdmin):
    list_display = ("serial_number", "type_of_unit", "voltage_level", "status", "region", "district")
    search_fields = ("serial_number", "feeder_name", "location")


@admin.register(models.VITInspection, site=uams_admin_site)
class VITInspectionAdmin(ScopedRecordAdmin):
    list_display = ("asset", "date", "status", "region", "district")
    search_fields = ("asset__serial_number", "inspector_name")


@admin.register(models.OP5Fault, site=uams_admin_site)
class OP5FaultAdmin(ScopedRecordAdmin):
    list_display = ("occurrence_date", "fault_type", "specific_fault_type", "status", "region", "district")
    list_filter = ScopedRecordAdmin.list_filter + ("fault_type", "status")
    search_fields = ("fault_location", "substation_name", "description")


@admin.register(models.ControlOutage, site=uams_admin_site)
class ControlOutageAdmin(ScopedRecordAdmin):
    list_display = ("occurrence_date", "fault_type", "area_affected", "status", "region", "district")
    list_filter = ScopedRecordAdmin.list_filter + ("fault_type", "status")
    search_fields = ("area_affected", "reason")


@admin.register(models.EquipmentFailureReport, site=uams_admin_site)
class EquipmentFailureReportAdmin(ScopedRecordAdmin):
    list_display = ("date", "material_equipment_name", "type_of_material_equipment", "severity_of_fault", "district")
    list_filter = ScopedRecordAdmin.list_filter + ("severity_of_fault",)
    search_fields = ("material_equipment_name", "serial_number", "name_of_manufacturer")
    date_hierarchy = "date"


@admin.register(models.SubstationStatus, site=uams_admin_site)
class SubstationStatusAdmin(ScopedRecordAdmin):
    list_display = ("substation_number", "substation_name", "status", "created_at", "region", "district")
    list_filter = ScopedRecordAdmin.list_filter + ("status",)
    search_fields = ("substation_name", "substation_number", "submission_id")


@admin.register(models.StaffId, site=uams_admin_site)
class StaffIdAdmin(ScopedRecordAdmin):
    list_display = ("staff_id", "name", "role", "region", "district")
    search_fields = ("staff_id", "name")
