"""Filter, sort and paging rules of every collection served by the API."""

from django.db.models import Q

from .services.query_filters import EntitySchema

_AUDIT_SORTS = {"createdAt": "created_at", "updatedAt": "updated_at", "id": "pk"}

LOAD_STATUS_FILTERS = {
    "OVERLOAD": Q(percentage_load__gte=100),
    "Action Required": Q(percentage_load__gte=70, percentage_load__lt=100),
    "OKAY": Q(percentage_load__lt=70),
}

OVERHEAD_LINE_INSPECTIONS = EntitySchema(
    collection="overheadLineInspections",
    filter_fields={
        "feederName": "feeder_name",
        "voltageLevel": "voltage_level",
        "status": "status",
        "inspectorName": "inspector_name",
        "referencePole": "reference_pole",
    },
    sort_fields={**_AUDIT_SORTS, "date": "date", "feederName": "feeder_name", "status": "status"},
    date_field="date",
    search_fields=("feeder_name", "reference_pole", "inspector_name", "notes"),
)

SUBSTATION_INSPECTIONS = EntitySchema(
    collection="substationInspections",
    filter_fields={
        "substationName": "substation_name",
        "substationNumber": "substation_number",
        "substationType": "substation_type",
        "status": "status",
        "inspectorName": "inspector_name",
    },
    sort_fields={**_AUDIT_SORTS, "date": "date", "substationNumber": "substation_number", "status": "status"},
    date_field="date",
    search_fields=("substation_name", "substation_number", "inspector_name", "remarks"),
)

LOAD_MONITORING = EntitySchema(
    collection="loadMonitoring",
    filter_fields={
        "substationName": "substation_name",
        "substationNumber": "substation_number",
        "feederName": "feeder_name",
        "voltageLevel": "voltage_level",
        "peakLoadStatus": "peak_load_status",
        "status": "status",
    },
    sort_fields={
        **_AUDIT_SORTS,
        "date": "date",
        "substationNumber": "substation_number",
        "percentageLoad": "percentage_load",
    },
    date_field="date",
    search_fields=("substation_name", "substation_number", "feeder_name", "location"),
    choice_filters={"loadStatus": LOAD_STATUS_FILTERS},
    max_limit=10000,
)

VIT_ASSETS = EntitySchema(
    collection="vitAssets",
    filter_fields={
        "serialNumber": "serial_number",
        "typeOfUnit": "type_of_unit",
        "voltageLevel": "voltage_level",
        "feederName": "feeder_name",
        "status": "status",
    },
    sort_fields={**_AUDIT_SORTS, "serialNumber": "serial_number", "status": "status"},
    date_field="created_at",
    search_fields=("serial_number", "feeder_name", "location"),
    max_limit=100,
)

VIT_INSPECTIONS = EntitySchema(
    collection="vitInspections",
    filter_fields={"assetId": "asset_id", "status": "status", "inspectorName": "inspector_name"},
    sort_fields={**_AUDIT_SORTS, "date": "date"},
    date_field="date",
    search_fields=("inspector_name", "remarks", "asset__serial_number"),
)

OP5_FAULTS = EntitySchema(
    collection="op5Faults",
    filter_fields={
        "faultType": "fault_type",
        "specificFaultType": "specific_fault_type",
        "status": "status",
    },
    sort_fields={**_AUDIT_SORTS, "occurrenceDate": "occurrence_date", "restorationDate": "restoration_date"},
    date_field="occurrence_date",
    default_sort="occurrence_date",
    search_fields=("fault_location", "substation_name", "description", "specific_fault_type"),
)

CONTROL_OUTAGES = EntitySchema(
    collection="controlOutages",
    filter_fields={"faultType": "fault_type", "status": "status"},
    sort_fields={**_AUDIT_SORTS, "occurrenceDate": "occurrence_date", "restorationDate": "restoration_date"},
    date_field="occurrence_date",
    default_sort="occurrence_date",
    search_fields=("area_affected", "reason"),
)

# The combined fault listing accepts the filters both fault collections share.
FAULT_SOURCES = {
    "op5": EntitySchema(
        collection="op5Faults",
        filter_fields={"faultType": "fault_type", "status": "status"},
        sort_fields=OP5_FAULTS.sort_fields,
        date_field="occurrence_date",
        default_sort="occurrence_date",
        search_fields=OP5_FAULTS.search_fields,
    ),
    "controlOutage": EntitySchema(
        collection="controlOutages",
        filter_fields={"faultType": "fault_type", "status": "status"},
        sort_fields=CONTROL_OUTAGES.sort_fields,
        date_field="occurrence_date",
        default_sort="occurrence_date",
        search_fields=CONTROL_OUTAGES.search_fields,
    ),
}

FEEDERS = EntitySchema(
    collection="feeders",
    filter_fields={"name": "name", "voltageLevel": "voltage_level", "bspPss": "bsp_pss"},
    sort_fields={**_AUDIT_SORTS, "name": "name"},
    default_sort="name",
    search_fields=("name", "bsp_pss"),
)

USERS = EntitySchema(
    collection="users",
    filter_fields={"role": "role", "staffId": "staff_id"},
    sort_fields={"id": "pk", "username": "user__username", "role": "role"},
    default_sort="user__username",
    search_fields=("user__username", "user__email", "display_name", "staff_id"),
)

TARGETS = EntitySchema(
    collection="targets",
    filter_fields={"targetType": "target_type"},
    sort_fields={**_AUDIT_SORTS, "month": "month", "targetType": "target_type", "targetValue": "target_value"},
    date_field="month",
    default_sort="month",
    default_limit=50,
    max_limit=1000,
)

EQUIPMENT_FAILURE_REPORTS = EntitySchema(
    collection="equipmentFailureReports",
    filter_fields={
        "type": "type_of_material_equipment",
        "severity": "severity_of_fault",
        "materialEquipmentName": "material_equipment_name",
        "serialNumber": "serial_number",
        "preparedBy": "prepared_by",
    },
    sort_fields={
        **_AUDIT_SORTS,
        "date": "date",
        "severityOfFault": "severity_of_fault",
        "materialEquipmentName": "material_equipment_name",
    },
    date_field="date",
    default_sort="date",
    search_fields=(
        "material_equipment_name",
        "serial_number",
        "location_of_material_equipment",
        "cause_of_failure",
    ),
)

SUBSTATION_STATUS = EntitySchema(
    collection="substationStatus",
    filter_fields={
        "status": "status",
        "substationNumber": "substation_number",
        "substationName": "substation_name",
        "submissionId": "submission_id",
    },
    sort_fields={**_AUDIT_SORTS, "substationNumber": "substation_number", "status": "status"},
    date_field="created_at",
    search_fields=("substation_name", "substation_number", "location", "general_notes"),
)

STAFF_IDS = EntitySchema(
    collection="staffIds",
    filter_fields={"staffId": "staff_id", "name": "name", "role": "role"},
    sort_fields={**_AUDIT_SORTS, "staffId": "staff_id", "name": "name"},
    search_fields=("staff_id", "name"),
    default_limit=50,
    max_limit=100,
)
