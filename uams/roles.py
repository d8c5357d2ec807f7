"""Built-in role names and the groups the access rules are written against."""

SYSTEM_ADMIN = "system_admin"
GLOBAL_ENGINEER = "global_engineer"
REGIONAL_ENGINEER = "regional_engineer"
REGIONAL_GENERAL_MANAGER = "regional_general_manager"
PROJECT_ENGINEER = "project_engineer"
DISTRICT_ENGINEER = "district_engineer"
DISTRICT_MANAGER = "district_manager"
TECHNICIAN = "technician"
ICT = "ict"
ASHSUBT = "ashsubt"
ACCSUBT = "accsubt"
LOAD_MONITORING_EDIT = "load_monitoring_edit"
PENDING = "pending"

ROLE_CHOICES = [
    (SYSTEM_ADMIN, "System administrator"),
    (GLOBAL_ENGINEER, "Global engineer"),
    (REGIONAL_ENGINEER, "Regional engineer"),
    (REGIONAL_GENERAL_MANAGER, "Regional general manager"),
    (PROJECT_ENGINEER, "Project engineer"),
    (DISTRICT_ENGINEER, "District engineer"),
    (DISTRICT_MANAGER, "District manager"),
    (TECHNICIAN, "Technician"),
    (ICT, "ICT"),
    (ASHSUBT, "Ashanti subtransmission"),
    (ACCSUBT, "Accra subtransmission"),
    (LOAD_MONITORING_EDIT, "Load monitoring editor"),
    (PENDING, "Pending approval"),
]
BUILTIN_ROLES = frozenset(name for name, _label in ROLE_CHOICES)

UNRESTRICTED_ROLES = frozenset({SYSTEM_ADMIN, GLOBAL_ENGINEER})
DISTRICT_ROLES = frozenset({DISTRICT_ENGINEER, DISTRICT_MANAGER, TECHNICIAN})
REGIONAL_ROLES = frozenset({REGIONAL_ENGINEER, REGIONAL_GENERAL_MANAGER, PROJECT_ENGINEER})

# Subtransmission teams work across a fixed group of regions.
SUBTRANSMISSION_REGIONS = {
    ASHSUBT: (
        "SUBTRANSMISSION ASHANTI",
        "ASHANTI EAST REGION",
        "ASHANTI WEST REGION",
        "ASHANTI SOUTH REGION",
    ),
    ACCSUBT: (
        "SUBTRANSMISSION ACCRA",
        "ACCRA EAST REGION",
        "ACCRA WEST REGION",
    ),
}

FIELD_ROLES = tuple(name for name, _label in ROLE_CHOICES if name != PENDING)
FEEDER_WRITE_ROLES = tuple(name for name in FIELD_ROLES if name not in {ICT, TECHNICIAN})
STAFF_ID_READ_ROLES = tuple(name for name in FIELD_ROLES if name != LOAD_MONITORING_EDIT)
ADMIN_ROLES = (SYSTEM_ADMIN, GLOBAL_ENGINEER)
TARGET_READ_ROLES = (SYSTEM_ADMIN, GLOBAL_ENGINEER, REGIONAL_ENGINEER, REGIONAL_GENERAL_MANAGER)
DISTRICT_PERFORMANCE_ROLES = TARGET_READ_ROLES + (DISTRICT_ENGINEER, DISTRICT_MANAGER)
DISTRICT_WRITE_ROLES = (
    SYSTEM_ADMIN,
    REGIONAL_ENGINEER,
    PROJECT_ENGINEER,
    DISTRICT_ENGINEER,
    REGIONAL_GENERAL_MANAGER,
    DISTRICT_MANAGER,
    ASHSUBT,
    ACCSUBT,
)

# Roles whose scope is fixed in code; every other role is read from its stored definition.
POLICY_TABLE_ROLES = UNRESTRICTED_ROLES | DISTRICT_ROLES | REGIONAL_ROLES | frozenset(SUBTRANSMISSION_REGIONS)
