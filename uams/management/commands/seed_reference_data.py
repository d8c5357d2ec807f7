import csv
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from uams import roles
from uams.models import District, Region, Role

# Access level and priority of the built-in roles; higher priority first.
BUILTIN_ROLE_LEVELS = {
    roles.SYSTEM_ADMIN: (Role.ACCESS_GLOBAL, 100),
    roles.GLOBAL_ENGINEER: (Role.ACCESS_GLOBAL, 90),
    roles.ICT: (Role.ACCESS_GLOBAL, 85),
    roles.REGIONAL_GENERAL_MANAGER: (Role.ACCESS_REGIONAL, 80),
    roles.REGIONAL_ENGINEER: (Role.ACCESS_REGIONAL, 70),
    roles.PROJECT_ENGINEER: (Role.ACCESS_REGIONAL, 65),
    roles.ASHSUBT: (Role.ACCESS_REGIONAL, 60),
    roles.ACCSUBT: (Role.ACCESS_REGIONAL, 60),
    roles.DISTRICT_MANAGER: (Role.ACCESS_DISTRICT, 50),
    roles.DISTRICT_ENGINEER: (Role.ACCESS_DISTRICT, 40),
    roles.LOAD_MONITORING_EDIT: (Role.ACCESS_DISTRICT, 30),
    roles.TECHNICIAN: (Role.ACCESS_DISTRICT, 20),
}


class Command(BaseCommand):
    help = "Create the built-in roles and, optionally, regions and districts from a CSV file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--regions-csv",
            type=str,
            help="CSV file with 'region' and 'district' columns.",
        )

    def seed_roles(self) -> int:
        created = 0
        labels = dict(roles.ROLE_CHOICES)
        for name, (access_level, priority) in BUILTIN_ROLE_LEVELS.items():
            role, was_created = Role.objects.get_or_create(
                name=name,
                defaults={
                    "display_name": labels[name],
                    "access_level": access_level,
                    "priority": priority,
                    "created_by": "seed_reference_data",
                },
            )
            if was_created:
                created += 1
            allowed = roles.SUBTRANSMISSION_REGIONS.get(name)
            if allowed:
                for region_name in allowed:
                    region, _ = Region.objects.get_or_create(name=region_name)
                    role.allowed_regions.add(region)
        return created

    def seed_areas(self, path: Path):
        regions = districts = 0
        with path.open(newline="", encoding="utf-8-sig") as handle:
            reader = csv.DictReader(handle)
            missing = {"region", "district"} - set(reader.fieldnames or [])
            if missing:
                raise CommandError(f"Missing columns in {path}: {', '.join(sorted(missing))}")
            for row in reader:
                region_name = (row.get("region") or "").strip()
                district_name = (row.get("district") or "").strip()
                if not region_name:
                    continue
                region, created = Region.objects.get_or_create(name=region_name)
                regions += int(created)
                if district_name:
                    _, created = District.objects.get_or_create(name=district_name, region=region)
                    districts += int(created)
        return regions, districts

    @transaction.atomic
    def handle(self, *args, **options):
        created = self.seed_roles()
        self.stdout.write(self.style.SUCCESS(f"Roles: {created} created, {len(BUILTIN_ROLE_LEVELS) - created} kept"))

        csv_path = options.get("regions_csv")
        if csv_path:
            path = Path(csv_path)
            if not path.exists():
                raise CommandError(f"File not found: {path}")
            regions, districts = self.seed_areas(path)
            self.stdout.write(self.style.SUCCESS(f"Regions created: {regions}; districts created: {districts}"))
