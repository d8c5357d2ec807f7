from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from uams.reports import performance_workbook
from uams.services import performance


class Command(BaseCommand):
    help = "Write the performance table of a region for a month to an XLSX workbook."

    def add_arguments(self, parser):
        parser.add_argument("region", help="Region id or name.")
        parser.add_argument("month", help="Month as YYYY-MM.")
        parser.add_argument("--out", required=True, help="Destination .xlsx file.")
        parser.add_argument("--target-type", choices=performance.TARGET_TYPES)

    def handle(self, *args, **options):
        region = performance.resolve_region(options["region"])
        if region is None:
            raise CommandError(f"Region not found: {options['region']}")

        try:
            rows = performance.compute_region_performance(region, options["month"], options.get("target_type"))
        except performance.PerformanceInputError as exc:
            raise CommandError(str(exc))

        path = Path(options["out"])
        path.parent.mkdir(parents=True, exist_ok=True)
        performance_workbook(f"{region.name} {options['month']}", rows).save(path)
        self.stdout.write(self.style.SUCCESS(f"Wrote {len(rows)} row(s) to {path}"))
