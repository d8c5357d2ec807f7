from django.core.management.base import BaseCommand, CommandError

from uams.services import performance
from uams.services.storage import get_record_store


class Command(BaseCommand):
    help = "Print actual versus target figures of every district of a region for a month."

    def add_arguments(self, parser):
        parser.add_argument("region", help="Region id or name.")
        parser.add_argument("month", help="Month as YYYY-MM.")
        parser.add_argument(
            "--target-type",
            choices=performance.TARGET_TYPES,
            help="Only report this metric.",
        )

    def handle(self, *args, **options):
        region = performance.resolve_region(options["region"])
        if region is None:
            known = ", ".join(known_region.name for known_region in get_record_store().all("regions"))
            raise CommandError(f"Region not found: {options['region']}. Known regions: {known or 'none'}")

        try:
            rows = performance.compute_region_performance(region, options["month"], options.get("target_type"))
        except performance.PerformanceInputError as exc:
            raise CommandError(str(exc))

        if not rows:
            self.stdout.write(self.style.WARNING(f"No targets found for {region.name} in {options['month']}."))
            return

        self.stdout.write(f"{region.name} - {options['month']}")
        for row in rows:
            self.stdout.write(
                f"  {row.district:<30} {row.target_type:<22} target={row.target:g} actual={row.actual:g} "
                f"variance={row.variance:g} ({row.percentage:.2f}%)"
            )
        self.stdout.write(self.style.SUCCESS(f"{len(rows)} row(s) computed."))
