"""Create-or-update of monthly performance targets."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from django.db import IntegrityError, transaction

from uams.models import District, Region, Target

logger = logging.getLogger(__name__)

REGION_WIDE_MARKERS = (None, "", "__all__", "all", "null")


def normalize_district(value: Any) -> Optional[Any]:
    """Map the "whole region" markers sent by the clients to ``None``."""

    if isinstance(value, str):
        value = value.strip()
    if value in REGION_WIDE_MARKERS:
        return None
    return value


@transaction.atomic
def upsert_target(
    region: Region,
    district: Optional[District],
    month: str,
    target_type: str,
    target_value: float,
    *,
    user: str = "",
) -> Tuple[Target, bool]:
    """Store the target for ``(region, district, month, type)``.

    Returns ``(target, created)``. An existing target keeps its id and only has
    its value replaced.
    """

    lookup = {"region": region, "district": district, "month": month, "target_type": target_type}
    try:
        # A lost insert race rolls back to this savepoint only.
        with transaction.atomic():
            target, created = Target.objects.select_for_update().update_or_create(
                defaults={"target_value": target_value}, **lookup
            )
    except IntegrityError:
        logger.info("Concurrent insert of target %s for %s %s; updating instead", target_type, region.name, month)
        target = Target.objects.select_for_update().get(**lookup)
        target.target_value = target_value
        target.save(update_fields=["target_value", "updated_at"])
        created = False
    if created and user:
        target.created_by = user
        target.save(update_fields=["created_by"])
    logger.info(
        "%s target %s for %s/%s %s = %s",
        "Created" if created else "Updated",
        target_type,
        region.name,
        district.name if district else "region-wide",
        month,
        target_value,
    )
    return target, created
