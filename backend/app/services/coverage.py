"""
Coverage Composer.

Combines a resolved zone with the zone's sellable offers. No zone means
"not serviceable here": an empty offer list, not an error.
"""
from typing import Any, Iterable, Optional, Tuple

from backend.app.schemas.network_mapping import CoverageCheckResponse, ResolvedZone, ZoneOfferResponse


def _features(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(f) for f in value]


def offer_from_row(offer: Any, package: Any) -> ZoneOfferResponse:
    """Join an offer with its package; zone overrides win over package prices."""
    return ZoneOfferResponse(
        id=str(offer.id),
        zone_id=str(offer.zone_id),
        package_id=str(package.id),
        package_name=package.name,
        package_description=package.description,
        features=_features(package.features),
        price_monthly=offer.price_monthly,
        price_yearly=offer.price_yearly,
        effective_price_monthly=offer.price_monthly if offer.price_monthly is not None else (package.price_monthly or 0.0),
        effective_price_yearly=offer.price_yearly if offer.price_yearly is not None else (package.price_yearly or 0.0),
    )


def compose_coverage(zone: Optional[ResolvedZone], offer_rows: Iterable[Tuple[Any, Any]] = ()) -> CoverageCheckResponse:
    if zone is None:
        return CoverageCheckResponse(zone=None, offers=[])
    offers = [offer_from_row(offer, package) for offer, package in offer_rows if str(offer.zone_id) == zone.id]
    return CoverageCheckResponse(zone=zone, offers=offers)
