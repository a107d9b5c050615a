"""Offline IP geolocation over local MaxMind GeoLite2 databases.

City database: city, region (subdivision ISO code), country (ISO code),
timezone. ASN database: network operator name, stored as `org`.

Visitor IPs never leave the process. Lookups are best-effort: loopback
addresses, missing or unreadable database files, unknown and malformed
addresses all return None so access logging never fails.
"""

from __future__ import annotations

import logging

import geoip2.database
import geoip2.errors
import maxminddb
from geoip2.models import ASN, City
from pydantic import BaseModel

from nullvault.config import settings

logger = logging.getLogger(__name__)

_LOOPBACK = frozenset({"127.0.0.1", "::1"})


class GeoResult(BaseModel):
    """Geolocation of one IP address."""

    display: str
    city: str | None = None
    region: str | None = None
    country: str | None = None
    org: str | None = None
    timezone: str | None = None


def _open_reader(path: str, kind: str) -> geoip2.database.Reader | None:
    if not path:
        return None
    try:
        reader = geoip2.database.Reader(path)
    except (OSError, ValueError, maxminddb.InvalidDatabaseError) as exc:
        logger.warning("GeoLite2 %s database unavailable at %s: %s", kind, path, exc)
        return None
    logger.info("GeoLite2 %s database loaded from %s", kind, path)
    return reader


class GeoClient:
    """Lazily opened City + ASN readers. Either database may be absent."""

    def __init__(self, city_db: str | None = None, asn_db: str | None = None) -> None:
        self._city_path = settings.geo.geo_city_db if city_db is None else city_db
        self._asn_path = settings.geo.geo_asn_db if asn_db is None else asn_db
        self._city: geoip2.database.Reader | None = None
        self._asn: geoip2.database.Reader | None = None
        self._opened = False

    def _open(self) -> None:
        if self._opened:
            return
        self._opened = True
        self._city = _open_reader(self._city_path, "City")
        self._asn = _open_reader(self._asn_path, "ASN")

    @property
    def _bypass_mode(self) -> bool:
        """Return True if neither database could be opened."""
        self._open()
        return self._city is None and self._asn is None

    def lookup(self, ip: str | None) -> GeoResult | None:
        """Resolve an IP to a GeoResult, or None when unknown."""
        if not ip or ip in _LOOPBACK:
            return None
        if self._bypass_mode:
            return None

        city = self._query(self._city, "city", ip)
        asn = self._query(self._asn, "asn", ip)
        if city is None and asn is None:
            return None
        return self._build_result(city, asn)

    @staticmethod
    def _query(reader: geoip2.database.Reader | None, method: str, ip: str):
        if reader is None:
            return None
        try:
            return getattr(reader, method)(ip)
        except geoip2.errors.AddressNotFoundError:
            return None
        except ValueError:
            logger.warning("Geo lookup skipped: malformed address")
            return None
        except (geoip2.errors.GeoIP2Error, maxminddb.InvalidDatabaseError):
            logger.warning("Geo lookup failed", exc_info=True)
            return None

    @staticmethod
    def _build_result(city: City | None, asn: ASN | None) -> GeoResult:
        """display joins the present city/region/country parts, or "Unknown"."""
        city_name = region = country = timezone = None
        if city is not None:
            city_name = city.city.name or None
            region = city.subdivisions.most_specific.iso_code or None
            country = city.country.iso_code or None
            timezone = city.location.time_zone or None

        parts = [p for p in (city_name, region, country) if p]
        return GeoResult(
            display=", ".join(parts) or "Unknown",
            city=city_name,
            region=region,
            country=country,
            org=(asn.autonomous_system_organization or None) if asn is not None else None,
            timezone=timezone,
        )

    def close(self) -> None:
        for reader in (self._city, self._asn):
            if reader is not None:
                reader.close()
        self._city = self._asn = None
        self._opened = False


# Module-level singleton
geo_client = GeoClient()
