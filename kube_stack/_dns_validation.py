"""Validate the Route 53 hosted zone and external DNS name.

Zone and record names are compared in fully-qualified, lowercased form, so
``Staging.core-os.net`` and ``staging.core-os.net.`` are equivalent inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from kube_stack._aws_protocols import DNSAPI
from kube_stack._cluster_config import ClusterConfig, with_trailing_dot
from kube_stack._preflight_errors import DNSRecordConflictError, HostedZoneNotFoundError

logger = logging.getLogger(__name__)


def canonical_dns_name(name: str) -> str:
    """Return *name* fully qualified and lowercased for comparison.

    Examples
    --------
    >>> canonical_dns_name("Staging.Core-OS.net")
    'staging.core-os.net.'
    """
    return with_trailing_dot(name).lower()


@dataclass(frozen=True, slots=True)
class HostedZoneRecord:
    """A hosted zone and the record names it already holds.

    Attributes
    ----------
    zone_id
        Route 53 identifier, as returned by the API.
    name
        Lowercased fully-qualified zone name ending in a dot.
    record_names
        Lowercased fully-qualified names of the records present in the zone.
    """

    zone_id: str
    name: str
    record_names: frozenset[str]

    def has_record(self, name: str) -> bool:
        """Return whether *name* already exists in the zone.

        Examples
        --------
        >>> zone = HostedZoneRecord("Z1", "example.com.", frozenset({"api.example.com."}))
        >>> zone.has_record("api.example.com")
        True
        """
        return canonical_dns_name(name) in self.record_names


def _matching_zones(dns_api: DNSAPI, zone_name: str) -> list[dict[str, Any]]:
    # ListHostedZonesByName returns zones in name order starting at DNSName,
    # so neighbours must be filtered out.
    response = dns_api.list_hosted_zones_by_name(DNSName=zone_name)
    return [
        zone
        for zone in response.get("HostedZones") or []
        if canonical_dns_name(zone.get("Name") or "") == zone_name and zone.get("Id")
    ]


def _iter_record_names(dns_api: DNSAPI, zone_id: str) -> Iterator[str]:
    """Yield record names in *zone_id*, following pagination."""
    request: dict[str, Any] = {"HostedZoneId": zone_id}
    while True:
        response = dns_api.list_resource_record_sets(**request)
        for record_set in response.get("ResourceRecordSets") or []:
            if name := record_set.get("Name"):
                yield canonical_dns_name(name)
        if not response.get("IsTruncated"):
            return
        next_name = response.get("NextRecordName")
        if not next_name:
            return
        request["StartRecordName"] = next_name
        if next_type := response.get("NextRecordType"):
            request["StartRecordType"] = next_type
        if next_identifier := response.get("NextRecordIdentifier"):
            request["StartRecordIdentifier"] = next_identifier
        else:
            request.pop("StartRecordIdentifier", None)


def find_hosted_zone(dns_api: DNSAPI, hosted_zone: str) -> HostedZoneRecord:
    """Look up *hosted_zone* and the record names it contains.

    Parameters
    ----------
    dns_api : DNSAPI
        Route 53 client used for the lookups.
    hosted_zone : str
        Zone name, with or without the trailing dot.

    Returns
    -------
    HostedZoneRecord
        The exactly matching zone.

    Raises
    ------
    HostedZoneNotFoundError
        If no zone has exactly that name.
    """
    zone_name = canonical_dns_name(hosted_zone)
    zones = _matching_zones(dns_api, zone_name)
    if not zones:
        msg = f"hosted zone {zone_name} does not exist"
        raise HostedZoneNotFoundError(msg)
    if len(zones) > 1:
        logger.warning(
            "Found %d hosted zones named %s; using %s",
            len(zones),
            zone_name,
            zones[0]["Id"],
        )
    zone_id = zones[0]["Id"]
    return HostedZoneRecord(
        zone_id=zone_id,
        name=zone_name,
        record_names=frozenset(_iter_record_names(dns_api, zone_id)),
    )


def validate_dns_config(config: ClusterConfig, dns_api: DNSAPI) -> None:
    """Confirm the hosted zone exists and ``externalDNSName`` is unclaimed.

    The conflict check runs whether or not ``createRecordSet`` is set. A
    blank ``hostedZone`` leaves nothing to check.

    Raises
    ------
    HostedZoneNotFoundError
        If the configured zone does not exist.
    DNSRecordConflictError
        If a record named ``externalDNSName`` already exists in the zone.
    """
    if not config.hosted_zone:
        logger.debug("No hostedZone configured; skipping DNS validation")
        return

    logger.info("Validating hosted zone %s", config.hosted_zone)
    zone = find_hosted_zone(dns_api, config.hosted_zone)
    if zone.has_record(config.external_dns_name):
        msg = (
            f"RecordSet for {with_trailing_dot(config.external_dns_name)!r} "
            f"already exists in hosted zone {zone.name!r}"
        )
        raise DNSRecordConflictError(msg)


__all__ = [
    "HostedZoneRecord",
    "canonical_dns_name",
    "find_hosted_zone",
    "validate_dns_config",
]
