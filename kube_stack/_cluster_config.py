"""Cluster configuration model and YAML loading.

The cluster is described by a YAML document (conventionally
``cluster.yaml``) using camelCase keys. Values are layered on top of
defaults, type-checked, and statically validated before any AWS call is
made; live-state checks live in the validator modules.

Examples
--------
>>> config = cluster_config_from_yaml('''
... externalDNSName: test.staging.core-os.net
... keyName: test-key-name
... region: us-west-1
... availabilityZone: us-west-1c
... clusterName: test-cluster-name
... kmsKeyArn: "arn:aws:kms:us-west-1:xxxxxxxxx:key/xxxxxxxxxxxxxxxxxxx"
... ''')
>>> config.vpc_cidr
'10.0.0.0/16'
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from kube_stack._cidr import contains, contains_address, overlaps, parse_cidr, parse_ip
from kube_stack._preflight_errors import ClusterConfigError

logger = logging.getLogger(__name__)

DEFAULT_RECORD_SET_TTL = 300


def with_trailing_dot(value: str) -> str:
    """Return *value* as a fully-qualified name ending in a dot.

    Examples
    --------
    >>> with_trailing_dot("staging.core-os.net")
    'staging.core-os.net.'
    >>> with_trailing_dot("staging.core-os.net.")
    'staging.core-os.net.'
    >>> with_trailing_dot("")
    ''
    """
    if not value or value.endswith("."):
        return value
    return f"{value}."


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    """Declared intent for a cluster deployment.

    Attributes
    ----------
    region
        AWS region the stack is created in.
    availability_zone
        Availability zone for the cluster subnet.
    cluster_name
        Name of the cluster; also used as the CloudFormation stack name.
    key_name
        EC2 key pair installed on every instance.
    external_dns_name
        DNS name the Kubernetes API is published under.
    kms_key_arn
        KMS key used to encrypt instance secrets.
    vpc_cidr
        CIDR block of the VPC. Must mirror the live VPC when ``vpc_id`` is
        set.
    vpc_id
        Existing VPC to reuse. Empty means a new VPC is created.
    instance_cidr
        CIDR block of the subnet that cluster instances occupy.
    controller_ip
        Private address of the controller, inside ``instance_cidr``.
    route_table_id
        Existing route table to attach; requires ``vpc_id``.
    pod_cidr
        Kubernetes pod network.
    service_cidr
        Kubernetes service network.
    dns_service_ip
        Cluster DNS service address, inside ``service_cidr``.
    create_record_set
        Whether provisioning creates a Route 53 record for
        ``external_dns_name``.
    record_set_ttl
        TTL of that record in seconds.
    hosted_zone
        Route 53 hosted zone the record is created in.
    stack_tags
        Tags attached to the CloudFormation stack, as ``(key, value)`` pairs
        in declaration order.
    """

    region: str
    availability_zone: str
    cluster_name: str
    key_name: str
    external_dns_name: str
    kms_key_arn: str
    vpc_cidr: str = "10.0.0.0/16"
    vpc_id: str = ""
    instance_cidr: str = "10.0.0.0/24"
    controller_ip: str = "10.0.0.50"
    route_table_id: str = ""
    pod_cidr: str = "10.2.0.0/16"
    service_cidr: str = "10.3.0.0/24"
    dns_service_ip: str = "10.3.0.10"
    create_record_set: bool = False
    record_set_ttl: int = DEFAULT_RECORD_SET_TTL
    hosted_zone: str = ""
    stack_tags: tuple[tuple[str, str], ...] = ()

    @property
    def reuses_existing_vpc(self) -> bool:
        """Return whether the cluster is placed into an existing VPC."""
        return bool(self.vpc_id)

    def validate(self) -> None:
        """Check the configuration without contacting AWS.

        Raises
        ------
        ClusterConfigError
            On the first inconsistency found.
        InvalidNetworkFormatError
            If a CIDR block or address is malformed.
        """
        self._validate_required()
        self._validate_dns()
        self._validate_network()

    def _validate_required(self) -> None:
        required = {
            "externalDNSName": self.external_dns_name,
            "keyName": self.key_name,
            "region": self.region,
            "availabilityZone": self.availability_zone,
            "clusterName": self.cluster_name,
            "kmsKeyArn": self.kms_key_arn,
        }
        for key, value in required.items():
            if not value:
                msg = f"{key} must be set"
                raise ClusterConfigError(msg)

    def _validate_dns(self) -> None:
        if self.create_record_set:
            if not self.hosted_zone:
                msg = "hostedZone cannot be blank when createRecordSet is true"
                raise ClusterConfigError(msg)
            if self.record_set_ttl < 1:
                msg = "recordSetTTL must be at least 1 second"
                raise ClusterConfigError(msg)
        elif self.record_set_ttl != DEFAULT_RECORD_SET_TTL:
            msg = "recordSetTTL should not be modified when createRecordSet is false"
            raise ClusterConfigError(msg)

    def _validate_network(self) -> None:
        if self.route_table_id and not self.vpc_id:
            msg = "vpcId must be specified if routeTableId is specified"
            raise ClusterConfigError(msg)

        vpc_net = parse_cidr(self.vpc_cidr)
        instance_net = parse_cidr(self.instance_cidr)
        if not contains(vpc_net, instance_net):
            msg = f"vpcCIDR ({vpc_net}) does not contain instanceCIDR ({instance_net})"
            raise ClusterConfigError(msg)

        controller_ip = parse_ip(self.controller_ip)
        if not contains_address(instance_net, controller_ip):
            msg = (
                f"instanceCIDR ({instance_net}) does not contain "
                f"controllerIP ({controller_ip})"
            )
            raise ClusterConfigError(msg)

        pod_net = parse_cidr(self.pod_cidr)
        service_net = parse_cidr(self.service_cidr)
        for (name_a, net_a), (name_b, net_b) in (
            (("vpcCIDR", vpc_net), ("podCIDR", pod_net)),
            (("vpcCIDR", vpc_net), ("serviceCIDR", service_net)),
            (("podCIDR", pod_net), ("serviceCIDR", service_net)),
        ):
            if overlaps(net_a, net_b):
                msg = f"{name_a} ({net_a}) overlaps with {name_b} ({net_b})"
                raise ClusterConfigError(msg)

        if not contains_address(service_net, self.dns_service_ip):
            msg = (
                f"serviceCIDR ({service_net}) does not contain "
                f"dnsServiceIP ({self.dns_service_ip})"
            )
            raise ClusterConfigError(msg)


_STRING_FIELDS: dict[str, str] = {
    "region": "region",
    "availabilityZone": "availability_zone",
    "clusterName": "cluster_name",
    "keyName": "key_name",
    "externalDNSName": "external_dns_name",
    "kmsKeyArn": "kms_key_arn",
    "vpcCIDR": "vpc_cidr",
    "vpcId": "vpc_id",
    "instanceCIDR": "instance_cidr",
    "controllerIP": "controller_ip",
    "routeTableId": "route_table_id",
    "podCIDR": "pod_cidr",
    "serviceCIDR": "service_cidr",
    "dnsServiceIP": "dns_service_ip",
    "hostedZone": "hosted_zone",
}


def _string_value(key: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, bool)):
        msg = f"{key} must be a string"
        raise ClusterConfigError(msg)
    return str(value)


def _bool_value(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        msg = f"{key} must be true or false"
        raise ClusterConfigError(msg)
    return value


def _int_value(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{key} must be an integer"
        raise ClusterConfigError(msg)
    return value


def _stack_tags_value(value: Any) -> tuple[tuple[str, str], ...]:
    """Coerce the ``stackTags`` mapping to key/value pairs; null means no tags.

    Examples
    --------
    >>> _stack_tags_value({"Owner": "ops", "Cost": 42})
    (('Owner', 'ops'), ('Cost', '42'))
    >>> _stack_tags_value(None)
    ()
    """
    if value is None:
        return ()
    if not isinstance(value, Mapping):
        msg = "stackTags must be a mapping of tag keys to values"
        raise ClusterConfigError(msg)
    return tuple((str(key), "" if tag is None else str(tag)) for key, tag in value.items())


def cluster_config_from_mapping(
    data: Mapping[str, Any],
    *,
    validate: bool = True,
) -> ClusterConfig:
    """Build a :class:`ClusterConfig` from parsed YAML data.

    Parameters
    ----------
    data : Mapping[str, Any]
        CamelCase keys as found in ``cluster.yaml``.
    validate : bool, optional
        Run :meth:`ClusterConfig.validate` on the result (default: True).

    Returns
    -------
    ClusterConfig
        The populated configuration.

    Raises
    ------
    ClusterConfigError
        If a key is unknown, a value has the wrong type, or validation
        fails.
    """
    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key in _STRING_FIELDS:
            values[_STRING_FIELDS[key]] = _string_value(key, raw)
        elif key == "createRecordSet":
            values["create_record_set"] = _bool_value(key, raw)
        elif key == "recordSetTTL":
            values["record_set_ttl"] = _int_value(key, raw)
        elif key == "stackTags":
            values["stack_tags"] = _stack_tags_value(raw)
        else:
            msg = f"unknown cluster configuration key: {key!r}"
            raise ClusterConfigError(msg)

    for required in (
        "region",
        "availability_zone",
        "cluster_name",
        "key_name",
        "external_dns_name",
        "kms_key_arn",
    ):
        values.setdefault(required, "")

    config = ClusterConfig(**values)
    if validate:
        config.validate()
    return config


def cluster_config_from_yaml(text: str, *, validate: bool = True) -> ClusterConfig:
    """Parse ``cluster.yaml`` content into a :class:`ClusterConfig`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"invalid cluster configuration YAML: {exc}"
        raise ClusterConfigError(msg) from exc
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        msg = "cluster configuration must be a YAML mapping"
        raise ClusterConfigError(msg)
    return cluster_config_from_mapping(data, validate=validate)


def load_cluster_config(path: Path) -> ClusterConfig:
    """Read and validate the cluster configuration stored at *path*.

    Examples
    --------
    >>> load_cluster_config(Path("cluster.yaml")).cluster_name
    'test-cluster-name'
    """
    logger.debug("Loading cluster configuration from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read cluster configuration {path}: {exc}"
        raise ClusterConfigError(msg) from exc
    return cluster_config_from_yaml(text)


__all__ = [
    "DEFAULT_RECORD_SET_TTL",
    "ClusterConfig",
    "cluster_config_from_mapping",
    "cluster_config_from_yaml",
    "load_cluster_config",
    "with_trailing_dot",
]
