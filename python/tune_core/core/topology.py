"""Role inventory to per-service class membership."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from tune_core.core.errors import InvalidInventory, UnsupportedTopology

MASTER = "master"
CONSOLE = "console"
PUPPETDB = "puppetdb"
DATABASE = "database"
BROKER = "amq::broker"
ORCHESTRATOR = "orchestrator"
PRIMARY_MASTER = "primary_master"
PRIMARY_MASTER_REPLICA = "primary_master_replica"
COMPILE_MASTER = "compile_master"

SERVICES: tuple[str, ...] = (
    MASTER,
    CONSOLE,
    PUPPETDB,
    DATABASE,
    BROKER,
    ORCHESTRATOR,
    PRIMARY_MASTER,
    PRIMARY_MASTER_REPLICA,
    COMPILE_MASTER,
)

PRIMARY_MASTER_ROLE = "puppet_master_host"
CONSOLE_ROLE = "console_host"
PUPPETDB_ROLE = "puppetdb_host"
DATABASE_ROLE = "database_host"
REPLICA_ROLE = "primary_master_replica"
COMPILE_MASTER_ROLE = "compile_master"

ROLES: tuple[str, ...] = (
    PRIMARY_MASTER_ROLE,
    CONSOLE_ROLE,
    PUPPETDB_ROLE,
    DATABASE_ROLE,
    REPLICA_ROLE,
    COMPILE_MASTER_ROLE,
)


@dataclass(frozen=True)
class InfrastructureShape:
    is_monolithic: bool = True
    has_compile_masters: bool = False
    has_replica: bool = False
    has_external_database: bool = False
    jruby9k_enabled: bool = False


@dataclass(frozen=True)
class ServiceClassMembership:
    classes: Mapping[str, frozenset[str]]

    def hosts_with(self, service: str) -> frozenset[str]:
        return self.classes.get(service, frozenset())

    def node_with_class(self, host: str, service: str) -> bool:
        return host in self.hosts_with(service)

    def classes_for(self, host: str) -> frozenset[str]:
        """Services a host runs. A replica runs whatever the primary master runs."""
        own = self._own_classes(host)
        if PRIMARY_MASTER_REPLICA in own:
            for primary in sorted(self.hosts_with(PRIMARY_MASTER))[:1]:
                own |= self._own_classes(primary) - {PRIMARY_MASTER}
        return frozenset(own)

    def _own_classes(self, host: str) -> set[str]:
        return {service for service, hosts in self.classes.items() if host in hosts}

    def all_hosts(self) -> list[str]:
        hosts: set[str] = set()
        for members in self.classes.values():
            hosts |= members
        return sorted(hosts)

    def to_document(self) -> dict[str, list[str]]:
        return {service: sorted(self.hosts_with(service)) for service in SERVICES}


def _hosts(roles: Mapping[str, Any], role: str) -> list[str]:
    value = roles.get(role)
    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            raise InvalidInventory(f"role {role} has an empty host name")
        return [value]
    if isinstance(value, (list, tuple)):
        if not value:
            raise InvalidInventory(f"role {role} is an empty list")
        for host in value:
            if not isinstance(host, str) or not host.strip():
                raise InvalidInventory(f"role {role} has an invalid host name: {host!r}")
        return list(value)
    raise InvalidInventory(f"role {role} must be a host name or a list of host names")


def validate_roles(roles: Mapping[str, Any]) -> None:
    unknown = sorted(set(roles) - set(ROLES))
    if unknown:
        raise InvalidInventory(f"unknown roles: {', '.join(unknown)}")
    for role in ROLES:
        _hosts(roles, role)


def unknown_infrastructure(roles: Mapping[str, Any]) -> bool:
    return not (_hosts(roles, PRIMARY_MASTER_ROLE) or _hosts(roles, CONSOLE_ROLE) or _hosts(roles, PUPPETDB_ROLE))


def resolve_topology(roles: Mapping[str, Any]) -> ServiceClassMembership:
    validate_roles(roles)
    if unknown_infrastructure(roles):
        raise UnsupportedTopology("unknown infrastructure: no primary master, console, or puppetdb host")

    classes: dict[str, set[str]] = {service: set() for service in SERVICES}
    primary = _hosts(roles, PRIMARY_MASTER_ROLE)
    console = _hosts(roles, CONSOLE_ROLE)
    puppetdb = _hosts(roles, PUPPETDB_ROLE)
    database = _hosts(roles, DATABASE_ROLE)

    classes[MASTER].update(primary)
    classes[PRIMARY_MASTER].update(primary)
    classes[BROKER].update(primary)
    classes[ORCHESTRATOR].update(primary)
    classes[CONSOLE].update(console or primary)
    classes[PUPPETDB].update(puppetdb or primary)
    if database:
        classes[DATABASE].update(database)
    elif puppetdb:
        # The database lives with exactly one puppetdb instance unless placed explicitly.
        classes[DATABASE].add(puppetdb[0])
    else:
        classes[DATABASE].update(primary)

    compile_masters = _hosts(roles, COMPILE_MASTER_ROLE)
    classes[MASTER].update(compile_masters)
    classes[COMPILE_MASTER].update(compile_masters)
    classes[PRIMARY_MASTER_REPLICA].update(_hosts(roles, REPLICA_ROLE))

    return ServiceClassMembership({service: frozenset(hosts) for service, hosts in classes.items()})


def is_monolithic(roles: Mapping[str, Any]) -> bool:
    return not _hosts(roles, CONSOLE_ROLE) and not _hosts(roles, PUPPETDB_ROLE)


def with_compile_masters(roles: Mapping[str, Any]) -> bool:
    return bool(_hosts(roles, COMPILE_MASTER_ROLE))


def with_ha(roles: Mapping[str, Any]) -> bool:
    return bool(_hosts(roles, REPLICA_ROLE))


def with_external_database(roles: Mapping[str, Any]) -> bool:
    database = set(_hosts(roles, DATABASE_ROLE))
    if not database:
        return False
    colocated = set(_hosts(roles, PRIMARY_MASTER_ROLE)) | set(_hosts(roles, PUPPETDB_ROLE))
    return database.isdisjoint(colocated)


def infrastructure_shape(roles: Mapping[str, Any], jruby9k_enabled: bool = False) -> InfrastructureShape:
    return InfrastructureShape(
        is_monolithic=is_monolithic(roles),
        has_compile_masters=with_compile_masters(roles),
        has_replica=with_ha(roles),
        has_external_database=with_external_database(roles),
        jruby9k_enabled=jruby9k_enabled,
    )
