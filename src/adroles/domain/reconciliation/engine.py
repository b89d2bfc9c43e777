"""Reconciliation of a directory snapshot with the stored mirror.

Records are processed one by one in snapshot order and each record is committed
on its own. A failing directory read or store write stops the run, but whatever
was committed before stays; running again converges to the same end state.

Records whose distinguished name was not part of a *complete* enumeration are
flagged stale. An aborted enumeration never marks anything stale. Entries the
directory returned but that could not be read still count as enumerated.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from adroles.domain.errors import ConnectivityError, DataQualityError, StoreWriteError
from adroles.domain.model import ADGroup, ADUser, Person, Role, unit_name_key
from adroles.domain.ports.directory import SkippedRecord
from adroles.domain.ports.unit_of_work import IdentityUnitOfWork
from adroles.domain.reconciliation.policy import AdminGroupPolicy
from adroles.domain.results import ServiceResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from adroles.domain.model import MirroredEntity
    from adroles.domain.ports.directory import AccountRecord, DirectorySnapshot, GroupRecord
    from adroles.domain.ports.unit_of_work import IdentityRepositories

UnitOfWorkFactory = Callable[[], IdentityUnitOfWork]

log = getLogger(__name__)


class RecordOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class RoleOutcome(StrEnum):
    CREATED = "created"
    LINKED = "linked"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class SyncCounters:
    """Committed work of one reconciliation run."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0
    stale: int = 0
    linked: int = 0
    skipped: int = 0
    roles_created: int = 0
    roles_linked: int = 0
    roles_updated: int = 0
    warnings: list[str] = field(default_factory=list[str])

    def record(self, outcome: RecordOutcome) -> None:
        match outcome:
            case RecordOutcome.CREATED:
                self.created += 1
            case RecordOutcome.UPDATED:
                self.updated += 1
            case RecordOutcome.UNCHANGED:
                self.unchanged += 1

    def record_role(self, outcome: RoleOutcome) -> None:
        match outcome:
            case RoleOutcome.CREATED:
                self.roles_created += 1
            case RoleOutcome.LINKED:
                self.roles_linked += 1
            case RoleOutcome.UPDATED:
                self.roles_updated += 1
            case RoleOutcome.UNCHANGED:
                pass

    def skip(self, reason: str) -> None:
        self.skipped += 1
        self.warnings.append(reason)

    def as_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "stale": self.stale,
            "linked": self.linked,
            "skipped": self.skipped,
            "roles_created": self.roles_created,
            "roles_linked": self.roles_linked,
            "roles_updated": self.roles_updated,
        }

    def failed(self, message: str) -> ServiceResult:
        return ServiceResult.failed(message, counts=self.as_dict(), warnings=tuple(self.warnings))

    def ok(self, message: str) -> ServiceResult:
        return ServiceResult.ok(message, counts=self.as_dict(), warnings=tuple(self.warnings))


@dataclass(slots=True)
class ReconciliationEngine:
    """Mirror directory accounts and groups into the store."""

    unit_of_work_factory: UnitOfWorkFactory
    admin_policy: AdminGroupPolicy = field(default_factory=AdminGroupPolicy)

    # Accounts ----------------------------------------------------------------

    def synchronize_accounts(self, snapshot: DirectorySnapshot) -> ServiceResult:
        """Create/update ADUsers from ``snapshot`` and correlate them with persons."""

        counters = SyncCounters()
        seen: set[str] = set()
        log.info("Starting account synchronisation")
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                for record in snapshot.accounts():
                    seen.add(record.distinguished_name)
                    if isinstance(record, SkippedRecord):
                        counters.skip(f"Account {record.distinguished_name}: {record.reason}")
                        continue
                    outcome, linked = self._reconcile_account(record, repositories, counters)
                    uow.commit()
                    counters.record(outcome)
                    counters.linked += int(linked)
                counters.stale = _mark_missing_stale(repositories.ad_users.list_all(), seen)
                uow.commit()
        except ConnectivityError as exc:
            log.warning("Account synchronisation aborted, directory read failed: %s", exc)
            return counters.failed(f"Account synchronisation aborted, directory read failed: {exc}")
        except StoreWriteError as exc:
            log.error("Account synchronisation aborted, store write failed: %s", exc)  # noqa: TRY400
            return counters.failed(f"Account synchronisation aborted, store write failed: {exc}")

        log.info(
            "Finished account synchronisation: created=%s, updated=%s, unchanged=%s, "
            "stale=%s, linked=%s, skipped=%s",
            counters.created,
            counters.updated,
            counters.unchanged,
            counters.stale,
            counters.linked,
            counters.skipped,
        )
        return counters.ok(
            f"Accounts synchronised: {counters.created} created, {counters.updated} updated, "
            f"{counters.unchanged} unchanged, {counters.stale} stale, "
            f"{counters.linked} linked to persons, {counters.skipped} skipped"
        )

    def _reconcile_account(
        self,
        record: AccountRecord,
        repositories: IdentityRepositories,
        counters: SyncCounters,
    ) -> tuple[RecordOutcome, bool]:
        user = repositories.ad_users.find_by_distinguished_name(record.distinguished_name)
        if user is None:
            user = ADUser.from_directory(
                distinguished_name=record.distinguished_name,
                logon_name=record.logon_name,
                account_control=record.account_control,
            )
            repositories.ad_users.add(user)
            outcome = RecordOutcome.CREATED
            log.debug("Created AD user %s", record.distinguished_name)
        else:
            changed = user.apply_directory_state(
                logon_name=record.logon_name,
                account_control=record.account_control,
            )
            changed = user.mark_seen() or changed
            outcome = RecordOutcome.UPDATED if changed else RecordOutcome.UNCHANGED
            log.debug("AD user %s %s", record.distinguished_name, outcome)

        try:
            linked = _correlate_person(user, repositories)
        except DataQualityError as exc:
            log.warning("AD user %s left unlinked: %s", record.distinguished_name, exc)
            counters.warnings.append(f"Account {record.distinguished_name} left unlinked: {exc}")
            linked = False
        return outcome, linked

    # Persons -----------------------------------------------------------------

    def synchronize_persons(self, snapshot: DirectorySnapshot) -> ServiceResult:
        """Create/update Persons from directory accounts, keyed by logon name.

        Existing persons only take over non-blank directory values, and the
        mirrored account of the same distinguished name is linked when it is
        not linked yet. Persons are never deleted or flagged.
        """

        counters = SyncCounters()
        log.info("Starting person import")
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                for record in snapshot.accounts():
                    if isinstance(record, SkippedRecord):
                        counters.skip(f"Account {record.distinguished_name}: {record.reason}")
                        continue
                    try:
                        outcome, linked = _import_person(record, repositories)
                    except DataQualityError as exc:
                        log.warning("Person for %s not imported: %s", record.logon_name, exc)
                        counters.skip(f"Person {record.logon_name} not imported: {exc}")
                        continue
                    uow.commit()
                    counters.record(outcome)
                    counters.linked += int(linked)
        except ConnectivityError as exc:
            log.warning("Person import aborted, directory read failed: %s", exc)
            return counters.failed(f"Person import aborted, directory read failed: {exc}")
        except StoreWriteError as exc:
            log.error("Person import aborted, store write failed: %s", exc)  # noqa: TRY400
            return counters.failed(f"Person import aborted, store write failed: {exc}")

        log.info(
            "Finished person import: created=%s, updated=%s, unchanged=%s, linked=%s, skipped=%s",
            counters.created,
            counters.updated,
            counters.unchanged,
            counters.linked,
            counters.skipped,
        )
        return counters.ok(
            f"Persons imported: {counters.created} created, {counters.updated} updated, "
            f"{counters.unchanged} unchanged, {counters.linked} linked to accounts, "
            f"{counters.skipped} skipped"
        )

    # Groups ------------------------------------------------------------------

    def synchronize_groups_as_roles(self, snapshot: DirectorySnapshot) -> ServiceResult:
        """Create/update ADGroups from ``snapshot`` and make sure each one backs a role."""

        counters = SyncCounters()
        seen: set[str] = set()
        log.info("Starting group synchronisation")
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                for record in snapshot.groups():
                    seen.add(record.distinguished_name)
                    if isinstance(record, SkippedRecord):
                        counters.skip(f"Group {record.distinguished_name}: {record.reason}")
                        continue
                    outcome, group = self._reconcile_group(record, repositories)
                    role_outcome = _ensure_backing_role(group, repositories)
                    uow.commit()
                    counters.record(outcome)
                    counters.record_role(role_outcome)
                counters.stale = _mark_missing_stale(repositories.ad_groups.list_all(), seen)
                uow.commit()
        except ConnectivityError as exc:
            log.warning("Group synchronisation aborted, directory read failed: %s", exc)
            return counters.failed(f"Group synchronisation aborted, directory read failed: {exc}")
        except StoreWriteError as exc:
            log.error("Group synchronisation aborted, store write failed: %s", exc)  # noqa: TRY400
            return counters.failed(f"Group synchronisation aborted, store write failed: {exc}")

        log.info(
            "Finished group synchronisation: created=%s, updated=%s, unchanged=%s, stale=%s, "
            "skipped=%s, roles_created=%s, roles_linked=%s",
            counters.created,
            counters.updated,
            counters.unchanged,
            counters.stale,
            counters.skipped,
            counters.roles_created,
            counters.roles_linked,
        )
        return counters.ok(
            f"Groups synchronised: {counters.created} created, {counters.updated} updated, "
            f"{counters.unchanged} unchanged, {counters.stale} stale, "
            f"{counters.skipped} skipped; "
            f"roles: {counters.roles_created} created, {counters.roles_linked} linked, "
            f"{counters.roles_updated} updated"
        )

    def _reconcile_group(
        self,
        record: GroupRecord,
        repositories: IdentityRepositories,
    ) -> tuple[RecordOutcome, ADGroup]:
        admin_group = self.admin_policy.is_administrative(record)
        group = repositories.ad_groups.find_by_distinguished_name(record.distinguished_name)
        if group is None:
            group = ADGroup(
                distinguished_name=record.distinguished_name,
                common_name=record.common_name,
                description=record.description,
                member_dns=tuple(record.member_dns),
                admin_group=admin_group,
            )
            repositories.ad_groups.add(group)
            log.debug("Created AD group %s", record.distinguished_name)
            return RecordOutcome.CREATED, group

        changed = group.apply_directory_state(
            common_name=record.common_name,
            description=record.description,
            member_dns=record.member_dns,
            admin_group=admin_group,
        )
        changed = group.mark_seen() or changed
        outcome = RecordOutcome.UPDATED if changed else RecordOutcome.UNCHANGED
        log.debug("AD group %s %s", record.distinguished_name, outcome)
        return outcome, group


def _correlate_person(user: ADUser, repositories: IdentityRepositories) -> bool:
    """Link ``user`` to the person holding its logon name, unless it is already linked."""

    if user.is_linked:
        return False
    person = repositories.persons.find_by_central_account_name(user.logon_name)
    if person is None:
        return False
    linked = person.link_ad_user(user)
    if linked:
        log.debug("Linked AD user %s to person %s", user.distinguished_name, person.id)
    return linked


def _import_person(
    record: AccountRecord,
    repositories: IdentityRepositories,
) -> tuple[RecordOutcome, bool]:
    person = repositories.persons.find_by_central_account_name(record.logon_name)
    if person is None:
        person = Person(central_account_name=record.logon_name.strip())
        person.apply_directory_attributes(
            first_name=record.first_name,
            last_name=record.last_name,
            department=record.department,
        )
        repositories.persons.add(person)
        outcome = RecordOutcome.CREATED
        log.debug("Created person for account %s", record.logon_name)
    else:
        changed = person.apply_directory_attributes(
            first_name=record.first_name,
            last_name=record.last_name,
            department=record.department,
        )
        outcome = RecordOutcome.UPDATED if changed else RecordOutcome.UNCHANGED
        log.debug("Person %s %s", person.id, outcome)

    user = repositories.ad_users.find_by_distinguished_name(record.distinguished_name)
    if user is None or user.is_linked:
        return outcome, False
    return outcome, person.link_ad_user(user)


def _ensure_backing_role(group: ADGroup, repositories: IdentityRepositories) -> RoleOutcome:
    if group.roles:
        # Only the description follows the group; admin flag and resource belong to people.
        outcome = RoleOutcome.UNCHANGED
        for role in group.roles:
            if group.description is not None and role.description != group.description:
                role.description = group.description
                outcome = RoleOutcome.UPDATED
        return outcome

    name_key = unit_name_key(group.common_name)
    candidates = [
        role
        for role in repositories.roles.find_by_name(group.common_name)
        if not role.is_group_linked and role.name_key == name_key
    ]
    if candidates:
        role = candidates[0]
        role.link_ad_group(group)
        _seed_memberships(role, group, repositories)
        log.debug("Linked existing role %r to group %s", role.name, group.distinguished_name)
        return RoleOutcome.LINKED

    role = Role.from_group(group)
    repositories.roles.add(role)
    _seed_memberships(role, group, repositories)
    log.debug("Created role %r from group %s", role.name, group.distinguished_name)
    return RoleOutcome.CREATED


def _seed_memberships(role: Role, group: ADGroup, repositories: IdentityRepositories) -> None:
    """Copy the group's account members (and their persons) onto a newly backed role."""

    for member_dn in group.member_dns:
        user = repositories.ad_users.find_by_distinguished_name(member_dn)
        if user is None:
            continue
        role.assign_ad_user(user)
        for person in user.persons:
            role.assign_person(person)


def _mark_missing_stale(entities: Iterable[MirroredEntity], seen: set[str]) -> int:
    marked = 0
    for entity in entities:
        if entity.distinguished_name in seen:
            continue
        if entity.mark_stale():
            marked += 1
            log.info("Marked %s as stale", entity.distinguished_name)
    return marked
