from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from adroles.domain.errors import DataQualityError
from adroles.domain.model import ADGroup, ADUser, Person, Role, RoleResource

if TYPE_CHECKING:
    from collections.abc import Callable

    from adroles.adapters.sqlalchemy.unit_of_work import SqlAlchemyIdentityUnitOfWork

    UowFactory = Callable[[], SqlAlchemyIdentityUnitOfWork]


def test_person_lookups(sqlite_unit_of_work: UowFactory) -> None:
    ada = Person(first_name="Ada", central_account_name=" ADA ", department="Sales")
    bob = Person(first_name="Bob", central_account_name="bob", department="sales")
    with sqlite_unit_of_work() as uow:
        uow.repositories.persons.add(ada)
        uow.repositories.persons.add(bob)
        uow.repositories.persons.add(Person(first_name="Eve", department=None))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        persons = uow.repositories.persons
        found = persons.find_by_central_account_name("ada")
        assert found is not None
        assert found.id == ada.id
        assert persons.find_by_central_account_name("  ") is None
        assert {person.id for person in persons.find_by_department_name("SALES")} == {
            ada.id,
            bob.id,
        }
        assert persons.find_by_department_name("") == []


def test_shared_central_account_name_is_reported(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.persons.add(Person(first_name="Ada", central_account_name=" ada"))
        uow.repositories.persons.add(Person(first_name="Ada", central_account_name="ADA"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        with pytest.raises(DataQualityError, match="ada"):
            uow.repositories.persons.find_by_central_account_name("ada")


def test_role_lookups(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.roles.add(Role(name="Sales", role_resource=RoleResource.ORGANIZATIONAL))
        uow.repositories.roles.add(Role(name="Projects", role_resource=RoleResource.PROJECT))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        roles = uow.repositories.roles
        assert [role.name for role in roles.find_by_name("sales")] == ["Sales"]
        organizational = roles.find_by_resource(RoleResource.ORGANIZATIONAL)
        assert [role.name for role in organizational] == ["Sales"]
        assert roles.count_by(role_resource=RoleResource.PROJECT) == 1


def test_group_members_round_trip(sqlite_unit_of_work: UowFactory) -> None:
    members = ("CN=b,DC=example,DC=test", "CN=a,DC=example,DC=test")
    dn = "CN=Sales,OU=Groups,DC=example,DC=test"
    with sqlite_unit_of_work() as uow:
        uow.repositories.ad_groups.add(
            ADGroup(distinguished_name=dn, common_name="Sales", member_dns=members)
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.ad_groups.find_by_distinguished_name(dn)
        assert stored is not None
        assert stored.member_dns == members
        assert uow.repositories.ad_groups.find_by_distinguished_name(dn.lower()) is None


def test_search_and_count(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ad_users.add(
            ADUser(distinguished_name="CN=ada,DC=example,DC=test", logon_name="ada")
        )
        uow.repositories.ad_users.add(
            ADUser(distinguished_name="CN=bob,DC=example,DC=test", logon_name="bob", stale=True)
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        users = uow.repositories.ad_users
        assert [user.logon_name for user in users.search("ADA")] == ["ada"]
        assert len(users.search("example")) == 2
        assert len(users.search("")) == 2
        assert users.count_by(stale=True) == 1
        with pytest.raises(ValueError, match="Unknown attribute"):
            users.count_by(colour="blue")


def test_search_escapes_wildcards(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.roles.add(Role(name="100% remote"))
        uow.repositories.roles.add(Role(name="1000 remote"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        assert [role.name for role in uow.repositories.roles.search("0%")] == ["100% remote"]


def test_remove_detached_role_clears_associations(sqlite_unit_of_work: UowFactory) -> None:
    person = Person(first_name="Ada")
    group = ADGroup(distinguished_name="CN=Sales", common_name="Sales")
    role = Role.from_group(group)
    role.assign_person(person)
    with sqlite_unit_of_work() as uow:
        uow.repositories.persons.add(person)
        uow.repositories.roles.add(role)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.roles.get(role.id)
        assert stored is not None
        stored.detach()
        uow.repositories.roles.remove(stored)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        stored_person = uow.repositories.persons.get(person.id)
        stored_group = uow.repositories.ad_groups.find_by_distinguished_name("CN=Sales")
        assert stored_person is not None
        assert stored_group is not None
        assert stored_person.roles == frozenset()
        assert stored_group.roles == frozenset()
        assert uow.repositories.roles.count_by() == 0
