from __future__ import annotations

import uuid

from adroles.domain import administration
from adroles.domain.model import ADGroup, ADUser, Person, Role, RoleResource
from tests.helpers.identity import FakeDirectoryClient, FakeStore, make_repositories


def _user(logon_name: str, *, password_expires: bool = True, stale: bool = False) -> ADUser:
    return ADUser(
        distinguished_name=f"CN={logon_name},DC=example,DC=test",
        logon_name=logon_name,
        password_expires=password_expires,
        stale=stale,
    )


def test_collect_statistics_counts_records() -> None:
    store = FakeStore(
        make_repositories(
            persons=[Person(), Person()],
            roles=[Role(name="Sales", role_resource=RoleResource.ORGANIZATIONAL), Role(name="X")],
            ad_users=[_user("ada", password_expires=False), _user("bob", stale=True)],
            ad_groups=[
                ADGroup(distinguished_name="CN=a", common_name="a", admin_group=True),
                ADGroup(distinguished_name="CN=b", common_name="b"),
            ],
        )
    )

    stats = administration.collect_statistics(store)

    assert stats.persons == 2
    assert stats.roles == 2
    assert stats.organizational_roles == 1
    assert stats.ad_users == 2
    assert stats.ad_groups == 2
    assert stats.admin_groups == 1
    assert stats.password_never_expires == 1
    assert stats.stale_ad_users == 1
    assert stats.as_dict()["stale_ad_groups"] == 0


def test_search_matches_substrings_case_insensitively() -> None:
    ada = Person(first_name="Ada", last_name="Lovelace", department="Research")
    store = FakeStore(make_repositories(persons=[ada, Person(last_name="Babbage")]))

    assert administration.search(store, "persons", "LOVE") == [ada]
    assert administration.search(store, "roles", "x") == []


def test_change_role_resource_reclassifies_selection() -> None:
    sales, it = Role(name="Sales"), Role(name="IT")
    store = FakeStore(make_repositories(roles=[sales, it]))

    result = administration.change_role_resource(
        store, [sales.id, uuid.uuid4()], RoleResource.ORGANIZATIONAL
    )

    assert result.success is True
    assert result.count("changed") == 1
    assert result.count("missing") == 1
    assert sales.role_resource is RoleResource.ORGANIZATIONAL
    assert it.role_resource is RoleResource.STANDARD


def test_delete_persons_detaches_associations() -> None:
    person = Person(central_account_name="ada")
    role = Role(name="Sales")
    user = _user("ada")
    role.assign_person(person)
    person.link_ad_user(user)
    store = FakeStore(make_repositories(persons=[person], roles=[role], ad_users=[user]))

    result = administration.delete_persons(store, [person.id])

    assert result.count("deleted") == 1
    assert store.repositories.persons.count_by() == 0
    assert role.persons == frozenset()
    assert user.persons == frozenset()


def test_delete_roles_detaches_groups_and_members() -> None:
    group = ADGroup(distinguished_name="CN=Sales", common_name="Sales")
    role = Role.from_group(group)
    person = Person()
    role.assign_person(person)
    store = FakeStore(make_repositories(persons=[person], roles=[role], ad_groups=[group]))

    result = administration.delete_roles(store, [role.id])

    assert result.count("deleted") == 1
    assert group.roles == frozenset()
    assert person.roles == frozenset()
    assert store.repositories.ad_groups.count_by() == 1


def test_set_employee_status() -> None:
    person = Person()
    store = FakeStore(make_repositories(persons=[person]))

    result = administration.set_employee_status(store, [person.id], employee=False)

    assert result.count("changed") == 1
    assert person.employee is False


def test_assign_role_from_department() -> None:
    sales = Role(name="Sales")
    members = [Person(department="sales"), Person(department="Sales")]
    store = FakeStore(make_repositories(persons=[*members, Person(department="IT")], roles=[sales]))

    result = administration.assign_role_from_department(store, sales.id)

    assert result.success is True
    assert result.count("added") == 2
    assert sales.persons == frozenset(members)


def test_assign_role_from_department_unknown_role() -> None:
    result = administration.assign_role_from_department(FakeStore(), uuid.uuid4())

    assert result.success is False


def test_verify_connection() -> None:
    assert administration.verify_connection(FakeDirectoryClient()).success is True
    failed = administration.verify_connection(FakeDirectoryClient(reachable=False))
    assert failed.success is False
    assert "socket timeout" in failed.message
