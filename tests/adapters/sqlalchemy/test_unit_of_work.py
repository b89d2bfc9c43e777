from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from adroles.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from adroles.domain.errors import StoreWriteError
from adroles.domain.model import ADUser, Person, Role

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyIdentityUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyIdentityUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_associations(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyIdentityUnitOfWork() as uow:
        person = Person(first_name="Ada", last_name="Lovelace", department="Sales")
        role = Role(name="Sales")
        role.assign_person(person)
        uow.repositories.persons.add(person)
        uow.repositories.roles.add(role)
        uow.commit()
        person_id, role_id = person.id, role.id

    with SqlAlchemyIdentityUnitOfWork() as uow:
        stored = uow.repositories.persons.get(person_id)
        assert stored is not None
        assert {role.id for role in stored.roles} == {role_id}


def test_rollback_on_exception(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyIdentityUnitOfWork() as uow:
        uow.repositories.roles.add(Role(name="Transient"))
        raise RuntimeError("abort")

    with SqlAlchemyIdentityUnitOfWork() as uow:
        assert uow.repositories.roles.count_by() == 0


def test_rejected_commit_raises_store_write_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    dn = "CN=ada,DC=example,DC=test"

    with SqlAlchemyIdentityUnitOfWork() as uow:
        uow.repositories.ad_users.add(ADUser(distinguished_name=dn, logon_name="ada"))
        uow.commit()

    with SqlAlchemyIdentityUnitOfWork() as uow:
        uow.session.add(ADUser(distinguished_name=dn, logon_name="duplicate"))
        with pytest.raises(StoreWriteError, match="rejected"):
            uow.commit()
        assert uow.repositories.ad_users.count_by() == 1
