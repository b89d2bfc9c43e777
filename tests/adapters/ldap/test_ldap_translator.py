from __future__ import annotations

import logging

import pytest

from adroles.adapters.ldap import parse_account, parse_group
from adroles.domain.ports.directory import AccountRecord, GroupRecord, SkippedRecord


def _entry(dn: str, **attributes: object) -> dict[str, object]:
    return {"type": "searchResEntry", "dn": dn, "attributes": attributes}


def test_parse_account_reads_name_and_bitfield() -> None:
    payload = _entry(
        "CN=Ada,OU=Staff,DC=example,DC=test",
        sAMAccountName="ada",
        userAccountControl=0x10202,
    )

    assert parse_account(payload) == AccountRecord(
        distinguished_name="CN=Ada,OU=Staff,DC=example,DC=test",
        logon_name="ada",
        account_control=0x10202,
    )


def test_parse_account_accepts_list_values_and_missing_bitfield() -> None:
    payload = _entry("CN=Bob,DC=example,DC=test", sAMAccountName=["bob"], userAccountControl=[])

    record = parse_account(payload)

    assert record is not None
    assert record.logon_name == "bob"
    assert record.account_control == 0


def test_parse_account_skips_references() -> None:
    payload = {"type": "searchResRef", "uri": ["ldap://other.example.test/DC=other"]}

    assert parse_account(payload) is None


def test_parse_account_reports_entries_without_logon_name(caplog: pytest.LogCaptureFixture) -> None:
    payload = _entry("CN=Ghost,DC=example,DC=test", sAMAccountName="  ")

    with caplog.at_level(logging.WARNING):
        record = parse_account(payload)

    assert record == SkippedRecord(
        distinguished_name="CN=Ghost,DC=example,DC=test",
        reason="invalid attributes: sAMAccountName",
    )

    assert "CN=Ghost" in caplog.text


def test_parse_group_collects_members_and_marker() -> None:
    payload = _entry(
        "CN=Sales,OU=Groups,DC=example,DC=test",
        cn=["Sales"],
        description=["Sales team"],
        member=["CN=Ada,DC=example,DC=test", "CN=Bob,DC=example,DC=test"],
        AdminCount=["1"],
    )

    record = parse_group(payload, marker_attribute="adminCount")

    assert record == GroupRecord(
        distinguished_name="CN=Sales,OU=Groups,DC=example,DC=test",
        common_name="Sales",
        description="Sales team",
        member_dns=("CN=Ada,DC=example,DC=test", "CN=Bob,DC=example,DC=test"),
        admin_marker=True,
    )


@pytest.mark.parametrize("marker", [["0"], [], "false", None])
def test_parse_group_marker_values_that_mean_unset(marker: object) -> None:
    payload = _entry("CN=Sales,DC=example,DC=test", cn="Sales", adminCount=marker)

    record = parse_group(payload, marker_attribute="adminCount")

    assert record is not None
    assert not record.admin_marker


def test_parse_group_without_marker_attribute() -> None:
    payload = _entry("CN=Sales,DC=example,DC=test", cn="Sales", adminCount=["1"])

    record = parse_group(payload, marker_attribute="")

    assert record is not None
    assert not record.admin_marker
    assert record.description is None
    assert record.member_dns == ()


def test_parse_group_reports_entries_without_common_name() -> None:
    payload = _entry("CN=Broken,DC=example,DC=test", description="no cn")

    record = parse_group(payload, marker_attribute="adminCount")

    assert isinstance(record, SkippedRecord)
    assert record.distinguished_name == "CN=Broken,DC=example,DC=test"
    assert "cn" in record.reason


def test_parse_account_reads_person_attributes() -> None:
    payload = _entry(
        "CN=Ada,OU=Staff,DC=example,DC=test",
        sAMAccountName=["ada"],
        givenName=["Ada"],
        sn=["Lovelace"],
        department=["  "],
    )

    record = parse_account(payload)

    assert isinstance(record, AccountRecord)
    assert record.first_name == "Ada"
    assert record.last_name == "Lovelace"
    assert record.department is None
