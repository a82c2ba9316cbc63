from __future__ import annotations

import pytest

from vehicle_lab.exceptions import InvalidArgument
from vehicle_lab.modes import IsolationLevel, LockMode


@pytest.mark.parametrize(
    ("alias", "expected"),
    [
        ("RU", IsolationLevel.READ_UNCOMMITTED),
        ("read_uncommitted", IsolationLevel.READ_UNCOMMITTED),
        ("rc", IsolationLevel.READ_COMMITTED),
        (" Read Committed ", IsolationLevel.READ_COMMITTED),
        ("RR", IsolationLevel.REPEATABLE_READ),
        ("REPEATABLE_READ", IsolationLevel.REPEATABLE_READ),
        ("ser", IsolationLevel.SERIALIZABLE),
        ("Serializable", IsolationLevel.SERIALIZABLE),
    ],
)
def test_isolation_aliases(alias: str, expected: IsolationLevel) -> None:
    assert IsolationLevel.parse(alias) is expected


def test_isolation_defaults_to_read_committed() -> None:
    assert IsolationLevel.parse(None) is IsolationLevel.READ_COMMITTED


def test_isolation_passes_enum_through() -> None:
    assert IsolationLevel.parse(IsolationLevel.SERIALIZABLE) is IsolationLevel.SERIALIZABLE


@pytest.mark.parametrize("bogus", ["", "SNAPSHOT", "R C", "read-committed"])
def test_unknown_isolation_rejected(bogus: str) -> None:
    with pytest.raises(InvalidArgument, match="Unknown isolation"):
        IsolationLevel.parse(bogus)


def test_isolation_sql_spelling() -> None:
    assert IsolationLevel.REPEATABLE_READ.sql == "REPEATABLE READ"


@pytest.mark.parametrize(
    ("alias", "expected", "suffix"),
    [
        (None, LockMode.NONE, ""),
        ("NONE", LockMode.NONE, ""),
        ("shared", LockMode.SHARED, " FOR SHARE"),
        ("Share", LockMode.SHARED, " FOR SHARE"),
        ("exclusive", LockMode.EXCLUSIVE, " FOR UPDATE"),
        (" update ", LockMode.EXCLUSIVE, " FOR UPDATE"),
    ],
)
def test_lock_aliases(alias: str | None, expected: LockMode, suffix: str) -> None:
    mode = LockMode.parse(alias)
    assert mode is expected
    assert mode.sql_suffix == suffix


def test_unknown_lock_mode_rejected() -> None:
    # Unknown lock modes are refused rather than silently run unlocked
    with pytest.raises(InvalidArgument, match="Unknown lock mode"):
        LockMode.parse("nowait")
