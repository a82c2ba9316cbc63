"""Isolation levels and range-lock modes accepted at the diagnostic boundary."""

from __future__ import annotations

import enum

from vehicle_lab.exceptions import InvalidArgument


class IsolationLevel(enum.Enum):
    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"

    @property
    def sql(self) -> str:
        """Spelling used in ``SET SESSION TRANSACTION ISOLATION LEVEL``."""
        return self.value

    @classmethod
    def parse(cls, level: str | IsolationLevel | None) -> IsolationLevel:
        """Resolve an alias such as ``rc`` or ``REPEATABLE_READ``.

        ``None`` means READ COMMITTED.
        """
        if isinstance(level, cls):
            return level
        if level is None:
            return cls.READ_COMMITTED
        key = str(level).strip().upper().replace(" ", "_")
        try:
            return _ISOLATION_ALIASES[key]
        except KeyError:
            raise InvalidArgument(f"Unknown isolation: {level}") from None


_ISOLATION_ALIASES = {
    "RU": IsolationLevel.READ_UNCOMMITTED,
    "READ_UNCOMMITTED": IsolationLevel.READ_UNCOMMITTED,
    "RC": IsolationLevel.READ_COMMITTED,
    "READ_COMMITTED": IsolationLevel.READ_COMMITTED,
    "RR": IsolationLevel.REPEATABLE_READ,
    "REPEATABLE_READ": IsolationLevel.REPEATABLE_READ,
    "SER": IsolationLevel.SERIALIZABLE,
    "SERIALIZABLE": IsolationLevel.SERIALIZABLE,
}


class LockMode(enum.Enum):
    NONE = "none"
    SHARED = "shared"
    EXCLUSIVE = "exclusive"

    @property
    def sql_suffix(self) -> str:
        """Locking clause appended to the range query."""
        return _LOCK_CLAUSES[self]

    @classmethod
    def parse(cls, lock: str | LockMode | None) -> LockMode:
        if isinstance(lock, cls):
            return lock
        if lock is None:
            return cls.NONE
        key = str(lock).strip().lower()
        try:
            return _LOCK_ALIASES[key]
        except KeyError:
            raise InvalidArgument(f"Unknown lock mode: {lock}") from None


_LOCK_CLAUSES = {
    LockMode.NONE: "",
    LockMode.SHARED: " FOR SHARE",
    LockMode.EXCLUSIVE: " FOR UPDATE",
}

_LOCK_ALIASES = {
    "none": LockMode.NONE,
    "shared": LockMode.SHARED,
    "share": LockMode.SHARED,
    "exclusive": LockMode.EXCLUSIVE,
    "update": LockMode.EXCLUSIVE,
}
