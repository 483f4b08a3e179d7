import re
from enum import Enum, Flag, auto

# Azure container naming: 3-63 chars of [a-z0-9-], alphanumeric at both ends, no "--".
_CONTAINER_NAME = re.compile(r"[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]")


class Container(str):
    """A blob container name that satisfies the container naming grammar."""

    @classmethod
    def try_parse(cls, value: str | None) -> "Container | None":
        if value is None or not _CONTAINER_NAME.fullmatch(value):
            return None
        return cls(value)

    @classmethod
    def parse(cls, value: str) -> "Container":
        container = cls.try_parse(value)
        if container is None:
            raise ValueError(f"Invalid container name: {value!r}")
        return container


class StorageType(str, Enum):
    CORPUS = "corpus"
    CONFIG = "config"


class BlobPermission(Flag):
    READ = auto()
    WRITE = auto()
    DELETE = auto()
    LIST = auto()

    def to_sas(self) -> str:
        return "".join(code for flag, code in _SAS_CODES if flag in self)


_SAS_CODES = (
    (BlobPermission.READ, "r"),
    (BlobPermission.WRITE, "w"),
    (BlobPermission.DELETE, "d"),
    (BlobPermission.LIST, "l"),
)
