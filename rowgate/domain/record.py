"""
Row representation bound to one physical table.

A Record is a plain data object: it never talks to the database. Table
builds Records from fetched rows and turns them back into parameter lists.

Subclasses describe their columns with class attributes:

    class User(Record):
        uses_uuid = True
        uuid_columns = ("team_id",)
        casts = {"age": "int", "active": "bool"}
        computed_columns = ("display_name",)

        email = Field(str)
        age = Field(int)
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Callable, ClassVar, Dict, Iterator, Mapping, Optional, Tuple, Union

from rowgate.utils.uuids import binary_to_uuid, uuid7

RecordId = Union[int, str]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8") if len(value) != 1 else value[0]
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Cannot cast {value!r} to bool")
    return bool(value)


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(_to_str(value).strip()).date()


CASTERS: Dict[str, Callable[[Any], Any]] = {
    "int": int,
    "float": float,
    "bool": _to_bool,
    "string": _to_str,
    "date": _to_date,
}

_TYPE_CASTS = {int: "int", float: "float", bool: "bool", str: "string", date: "date"}


class Field:
    """
    Typed attribute declared on a Record subclass.

    Reads and writes go through `Record.get` / `Record.set`, so the attribute
    map always holds the latest value. A Python type maps onto the matching
    cast name when the subclass does not declare one explicitly.
    """

    def __init__(self, type_: Optional[type] = None) -> None:
        self.type_ = type_
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    @property
    def cast(self) -> Optional[str]:
        return _TYPE_CASTS.get(self.type_) if self.type_ is not None else None

    def __get__(self, instance: Optional["Record"], owner: type) -> Any:
        if instance is None:
            return self
        return instance.get(self.name)

    def __set__(self, instance: "Record", value: Any) -> None:
        instance.set(self.name, value)


class Record:
    """
    Base row type.

    Parameters
    ----------
    data : Mapping[str, Any] | None
        Column values. An ``id`` key goes to the identity slot; the rest fill
        the attribute map in order. Keys listed in ``uuid_columns`` are
        converted from binary to text, ``bool`` casts are applied eagerly.
    """

    uses_uuid: ClassVar[bool] = True
    uuid_columns: ClassVar[Tuple[str, ...]] = ()
    casts: ClassVar[Dict[str, str]] = {}
    computed_columns: ClassVar[Tuple[str, ...]] = ()

    _fields: ClassVar[Dict[str, Field]] = {}
    _resolved_casts: ClassVar[Dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        fields: Dict[str, Field] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Field):
                    fields[name] = value
        if "id" in fields:
            raise TypeError(f"{cls.__name__}: 'id' is the identity slot and cannot be a Field")

        resolved = {name: f.cast for name, f in fields.items() if f.cast is not None}
        resolved.update(cls.casts)
        unknown = sorted(set(resolved.values()) - set(CASTERS))
        if unknown:
            raise ValueError(f"{cls.__name__}: unknown cast type(s) {', '.join(unknown)}")

        cls._fields = fields
        cls._resolved_casts = resolved

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        values = dict(data or {})
        self.id: Optional[RecordId] = None
        self._attributes: Dict[str, Any] = {}

        raw_id = values.pop("id", None)
        if raw_id is not None and raw_id != "":
            self.id = raw_id
        elif self.uses_uuid:
            self.id = uuid7()

        for key, value in values.items():
            if key in self.uuid_columns:
                value = binary_to_uuid(value)
            if value is not None and self._resolved_casts.get(key) == "bool":
                value = _to_bool(value)
            self._attributes[key] = value

    @classmethod
    def hydrate(cls, row: Mapping[str, Any]) -> "Record":
        """Build a Record from a freshly fetched row."""
        return cls(row)

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(cls._fields)

    def get(self, name: str, default: Any = None) -> Any:
        """
        Read an attribute, applying its declared cast. Missing names give
        `default`. The stored value is never modified by the cast.
        """
        if name == "id":
            return self.id
        if name not in self._attributes:
            return default
        value = self._attributes[name]
        cast = self._resolved_casts.get(name)
        if cast is None or value is None:
            return value
        return CASTERS[cast](value)

    def set(self, name: str, value: Any) -> None:
        if name == "id":
            self.id = value
            return
        self._attributes[name] = value

    def unset(self, name: str) -> None:
        if name == "id":
            self.id = None
            return
        self._attributes.pop(name, None)

    def has(self, name: str) -> bool:
        if name == "id":
            return self.id is not None
        return name in self._attributes

    def attributes(self) -> Dict[str, Any]:
        """Copy of the raw attribute map (no casts, no id)."""
        return dict(self._attributes)

    def to_dict(self) -> Dict[str, Any]:
        """Identity plus every attribute, computed columns included."""
        return {"id": self.id, **self._attributes}

    def to_persistable_dict(self) -> Dict[str, Any]:
        """`to_dict()` without computed columns; what Table writes."""
        computed = set(self.computed_columns)
        return {k: v for k, v in self.to_dict().items() if k not in computed}

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), default=str, **kwargs)

    def __getitem__(self, name: str) -> Any:
        if not self.has(name):
            raise KeyError(name)
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        if not self.has(name):
            raise KeyError(name)
        self.unset(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, attributes={self._attributes!r})"


__all__ = ["CASTERS", "Field", "Record", "RecordId"]
