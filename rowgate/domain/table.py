"""
Per-table CRUD gateway.

A Table subclass binds one Record type to one physical table:

    class UserTable(Table):
        table_name = "users"
        record_class = User

    users = UserTable(db)
    adults = users.find_where(conditions={"age": [">=", 18]}, order_by={"name": "ASC"})

Reads compile conditions through `rowgate.domain.conditions` and hydrate rows
back into Records, turning binary UUID columns into text. Writes go the other
way: persistable attributes, UUIDs converted to binary, one statement each.
"""

from __future__ import annotations

import threading
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Type

from rowgate.domain.conditions import (
    OrderBy,
    compile_conditions,
    normalize_columns,
    normalize_order_by,
    render_where,
    validate_identifier,
    validate_limit,
)
from rowgate.domain.pagination import DEFAULT_PER_PAGE, build_page_meta, clamp_page
from rowgate.domain.record import Record, RecordId
from rowgate.errors import DatabaseError, PersistenceError
from rowgate.infrastructure.db import Db
from rowgate.utils.logging import get_logger
from rowgate.utils.uuids import binary_to_uuid, uuid7, uuid_to_binary

log = get_logger(__name__)

Conditions = Optional[Mapping[str, Any]]


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


class Table:
    """
    Gateway bound to `record_class` and `table_name`.

    Parameters
    ----------
    db : Db
        Shared connection. The Table holds no other state apart from a cache
        of resolved UUID columns.

    Raises
    ------
    DatabaseError
        If the subclass does not declare `table_name` and `record_class`.
    """

    table_name: ClassVar[Optional[str]] = None
    record_class: ClassVar[Optional[Type[Record]]] = None

    def __init__(self, db: Db) -> None:
        self.get_table_name()
        self.get_record_class()
        self.db = db
        self._uuid_cache: Dict[Type[Record], FrozenSet[str]] = {}
        self._uuid_cache_lock = threading.Lock()

    @classmethod
    def get_table_name(cls) -> str:
        if not cls.table_name:
            raise DatabaseError(f"{cls.__name__} must define table_name.")
        return validate_identifier(cls.table_name, kind="table")

    @classmethod
    def get_record_class(cls) -> Type[Record]:
        record_class = cls.record_class
        if record_class is None or not (
            isinstance(record_class, type) and issubclass(record_class, Record)
        ):
            raise DatabaseError(f"{cls.__name__} must define record_class as a Record subclass.")
        return record_class

    # Helpers

    def _quote(self, identifier: str) -> str:
        return self.db.quote_identifier(identifier)

    @property
    def _table(self) -> str:
        return self._quote(self.get_table_name())

    def uuid_columns(self, record_type: Optional[Type[Record]] = None) -> FrozenSet[str]:
        """Columns (``id`` included) whose condition values bind as binary UUIDs."""
        record_type = record_type or self.get_record_class()
        with self._uuid_cache_lock:
            cached = self._uuid_cache.get(record_type)
            if cached is None:
                cached = frozenset({"id", *record_type.uuid_columns})
                self._uuid_cache[record_type] = cached
            return cached

    def _id_param(self, value: RecordId) -> Any:
        if self.get_record_class().uses_uuid:
            return uuid_to_binary(value)
        return value

    def _hydrate(self, row: Mapping[str, Any]) -> Record:
        row = dict(row)
        record_class = self.get_record_class()
        if "id" not in row:
            row["id"] = 0
        elif record_class.uses_uuid:
            row["id"] = binary_to_uuid(row["id"])
        return record_class.hydrate(row)

    def _where(self, conditions: Conditions) -> tuple:
        clauses = compile_conditions(conditions, self.uuid_columns())
        return render_where(clauses, self._quote)

    def _prepare(self, record: Record) -> Dict[str, Any]:
        """Persistable attributes without ``id``, UUID columns converted to binary."""
        data = record.to_persistable_dict()
        data.pop("id", None)
        for column in record.uuid_columns:
            if column in data and not _is_empty(data[column]):
                data[column] = uuid_to_binary(data[column])
        for column in data:
            validate_identifier(column)
        return data

    def _check_record(self, record: Any) -> Record:
        record_class = self.get_record_class()
        if not isinstance(record, record_class):
            raise PersistenceError(
                f"{type(self).__name__} expects {record_class.__name__}, "
                f"got {type(record).__name__}."
            )
        return record

    # Read path

    def find_by_id(self, id: RecordId) -> Optional[Record]:
        """Record with primary key `id`, or None."""
        sql = f"SELECT * FROM {self._table} WHERE {self._quote('id')} = ? LIMIT 1"
        with self.db.execute(sql, [self._id_param(id)]) as statement:
            row = statement.fetch_one()
        return self._hydrate(row) if row is not None else None

    def find_where(
        self,
        columns: Optional[Sequence[str]] = None,
        conditions: Conditions = None,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """
        Select records matching `conditions`.

        Parameters
        ----------
        columns : Sequence[str] | None
            ``name`` or ``table.name`` entries; all columns when empty.
        conditions : Mapping[str, Any] | None
            Flat AND of column conditions.
        order_by : Mapping | Sequence[str] | str | None
            Ordering; see `normalize_order_by`.
        limit : int | None
            Maximum rows; embedded as a validated integer.

        Raises
        ------
        QueryError
            On invalid identifiers, operators, condition shapes or limit.
        """
        select = normalize_columns(columns, self._quote)
        where, params = self._where(conditions)
        order = normalize_order_by(order_by, self._quote)
        sql = f"SELECT {select} FROM {self._table}{where}{order}"
        if limit is not None:
            sql += f" LIMIT {validate_limit(limit)}"

        with self.db.execute(sql, params) as statement:
            rows = statement.fetch_all()
        return [self._hydrate(row) for row in rows]

    def find_first(
        self,
        columns: Optional[Sequence[str]] = None,
        conditions: Conditions = None,
        order_by: OrderBy = None,
    ) -> Optional[Record]:
        records = self.find_where(columns, conditions, order_by, limit=1)
        return records[0] if records else None

    def count(self, conditions: Conditions = None) -> int:
        where, params = self._where(conditions)
        sql = f"SELECT COUNT(*) AS aggregate FROM {self._table}{where}"
        with self.db.execute(sql, params) as statement:
            return int(statement.fetch_column() or 0)

    def paginate(
        self,
        columns: Optional[Sequence[str]] = None,
        conditions: Conditions = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        order_by: OrderBy = None,
    ) -> Dict[str, Any]:
        """
        One page of records plus metadata.

        Returns
        -------
        dict
            ``{"data": [Record, ...], "meta": {...}}``; see `PageMeta` for the
            metadata keys.
        """
        page, per_page, offset = clamp_page(page, per_page)
        total = self.count(conditions)

        select = normalize_columns(columns, self._quote)
        where, params = self._where(conditions)
        order = normalize_order_by(order_by, self._quote)
        sql = (
            f"SELECT {select} FROM {self._table}{where}{order}"
            f" LIMIT {validate_limit(per_page, 'per_page')} OFFSET {validate_limit(offset, 'offset')}"
        )
        with self.db.execute(sql, params) as statement:
            data = [self._hydrate(row) for row in statement.fetch_all()]

        meta = build_page_meta(page, per_page, total, len(data))
        return {"data": data, "meta": meta.as_dict()}

    # Write path

    def insert(self, record: Record) -> Record:
        """
        Insert `record` and return it.

        Auto-increment records get their id from the connection afterwards;
        UUID records keep the id they were constructed with.
        """
        record = self._check_record(record)
        data = self._prepare(record)
        data.pop("created_at", None)

        if record.uses_uuid:
            if _is_empty(record.id):
                record.id = uuid7()
            data = {"id": uuid_to_binary(record.id), **data}
        elif not _is_empty(record.id):
            data = {"id": record.id, **data}

        if not data:
            raise PersistenceError(f"Nothing to insert into {self.get_table_name()}.")

        columns = ", ".join(self._quote(column) for column in data)
        placeholders = ", ".join("?" for _ in data)
        sql = f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders})"
        self.db.execute(sql, list(data.values())).close()

        if not record.uses_uuid and _is_empty(record.id):
            record.id = self.db.last_insert_id()
        return record

    def insert_many(self, records: Iterable[Record]) -> List[Record]:
        """
        Insert several records of one type with a single statement.

        The column list is the union of every record's persistable keys;
        records missing a column bind NULL for it. Auto-increment ids are not
        filled in afterwards.

        Raises
        ------
        PersistenceError
            If the records are not all the same Record type.
        """
        records = list(records)
        if not records:
            return []

        record_type = type(records[0])
        for record in records:
            self._check_record(record)
            if type(record) is not record_type:
                raise PersistenceError(
                    f"insert_many expects one record type, got {record_type.__name__} "
                    f"and {type(record).__name__}."
                )

        rows = []
        for record in records:
            data = self._prepare(record)
            data.pop("created_at", None)
            rows.append(data)

        include_id = any(not _is_empty(record.id) for record in records)
        columns: List[str] = ["id"] if include_id else []
        for data in rows:
            for column in data:
                if column not in columns:
                    columns.append(column)
        if not columns:
            raise PersistenceError(f"Nothing to insert into {self.get_table_name()}.")

        params: List[Any] = []
        for record, data in zip(records, rows):
            if include_id:
                if record_type.uses_uuid and _is_empty(record.id):
                    record.id = uuid7()
                data["id"] = uuid_to_binary(record.id) if record_type.uses_uuid else record.id
            params.extend(data.get(column) for column in columns)

        row_placeholders = "(" + ", ".join("?" for _ in columns) + ")"
        sql = (
            f"INSERT INTO {self._table} ({', '.join(self._quote(c) for c in columns)}) "
            f"VALUES {', '.join(row_placeholders for _ in records)}"
        )
        self.db.execute(sql, params).close()
        log.debug(
            f"Inserted {len(records)} rows into {self.get_table_name()}",
            extra={"table": self.get_table_name(), "rows": len(records)},
        )
        return records

    def update(self, record: Record) -> int:
        """
        Update `record` by primary key; returns the affected row count.

        ``id`` and ``updated_at`` are never part of the SET list.

        Raises
        ------
        PersistenceError
            If the record has no id.
        """
        record = self._check_record(record)
        if _is_empty(record.id):
            raise PersistenceError("Cannot update a record without an ID.")

        data = self._prepare(record)
        data.pop("updated_at", None)
        if not data:
            return 0

        assignments = ", ".join(f"{self._quote(column)} = ?" for column in data)
        sql = f"UPDATE {self._table} SET {assignments} WHERE {self._quote('id')} = ?"
        with self.db.execute(sql, [*data.values(), self._id_param(record.id)]) as statement:
            return self.db.affected_rows(statement)

    def delete(self, record: Record) -> int:
        """
        Delete `record` by primary key; returns the affected row count.

        Raises
        ------
        PersistenceError
            If the record has no id.
        """
        record = self._check_record(record)
        if _is_empty(record.id):
            raise PersistenceError("Cannot delete a record without an ID.")

        sql = f"DELETE FROM {self._table} WHERE {self._quote('id')} = ?"
        with self.db.execute(sql, [self._id_param(record.id)]) as statement:
            return self.db.affected_rows(statement)


__all__ = ["Conditions", "Table"]
