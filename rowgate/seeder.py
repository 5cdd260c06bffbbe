"""
Bulk loader for declarative seed data.

Seed data maps Table subclasses to lists of attribute dicts. A dict may carry
``_relations``, mapping child Table subclasses to their own lists; every child
row receives the parent's id under ``singularize(parent_table) + "_id"``:

    SEED_DATA = {
        TeamTable: [
            {
                "name": "Platform",
                "_relations": {
                    UserTable: [{"email": "ana@example.com"}],
                },
            },
        ],
    }

    Seeder(db).seed(SEED_DATA)   # users.team_id is set to the new team's id
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from rowgate.domain.table import Table
from rowgate.infrastructure.db import Db
from rowgate.utils.logging import get_logger

log = get_logger(__name__)

RELATIONS_KEY = "_relations"

SeedData = Mapping[Type[Table], Iterable[Mapping[str, Any]]]

_IRREGULARS = {
    "series": "series",
    "species": "species",
    "news": "news",
    "data": "data",
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
}

_ES_SUFFIX = re.compile(r"(s|x|z|ch|sh)es$", re.IGNORECASE)


def singularize(word: str) -> str:
    """
    Singular form of a table name, for foreign-key column names.

    Handles a few irregulars plus the ``-ies``, ``-(s|x|z|ch|sh)es`` and
    trailing ``-s`` patterns; anything else is returned unchanged.
    """
    lower = word.lower()
    if lower in _IRREGULARS:
        return _IRREGULARS[lower]
    if len(word) > 3 and lower.endswith("ies"):
        return word[:-3] + "y"
    if len(word) > 2 and _ES_SUFFIX.search(word):
        return word[:-2]
    if len(word) > 1 and lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


def _check_table_class(table_class: Any) -> Type[Table]:
    if not (isinstance(table_class, type) and issubclass(table_class, Table)):
        raise TypeError(f"{table_class!r} must be a subclass of {Table.__name__}")
    return table_class


def collect_table_classes(data: SeedData) -> List[Type[Table]]:
    """
    Every Table class in `data`, nested relations included, in first-seen
    order. Reverse the result to truncate children before parents.
    """
    classes: List[Type[Table]] = []
    for table_class, rows in data.items():
        if table_class not in classes:
            classes.append(table_class)
        for row in rows:
            relations = row.get(RELATIONS_KEY) if isinstance(row, Mapping) else None
            if isinstance(relations, Mapping):
                for nested in collect_table_classes(relations):
                    if nested not in classes:
                        classes.append(nested)
    return classes


class Seeder:
    """
    Inserts seed data through Table gateways.

    Parameters
    ----------
    db : Db
        Connection every Table is built on.
    """

    def __init__(self, db: Db) -> None:
        self.db = db

    def seed(self, data: SeedData) -> Dict[Type[Table], int]:
        """
        Insert `data`.

        Returns
        -------
        dict
            Inserted row count per top-level Table class; nested inserts are
            counted under the class they are nested in.

        Raises
        ------
        TypeError
            If a key is not a Table subclass or a row is not a mapping.
        """
        counts: Dict[Type[Table], int] = {}
        for table_class, rows in data.items():
            table_class = _check_table_class(table_class)
            counts[table_class] = counts.get(table_class, 0) + self._seed_table(table_class, rows)
            log.info(
                f"Seeded {table_class.__name__}: {counts[table_class]} records",
                extra={"table": table_class.get_table_name(), "records": counts[table_class]},
            )
        return counts

    def truncate(self, table_classes: Iterable[Type[Table]]) -> None:
        """
        Empty each table in the given order with foreign-key checks disabled.
        """
        dialect = self.db.dialect
        table_classes = [_check_table_class(table_class) for table_class in table_classes]

        if dialect.disable_fk_sql:
            self.db.execute(dialect.disable_fk_sql).close()
        try:
            for table_class in table_classes:
                table_name = table_class.get_table_name()
                log.info(f"Truncating {table_name}", extra={"table": table_name})
                self.db.execute(dialect.truncate_sql(table_name)).close()
        finally:
            if dialect.enable_fk_sql:
                self.db.execute(dialect.enable_fk_sql).close()

    def _seed_table(
        self,
        table_class: Type[Table],
        rows: Iterable[Mapping[str, Any]],
        parent_fk_column: Optional[str] = None,
        parent_id: Any = None,
    ) -> int:
        table = table_class(self.db)
        record_class = table_class.get_record_class()
        fk_column = singularize(table_class.get_table_name()) + "_id"

        count = 0
        for row in rows:
            if not isinstance(row, Mapping):
                raise TypeError(f"Seed row for {table_class.__name__} must be a mapping, got {row!r}")

            values = dict(row)
            relations = values.pop(RELATIONS_KEY, None) or {}
            if parent_fk_column is not None and parent_id is not None:
                values[parent_fk_column] = parent_id

            inserted = table.insert(record_class(values))
            count += 1

            for child_class, child_rows in relations.items():
                child_class = _check_table_class(child_class)
                count += self._seed_table(child_class, child_rows, fk_column, inserted.id)

        return count


__all__ = ["RELATIONS_KEY", "SeedData", "Seeder", "collect_table_classes", "singularize"]
