"""
CSV-backed record store for the dish and bill collections.

Responsibilities:
- create a collection file with its header row on first read
- parse rows into records in file order (bills get CheckedOut back-filled)
- rewrite the whole file on every append or update, in canonical column order
- decode the externally supplied ingredient table, whatever its encoding

There is no locking and no atomic rename: concurrent writers race and the
last one wins.
"""

from __future__ import annotations

import codecs
import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Generic, List, Sequence, Tuple, Type, TypeVar, Union

from charset_normalizer import from_bytes

from . import rules
from .models import Bill, Dish, Ingredient

logger = logging.getLogger(__name__)

R = TypeVar("R", Dish, Bill)

# Any field the writer accepts must parse back
csv.field_size_limit(rules.MAX_FIELD_SIZE)


class RecordNotFound(LookupError):
    pass


class RecordWriteError(OSError):
    pass


@dataclass(frozen=True)
class Collection(Generic[R]):
    name: str
    filename: str
    columns: Tuple[str, ...]
    model: Type[R]


DISHES: Collection[Dish] = Collection("dishes", rules.DISHES_FILE, rules.DISH_COLUMNS, Dish)
BILLS: Collection[Bill] = Collection("bills", rules.BILLS_FILE, rules.BILL_COLUMNS, Bill)


def parse_rows(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text using its first row as field names.

    Blank lines are skipped, short rows are padded with empty text and
    cells beyond the header are dropped.
    """
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=",")
    rows = list(reader)
    if not rows:
        return []

    header = rows[0]
    records: List[Dict[str, str]] = []
    for row in rows[1:]:
        if not row:
            continue
        records.append({name: (row[i] if i < len(row) else "") for i, name in enumerate(header)})
    return records


def render_rows(columns: Sequence[str], records: Sequence[Dict[str, str]]) -> str:
    outp = io.StringIO(newline="")
    writer = csv.writer(outp, delimiter=",", lineterminator=rules.LINE_TERMINATOR)
    writer.writerow(columns)
    for record in records:
        writer.writerow([record.get(column, "") for column in columns])
    return outp.getvalue()


def decode_text(raw: bytes) -> str:
    """
    Decode bytes of unknown encoding, best-effort via charset-normalizer.

    A UTF-8 BOM is dropped and undecodable bytes become replacement
    characters.
    """
    if not raw:
        return ""

    match = from_bytes(raw).best()
    encoding = match.encoding if match is not None else "utf-8"
    try:
        if codecs.lookup(encoding).name == "utf-8":
            encoding = "utf-8-sig"
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.warning("Could not decode as %s, falling back to utf-8", encoding)
        return raw.decode("utf-8-sig", errors="replace")


class RecordStore:
    """Reads and rewrites the dish and bill files under one data directory."""

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, collection: Collection[R]) -> Path:
        return self._data_dir / collection.filename

    def read_all(self, collection: Collection[R]) -> List[R]:
        """Return every record of the collection in file order.

        A missing file is created holding only the header row. Read and
        parse failures are logged and come back as an empty list.
        """
        path = self.path_for(collection)
        try:
            if not path.exists():
                logger.info("Creating %s with header row", path)
                self._write_text(path, render_rows(collection.columns, []))
                return []

            # Undecodable bytes read as U+FFFD, the row itself is kept
            text = path.read_bytes().decode("utf-8-sig", errors="replace")
            return [collection.model.model_validate(row) for row in parse_rows(text)]
        except (OSError, csv.Error):
            logger.exception("Error reading %s", path)
            return []

    def write_all(self, collection: Collection[R], records: Sequence[R]) -> None:
        path = self.path_for(collection)
        content = render_rows(
            collection.columns,
            [record.model_dump(by_alias=True) for record in records],
        )
        self._write_text(path, content)

        if path.read_bytes().decode(rules.FILE_ENCODING) != content:
            raise RecordWriteError(f"File content verification failed for {path}")
        logger.info("Wrote %d %s to %s", len(records), collection.name, path)

    def append(self, collection: Collection[R], record: R) -> List[R]:
        records = self.read_all(collection)
        records.append(record)
        self.write_all(collection, records)
        return records

    def update_by_key(self, collection: Collection[R], key: str, mutate: Callable[[R], R]) -> R:
        """Apply `mutate` to the first record whose key equals `key`.

        Raises RecordNotFound, leaving the file untouched, when nothing matches.
        """
        records = self.read_all(collection)
        for index, record in enumerate(records):
            if record.key == key:
                records[index] = mutate(record)
                self.write_all(collection, records)
                return records[index]

        raise RecordNotFound(f"No {collection.name} record named {key!r}")

    def checkout(self, bill_name: str) -> Bill:
        def mark(bill: Bill) -> Bill:
            logger.info("Checking out bill %r (was CheckedOut=%s)", bill.name, bill.checked_out)
            return bill.model_copy(update={"checked_out": rules.CHECKED_OUT_TRUE})

        return self.update_by_key(BILLS, bill_name, mark)

    def read_ingredients(self) -> List[Ingredient]:
        """Parse the reference ingredient table. Errors propagate."""
        path = self._data_dir / rules.INGREDIENTS_FILE
        text = decode_text(path.read_bytes())
        return [Ingredient.model_validate(row) for row in parse_rows(text)]

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding=rules.FILE_ENCODING, newline="") as fh:
            fh.write(content)
