"""CSV export of extracted entities and ground-truth CSV import"""
import asyncio
import logging
import re
from typing import Iterable, List

from .errors import ExtractionFailure, MissingColumns
from .models import EntityRecord, EntityType, Relation

logger = logging.getLogger(__name__)

PAN_COLUMN = "PAN"
RELATION_COLUMN = "Relation"
NAME_COLUMN = "Entity Name"
TYPE_COLUMN = "Entity Type"

EXPORT_HEADERS = [PAN_COLUMN, RELATION_COLUMN, NAME_COLUMN, TYPE_COLUMN]
REQUIRED_COLUMNS = [PAN_COLUMN, NAME_COLUMN, TYPE_COLUMN]


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(records: Iterable[EntityRecord]) -> str:
    """Serialize records with every field quoted, one row per record"""
    rows = [",".join(EXPORT_HEADERS)]
    for record in records:
        rows.append(",".join([
            _quote(record.identifier),
            _quote(record.relation.value),
            _quote(record.entity_name),
            _quote(record.entity_type.value),
        ]))
    return "\n".join(rows)


def split_csv_row(line: str) -> List[str]:
    """
    Split one CSV data row into fields

    A field is either a double-quoted run, which may contain commas and
    doubled quotes, or a run of characters up to the next comma. Quote
    characters are never part of the returned values.

    Args:
        line: Single row without its line terminator

    Returns:
        Field values, empty fields included
    """
    fields = []
    i = 0
    n = len(line)
    while True:
        j = i
        while j < n and line[j] in " \t":
            j += 1

        if j < n and line[j] == '"':
            i = j + 1
            value = []
            while i < n:
                ch = line[i]
                if ch == '"':
                    if i + 1 < n and line[i + 1] == '"':
                        value.append('"')
                        i += 2
                        continue
                    i += 1
                    break
                value.append(ch)
                i += 1
            # Anything between the closing quote and the next comma
            while i < n and line[i] != ",":
                if line[i] != '"':
                    value.append(line[i])
                i += 1
            fields.append("".join(value))
        else:
            start = i
            while i < n and line[i] != ",":
                i += 1
            fields.append(line[start:i].replace('"', ""))

        if i >= n:
            return fields
        i += 1  # skip the comma


def _field(values: List[str], index: int) -> str:
    return values[index].strip() if index < len(values) else ""


def from_csv(text: str) -> List[EntityRecord]:
    """
    Parse a ground-truth CSV

    Args:
        text: Whole file contents

    Returns:
        Records for every row with a PAN and an entity name. Values are
        trimmed, so leading or trailing spaces in a name do not survive
        an export and re-import.
    """
    lines = re.split(r"\r?\n", text.strip())
    if len(lines) < 2:
        return []

    headers = [h.strip().replace('"', "") for h in lines[0].split(",")]
    missing = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise MissingColumns(missing)

    pan_index = headers.index(PAN_COLUMN)
    name_index = headers.index(NAME_COLUMN)
    type_index = headers.index(TYPE_COLUMN)

    records = []
    skipped = 0
    for line in lines[1:]:
        if not line.strip():
            continue
        values = split_csv_row(line)
        identifier = _field(values, pan_index)
        entity_name = _field(values, name_index)
        if not identifier or not entity_name:
            skipped += 1
            continue

        entity_type = (
            EntityType.ORGANISATION
            if _field(values, type_index) == EntityType.ORGANISATION.value
            else EntityType.INDIVIDUAL
        )
        records.append(EntityRecord(
            identifier=identifier,
            relation=Relation.IDENTIFIER_OF,
            entity_name=entity_name,
            entity_type=entity_type,
        ))

    if skipped:
        logger.info("Skipped %d ground-truth row(s) without PAN or entity name", skipped)
    return records


async def read_ground_truth(content: bytes) -> List[EntityRecord]:
    """Decode an uploaded ground-truth file and parse it off the event loop"""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ExtractionFailure(f"Failed to read CSV file: not valid UTF-8 ({e})") from e
    return await asyncio.to_thread(from_csv, text)
