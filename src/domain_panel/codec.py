"""
Import/export codec for domain record collections.

Exports a collection as JSON, CSV or TXT and parses uploaded files back
into candidate records. CSV import is header driven: columns may appear in
any order and under Chinese or English names, and quoted cells may contain
commas.

Imported records are not validated here; the sync controller or the store
decides what is acceptable.
"""

import json
import re
from pathlib import PurePath
from typing import Iterable, Optional, Union

from .enums import DomainStatus, ExportFormat
from .exceptions import EmptyFileError, FormatError, MissingColumnsError
from .i18n import get_message, status_label
from .models import DomainRecord, ExportedFile

EXPORT_BASENAME = "domains"

MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.TXT: "text/plain",
}

# Normalized header cell -> canonical field name
HEADER_ALIASES = {
    "id": "id",
    "域名": "domain",
    "domain": "domain",
    "注册商": "registrar",
    "registrar": "registrar",
    "注册日期": "registerDate",
    "registrationdate": "registerDate",
    "registerdate": "registerDate",
    "过期日期": "expireDate",
    "expirationdate": "expireDate",
    "expiredate": "expireDate",
    "状态": "status",
    "status": "status",
    "续期链接": "renewUrl",
    "renewurl": "renewUrl",
}

REQUIRED_COLUMNS = ("domain", "registrar", "registerDate", "expireDate", "status")

# Column order of CSV/TXT exports: (record attribute, header message key)
EXPORT_COLUMNS = (
    ("domain", "export.header.domain"),
    ("registrar", "export.header.registrar"),
    ("register_date", "export.header.register_date"),
    ("expire_date", "export.header.expire_date"),
    ("status", "export.header.status"),
)

STATUS_ALIASES = {
    "正常": DomainStatus.ACTIVE.value,
    "active": DomainStatus.ACTIVE.value,
    "已过期": DomainStatus.EXPIRED.value,
    "expired": DomainStatus.EXPIRED.value,
}

_LINE_SPLIT = re.compile(r"\r?\n")
_HEADER_NOISE = re.compile(r"[_\-\s]")
_INTEGER = re.compile(r"[+-]?\d+")


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_json(records: Iterable[DomainRecord]) -> str:
    """Serialize records as a pretty-printed JSON array."""
    return json.dumps(
        [record.to_dict() for record in records],
        indent=2,
        ensure_ascii=False,
    )


def export_csv(records: Iterable[DomainRecord], language: Optional[str] = None) -> str:
    """
    Serialize records as CSV with the fixed five-column layout.

    Every cell is quoted. The id and renewal link are not part of the
    layout and are dropped.
    """
    header = ",".join(_quote(get_message(key, language)) for _, key in EXPORT_COLUMNS)
    lines = [header]
    for record in records:
        cells = []
        for attr, _ in EXPORT_COLUMNS:
            value = getattr(record, attr) or ""
            if attr == "status":
                value = status_label(value, language)
            cells.append(_quote(value))
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


def export_txt(records: Iterable[DomainRecord], language: Optional[str] = None) -> str:
    """Plain-text export; identical content to the CSV export."""
    return export_csv(records, language)


def export_collection(
    records: Iterable[DomainRecord],
    fmt: ExportFormat,
    language: Optional[str] = None,
) -> ExportedFile:
    """
    Build a downloadable export in the requested format.

    Args:
        records: Records to export, in display order
        fmt: Target format
        language: Language for CSV/TXT headers and status labels

    Returns:
        ExportedFile with filename, MIME type and text content
    """
    if fmt == ExportFormat.JSON:
        content = export_json(records)
    elif fmt == ExportFormat.CSV:
        content = export_csv(records, language)
    else:
        content = export_txt(records, language)

    return ExportedFile(
        filename=f"{EXPORT_BASENAME}.{fmt.value}",
        mime_type=MIME_TYPES[fmt],
        content=content,
    )


def _quote(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def import_json(text: str, language: Optional[str] = None) -> list[DomainRecord]:
    """
    Parse a JSON array of records.

    Raises:
        FormatError: If the text is not JSON, not an array, or contains
            a non-object element
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(
            code="invalid_json",
            message=get_message("import.invalid_json", language, error=e.msg),
            details={"line": e.lineno, "column": e.colno},
        )

    if not isinstance(data, list):
        raise FormatError(
            code="not_array",
            message=get_message("import.not_array", language),
            details={"type": type(data).__name__},
        )

    records = []
    for index, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise FormatError(
                code="invalid_record",
                message=get_message("import.invalid_record", language, index=index),
                details={"index": index},
            )
        records.append(DomainRecord.from_dict(item))
    return records


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into cells.

    Each double quote toggles the in-quotes state; commas inside quotes
    are kept. Cells are trimmed and one pair of surrounding quotes is
    removed, with doubled quotes inside decoded to a single quote.
    """
    cells = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            cells.append(_clean_cell("".join(current)))
            current = []
        else:
            current.append(char)
    cells.append(_clean_cell("".join(current)))
    return cells


def _clean_cell(raw: str) -> str:
    cell = raw.strip()
    if len(cell) >= 2 and cell[0] == '"' and cell[-1] == '"':
        cell = cell[1:-1].replace('""', '"')
    return cell.strip()


def normalize_header(cell: str) -> str:
    """Strip quotes, underscores, hyphens and whitespace; lowercase."""
    return _HEADER_NOISE.sub("", cell.strip().strip('"')).lower()


def map_header(header_cells: list[str]) -> dict[str, int]:
    """
    Map canonical field names to column indexes.

    The first column claiming a canonical name wins.
    """
    mapping: dict[str, int] = {}
    for index, cell in enumerate(header_cells):
        canonical = HEADER_ALIASES.get(normalize_header(cell))
        if canonical and canonical not in mapping:
            mapping[canonical] = index
    return mapping


def parse_status(cell: str) -> str:
    """Map a status cell to a status value; unknown labels become pending."""
    return STATUS_ALIASES.get(cell.strip().lower(), DomainStatus.PENDING.value)


def parse_id(cell: str) -> Optional[Union[int, str]]:
    """Numeric ids become int, anything else is kept as text."""
    if not cell:
        return None
    if _INTEGER.fullmatch(cell):
        return int(cell)
    return cell


def import_csv(text: str, language: Optional[str] = None) -> list[DomainRecord]:
    """
    Parse CSV (or TXT) content into candidate records.

    Requires a header row naming domain, registrar, register date,
    expire date and status; a header with no data rows yields an empty
    list.

    Raises:
        EmptyFileError: If the content has no non-blank lines
        MissingColumnsError: If a required column is absent
    """
    lines = [line for line in _LINE_SPLIT.split(text.lstrip("\ufeff")) if line.strip()]
    if not lines:
        raise EmptyFileError(
            code="empty_file",
            message=get_message("import.empty_file", language),
        )

    mapping = map_header(parse_csv_line(lines[0]))
    missing = [name for name in REQUIRED_COLUMNS if name not in mapping]
    if missing:
        raise MissingColumnsError(
            code="missing_columns",
            message=get_message("import.missing_columns", language, columns=", ".join(missing)),
            details={"missing": missing},
        )

    records = []
    for line in lines[1:]:
        cells = parse_csv_line(line)

        def cell(name: str) -> str:
            index = mapping.get(name)
            if index is None or index >= len(cells):
                return ""
            return cells[index]

        renew_url = cell("renewUrl")
        records.append(
            DomainRecord(
                domain=cell("domain"),
                status=parse_status(cell("status")),
                registrar=cell("registrar"),
                register_date=cell("registerDate"),
                expire_date=cell("expireDate"),
                id=parse_id(cell("id")),
                renew_url=renew_url or None,
            )
        )
    return records


def import_txt(text: str, language: Optional[str] = None) -> list[DomainRecord]:
    """Plain-text import; same layout rules as CSV."""
    return import_csv(text, language)


def import_file(
    filename: str,
    content: Union[str, bytes],
    language: Optional[str] = None,
) -> list[DomainRecord]:
    """
    Parse an uploaded file, choosing the parser by extension.

    Args:
        filename: Original file name (.json, .csv or .txt)
        content: File content as text or UTF-8 bytes

    Raises:
        FormatError: For unsupported extensions, undecodable bytes, or any
            parser failure
    """
    extension = PurePath(filename).suffix.lower()

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise FormatError(
                code="decode_failed",
                message=get_message("import.decode_failed", language),
                details={"filename": filename},
            )

    if extension == ".json":
        return import_json(content, language)
    if extension == ".csv":
        return import_csv(content, language)
    if extension == ".txt":
        return import_txt(content, language)

    raise FormatError(
        code="unsupported_format",
        message=get_message("import.unsupported_format", language, extension=extension or filename),
        details={"filename": filename},
    )
