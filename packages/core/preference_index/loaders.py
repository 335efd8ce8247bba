"""
CSV ingestion for the match log and the census baselines.

Rows are read with pandas as raw strings and validated one at a time
through the pydantic row schemas. A bad row is logged with its file
line number (header is line 1) and skipped; the rest of the file is
still processed. Baseline files are a hard precondition: a missing,
unreadable or empty baseline aborts the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, Iterator, List, Optional, Tuple, Type, TypeVar, Union

import pandas as pd
from pydantic import BaseModel, ValidationError

from .census_data import DemographicBaseline, build_baseline
from .exceptions import (
    BaselineError,
    InputFileError,
    ProfileValidationError,
    RecordParseError,
)
from .models import (
    CountyHispanicPopulationRecord,
    CountyPopulationRecord,
    MatchRecord,
    Profile,
    SkippedRow,
    WhoLastReplied,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
PathLike = Union[str, Path]

FIRST_DATA_LINE = 2
_MALFORMED = "\x00malformed"


@dataclass
class LoadResult(Generic[RecordT]):
    """Records that validated, plus the rows that did not."""
    records: List[RecordT] = field(default_factory=list)
    line_numbers: List[int] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)


@dataclass
class ProfileLoadResult:
    """Validated profiles, plus every row skipped on the way."""
    profiles: List[Profile] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "row"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def _read_table(path: Path) -> Tuple[List[str], Iterator[Tuple[int, Optional[dict], Optional[str]]]]:
    """
    Read a CSV file as strings.

    The header is read as an ordinary row so that it alone fixes the field
    count; a data line with more fields, the first one included, goes
    through the bad-line handler.

    Returns the stripped header and an iterator of (line_number, row, error)
    per data line; exactly one of row and error is set. Blank lines are
    skipped without disturbing the line numbering.

    Raises:
        InputFileError: if the file is missing, empty or unreadable
    """
    if not path.exists():
        raise InputFileError(f"File not found: {path}", path=str(path))

    try:
        header = pd.read_csv(
            path,
            header=None,
            nrows=1,
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        raise InputFileError(f"File is empty: {path}", path=str(path)) from None
    except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise InputFileError(f"Failed to read {path}: {e}", path=str(path)) from e

    columns = [str(c).strip() for c in header.iloc[0]]
    width = len(columns)
    bad_lines: List[List[str]] = []

    def _mark_bad(fields: List[str]) -> List[str]:
        # keep a placeholder row so later line numbers stay aligned
        bad_lines.append(fields)
        return [_MALFORMED, str(len(bad_lines) - 1)] + [""] * (width - 2)

    try:
        df = pd.read_csv(
            path,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            engine="python",
            on_bad_lines=_mark_bad if width >= 2 else "error",
        )
    except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise InputFileError(f"Failed to read {path}: {e}", path=str(path)) from e

    # row 0 is the header line
    return columns, _iter_rows(df.iloc[1:], columns, bad_lines, width)


def _iter_rows(
    df: pd.DataFrame,
    columns: List[str],
    bad_lines: List[List[str]],
    width: int,
) -> Iterator[Tuple[int, Optional[dict], Optional[str]]]:
    for offset, values in enumerate(df.itertuples(index=False, name=None)):
        line_number = FIRST_DATA_LINE + offset
        if values and values[0] == _MALFORMED:
            fields = bad_lines[int(values[1])]
            yield line_number, None, f"expected {width} fields, saw {len(fields)}"
            continue

        cleaned = [v.strip() if isinstance(v, str) else v for v in values]
        if all(v == "" or v is None or (isinstance(v, float) and pd.isna(v)) for v in cleaned):
            continue

        row = {
            col: (None if isinstance(v, float) and pd.isna(v) else v)
            for col, v in zip(columns, cleaned)
        }
        yield line_number, row, None


def _parse_row(
    model: Type[RecordT],
    row: Optional[dict],
    error: Optional[str],
    line_number: int,
    source: str,
) -> RecordT:
    """
    Validate one raw row against ``model``.

    Raises:
        RecordParseError: if the line was malformed or fails validation
    """
    if error is not None:
        raise RecordParseError(error, line_number=line_number, source=source)
    try:
        return model.model_validate(row)
    except ValidationError as e:
        raise RecordParseError(
            _format_validation_error(e), line_number=line_number, source=source
        ) from e


def read_records(path: PathLike, model: Type[RecordT], source: Optional[str] = None) -> LoadResult[RecordT]:
    """
    Read a CSV file into validated row records.

    Args:
        path: CSV file path
        model: Row schema to validate each row against
        source: Label used in skip reports (defaults to the file name)

    Returns:
        LoadResult with valid records and skipped rows

    Raises:
        InputFileError: if the file is missing or unreadable, or lacks
            required columns
    """
    path = Path(path)
    source = source or path.name
    result: LoadResult[RecordT] = LoadResult()

    columns, rows = _read_table(path)
    required = [name for name, info in model.model_fields.items() if info.is_required()]
    missing = [name for name in required if name not in columns]
    if missing:
        raise InputFileError(
            f"{source} is missing required columns: {', '.join(missing)}",
            path=str(path),
        )

    for line_number, row, error in rows:
        try:
            record = _parse_row(model, row, error, line_number, source)
        except RecordParseError as e:
            logger.warning(f"error reading record on line {line_number} of {source}: {e}")
            result.skipped.append(SkippedRow(source, line_number, str(e), kind="parse"))
            continue
        result.records.append(record)
        result.line_numbers.append(line_number)

    logger.debug(f"Read {len(result.records)} records from {source} ({len(result.skipped)} skipped)")
    return result


class ProfileValidator:
    """Turns raw match log records into validated profiles."""

    REPLY_VALUES = {member.value: member for member in WhoLastReplied}

    def validate(self, record: MatchRecord) -> Profile:
        """
        Validate one match record.

        Raises:
            ProfileValidationError: on an unknown last_reply value or a
                convo / last_reply inconsistency
        """
        who_last_replied = self.REPLY_VALUES.get(record.last_reply)
        if who_last_replied is None:
            raise ProfileValidationError(
                f"Invalid value for who last replied: '{record.last_reply}'",
                field="last_reply",
                name=record.name,
            )

        try:
            return Profile(
                name=record.name,
                matched=record.matched != 0,
                convo=record.convo != 0,
                who_last_replied=who_last_replied,
                ethnicity_specified=record.specified != 0,
                ethnicity=record.ethnicity(),
            )
        except ValidationError as e:
            raise ProfileValidationError(
                _format_validation_error(e), field="convo", name=record.name
            ) from e


def load_profiles(path: PathLike, validator: Optional[ProfileValidator] = None) -> ProfileLoadResult:
    """
    Load and validate the match log.

    Raises:
        InputFileError: if the match log is missing or unreadable
    """
    path = Path(path)
    validator = validator or ProfileValidator()
    source = path.name

    raw = read_records(path, MatchRecord, source=source)
    result = ProfileLoadResult(skipped=list(raw.skipped))

    for record, line_number in zip(raw.records, raw.line_numbers):
        try:
            result.profiles.append(validator.validate(record))
        except ProfileValidationError as e:
            logger.warning(f"error converting record on line {line_number} to profile: {e}")
            result.skipped.append(SkippedRow(source, line_number, str(e), kind="validation"))

    result.skipped.sort(key=lambda s: s.line_number or 0)
    logger.info(f"Loaded {len(result.profiles)} profiles from {source} ({result.skipped_count} rows skipped)")
    return result


def load_baseline(general_path: PathLike, hispanic_path: PathLike) -> DemographicBaseline:
    """
    Load both census files and build the baseline.

    Rows that cannot be read are skipped and carried on
    ``DemographicBaseline.skipped``.

    Raises:
        BaselineError: if a file is missing, unreadable, has no valid
            rows, or totals zero
    """
    try:
        general = read_records(general_path, CountyPopulationRecord, source=Path(general_path).name)
        hispanic = read_records(hispanic_path, CountyHispanicPopulationRecord, source=Path(hispanic_path).name)
    except InputFileError as e:
        raise BaselineError(str(e), source=e.path) from e

    return build_baseline(
        general.records,
        hispanic.records,
        skipped=general.skipped + hispanic.skipped,
    )
