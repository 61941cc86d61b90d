"""
TLE Element Records

Provides the immutable ElementRecord type, fixed-column validation of NORAD
Two-Line Element sets, and parsing of three-line catalog text as served by
CelesTrak.

A record that fails validation is rejected here with ParseError so that it can
never reach the propagator and produce NaN positions.

Field layout (1-based columns):
    Line 1: 1 line number, 3-7 catalog number, 8 classification,
            19-20 epoch year, 21-32 epoch day, 34-43 ndot, 45-52 nddot,
            54-61 B*, 69 checksum
    Line 2: 1 line number, 3-7 catalog number, 9-16 inclination,
            18-25 RAAN, 27-33 eccentricity (implied decimal point),
            35-42 argument of perigee, 44-51 mean anomaly,
            53-63 mean motion (rev/day), 64-68 revolution number, 69 checksum
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from orbit_tracker.errors import ParseError

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


def compute_checksum(line: str) -> int:
    """Calculate TLE checksum over the first 68 columns."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def _float_field(line: str, start: int, end: int, label: str) -> float:
    text = line[start:end].strip()
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"{label} is not numeric: {text!r}") from None


def _check_common(line: str, number: str) -> str:
    line = line.rstrip()
    if len(line) != TLE_LINE_LENGTH:
        raise ValueError(f"line {number} must be {TLE_LINE_LENGTH} columns, got {len(line)}")
    if line[0] != number or line[1] != " ":
        raise ValueError(f"line {number} must start with '{number} '")
    if not line[68].isdigit():
        raise ValueError(f"line {number} checksum column is not a digit: {line[68]!r}")
    expected = compute_checksum(line)
    if int(line[68]) != expected:
        raise ValueError(
            f"line {number} checksum mismatch: expected {expected}, found {line[68]}"
        )
    if not line[2:7].strip():
        raise ValueError(f"line {number} has an empty catalog number")
    return line


class ElementRecord(BaseModel):
    """
    One satellite's two-line orbital elements plus display name.

    Instances are immutable and hashable. Use ``from_lines`` to build one; it
    converts validation failures into ParseError.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    line1: str
    line2: str

    @field_validator("line1")
    @classmethod
    def _validate_line1(cls, value: str) -> str:
        line = _check_common(value, "1")
        year = line[18:20]
        if not year.isdigit():
            raise ValueError(f"epoch year is not numeric: {year!r}")
        day = _float_field(line, 20, 32, "epoch day")
        if not 1.0 <= day < 367.0:
            raise ValueError(f"epoch day out of range: {day}")
        _float_field(line, 33, 43, "first derivative of mean motion")
        return line

    @field_validator("line2")
    @classmethod
    def _validate_line2(cls, value: str) -> str:
        line = _check_common(value, "2")
        inclination = _float_field(line, 8, 16, "inclination")
        if not 0.0 <= inclination <= 180.0:
            raise ValueError(f"inclination out of range: {inclination}")
        _float_field(line, 17, 25, "right ascension of ascending node")
        ecc = line[26:33]
        if not ecc.strip().isdigit():
            raise ValueError(f"eccentricity is not numeric: {ecc!r}")
        _float_field(line, 34, 42, "argument of perigee")
        _float_field(line, 43, 51, "mean anomaly")
        mean_motion = _float_field(line, 52, 63, "mean motion")
        if mean_motion <= 0.0:
            raise ValueError(f"mean motion must be positive: {mean_motion}")
        return line

    @model_validator(mode="after")
    def _check_catalog_numbers(self) -> "ElementRecord":
        if self.line1[2:7] != self.line2[2:7]:
            raise ValueError(
                f"catalog numbers differ: {self.line1[2:7]!r} vs {self.line2[2:7]!r}"
            )
        return self

    @classmethod
    def from_lines(cls, name: str, line1: str, line2: str) -> "ElementRecord":
        """
        Validate and build a record.

        Raises:
            ParseError: if either line violates the fixed-column format
        """
        try:
            return cls(name=name.strip(), line1=line1, line2=line2)
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            raise ParseError(f"Invalid TLE for {name.strip() or '<unnamed>'}: {reasons}", name) from e

    @property
    def catalog_number(self) -> str:
        return self.line1[2:7].strip()

    @property
    def epoch(self) -> datetime:
        """Epoch decoded from line 1 as an aware UTC datetime."""
        epoch_year = int(self.line1[18:20])
        epoch_days = float(self.line1[20:32])
        year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
        return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)

    @property
    def mean_motion_rev_per_day(self) -> float:
        return float(self.line2[52:63])


class CatalogParseResult(NamedTuple):
    records: List[ElementRecord]
    rejected: List[Tuple[str, str]]


def parse_catalog(text: str, limit: Optional[int] = None) -> CatalogParseResult:
    """
    Parse catalog text of name / line 1 / line 2 triplets.

    The name line is optional; records without one are named after their
    catalog number. Each invalid record is logged once and listed in
    ``rejected`` as ``(name, reason)``.

    Args:
        text: Catalog text
        limit: Stop after this many valid records

    Returns:
        CatalogParseResult with valid records in catalog order
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    records: List[ElementRecord] = []
    rejected: List[Tuple[str, str]] = []

    pending_name = None
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            name = pending_name or line[2:7].strip()
            try:
                records.append(ElementRecord.from_lines(name, line, lines[i + 1]))
            except ParseError as e:
                logger.warning(f"Excluding record: {e}")
                rejected.append((name, str(e)))
            pending_name = None
            i += 2
            if limit is not None and len(records) >= limit:
                break
            continue

        if line.startswith(("1 ", "2 ")):
            name = pending_name or line[2:7].strip()
            logger.warning(f"Excluding record {name}: unpaired TLE line")
            rejected.append((name, "unpaired TLE line"))
            pending_name = None
        else:
            pending_name = line.strip()
        i += 1

    logger.debug(f"Parsed {len(records)} records, rejected {len(rejected)}")
    return CatalogParseResult(records, rejected)
