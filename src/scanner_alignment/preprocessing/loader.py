"""
Scanner Report Loader

This module parses the textual scanner report format into Scanner objects.

Format:

    --- scanner 0 ---
    404,-588,-901
    528,-643,409
    ...

    --- scanner 1 ---
    686,422,578
    ...

Each block starts with a header naming the scanner, followed by one
comma-separated integer triple per beacon. Blank lines separate blocks.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..alignment.orchestrator import Scanner
from ..geometry.points import Point3D
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

_HEADER_RE = re.compile(r"^---\s*(?P<name>.+?)\s*---$")
_BEACON_RE = re.compile(r"^(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)$")


class ReportFormatError(ValueError):
    """A scanner report could not be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ScannerReportLoader:
    """
    Loads scanner reports from text or files.

    Features:
    - Header and beacon line validation with line numbers in errors
    - Scanner names must be unique within a report
    - Warnings for scanners that report no beacons
    """

    def __init__(self, *, encoding: str = "utf-8"):
        self.encoding = encoding

    def load(self, file_path: Union[str, Path]) -> List[Scanner]:
        """
        Load a scanner report file.

        Args:
            file_path: Path to the report text file

        Returns:
            Scanners in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ReportFormatError: If the contents are malformed
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(f"Loading scanner report from {file_path}")
        scanners = self.parse(file_path.read_text(encoding=self.encoding))
        logger.info(
            f"Loaded {len(scanners)} scanners with "
            f"{sum(len(s) for s in scanners)} beacon reports"
        )
        return scanners

    def parse(self, text: str) -> List[Scanner]:
        """
        Parse report text into scanners.

        Raises:
            ReportFormatError: On a malformed line, a beacon before any header,
                a repeated scanner name, or a report without scanners
        """
        scanners: List[Scanner] = []
        seen: Dict[str, int] = {}
        name: Optional[str] = None
        beacons: List[Point3D] = []

        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue

            header = _HEADER_RE.match(line)
            if header:
                if name is not None:
                    scanners.append(self._finish(name, beacons))
                name = header.group("name")
                if name in seen:
                    raise ReportFormatError(
                        f"Duplicate scanner name {name!r} (first used on line {seen[name]})",
                        line_number,
                    )
                seen[name] = line_number
                beacons = []
                continue

            beacon = _BEACON_RE.match(line)
            if beacon is None:
                raise ReportFormatError(f"Cannot parse {line!r} as a header or an x,y,z triple", line_number)
            if name is None:
                raise ReportFormatError("Beacon listed before any scanner header", line_number)
            beacons.append(Point3D(*(int(g) for g in beacon.groups())))

        if name is not None:
            scanners.append(self._finish(name, beacons))

        if not scanners:
            raise ReportFormatError("Report contains no scanners")
        return scanners

    @staticmethod
    def _finish(name: str, beacons: List[Point3D]) -> Scanner:
        if not beacons:
            logger.warning(f"Scanner '{name}' reports no beacons")
        return Scanner(name=name, beacons=tuple(beacons))


def parse_scanner_report(text: str) -> List[Scanner]:
    return ScannerReportLoader().parse(text)


def load_scanners(file_path: Union[str, Path]) -> List[Scanner]:
    return ScannerReportLoader().load(file_path)


def format_scanner_report(scanners: Sequence[Scanner]) -> str:
    """Render scanners back into the report text format."""
    blocks = []
    for scanner in scanners:
        lines = [f"--- {scanner.name} ---"]
        lines.extend(f"{p.x},{p.y},{p.z}" for p in scanner.beacons)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"
