"""
Export utilities for alignment results.

Writes an alignment to a JSON document holding, per scanner, its resolved
transform and position, plus the distinct global beacons and the survey
summary. The same document can be read back for inspection.
"""

import json
from pathlib import Path
from typing import Any, Dict, Sequence, Union, TYPE_CHECKING

from .logging import setup_logger

if TYPE_CHECKING:
    from ..alignment.orchestrator import AlignedScanner

logger = setup_logger(__name__)


def default_export_path(report_path: Union[str, Path], output_dir: Union[str, Path]) -> Path:
    """Destination for a report's alignment JSON: ``<output_dir>/<report stem>_alignment.json``."""
    return Path(output_dir) / f"{Path(report_path).stem}_alignment.json"



def alignment_to_dict(aligned: Sequence["AlignedScanner"]) -> Dict[str, Any]:
    """Build the JSON-serialisable representation of an alignment."""
    from ..analysis.survey import global_beacon_union, summarize_alignment

    beacons = sorted(p.as_tuple() for p in global_beacon_union(aligned))
    return {
        "scanners": [
            {
                "name": scanner.name,
                "rotation_index": scanner.transform.rotation_index,
                "position": list(scanner.position.as_tuple()),
                "n_beacons": len(scanner.scanner),
            }
            for scanner in aligned
        ],
        "beacons": [list(b) for b in beacons],
        "summary": summarize_alignment(aligned).to_dict(),
    }


def export_alignment_json(aligned: Sequence["AlignedScanner"], output_path: Union[str, Path]) -> Path:
    """
    Write an alignment to a JSON file.

    Args:
        aligned: Aligned scanners (as returned by ``align``)
        output_path: Destination file; parent directories are created

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = alignment_to_dict(aligned)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info(
        f"Exported alignment of {len(data['scanners'])} scanners "
        f"({len(data['beacons'])} beacons) to {output_path}"
    )
    return output_path


def load_alignment_json(input_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read an alignment document written by ``export_alignment_json``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required keys are missing
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"File not found: {input_path}")

    with input_path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    missing = {"scanners", "beacons", "summary"} - set(data)
    if missing:
        raise ValueError(f"Alignment file {input_path} is missing keys: {sorted(missing)}")
    return data
