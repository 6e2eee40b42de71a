"""Contig-name translation between Ensembl ("1", "MT") and UCSC ("chr1", "chrM") naming.

Tables are packaged per build as two-column tab-separated files named
``<build>_<direction>.txt``; each direction file is the inverse of the other.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from genoprot.constants import SUPPORTED_BUILDS
from genoprot.exceptions import ConfigurationError, FileFormatError
from genoprot.resources import mapping_table_text
from genoprot.utils.logging import get_logger

logger = get_logger("chromosome_mapping")


class MappingDirection(str, Enum):
    ENSEMBL_TO_UCSC = "ensembl2UCSC"
    UCSC_TO_ENSEMBL = "UCSC2ensembl"

    @property
    def output_tag(self) -> str:
        return "ucsc" if self is MappingDirection.ENSEMBL_TO_UCSC else "ensembl"

    @property
    def reverse(self) -> "MappingDirection":
        if self is MappingDirection.ENSEMBL_TO_UCSC:
            return MappingDirection.UCSC_TO_ENSEMBL
        return MappingDirection.ENSEMBL_TO_UCSC


def _canonical_build(build: str) -> str:
    for name in SUPPORTED_BUILDS:
        if name.lower() == str(build).strip().lower():
            return name
    raise ConfigurationError(f"No chromosome mapping available for build {build!r}")


@lru_cache(maxsize=None)
def _load_table(build: str, direction: MappingDirection) -> Tuple[Tuple[str, str], ...]:
    filename = f"{build}_{direction.value}.txt"
    pairs = []
    for lineno, line in enumerate(mapping_table_text(filename).splitlines(), 1):
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split("\t")
        if len(fields) < 2:
            raise FileFormatError(f"{filename}:{lineno}: expected two tab-separated columns")
        pairs.append((fields[0].strip(), fields[1].strip()))
    return tuple(pairs)


def mapping(build: str, direction: MappingDirection) -> List[Tuple[str, str]]:
    """Return the ordered ``(source, target)`` contig pairs for *build*."""
    return list(_load_table(_canonical_build(build), MappingDirection(direction)))


def translator(build: str, direction: MappingDirection) -> Dict[str, str]:
    return dict(mapping(build, direction))


def looks_like_ucsc(contig: str) -> bool:
    return contig.startswith("chr")


def translate_leading_column(
    input_path: Path,
    build: str,
    direction: MappingDirection,
    output_path: Optional[Path] = None,
) -> Path:
    """Rewrite the first column of a tab-separated file into the target naming.

    Rows already in the target naming pass through unchanged, rows whose name
    is unknown to the table are dropped, ``#`` comment lines and blank lines
    are skipped. The input file is left untouched.

    Returns:
        Path of the translated file (``<stem>.<ucsc|ensembl><suffix>`` by default).
    """
    direction = MappingDirection(direction)
    input_path = Path(input_path)
    if output_path is None:
        output_path = input_path.with_name(
            f"{input_path.stem}.{direction.output_tag}{input_path.suffix}"
        )
    output_path = Path(output_path)
    if output_path.resolve() == input_path.resolve():
        raise ConfigurationError(f"Refusing to translate {input_path} in place")

    pairs = mapping(build, direction)
    lookup = dict(pairs)
    targets = {target for _, target in pairs}

    translated = passed = dropped = blank = 0
    tmp_path = output_path.with_suffix(output_path.suffix + ".partial")
    with open(input_path, "r", encoding="utf-8") as src, open(tmp_path, "w", encoding="utf-8") as out:
        for raw in src:
            line = raw.rstrip("\r\n")
            if not line.strip():
                blank += 1
                continue
            if line.startswith("#"):
                continue
            name, sep, rest = line.partition("\t")
            if name in lookup:
                out.write(f"{lookup[name]}{sep}{rest}\n")
                translated += 1
            elif name in targets:
                out.write(f"{line}\n")
                passed += 1
            else:
                dropped += 1
    tmp_path.replace(output_path)

    logger.info(
        f"Translated {input_path.name} ({direction.value}): {translated} renamed, "
        f"{passed} already {direction.output_tag}, {dropped} unrecognized dropped"
    )
    if blank:
        logger.debug(f"Skipped {blank} blank line(s) in {input_path}")
    return output_path
