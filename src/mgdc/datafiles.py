"""
Data side channel: sequence files written next to the decompiled model.

Large alignments are not embedded in the statement text. Instead their
sequences are written to a NEXUS-style file and the data statement loads
it back with loadTabularData(file=...).

File names derive from the statement identifier and are unique within a
run, compared case-insensitively (two identifiers differing only in case
must not overwrite each other on case-insensitive filesystems).
"""

import logging
import os
from typing import List, Sequence, Set, Tuple

from .errors import DataExtractionError

logger = logging.getLogger(__name__)


def format_nexus(taxa: Sequence[Tuple[str, str]], data_type: str) -> str:
    """
    Render (taxon, sequence) pairs as a NEXUS DATA block.

    Example:
        #NEXUS
        BEGIN DATA;
            DIMENSIONS NTAX=2 NCHAR=4;
            FORMAT DATATYPE=nucleotide MISSING=? GAP=-;
            MATRIX
                human ACGT
                chimp ACGA
            ;
        END;
    """
    nchar = max((len(sequence) for _, sequence in taxa), default=0)
    width = max((len(taxon) for taxon, _ in taxa), default=0)
    lines = [
        "#NEXUS",
        "BEGIN DATA;",
        f"    DIMENSIONS NTAX={len(taxa)} NCHAR={nchar};",
        f"    FORMAT DATATYPE={data_type} MISSING=? GAP=-;",
        "    MATRIX",
    ]
    for taxon, sequence in taxa:
        lines.append(f"        {taxon.ljust(width)} {sequence}")
    lines.append("    ;")
    lines.append("END;")
    return "\n".join(lines) + "\n"


class SequenceFileWriter:
    """
    Writes one sequence file per large data node.

    Properties:
        directory: Output directory ("" = current directory)
        extension: File extension including the dot
        written: Paths written so far, in order
    """

    def __init__(self, directory: str = "", extension: str = ".nex"):
        self.directory = directory
        self.extension = extension
        self.written: List[str] = []
        self._taken: Set[str] = set()

    def file_name_for(self, identifier: str) -> str:
        """Reserve a collision-free file name for `identifier`."""
        base = identifier
        candidate = f"{base}{self.extension}"
        counter = 2
        while candidate.lower() in self._taken:
            candidate = f"{base}_{counter}{self.extension}"
            counter += 1
        self._taken.add(candidate.lower())
        return candidate

    def write(self, identifier: str, taxa: Sequence[Tuple[str, str]], data_type: str) -> str:
        """
        Write the sequences of `identifier` and return the file path.

        Raises:
            DataExtractionError: the file could not be written
        """
        file_name = self.file_name_for(identifier)
        path = os.path.join(self.directory, file_name) if self.directory else file_name
        try:
            if self.directory:
                os.makedirs(self.directory, exist_ok=True)
            with open(path, "w") as fh:
                fh.write(format_nexus(taxa, data_type))
        except OSError as exc:
            raise DataExtractionError(path, identifier, str(exc)) from exc

        self.written.append(path)
        logger.info("Wrote %d sequences for %s to %s", len(taxa), identifier, path)
        return path
