# blastiface/formats/pssm.py
"""
Copy a psiblast ASN.1 text PSSM, dropping the `intermediateData` block and
optionally naming the profile.

With a title, 'local id 1' becomes 'local id <title>' and a descr/title
entry is inserted in front of the 'inst {' line.
"""
from __future__ import annotations

import os
import sys
from typing import Iterable, Optional, TextIO, Union

__all__ = ["copy_pssm"]

Sink = Union[str, os.PathLike, TextIO, None]


def _filter(lines: Iterable[str], out: TextIO, title: Optional[str]) -> None:
    skip = False
    for line in lines:
        if title:
            line = line.replace("local id 1", f"local id {title}")
            if "inst {" in line:
                out.write("      descr {\n")
                out.write(f'        title "{title}"\n')
                out.write("      },\n")
        if "intermediateData {" in line:
            skip = True
        if "finalData {" in line:
            skip = False
        if not skip:
            out.write(line)


def copy_pssm(lines: Iterable[str], sink: Sink = None, title: Optional[str] = None) -> None:
    """Write the filtered PSSM to a path, an open handle, or stdout (sink None)."""
    if sink is None:
        _filter(lines, sys.stdout, title)
    elif isinstance(sink, (str, os.PathLike)):
        with open(sink, "w", encoding="utf-8") as fh:
            _filter(lines, fh, title)
    else:
        _filter(lines, sink, title)
