import os
import stat

import pytest

from blastiface.runners.executables import ExecutableResolver


@pytest.fixture
def bin_dir(tmp_path, monkeypatch):
    """Empty directory used as the only executable search path."""
    d = tmp_path / "bin"
    d.mkdir()
    for name in (
        "BLASTALL", "FORMATDB", "MAKEBLASTDB", "BLASTN", "BLASTP",
        "BLASTX", "TBLASTN", "TBLASTX", "PSIBLAST", "RPSBLAST",
    ):
        monkeypatch.delenv("BLASTIFACE_" + name, raising=False)
    return d


@pytest.fixture
def fake_tool(bin_dir):
    """
    Create an executable shell script in bin_dir:

        fake_tool("blastall", 'cat "/path/report.txt"')
    """
    def _make(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)
    return _make


@pytest.fixture
def resolver(bin_dir):
    return ExecutableResolver(search_path=str(bin_dir))


@pytest.fixture
def formatdb(fake_tool):
    # formatdb -p T|F -i <file>
    return fake_tool("formatdb", 'if [ "$2" = "T" ]; then ext=psq; else ext=nsq; fi\necho index > "$4.$ext"')


@pytest.fixture
def makeblastdb(fake_tool):
    # makeblastdb -dbtype prot|nucl -in <file>
    return fake_tool("makeblastdb", 'if [ "$2" = "prot" ]; then ext=psq; else ext=nsq; fi\necho index > "$4.$ext"')


def write_fasta_file(path, records):
    with open(path, "w") as fh:
        for sid, seq in records:
            fh.write(f">{sid}\n{seq}\n")
    return str(path)


@pytest.fixture
def fasta_file():
    return write_fasta_file
