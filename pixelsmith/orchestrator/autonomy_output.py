"""
Split autonomy (swarm) output into application files.
"""
import re
from typing import List

from pixelsmith.constants import DEFAULT_ENTRY_PATH
from pixelsmith.schemas import AppFile
from pixelsmith.utils.decode import extract_code

# e.g. "// === /src/components/Board.tsx ==="
FILE_MARKER = re.compile(r"//\s*===\s*(/\S+)\s*===")


def parse_autonomy_output(output: str) -> List[AppFile]:
    """
    One file per `// === /path ===` marker, holding everything up to the next marker.
    Without markers the whole output becomes the entry file. Empty sections are dropped;
    when every section is empty the raw output becomes the entry file.
    """
    matches = list(FILE_MARKER.finditer(output or ""))
    if not matches:
        return [AppFile(path=DEFAULT_ENTRY_PATH, content=extract_code(output or ""))]

    files = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(output)
        content = extract_code(output[match.end():end])
        if content:
            files.append(AppFile(path=match.group(1), content=content))

    if not files:
        return [AppFile(path=DEFAULT_ENTRY_PATH, content=output.strip())]
    return files
