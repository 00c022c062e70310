"""Domain worklist: reading list files and validating domain names."""

import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

_DOMAIN = re.compile(r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$")


def is_valid_domain(name: str) -> bool:
    """Check that ``name`` looks like a hostname with a letter TLD."""
    return bool(name) and bool(_DOMAIN.match(name))


def read_domain_file(path: Union[str, Path]) -> List[str]:
    """Read one domain per line, skipping blank lines and ``#`` comments.

    Raises:
        OSError: If the file cannot be read.
    """
    domains = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            domains.append(line)
    return domains


def collect_domains(
    args: Iterable[str],
    list_file: Optional[Union[str, Path]] = None,
) -> Tuple[List[str], List[str]]:
    """Gather domains from a list file and positional arguments.

    File entries come first, then arguments. Names are trimmed and
    lower-cased; duplicates keep their first position.

    Returns:
        ``(valid, invalid)`` domain lists.
    """
    candidates: List[str] = []
    if list_file:
        candidates.extend(read_domain_file(list_file))
    candidates.extend(args)

    valid: List[str] = []
    invalid: List[str] = []
    for candidate in candidates:
        name = candidate.strip().lower()
        if not name:
            continue
        if not is_valid_domain(name):
            invalid.append(candidate)
        elif name not in valid:
            valid.append(name)
    return valid, invalid
