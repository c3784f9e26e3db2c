"""
Helpers that turn user input into run parameters and name the new folders.
"""

import re
from typing import Callable, List, Sequence, Tuple, Union

from ..errors import ValidationError
from ..models import SourceCollection

# (base_name, chunk_index, total_chunks) -> folder name
NamingPolicy = Callable[[str, int, int], str]

_NAME_SEPARATORS = re.compile(r"[,，;；\r\n]+")


def parse_folder_names(raw: str) -> List[str]:
    """Split on ASCII/full-width commas and semicolons and on newlines."""
    return [part.strip() for part in _NAME_SEPARATORS.split(raw or "") if part.strip()]


def _normalize(title: str) -> str:
    return title.strip().lower()


def pick_folders_by_name(folders: Sequence[SourceCollection],
                         names: Sequence[str]) -> Tuple[List[SourceCollection], List[str]]:
    """
    Select folders whose title matches one of ``names`` (trimmed, case-insensitive).

    Returns the selected folders in the remote listing order and the names
    that matched nothing.
    """
    wanted = {_normalize(n) for n in names}
    selected = [f for f in folders if _normalize(f.title) in wanted]
    found = {_normalize(f.title) for f in selected}
    missing = [n for n in names if _normalize(n) not in found]
    return selected, missing


def truncate_name(title: str, max_length: int) -> str:
    return str(title or "")[:max_length]


def normalize_base_name(raw: str, max_length: int = 10, default: str = "UP聚合") -> str:
    """Trimmed and shortened base name; blank input gives the default label."""
    return truncate_name((raw or "").strip() or default, max_length)


def build_target_folder_name(base_name: str,
                             index: int,
                             total: int,
                             *,
                             max_length: int = 20,
                             default: str = "UP聚合") -> str:
    """
    Name of the ``index``-th (0-based) new folder out of ``total``.

    A single folder keeps the base name; otherwise ``-{index+1}`` is appended
    and the base is cut so the whole name stays within ``max_length``.
    """
    base = truncate_name(base_name or default, max_length).strip() or default
    if total <= 1:
        return truncate_name(base, max_length)

    suffix = f"-{index + 1}"
    max_base = max(1, max_length - len(suffix))
    return f"{truncate_name(base, max_base)}{suffix}"


def validate_capacity(raw: Union[str, int, float, None], maximum: int = 1000,
                      default: int = 1000) -> int:
    """Parse a per-folder capacity and check it lies in ``[1, maximum]``."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        value: Union[int, float] = default
    elif isinstance(raw, bool):
        raise ValidationError(f"Invalid folder size {raw!r}; enter an integer from 1 to {maximum}.")
    elif isinstance(raw, (int, float)):
        value = raw
    else:
        try:
            value = float(raw.strip())
        except ValueError:
            raise ValidationError(
                f"Invalid folder size {raw!r}; enter an integer from 1 to {maximum}."
            ) from None

    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Invalid folder size {raw!r}; enter an integer from 1 to {maximum}.")
        value = int(value)
    if value < 1 or value > maximum:
        raise ValidationError(f"Invalid folder size {value}; enter an integer from 1 to {maximum}.")
    return value
