import unicodedata
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from pypinyin import Style, lazy_pinyin

from ..errors import OversizedGroup, ValidationError
from ..models import Chunk, CreatorGroup, Item


def _fold(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFKD", text) if not unicodedata.combining(c)
    ).casefold()


def collation_key(name: str) -> Tuple[Tuple[str, ...], str]:
    """
    Sort key for creator names in zh-Hans-CN order.

    Han characters compare by their pinyin syllables, other runs of text
    accent- and case-insensitively. The raw name is the final tie-break so
    the order is total.
    """
    syllables = lazy_pinyin(name, style=Style.NORMAL)
    return tuple(_fold(s) for s in syllables), name


def _group_order(group: CreatorGroup) -> Tuple[int, Tuple[Tuple[str, ...], str], str]:
    return -group.count, collation_key(group.creator_name), group.creator_id


def group_by_creator(items: Iterable[Item]) -> List[CreatorGroup]:
    """
    Partition items into one group per creator id.

    Inside a group items run from most to least recently saved. Groups are
    ordered by size, largest first, then by creator name.
    """
    buckets: Dict[str, List[Item]] = defaultdict(list)
    names: Dict[str, str] = {}
    for item in items:
        buckets[item.creator_id].append(item)
        names.setdefault(item.creator_id, item.creator_name)

    groups = [
        CreatorGroup(
            creator_id=creator_id,
            creator_name=names[creator_id],
            items=tuple(sorted(bucket, key=lambda i: i.saved_timestamp, reverse=True)),
        )
        for creator_id, bucket in buckets.items()
    ]
    groups.sort(key=_group_order)
    return groups


def build_chunks(groups: Sequence[CreatorGroup], capacity: int) -> List[Chunk]:
    """
    Greedy, order-preserving packing of groups into folders of at most
    ``capacity`` items. A group is never split; when the next group does not
    fit, the current folder is closed and a new one started. Earlier folders
    are not back-filled, so folder order follows group order.
    """
    if capacity < 1:
        raise ValidationError(f"Capacity must be at least 1, got {capacity}")

    for group in groups:
        if group.count > capacity:
            raise OversizedGroup(group, capacity)

    chunks: List[Chunk] = []
    current: List[CreatorGroup] = []
    total = 0
    for group in groups:
        if current and total + group.count > capacity:
            chunks.append(Chunk(groups=tuple(current)))
            current, total = [], 0
        current.append(group)
        total += group.count

    if current:
        chunks.append(Chunk(groups=tuple(current)))
    return chunks
