"""Collection view model.

Turns the flat list of a user's records into what the grid and table views
render: filter, sort, pick the pagination universe, slice one page and, when
no filter is active, nest DLCs under their base game.

Everything here is a pure function of (records, filters, sort key, page).
"""
import math
import unicodedata
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Sequence

from mygames.constants import ALL_FORMATS
from mygames.core.records import GameRecord


class SortKey(str, Enum):
    """Orderings offered by the collection views."""

    CREATED_DESC = "created_at_desc"
    CREATED_ASC = "created_at_asc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    RATING_DESC = "user_rating_desc"


@dataclass(frozen=True)
class FilterState:
    """The four filter dimensions. Empty sets and ``"all"`` mean no constraint."""

    text: str = ""
    statuses: frozenset[str] = frozenset()
    platforms: frozenset[str] = frozenset()
    format: str = ALL_FORMATS


@dataclass
class ViewEntry:
    """One card/row of a page. ``dlcs`` is only filled when not filtering."""

    record: GameRecord
    is_dlc: bool = False
    dlcs: list[GameRecord] = field(default_factory=list)


@dataclass
class CollectionView:
    """Everything the collection screen needs to render one page."""

    items: list[ViewEntry]
    page: int
    page_size: int
    total_pages: int
    total_items: int
    actively_filtering: bool
    filtered: list[GameRecord]


def matches(record: GameRecord, filters: FilterState) -> bool:
    """Conjunction across dimensions, disjunction inside each set."""
    if filters.text and filters.text.lower() not in record.title.lower():
        return False
    if filters.statuses and record.status not in filters.statuses:
        return False
    if filters.platforms and record.platform not in filters.platforms:
        return False
    if filters.format != ALL_FORMATS and record.format != filters.format:
        return False
    return True


def filter_records(records: Iterable[GameRecord], filters: FilterState) -> list[GameRecord]:
    return [r for r in records if matches(r, filters)]


def title_collation_key(title: str) -> tuple[str, str]:
    """Accent and case insensitive ordering key, close to a locale compare.

    Ties on the folded form fall back to the raw title so the order stays total.
    """
    decomposed = unicodedata.normalize("NFKD", title)
    folded = "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    return folded, title


def sort_records(records: Iterable[GameRecord], sort_key: SortKey) -> list[GameRecord]:
    """Stable sort. Records without a user rating sort as 0."""
    records = list(records)
    if sort_key == SortKey.CREATED_DESC:
        return sorted(records, key=lambda r: r.created_at, reverse=True)
    if sort_key == SortKey.CREATED_ASC:
        return sorted(records, key=lambda r: r.created_at)
    if sort_key == SortKey.TITLE_ASC:
        return sorted(records, key=lambda r: title_collation_key(r.title))
    if sort_key == SortKey.TITLE_DESC:
        return sorted(records, key=lambda r: title_collation_key(r.title), reverse=True)
    if sort_key == SortKey.RATING_DESC:
        return sorted(records, key=lambda r: r.user_rating or 0, reverse=True)
    return records


def is_actively_filtering(filters: FilterState) -> bool:
    return bool(
        filters.text.strip()
        or filters.statuses
        or filters.platforms
        or filters.format != ALL_FORMATS
    )


def pagination_universe(sorted_records: Sequence[GameRecord], filters: FilterState) -> list[GameRecord]:
    """Base games only unless a filter is active; then DLCs are rows of their own."""
    if is_actively_filtering(filters):
        return list(sorted_records)
    return [r for r in sorted_records if r.parent_id is None]


def paginate(universe: Sequence[GameRecord], page: int, page_size: int) -> tuple[list[GameRecord], int]:
    """Return the slice for a 1-based ``page`` and the total page count."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_pages = math.ceil(len(universe) / page_size)
    page = max(page, 1)
    start = (page - 1) * page_size
    return list(universe[start:start + page_size]), total_pages


def group_dlcs(records: Iterable[GameRecord]) -> dict[int, list[GameRecord]]:
    """Map base game id to its DLCs, keeping the order of ``records``."""
    children: dict[int, list[GameRecord]] = {}
    for record in records:
        if record.parent_id is not None:
            children.setdefault(record.parent_id, []).append(record)
    return children


def build_view(
    records: Iterable[GameRecord],
    filters: FilterState,
    sort_key: SortKey,
    page: int,
    page_size: int,
) -> CollectionView:
    """Derive the page to render from the full record set."""
    filtered = sort_records(filter_records(records, filters), sort_key)
    filtering = is_actively_filtering(filters)
    universe = pagination_universe(filtered, filters)
    page_items, total_pages = paginate(universe, page, page_size)

    if filtering:
        entries = [ViewEntry(record=r, is_dlc=r.parent_id is not None) for r in page_items]
    else:
        # Not filtering: `filtered` holds every record, so DLCs follow the same sort
        children = group_dlcs(filtered)
        entries = [ViewEntry(record=r, dlcs=children.get(r.id, [])) for r in page_items]

    return CollectionView(
        items=entries,
        page=max(page, 1),
        page_size=page_size,
        total_pages=total_pages,
        total_items=len(universe),
        actively_filtering=filtering,
        filtered=filtered,
    )


class CollectionViewState:
    """Filter, sort and page selections of one collection screen.

    Changing a filter or the sort order sends the user back to page 1.
    """

    def __init__(self, page_size: int, sort_key: SortKey = SortKey.CREATED_DESC):
        self.page_size = page_size
        self.filters = FilterState()
        self.sort_key = sort_key
        self.page = 1

    def _update_filters(self, **changes):
        self.filters = replace(self.filters, **changes)
        self.page = 1

    def set_text(self, text: str):
        self._update_filters(text=text)

    def set_statuses(self, statuses: Iterable[str]):
        self._update_filters(statuses=frozenset(statuses))

    def set_platforms(self, platforms: Iterable[str]):
        self._update_filters(platforms=frozenset(platforms))

    def set_format(self, format: str):
        self._update_filters(format=format)

    def set_sort(self, sort_key: SortKey):
        self.sort_key = sort_key
        self.page = 1

    def set_page(self, page: int):
        self.page = max(page, 1)

    def render(self, records: Iterable[GameRecord]) -> CollectionView:
        return build_view(records, self.filters, self.sort_key, self.page, self.page_size)
