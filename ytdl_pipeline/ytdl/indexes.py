"""
Playlist index resolution

Turns the extractor's playlist selection flags into the list of zero-based
indexes of the entries to download. Selection happens locally, against the
sanitized entry list, instead of being delegated to the extractor: the full
playlist metadata is always extracted and cached, then sliced here.

Flags honoured (same meaning as for yt-dlp / youtube-dl):
    --playlist-start N     first item, 1-based (default 1)
    --playlist-end N       last item, 1-based (default: last entry)
    --playlist-items LIST  "1,3-5,20": overrides start/end when present
    --playlist-reverse     descending order
    --playlist-random      random order (ignored when reverse is set)
"""

import random as random_module
from dataclasses import dataclass
from typing import List, Optional

from ..config.options import Options
from ..exceptions import PlaylistSelectionError

PLAYLIST_START = '--playlist-start'
PLAYLIST_END = '--playlist-end'
PLAYLIST_ITEMS = '--playlist-items'
PLAYLIST_REVERSE = '--playlist-reverse'
PLAYLIST_RANDOM = '--playlist-random'

# Flags that truncate the extracted metadata
PLAYLIST_RANGE_FLAGS = (PLAYLIST_START, PLAYLIST_END, PLAYLIST_ITEMS)

# Every flag resolved locally by resolve_playlist_indexes()
PLAYLIST_SELECTION_FLAGS = PLAYLIST_RANGE_FLAGS + (PLAYLIST_REVERSE, PLAYLIST_RANDOM)


@dataclass(frozen=True)
class PlaylistSelection:
    """
    Which playlist items to act on, and in what order

    Attributes:
        start: First item number, 1-based
        end: Last item number, 1-based; None means the last entry
        items: Explicit item list such as "1,3-5"; overrides start/end
        reverse: Descending order
        random: Shuffled order, ignored when reverse is set
    """
    start: int = 1
    end: Optional[int] = None
    items: Optional[str] = None
    reverse: bool = False
    random: bool = False

    @classmethod
    def from_options(cls, options: Options) -> "PlaylistSelection":
        """Build a selection from the playlist flags of an option store"""
        try:
            start = int(options.get_option(PLAYLIST_START, '1'))
            end_value = options.get_option(PLAYLIST_END)
            end = int(end_value) if end_value is not None else None
        except ValueError as e:
            raise PlaylistSelectionError(
                f"Invalid playlist range: {e}",
                details={'start': options.get_option(PLAYLIST_START),
                         'end': options.get_option(PLAYLIST_END)}
            ) from e

        return cls(
            start=start,
            end=end,
            items=options.get_option(PLAYLIST_ITEMS),
            reverse=options.is_option(PLAYLIST_REVERSE),
            random=options.is_option(PLAYLIST_RANDOM),
        )


def parse_playlist_items(items: str, count: int) -> List[int]:
    """
    Expand an item list into sorted, unique 1-based item numbers

    A bare number contributes itself, "a-b" contributes a..b inclusive.
    An inverted range ("5-3") contributes nothing. Numbers outside 1..count
    are dropped.

    Args:
        items: Comma separated numbers and ranges
        count: Number of entries in the playlist

    Returns:
        Ascending list of item numbers

    Raises:
        PlaylistSelectionError: On a token that is not a number or a range
    """
    numbers = set()
    for raw_token in items.split(','):
        token = raw_token.strip()
        if not token:
            continue

        first, sep, last = token.partition('-')
        try:
            low = int(first)
            high = int(last) if sep else low
        except ValueError as e:
            raise PlaylistSelectionError(
                f"Invalid playlist item: '{token}'",
                details={'items': items, 'token': token}
            ) from e

        numbers.update(range(low, high + 1))

    return sorted(n for n in numbers if 1 <= n <= count)


def resolve_playlist_indexes(
    count: int,
    selection: PlaylistSelection,
    rng: Optional[random_module.Random] = None
) -> List[int]:
    """
    Resolve a selection into zero-based entry indexes

    Args:
        count: Number of (sanitized) playlist entries
        selection: Selection flags
        rng: Random source for the random order, module default if None

    Returns:
        Indexes in download order, all within 0..count-1
    """
    if selection.items is not None:
        numbers = parse_playlist_items(selection.items, count)
    else:
        start = max(selection.start, 1)
        end = count if selection.end is None else min(selection.end, count)
        numbers = list(range(start, end + 1))

    if selection.reverse:
        numbers.reverse()
    elif selection.random:
        (rng or random_module).shuffle(numbers)

    # item numbers begin with 1, indexes with 0
    return [n - 1 for n in numbers]
