"""
Address fragment generation.

Fragments are fixed-size windows taken at a fixed stride over the
normalized address (default 8 chars every 4 chars, 50% overlap). Any
query no longer than `size - stride + 1` lies inside a single stored
fragment.
"""

FRAGMENT_SIZE = 8
FRAGMENT_STRIDE = 4


def fragment_windows(
    address: str,
    size: int = FRAGMENT_SIZE,
    stride: int = FRAGMENT_STRIDE,
) -> list[tuple[int, str]]:
    """
    Overlapping windows of a normalized address as (offset, fragment).

    Windows start at offset 0 and advance by `stride` up to `len - size`.
    The tail window is always included so the last characters are covered
    even when (len - size) is not a multiple of the stride. Addresses not
    longer than `size` yield a single window (the whole address).

    Args:
        address: Normalized (lowercase) address
        size: Fragment length
        stride: Offset between consecutive windows

    Returns:
        Windows in offset order
    """
    if size <= 0 or stride <= 0:
        raise ValueError("fragment size and stride must be positive")
    if not address:
        return []
    if len(address) <= size:
        return [(0, address)]

    last_start = len(address) - size
    starts = list(range(0, last_start + 1, stride))
    if starts[-1] != last_start:
        starts.append(last_start)
    return [(start, address[start:start + size]) for start in starts]


def generate_fragments(
    address: str,
    size: int = FRAGMENT_SIZE,
    stride: int = FRAGMENT_STRIDE,
) -> list[str]:
    """Distinct fragments of an address, in offset order."""
    fragments: list[str] = []
    seen: set[str] = set()
    for _, fragment in fragment_windows(address, size, stride):
        if fragment not in seen:
            seen.add(fragment)
            fragments.append(fragment)
    return fragments


def probe_length(size: int = FRAGMENT_SIZE, stride: int = FRAGMENT_STRIDE) -> int:
    """Longest query guaranteed to sit inside one stored fragment."""
    return max(1, size - stride + 1)


def fragment_probe(
    query: str,
    size: int = FRAGMENT_SIZE,
    stride: int = FRAGMENT_STRIDE,
) -> str:
    """
    Piece of the query to scan the fragment index with.

    Queries longer than probe_length() may straddle two fragments, so
    only their leading probe_length() characters are matched against
    stored fragments; the full query is verified against the address
    afterwards.
    """
    return query[:probe_length(size, stride)]
