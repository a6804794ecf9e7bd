"""
MaxRects bin packing with the best-area-fit heuristic.

Each bin tracks its unused area as a list of maximal free rectangles, which
may overlap one another. Placing a rectangle splits every free rectangle it
touches, not only the one it was placed in, and the list is then pruned of
rectangles contained in others. Rectangles are never rotated.
"""

from dataclasses import dataclass

from fontatlas.errors import PackingOverflowError
from fontatlas.glyphs import SizeRequest


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: "Rect") -> bool:
        return (
            self.x < other.right and other.x < self.right
            and self.y < other.bottom and other.y < self.bottom
        )

    def contains(self, other: "Rect") -> bool:
        return (
            self.x <= other.x and self.y <= other.y
            and other.right <= self.right and other.bottom <= self.bottom
        )


@dataclass(frozen=True)
class Placement:
    tag: int
    x: int
    y: int
    width: int
    height: int
    page: int = 0

    def intersects(self, other: "Placement") -> bool:
        return Rect(self.x, self.y, self.width, self.height).intersects(
            Rect(other.x, other.y, other.width, other.height)
        )


class MaxRectsBin:
    """One fixed-size bin and the free rectangles left in it."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"bin size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._free = [Rect(0, 0, width, height)]

    def fits_empty(self, request: SizeRequest) -> bool:
        """Whether the request would fit in this bin if it were empty."""
        return request.width <= self.width and request.height <= self.height

    def insert(self, request: SizeRequest, page: int = 0) -> Placement | None:
        """
        Place a rectangle, or return None if no free rectangle can hold it.

        The free rectangle with the least leftover area wins; ties go to the
        smaller leftover short side, then to the first one found.
        """
        if request.width <= 0 or request.height <= 0:
            raise ValueError(
                f"rectangle {request.tag} must have a positive size, "
                f"got {request.width}x{request.height}"
            )

        best = self._find_best_area_fit(request.width, request.height)
        if best is None:
            return None

        used = Rect(best.x, best.y, request.width, request.height)
        self._split(used)
        self._prune()

        return Placement(
            tag=request.tag,
            x=used.x,
            y=used.y,
            width=used.width,
            height=used.height,
            page=page,
        )

    def _find_best_area_fit(self, width: int, height: int) -> Rect | None:
        best = None
        best_area_fit = None
        best_short_side_fit = None
        area = width * height

        for free in self._free:
            if free.width < width or free.height < height:
                continue
            area_fit = free.width * free.height - area
            short_side_fit = min(free.width - width, free.height - height)
            if (
                best is None
                or area_fit < best_area_fit
                or (area_fit == best_area_fit and short_side_fit < best_short_side_fit)
            ):
                best = free
                best_area_fit = area_fit
                best_short_side_fit = short_side_fit

        return best

    def _split(self, used: Rect) -> None:
        i = 0
        while i < len(self._free):
            free = self._free[i]
            if not free.intersects(used):
                i += 1
                continue
            # Slices of the old free rectangle left uncovered by `used`
            if used.y > free.y:
                self._free.append(Rect(free.x, free.y, free.width, used.y - free.y))
            if used.bottom < free.bottom:
                self._free.append(Rect(free.x, used.bottom, free.width, free.bottom - used.bottom))
            if used.x > free.x:
                self._free.append(Rect(free.x, free.y, used.x - free.x, free.height))
            if used.right < free.right:
                self._free.append(Rect(used.right, free.y, free.right - used.right, free.height))
            del self._free[i]

    def _prune(self) -> None:
        free = [r for r in self._free if r.width > 0 and r.height > 0]
        i = 0
        while i < len(free):
            j = i + 1
            removed = False
            while j < len(free):
                if free[j].contains(free[i]):
                    del free[i]
                    removed = True
                    break
                if free[i].contains(free[j]):
                    del free[j]
                else:
                    j += 1
            if not removed:
                i += 1
        self._free = free


def pack_rectangles(
    requests: list[SizeRequest],
    width: int,
    height: int,
    max_pages: int | None = None,
) -> list[Placement]:
    """
    Pack rectangles, in the given order, into as many width x height bins as needed.

    Every open bin is tried in order before a new one is opened, so the
    result is fully determined by the input order and the bin size.

    Args:
        requests: rectangles to place; the order matters
        width: bin width in pixels
        height: bin height in pixels
        max_pages: upper bound on the number of bins, None for no limit

    Returns:
        One Placement per request, in request order, tagged with its bin index.

    Raises:
        PackingOverflowError: a rectangle is larger than an empty bin, or
            placing it would need more than max_pages bins.
    """
    bins = [MaxRectsBin(width, height)]
    placements = []

    for request in requests:
        if not bins[0].fits_empty(request):
            raise PackingOverflowError(
                f"glyph {request.tag} needs a {request.width}x{request.height} cell, "
                f"larger than the {width}x{height} page"
            )

        placement = None
        for page, bin_ in enumerate(bins):
            placement = bin_.insert(request, page)
            if placement is not None:
                break

        if placement is None:
            if max_pages is not None and len(bins) >= max_pages:
                raise PackingOverflowError(
                    f"glyph {request.tag} ({request.width}x{request.height}) does not fit: "
                    f"all {max_pages} page(s) of {width}x{height} are full"
                )
            bins.append(MaxRectsBin(width, height))
            placement = bins[-1].insert(request, len(bins) - 1)

        placements.append(placement)

    return placements


def page_count(placements: list[Placement]) -> int:
    """Number of bins used by a packing result."""
    return max((p.page for p in placements), default=-1) + 1
