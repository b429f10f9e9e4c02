from dataclasses import dataclass, field
from typing import Iterator, List, Optional
import numpy as np

from icx.color import Color
from icx.kmeans import ClusteringResult


@dataclass(frozen=True)
class PaletteEntry:
    color: Color
    percentage: float


@dataclass(frozen=True)
class PaletteResult:
    """
    Palette colors with their share of the pixel population.

    Entries follow centroid index order, not percentage order.
    """
    entries: List[PaletteEntry] = field(default_factory=list)

    @property
    def colors(self) -> List[Color]:
        return [entry.color for entry in self.entries]

    @property
    def percentages(self) -> List[float]:
        return [entry.percentage for entry in self.entries]

    def get_color(self, index: int) -> Optional[Color]:
        if 0 <= index < len(self.entries):
            return self.entries[index].color
        return None

    def get_percentage(self, index: int) -> Optional[float]:
        if 0 <= index < len(self.entries):
            return self.entries[index].percentage
        return None

    def length(self) -> int:
        return len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self.entries)


def derive(result: ClusteringResult, k: int, total_samples: int) -> PaletteResult:
    """
    Turn final centroids and assignments into a palette with percentages.

    Always returns k entries. Clusters that ended up empty get exactly 0.0,
    as does every entry when total_samples is 0.

    Args:
        result (ClusteringResult): Output of kmeans.cluster.
        k (int): Number of clusters the run was asked for.
        total_samples (int): Number of samples that were clustered.

    Returns:
        PaletteResult: One entry per centroid index.
    """
    indices = np.asarray(result.indices, dtype=np.int64)
    # Out-of-range labels are not counted
    indices = indices[(indices >= 0) & (indices < k)]
    counts = np.bincount(indices, minlength=k) if len(indices) else np.zeros(k, dtype=np.int64)

    entries = []
    for i in range(k):
        color = Color.from_rgb(result.centroids[i])
        if total_samples > 0:
            percentage = float(counts[i]) / total_samples * 100.0
        else:
            percentage = 0.0
        entries.append(PaletteEntry(color=color, percentage=percentage))

    return PaletteResult(entries=entries)
