"""alignoth: plot-ready data for genomic alignment regions.

alignoth turns the reads of an indexed BAM file and the bases of an
indexed reference into compact data for read plots: per-read edit
scripts against the reference, non-overlapping display rows, and a
per-base coverage/mismatch histogram.

Example:
    >>> from alignoth import create_plot_data, parse_region
    >>> data = create_plot_data("reads.bam", "ref.fa", parse_region("chr1:1-20"))
    >>> data.total_count
    1

Modules:
    core: Diff engine, read model, row layout, coverage
    io: Reference and alignment access
    utils: Region arithmetic and logging
"""

__version__ = "0.1.0"

from alignoth.config import Config, PlotConfig
from alignoth.plot import PlotData, Reference, create_plot_data
from alignoth.utils.regions import Region, UnknownTargetError, parse_region

__all__ = [
    "__version__",
    "Config",
    "PlotConfig",
    "PlotData",
    "Reference",
    "Region",
    "UnknownTargetError",
    "create_plot_data",
    "parse_region",
]
