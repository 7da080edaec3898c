"""Report generation for resolution and discovery results."""

from testadapter.reporting.reporter import Reporter, marker_to_dict

__all__ = ["Reporter", "marker_to_dict"]
