"""Grandmaster — a panel of data-science agent personas with notebook export."""

__version__ = "0.1.0"
