"""SLO multiwindow multi-burn alerting and Prometheus rule generation building blocks."""

__version__ = "0.1.0"