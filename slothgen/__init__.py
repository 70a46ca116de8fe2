"""SLO alert windows, MWMB alert generation, an SLO processor pipeline and Prometheus Operator rule mapping."""

__version__ = "0.1.0"