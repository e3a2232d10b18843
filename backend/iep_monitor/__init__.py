"""IEP Compliance Monitor - compliance alerts and caseload analytics for IEP case records."""

__version__ = "1.0.0"
