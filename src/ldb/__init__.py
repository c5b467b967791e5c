"""ldb - declarative collection schemas reconciled against an embedded SQL database."""

__version__ = "0.1.0"
