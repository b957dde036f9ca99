"""PocketLog: ship rotated hourly log files to S3."""

__version__ = "0.1.0"
