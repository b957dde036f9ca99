"""S3 client factory."""

from __future__ import annotations

import boto3
from botocore.config import Config

from pocketlog.config import AWSSettings


def create_s3_client(aws: AWSSettings):
    session = boto3.Session(
        profile_name=aws.profile,
        region_name=aws.region,
    )
    return session.client("s3", config=_get_s3_config())


def _get_s3_config() -> Config:
    # Timeouts and retries stay at botocore defaults; a failed request is
    # picked up again by the next scheduled run.
    base: dict[str, object] = {
        "request_checksum_calculation": "when_required",
        "response_checksum_validation": "when_required",
    }
    return Config(**base)
