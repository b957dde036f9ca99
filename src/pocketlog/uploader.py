"""Upload coordinator: discover ready artifacts, ship them to S3, retire them.

A run is stateless and idempotent. Each artifact maps to a deterministic
object key, so an artifact that was uploaded but not deleted (crash between
the two steps) is simply uploaded again to the same key on the next run and
overwrites the identical object. There is no retry inside a run; the next
scheduled invocation is the retry.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from botocore.exceptions import BotoCoreError, ClientError

from pocketlog.artifacts import LogArtifact, scan_artifacts
from pocketlog.config import AWSSettings, Settings
from pocketlog.errors import ArtifactTooLargeError, ConfigurationError
from pocketlog.s3_client import create_s3_client

_logger = logging.getLogger(__name__)

# Single PutObject request limit.
MAX_PUT_OBJECT_BYTES = 5 * 1024 * 1024 * 1024

CONTENT_TYPE = "text/plain"
CONTENT_ENCODING = "gzip"

ClientFactory = Callable[[AWSSettings], object]


@dataclass(frozen=True)
class UploadRecord:
    artifact: LogArtifact
    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass
class UploadOutcome:
    record: UploadRecord
    uploaded: bool = False
    deleted: bool = False
    error: str | None = None


@dataclass
class RunSummary:
    outcomes: list[UploadOutcome] = field(default_factory=list)

    @property
    def uploaded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.uploaded)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.uploaded)

    @property
    def deleted(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.deleted)


def build_object_key(prefix: str, artifact: LogArtifact) -> str:
    """Return ``<prefix>/<YYYY>/<MM>/<DD>/<filename>`` for an artifact.

    Depends only on the prefix and the artifact's embedded date and name,
    never on the current time.
    """
    parts = [
        f"{artifact.year:04d}",
        f"{artifact.month:02d}",
        f"{artifact.day:02d}",
        artifact.name,
    ]
    prefix = prefix.strip("/")
    if prefix:
        parts.insert(0, prefix)
    return "/".join(parts)


class UploadCoordinator:
    """Runs one discover -> upload -> delete pass over the log root."""

    def __init__(
        self,
        settings: Settings,
        client_factory: ClientFactory = create_s3_client,
    ) -> None:
        if not settings.uploader.bucket.strip():
            raise ConfigurationError("S3_BUCKET is not set; refusing to scan or upload")
        self._settings = settings
        self._client_factory = client_factory
        self._client: object | None = None

    @property
    def bucket(self) -> str:
        return self._settings.uploader.bucket

    def _get_client(self):
        if self._client is None:
            self._client = self._client_factory(self._settings.aws)
        return self._client

    def record_for(self, artifact: LogArtifact) -> UploadRecord:
        return UploadRecord(
            artifact=artifact,
            bucket=self.bucket,
            key=build_object_key(self._settings.uploader.prefix, artifact),
        )

    def run(self, now: float | None = None) -> RunSummary:
        uploader = self._settings.uploader
        if now is None:
            now = time.time()

        _logger.info(
            "Scanning %s for artifacts older than %ds (bucket=%s, prefix=%s, delete=%s)",
            uploader.log_root,
            uploader.min_age_seconds,
            uploader.bucket,
            uploader.prefix,
            uploader.delete_after_upload,
        )

        summary = RunSummary()
        for artifact in scan_artifacts(uploader.log_root, uploader.min_age_seconds, now=now):
            summary.outcomes.append(self.process(artifact))

        _logger.info(
            "Run complete: %d uploaded, %d failed, %d deleted",
            summary.uploaded,
            summary.failed,
            summary.deleted,
        )
        return summary

    def process(self, artifact: LogArtifact) -> UploadOutcome:
        """Upload one artifact and, on success, delete it if enabled."""
        record = self.record_for(artifact)
        outcome = UploadOutcome(record=record)

        try:
            self._upload(record)
        except (ClientError, BotoCoreError, ArtifactTooLargeError, OSError) as exc:
            outcome.error = str(exc)
            _logger.error(
                "Upload failed for %s to bucket=%s key=%s: %s",
                artifact.path,
                record.bucket,
                record.key,
                exc,
            )
            return outcome

        outcome.uploaded = True
        _logger.info("Uploaded %s to %s (%d bytes)", artifact.path, record.uri, artifact.size)

        if self._settings.uploader.delete_after_upload:
            outcome.deleted = self._delete(artifact)
        return outcome

    def _upload(self, record: UploadRecord) -> None:
        artifact = record.artifact
        if artifact.size > MAX_PUT_OBJECT_BYTES:
            raise ArtifactTooLargeError(str(artifact.path), artifact.size, MAX_PUT_OBJECT_BYTES)

        client = self._get_client()
        with artifact.path.open("rb") as body:
            client.put_object(
                Bucket=record.bucket,
                Key=record.key,
                Body=body,
                ContentLength=artifact.size,
                ContentType=CONTENT_TYPE,
                ContentEncoding=CONTENT_ENCODING,
            )

    def _delete(self, artifact: LogArtifact) -> bool:
        try:
            artifact.path.unlink()
        except OSError as exc:
            _logger.warning("Failed to delete %s after upload: %s", artifact.path, exc)
            return False
        _logger.info("Deleted %s", artifact.path)
        return True
