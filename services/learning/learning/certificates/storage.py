"""Where rendered certificate PDFs go.

``s3`` uploads through boto3 (CloudFront URL when configured), ``local`` writes
under ``certificate_local_dir``, ``none`` keeps no file. Storage failures are
logged and leave the certificate without a ``pdf_url``; the certificate row
itself is what verification relies on.
"""

from __future__ import annotations

import logging
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from learning.config import Settings

logger = logging.getLogger(__name__)


def _upload_s3(pdf_bytes: bytes, filename: str, settings: Settings) -> str | None:
    key = f"{settings.s3_certificate_prefix}{filename}"
    try:
        s3 = boto3.client("s3", region_name=settings.s3_region)
        s3.put_object(
            Bucket=settings.s3_bucket,
            Key=key,
            Body=pdf_bytes,
            ContentType="application/pdf",
            ContentDisposition="inline",
        )
    except (BotoCoreError, ClientError):
        logger.warning("S3 upload failed for %s", key, exc_info=True)
        return None

    if settings.cloudfront_domain:
        return f"https://{settings.cloudfront_domain}/{key}"
    return f"https://{settings.s3_bucket}.s3.{settings.s3_region}.amazonaws.com/{key}"


def _write_local(pdf_bytes: bytes, filename: str, settings: Settings) -> str | None:
    directory = Path(settings.certificate_local_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_bytes(pdf_bytes)
    except OSError:
        logger.warning("Could not write certificate %s to %s", filename, directory, exc_info=True)
        return None
    return f"{settings.certificate_local_url_prefix.rstrip('/')}/{filename}"


def store_certificate_pdf(pdf_bytes: bytes, filename: str, settings: Settings) -> str | None:
    """Persist the PDF and return its public URL, or None when nothing was stored."""
    if settings.certificate_storage == "s3":
        return _upload_s3(pdf_bytes, filename, settings)
    if settings.certificate_storage == "local":
        return _write_local(pdf_bytes, filename, settings)
    return None
