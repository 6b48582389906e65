"""
Object storage on Cloudflare R2 (S3-compatible API via boto3)
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from ..config import Settings

logger = logging.getLogger(__name__)

# Presigned URL expiration time (7 days, the SigV4 maximum)
PRESIGNED_URL_EXPIRATION = 7 * 24 * 3600


def r2_configured(settings: Settings) -> bool:
    return bool(settings.r2_account_id and settings.r2_access_key_id and settings.r2_secret_access_key)


def get_r2_client(settings: Settings):
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        config=Config(signature_version="s3v4"),
    )


def generate_presigned_url(settings: Settings, key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for reading a private object in R2."""
    r2 = get_r2_client(settings)
    return r2.generate_presigned_url(
        "get_object",
        Params={"Bucket": settings.r2_bucket_name, "Key": key, "ResponseContentDisposition": "inline"},
        ExpiresIn=expiration,
    )


def upload_bytes(settings: Settings, key: str, contents: bytes, content_type: str) -> str:
    """
    Store an object and return the URL clients should use for it.

    Blocking; call from a worker thread.
    """
    r2 = get_r2_client(settings)
    try:
        r2.put_object(
            Bucket=settings.r2_bucket_name,
            Key=key,
            Body=contents,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ R2 upload failed for key {key}: {e}")
        raise HTTPException(status_code=500, detail=f"Storage upload failed: {str(e)}") from e

    logger.info(f"✅ Uploaded {len(contents)} bytes to R2: {key}")

    if settings.r2_public_url:
        return f"{settings.r2_public_url.rstrip('/')}/{key}"
    return generate_presigned_url(settings, key)
