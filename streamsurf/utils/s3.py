import boto3
from botocore.client import Config as BotoConfig
from streamsurf.core.config import settings

def make_s3_client(endpoint_url: str):
    cfg = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
        connect_timeout=10,
        read_timeout=120,
        retries={"max_attempts": 3},
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=cfg,
        use_ssl=endpoint_url.startswith("https"),
    )

def make_s3_internal():
    return make_s3_client(str(settings.S3_ENDPOINT))

def public_object_url(*, bucket: str, key: str) -> str:
    """URL publique (bucket en lecture publique, adressage path-style)."""
    base = str(settings.S3_PUBLIC_BASE_URL).rstrip("/")
    return f"{base}/{bucket}/{key}"
