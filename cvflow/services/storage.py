import logging
import os

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import UploadError

logger = logging.getLogger(__name__)


class _Storage:
    """Bucket/key object store with public URLs built as endpoint/bucket/key."""

    def __init__(self, public_endpoint, buckets):
        self.public_endpoint = (public_endpoint or "").rstrip("/")
        self.buckets = dict(buckets)

    def bucket(self, role):
        return self.buckets[role]

    def public_url(self, bucket, key):
        return f"{self.public_endpoint}/{bucket}/{key}"


class S3Storage(_Storage):
    def __init__(self, endpoint, access_key, secret_key, public_endpoint, buckets,
                 region=None, addressing_style="path"):
        super().__init__(public_endpoint or endpoint, buckets)
        s3_kwargs = {}
        if endpoint:
            s3_kwargs['endpoint_url'] = endpoint
        if region:
            s3_kwargs['region_name'] = region
        # MinIO wants path-style addressing; sigv4 either way
        s3_config = Config(signature_version='s3v4', s3={'addressing_style': addressing_style or 'path'})
        self.client = boto3.client(
            's3',
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=s3_config,
            **s3_kwargs,
        )

    def put(self, bucket, key, data: bytes, content_type="application/octet-stream"):
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data,
                                   ContentLength=len(data), ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed bucket=%s key=%s: %s", bucket, key, e)
            raise UploadError(f"Upload to {bucket} failed", bucket=bucket, key=key) from e
        logger.info("S3 upload ok bucket=%s key=%s bytes=%d", bucket, key, len(data))
        return self.public_url(bucket, key)

    def get(self, bucket, key) -> bytes:
        obj = self.client.get_object(Bucket=bucket, Key=key)
        return obj['Body'].read()


class LocalStorage(_Storage):
    def __init__(self, root, public_endpoint, buckets):
        super().__init__(public_endpoint, buckets)
        self.root = root

    def _path(self, bucket, key):
        return os.path.join(self.root, bucket, key)

    def put(self, bucket, key, data: bytes, content_type="application/octet-stream"):
        path = self._path(bucket, key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error("local write failed path=%s: %s", path, e)
            raise UploadError(f"Upload to {bucket} failed", bucket=bucket, key=key) from e
        logger.info("local upload ok path=%s bytes=%d", path, len(data))
        return self.public_url(bucket, key)

    def get(self, bucket, key) -> bytes:
        with open(self._path(bucket, key), 'rb') as f:
            return f.read()


def build_storage(config):
    buckets = {
        "cv": config.get('CV_BUCKET', 'cvs'),
        "artifacts": config.get('ARTIFACT_BUCKET', 'qualified-candidats'),
        "reports": config.get('REPORT_BUCKET', 'rapports-stage'),
    }
    backend = config.get('STORAGE_BACKEND', 'local')
    if backend == 's3':
        return S3Storage(
            endpoint=config.get('S3_ENDPOINT'),
            access_key=config.get('S3_ACCESS_KEY'),
            secret_key=config.get('S3_SECRET_KEY'),
            public_endpoint=config.get('S3_PUBLIC_ENDPOINT'),
            buckets=buckets,
            region=config.get('S3_REGION'),
            addressing_style=config.get('S3_ADDRESSING_STYLE'),
        )
    root = os.path.abspath(config.get('LOCAL_STORAGE_DIR', './storage'))
    return LocalStorage(root, public_endpoint=f"file://{root}", buckets=buckets)
