"""
Storage Backends
================

Object storage with cloud (any S3-compatible bucket) / local branching.
Both backends classify their failures into TransientStoreError (worth a
retry) and PermanentStoreError (permission or configuration problem).
"""

import logging
import os
from urllib.parse import urlparse

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from .errors import PermanentStoreError, TransientStoreError

logger = logging.getLogger(__name__)

# Error codes that retrying can never fix
PERMANENT_ERROR_CODES = {
    'AccessDenied', 'Forbidden', 'AllAccessDisabled', 'AccountProblem',
    'InvalidAccessKeyId', 'SignatureDoesNotMatch', 'InvalidToken',
    'ExpiredToken', 'TokenRefreshRequired', 'NoSuchBucket', 'InvalidBucketName',
}

TRANSIENT_ERROR_CODES = {
    'InternalError', 'ServiceUnavailable', 'SlowDown', 'RequestTimeout',
    'RequestTimeTooSkewed', 'Throttling', 'ThrottlingException',
}


def classify_storage_error(error):
    """Translate a boto3/botocore or filesystem failure into a typed store error.

    Already-typed errors are returned unchanged.
    """
    if isinstance(error, (TransientStoreError, PermanentStoreError)):
        return error

    if isinstance(error, ClientError):
        err = error.response.get('Error', {})
        code = err.get('Code', '')
        message = err.get('Message') or str(error)
        status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)

        if code in PERMANENT_ERROR_CODES or status in (401, 403):
            if code in ('ExpiredToken', 'TokenRefreshRequired'):
                return PermanentStoreError(f"Storage credentials have expired: {message}")
            if code in ('NoSuchBucket', 'InvalidBucketName') or status == 404:
                return PermanentStoreError(f"Storage bucket is missing or misconfigured: {message}")
            return PermanentStoreError(f"Storage access denied: {message}")
        if code in TRANSIENT_ERROR_CODES or status >= 500 or status in (408, 429):
            return TransientStoreError(f"Storage temporarily unavailable: {message}")
        return PermanentStoreError(f"Storage rejected the request: {message}")

    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return PermanentStoreError("Storage credentials are not configured")

    if isinstance(error, (BotoConnectionError, HTTPClientError)):
        return TransientStoreError(f"Could not reach storage: {error}")

    if isinstance(error, PermissionError):
        return PermanentStoreError(f"Storage access denied: {error}")

    if isinstance(error, (OSError, BotoCoreError)):
        return TransientStoreError(f"Storage write failed: {error}")

    return PermanentStoreError(f"Storage error: {error}")


class LocalStorageBackend:
    """Save objects under the Flask static folder."""

    name = 'local'

    def __init__(self, root_dir, url_prefix='/static'):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip('/')

    def _path(self, key):
        path = os.path.normpath(os.path.join(self.root_dir, key))
        if not path.startswith(os.path.normpath(self.root_dir) + os.sep):
            raise PermanentStoreError(f"Invalid storage key: {key}")
        return path

    def bucket_exists(self):
        return True

    def put(self, key, data, content_type=None, upsert=False):
        path = self._path(key)
        try:
            if os.path.exists(path) and not upsert:
                raise PermanentStoreError(f"Object already exists: {key}")
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except Exception as e:
            raise classify_storage_error(e) from e
        return key

    def delete(self, key):
        path = self._path(key)
        if not os.path.isfile(path):
            return False
        try:
            os.unlink(path)
        except Exception as e:
            raise classify_storage_error(e) from e
        return True

    def public_url(self, key):
        return f"{self.url_prefix}/{key}"

    def key_from_url(self, url):
        """Reverse public_url(); None when the URL is not ours"""
        if not url:
            return None
        path = urlparse(url).path
        prefix = self.url_prefix + '/'
        if path.startswith(prefix):
            return path[len(prefix):]
        return None


class S3StorageBackend:
    """Upload to an S3-compatible bucket via boto3."""

    name = 'cloud'

    def __init__(self, bucket, region=None, endpoint_url=None, access_key=None,
                 secret_key=None, public_base_url=None, connect_timeout=10,
                 read_timeout=300, client=None):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url

        # Retries are owned by MediaUploader, so botocore makes one attempt
        self.client = client or boto3.client(
            's3',
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=BotoConfig(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={'mode': 'standard', 'total_max_attempts': 1},
            ),
        )

    def bucket_exists(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except ClientError as e:
            status = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)
            if status == 404 or e.response.get('Error', {}).get('Code') in ('404', 'NoSuchBucket'):
                return False
            raise classify_storage_error(e) from e
        except Exception as e:
            raise classify_storage_error(e) from e

    def put(self, key, data, content_type=None, upsert=False):
        # S3 PUT always overwrites, keys are unique per upload so upsert is moot
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ACL='public-read',
                ContentType=content_type or 'application/octet-stream',
                CacheControl='max-age=3600',
            )
        except Exception as e:
            raise classify_storage_error(e) from e
        return key

    def delete(self, key):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            raise classify_storage_error(e) from e
        return True

    def public_url(self, key):
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url):
        """Reverse public_url(); None when the URL is not in this bucket"""
        if not url:
            return None
        base = self.public_url('')
        if url.startswith(base):
            return url[len(base):] or None
        return None


def create_storage_backend(config, static_folder):
    """Build the backend selected by STORAGE_TYPE.

    Args:
        config: Mapping with the STORAGE_* keys (usually app.config).
        static_folder: Root directory for local storage.
    """
    if config.get('STORAGE_TYPE', 'local') == 'cloud':
        logger.info(f"Using cloud storage bucket '{config.get('STORAGE_BUCKET')}'")
        return S3StorageBackend(
            bucket=config.get('STORAGE_BUCKET'),
            region=config.get('STORAGE_REGION'),
            endpoint_url=config.get('STORAGE_ENDPOINT_URL'),
            access_key=config.get('STORAGE_ACCESS_KEY'),
            secret_key=config.get('STORAGE_SECRET_KEY'),
            public_base_url=config.get('STORAGE_PUBLIC_URL'),
            connect_timeout=config.get('STORAGE_CONNECT_TIMEOUT', 10),
            read_timeout=config.get('STORAGE_READ_TIMEOUT', 300),
        )
    logger.info(f"Using local storage under {static_folder}")
    return LocalStorageBackend(static_folder)
