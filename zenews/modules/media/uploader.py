"""
Media Uploader
==============

Validates a file, then stores it with bounded retries.

    idle -> validating -> rejected
                       -> uploading -> (retry_wait -> uploading)* -> succeeded | failed

Transient storage failures are retried with exponential backoff
(base_delay * 2^(n-1) after failure n). A PermanentStoreError ends the
upload on the spot.
"""

import logging
import secrets
import time

import requests

from .validation import validate_upload
from ...core.errors import PermanentStoreError, TransientStoreError, ValidationError
from ...core.storage import classify_storage_error

CATEGORY_FOLDERS = {
    'image': 'images',
    'video': 'videos',
    'document': 'documents',
}


class UploadState:
    IDLE = 'idle'
    VALIDATING = 'validating'
    REJECTED = 'rejected'
    UPLOADING = 'uploading'
    RETRY_WAIT = 'retry_wait'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

    TERMINAL = frozenset({REJECTED, SUCCEEDED, FAILED})


class UploadResult:
    """Everything that happened during one upload"""

    def __init__(self, filename):
        self.filename = filename
        self.states = [UploadState.IDLE]
        self.attempts = 0
        self.waits = []
        self.category = None
        self.content_type = None
        self.size = None
        self.key = None
        self.url = None
        self.error = None

    @property
    def state(self):
        return self.states[-1]

    @property
    def total_wait(self):
        return sum(self.waits)

    @property
    def succeeded(self):
        return self.state == UploadState.SUCCEEDED

    def transition(self, state):
        if self.state in UploadState.TERMINAL:
            raise RuntimeError(f"Upload already finished as '{self.state}'")
        self.states.append(state)

    def to_dict(self):
        return {
            'url': self.url,
            'filename': self.filename,
            'size': self.size,
            'type': self.content_type,
            'category': self.category,
        }


class MediaUploader:
    """Upload files to a storage backend with validation and retry.

    Args:
        storage: A LocalStorageBackend / S3StorageBackend (or anything with
            put, public_url and bucket_exists).
        max_attempts: Total attempts per file, first try included.
        base_delay: Seconds to wait after the first transient failure.
        sleep: Called with each backoff delay; swap out in tests.
        verify_url: HEAD the public URL after a successful upload.
        verify_timeout: Timeout in seconds for that HEAD request.
        folder: Key prefix for every stored object.
        limits: {category: max bytes}, see validation.DEFAULT_LIMITS.
    """

    def __init__(self, storage, max_attempts=3, base_delay=1.0, sleep=time.sleep,
                 verify_url=False, verify_timeout=5, folder='uploads', limits=None,
                 logger=None, http=None):
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        self.storage = storage
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep
        self.verify_url = verify_url
        self.verify_timeout = verify_timeout
        self.folder = folder.strip('/')
        self.limits = limits
        self.logger = logger or logging.getLogger(__name__)
        self.http = http or requests

    def backoff_delay(self, failure_number):
        return self.base_delay * (2 ** (failure_number - 1))

    def build_key(self, category, extension):
        stamp = int(time.time() * 1000)
        name = f"{stamp}-{secrets.token_hex(3)}.{extension}"
        parts = [self.folder, CATEGORY_FOLDERS[category], name]
        return '/'.join(p for p in parts if p)

    def upload(self, stream, filename, content_type, size, kind='media'):
        """Validate and store one file.

        The stream is only read once validation has passed, so a rejected
        file never reaches storage.

        Returns:
            UploadResult in state 'succeeded'.

        Raises:
            ValidationError: File rejected; error.upload_result holds the result.
            StoreError: Storage failed; error.upload_result holds the result.
                A permanent bucket check failure counts as attempt 1.
        """
        result = UploadResult(filename)
        result.size = size

        result.transition(UploadState.VALIDATING)
        head = self._peek(stream)
        try:
            spec = validate_upload(filename, content_type, size, kind=kind,
                                   limits=self.limits, head=head)
        except ValidationError as e:
            self.logger.info(f"Rejected upload '{filename}': {e.message}")
            raise self._fail(result, UploadState.REJECTED, e)

        result.category = spec.category
        result.content_type = spec.content_type
        result.key = self.build_key(spec.category, spec.extension)
        data = stream.read()

        result.transition(UploadState.UPLOADING)
        # A permanent bucket failure ends the first attempt before any put
        try:
            if not self.storage.bucket_exists():
                raise PermanentStoreError(
                    f"Storage bucket '{getattr(self.storage, 'bucket', '')}' does not exist. "
                    "Create it or check STORAGE_BUCKET."
                )
        except TransientStoreError as e:
            # The upload attempts below will report it if it persists
            self.logger.warning(f"Could not check storage bucket: {e.message}")
        except PermanentStoreError as e:
            result.attempts = 1
            self.logger.error(f"Upload of '{filename}' failed permanently: {e.message}")
            raise self._fail(result, UploadState.FAILED, e)

        for attempt in range(1, self.max_attempts + 1):
            result.attempts = attempt
            try:
                self.storage.put(result.key, data, content_type=spec.content_type,
                                 upsert=attempt > 1)
                break
            except Exception as e:
                error = classify_storage_error(e)

            if isinstance(error, PermanentStoreError):
                self.logger.error(f"Upload of '{filename}' failed permanently: {error.message}")
                raise self._fail(result, UploadState.FAILED, error)

            self.logger.warning(
                f"Upload attempt {attempt}/{self.max_attempts} for '{filename}' failed: {error.message}"
            )
            if attempt == self.max_attempts:
                raise self._fail(result, UploadState.FAILED, TransientStoreError(
                    f"Upload failed after {self.max_attempts} attempts: {error.message}"
                ))

            delay = self.backoff_delay(attempt)
            result.transition(UploadState.RETRY_WAIT)
            result.waits.append(delay)
            self.sleep(delay)
            result.transition(UploadState.UPLOADING)

        result.url = self.storage.public_url(result.key)
        if self.verify_url:
            self._verify(result.url)

        result.transition(UploadState.SUCCEEDED)
        self.logger.info(
            f"Uploaded '{filename}' to {result.key} ({size} bytes, {result.attempts} attempt(s))"
        )
        return result

    def _fail(self, result, state, error):
        result.transition(state)
        result.error = error
        error.upload_result = result
        return error

    @staticmethod
    def _peek(stream):
        if not hasattr(stream, 'seek'):
            return None
        head = stream.read(16)
        stream.seek(0)
        return head

    def _verify(self, url):
        """Best-effort HEAD on the public URL; problems are only logged"""
        if not url.startswith(('http://', 'https://')):
            return
        try:
            response = self.http.head(url, timeout=self.verify_timeout, allow_redirects=True)
            if response.status_code >= 400:
                self.logger.warning(f"Uploaded file not reachable yet ({response.status_code}): {url}")
        except requests.RequestException as e:
            self.logger.warning(f"Could not verify uploaded file {url}: {e}")
