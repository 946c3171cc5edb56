"""Object storage for uploaded media, backed by a local directory tree or a cloud bucket."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Optional, Dict, Any
from urllib.parse import quote
from flask import current_app
from libcloud.storage.types import Provider, ObjectDoesNotExistError
from libcloud.storage.providers import get_driver
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_not_exception_type,
    before_sleep_log,
    after_log
)
from shared.validation import Validator, ValidationError


logger = logging.getLogger(__name__)

METADATA_SUFFIX = '.metadata.json'


@dataclass
class StoredFile:
    """Content read back from storage."""
    data: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)
    content_type: Optional[str] = None


def _namespace(is_private):
    return 'private' if is_private else 'public'


class LocalStorageService:
    """Filesystem storage under ``<root>/<private|public>/<path>``.

    The filesystem has no object metadata, so content type and metadata are
    kept in a ``<path>.metadata.json`` sidecar next to the content.
    """

    def __init__(self, root):
        self.root = Path(root).resolve()
        for namespace in ('private', 'public'):
            (self.root / namespace).mkdir(parents=True, exist_ok=True)
        logger.info(f"Local storage initialized at {self.root}")

    def _resolve(self, path, is_private):
        Validator.validate_storage_path(path)
        base = (self.root / _namespace(is_private)).resolve()
        full_path = (base / path).resolve()
        if base != full_path and base not in full_path.parents:
            raise ValidationError("Invalid storage path - path traversal not allowed")
        return full_path

    @staticmethod
    def _sidecar(full_path):
        return full_path.with_name(full_path.name + METADATA_SUFFIX)

    def save(self, path, content_type, data, metadata=None, is_private=True):
        full_path = self._resolve(path, is_private)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)

        sidecar = dict(metadata or {})
        sidecar['contentType'] = content_type
        self._sidecar(full_path).write_text(json.dumps(sidecar, default=str))

        logger.debug(f"Stored {len(data)} bytes at {_namespace(is_private)}/{path}")
        return path

    def get(self, path, is_private=True):
        full_path = self._resolve(path, is_private)
        if not full_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return StoredFile(data=full_path.read_bytes())

    def get_with_metadata(self, path, is_private=True):
        full_path = self._resolve(path, is_private)
        if not full_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        metadata = {}
        sidecar = self._sidecar(full_path)
        if sidecar.is_file():
            try:
                metadata = json.loads(sidecar.read_text())
            except json.JSONDecodeError as e:
                logger.warning(f"Unreadable metadata sidecar for {path}: {e}")

        content_type = metadata.pop('contentType', None)
        return StoredFile(data=full_path.read_bytes(), metadata=metadata, content_type=content_type)

    def delete(self, path, is_private=True, ignore_not_found=True):
        full_path = self._resolve(path, is_private)
        if not full_path.is_file():
            if ignore_not_found:
                return False
            raise FileNotFoundError(f"File not found: {path}")

        full_path.unlink()
        self._sidecar(full_path).unlink(missing_ok=True)
        logger.info(f"Deleted {_namespace(is_private)}/{path}")
        return True

    def exists(self, path, is_private=True):
        try:
            return self._resolve(path, is_private).is_file()
        except ValidationError:
            return False

    def public_url(self, path):
        Validator.validate_storage_path(path)
        return f"/public/{quote(path)}"


# Object lookups that fail because the object is absent are not retried
_retry_transient = retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=4, max=300),
    retry=retry_if_not_exception_type((FileNotFoundError, ValidationError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    after=after_log(logger, logging.INFO),
    reraise=True
)


class CloudStorageService:
    """Bucket storage through Apache Libcloud.

    Google Cloud Storage is the default provider; S3 is used when the
    configured location is ``S3``. Public and private content live in
    separate containers, which may be the same bucket.
    """

    PUBLIC_URL_TEMPLATES = {
        'GCP': 'https://storage.googleapis.com/{bucket}/{path}',
        'S3': 'https://{bucket}.s3.{region}.amazonaws.com/{path}',
    }

    def __init__(self, config):
        self.provider_name = (config.get('STORAGE_LOCATION') or 'GCP').upper()
        self.region = config.get('S3_REGION') or 'us-east-1'
        if self.provider_name == 'S3':
            self.public_bucket = config.get('S3_PUBLIC_BUCKET') or config.get('GCP_PUBLIC_BUCKET')
            self.private_bucket = config.get('S3_PRIVATE_BUCKET') or config.get('GCP_PRIVATE_BUCKET')
        else:
            self.public_bucket = config.get('GCP_PUBLIC_BUCKET')
            self.private_bucket = config.get('GCP_PRIVATE_BUCKET')

        if not all([self.public_bucket, self.private_bucket]):
            raise ValueError("Cloud storage configuration incomplete. Check bucket settings.")

        self.driver = self._get_driver(config)
        self._containers = {}
        self._containers_lock = Lock()

        logger.info(f"Cloud storage initialized with provider: {self.provider_name}")

    def _get_driver(self, config):
        """Get the libcloud driver for the configured provider."""
        if self.provider_name == 'S3':
            key, secret = config.get('S3_ACCESS_KEY'), config.get('S3_SECRET_KEY')
            if not all([key, secret]):
                raise ValueError("Cloud storage configuration incomplete. Check S3 credentials.")
            return get_driver(Provider.S3)(key, secret, region=self.region)

        key, secret = config.get('GCP_CLIENT_EMAIL'), config.get('GCP_PRIVATE_KEY')
        if not all([key, secret]):
            raise ValueError("Cloud storage configuration incomplete. Check GCP credentials.")
        return get_driver(Provider.GOOGLE_STORAGE)(key, secret, project=config.get('GCP_PROJECT_ID'))

    def _container(self, is_private):
        bucket = self.private_bucket if is_private else self.public_bucket
        with self._containers_lock:
            if bucket not in self._containers:
                self._containers[bucket] = self.driver.get_container(container_name=bucket)
            return self._containers[bucket]

    def _get_object(self, path, is_private):
        Validator.validate_storage_path(path)
        container = self._container(is_private)
        try:
            return self.driver.get_object(container.name, path)
        except ObjectDoesNotExistError:
            raise FileNotFoundError(f"File not found: {path}")

    @_retry_transient
    def save(self, path, content_type, data, metadata=None, is_private=True):
        Validator.validate_storage_path(path)
        extra = {
            'content_type': content_type,
            'meta_data': {key: str(value) for key, value in (metadata or {}).items()},
        }

        logger.info(f"Uploading {len(data)} bytes to {_namespace(is_private)} bucket as {path}")
        self.driver.upload_object_via_stream(
            iterator=iter([data]),
            container=self._container(is_private),
            object_name=path,
            extra=extra
        )
        return path

    def _download(self, obj):
        return b''.join(self.driver.download_object_as_stream(obj))

    @_retry_transient
    def get(self, path, is_private=True):
        obj = self._get_object(path, is_private)
        return StoredFile(data=self._download(obj))

    @_retry_transient
    def get_with_metadata(self, path, is_private=True):
        obj = self._get_object(path, is_private)
        extra = obj.extra or {}
        return StoredFile(
            data=self._download(obj),
            metadata=dict(obj.meta_data or {}),
            content_type=extra.get('content_type')
        )

    def delete(self, path, is_private=True, ignore_not_found=True):
        try:
            obj = self._get_object(path, is_private)
        except FileNotFoundError:
            if ignore_not_found:
                return False
            raise

        self.driver.delete_object(obj)
        logger.info(f"Deleted object: {path}")
        return True

    def exists(self, path, is_private=True):
        try:
            self._get_object(path, is_private)
        except (FileNotFoundError, ValidationError):
            return False
        return True

    def public_url(self, path):
        Validator.validate_storage_path(path)
        template = self.PUBLIC_URL_TEMPLATES.get(self.provider_name, self.PUBLIC_URL_TEMPLATES['GCP'])
        return template.format(bucket=self.public_bucket, region=self.region, path=quote(path))


def create_storage(config):
    """Build the storage backend named by ``STORAGE_LOCATION``."""
    location = (config.get('STORAGE_LOCATION') or 'LOCAL').upper()
    if location == 'LOCAL':
        return LocalStorageService(config.get('LOCAL_STORAGE_PATH') or './storage')
    if location in ('GCP', 'S3'):
        return CloudStorageService(config)
    raise ValueError(f"Unsupported storage location: {location}")


def init_storage(app):
    """Choose the storage backend once for the lifetime of ``app``."""
    app.extensions['storage'] = create_storage(app.config)
    return app.extensions['storage']


def get_storage():
    """Return the storage backend of the current app."""
    return current_app.extensions['storage']
