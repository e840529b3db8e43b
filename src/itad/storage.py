"""Custom storage backend for proxying S3 media through Django."""

from storages.backends.s3boto3 import S3Boto3Storage


class ProxiedS3Storage(S3Boto3Storage):
    """S3 storage that returns local /media/ URLs for uploaded images."""

    def url(self, name, parameters=None, expire=None, http_method=None):
        return f"/media/{name}"
