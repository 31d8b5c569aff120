import boto3
import os
import tempfile
import uuid
from typing import Tuple
from zenflow.config import settings
import structlog

logger = structlog.get_logger()


class S3Service:
    def __init__(self):
        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def generate_presigned_upload_url(self, filename: str, content_type: str) -> Tuple[str, str, dict]:
        """
        Generate a presigned POST for uploading a practice video to S3.

        Args:
            filename: The original filename
            content_type: The MIME type of the file

        Returns:
            Tuple of (presigned_url, s3_file_url, presigned_fields)
        """
        try:
            file_extension = filename.split('.')[-1] if '.' in filename else 'mp4'
            unique_filename = f"practice-videos/{uuid.uuid4()}.{file_extension}"

            if not content_type or content_type == 'application/octet-stream':
                content_type = 'video/mp4'
            elif not content_type.startswith('video/'):
                logger.warning(
                    "Unexpected content type for video upload",
                    filename=filename,
                    content_type=content_type
                )

            presigned_post = self.s3_client.generate_presigned_post(
                Bucket=self.bucket_name,
                Key=unique_filename,
                Fields={
                    'Content-Type': content_type,
                    'Content-Disposition': 'inline',
                },
                Conditions=[
                    {'Content-Type': content_type},
                    {'Content-Disposition': 'inline'},
                ],
                ExpiresIn=3600
            )

            s3_file_url = f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{unique_filename}"

            logger.info(
                "Generated presigned URL",
                filename=filename,
                s3_key=unique_filename,
                content_type=content_type
            )

            return presigned_post['url'], s3_file_url, presigned_post['fields']

        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                error=str(e),
                filename=filename
            )
            raise Exception(f"Failed to generate presigned URL: {str(e)}")

    def extract_key(self, s3_url: str) -> str:
        """
        Extract the object key from an s3:// or https:// URL.

        Anything else is treated as a bare key.
        """
        if s3_url.startswith('s3://'):
            return s3_url.split('/', 3)[3]
        if s3_url.startswith('https://'):
            url = s3_url.split('?')[0]
            for host in (f"{self.bucket_name}.s3.amazonaws.com/",
                         f"{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/"):
                if host in url:
                    return url.split(host, 1)[1]
            raise ValueError(f"URL does not point at bucket {self.bucket_name}: {s3_url}")
        return s3_url

    def generate_access_url(self, s3_url: str, expires_in: int = 604800) -> str:
        """
        Generate a presigned GET URL for viewing a practice video.

        Args:
            s3_url: The S3 URL of the file
            expires_in: Lifetime in seconds (7 days by default)

        Returns:
            Presigned URL for accessing the file
        """
        try:
            key = self.extract_key(s3_url)
            presigned_url = self.s3_client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=expires_in
            )
            logger.info("Generated access URL", s3_url=s3_url, key=key)
            return presigned_url

        except Exception as e:
            logger.error(
                "Failed to generate access URL",
                error=str(e),
                s3_url=s3_url
            )
            raise Exception(f"Failed to generate access URL: {str(e)}")

    def download_to_temp(self, s3_url: str) -> str:
        """
        Download a practice video to a temporary file.

        The caller owns the returned path and must delete it.

        Returns:
            Local path of the downloaded file
        """
        key = self.extract_key(s3_url)
        suffix = os.path.splitext(key)[1] or '.mp4'
        fd, local_path = tempfile.mkstemp(suffix=suffix, prefix="zenflow-")
        os.close(fd)

        try:
            self.s3_client.download_file(self.bucket_name, key, local_path)
            logger.info("Downloaded practice video", key=key, local_path=local_path)
            return local_path

        except Exception as e:
            os.remove(local_path)
            logger.error(
                "Failed to download practice video",
                error=str(e),
                s3_url=s3_url
            )
            raise Exception(f"Failed to download video: {str(e)}")

    def delete_file(self, s3_url: str) -> bool:
        """
        Delete a file from S3.

        Args:
            s3_url: The S3 URL of the file to delete

        Returns:
            True if successful, False otherwise
        """
        try:
            key = self.extract_key(s3_url)
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)

            logger.info("Deleted file from S3", s3_url=s3_url, key=key)
            return True

        except Exception as e:
            logger.error(
                "Failed to delete file from S3",
                error=str(e),
                s3_url=s3_url
            )
            return False
