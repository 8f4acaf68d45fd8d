"""S3 object store used for relocated media and snapshot archives."""

import asyncio

import boto3
from botocore.exceptions import ClientError

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3ObjectStore:
    """
    Blob store backed by an S3 bucket.

    boto3 is synchronous, so every call runs in a worker thread.

    Example:
        store = S3ObjectStore("my-bucket", region="eu-west-1")
        url = await store.put("images/natgeo/1.jpg", data, "image/jpeg")
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_base_url: str | None = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.public_base_url = (public_base_url or f"https://{bucket}.s3.amazonaws.com").rstrip("/")
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def url_for(self, key: str) -> str:
        """Public URL of an object."""
        return f"{self.public_base_url}/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes and return the object's URL.

        Raises:
            botocore.exceptions.ClientError: If the upload is rejected
        """
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return self.url_for(key)

    async def get(self, key: str) -> bytes | None:
        """Download an object, None if it does not exist."""
        try:
            response = await asyncio.to_thread(
                self._client.get_object,
                Bucket=self.bucket,
                Key=key,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                return None
            raise

        body = response["Body"]
        try:
            return await asyncio.to_thread(body.read)
        finally:
            body.close()

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await asyncio.to_thread(self._client.close)
