import unittest

from hapgyeokpan.config import Settings
from hapgyeokpan.dependencies import storage_public_base_url
from hapgyeokpan.errors import StoreError
from hapgyeokpan.storage import InMemoryStorageClient, S3StorageClient


def _s3_client(endpoint, public_base_url=None):
    return S3StorageClient(
        bucket="attachments",
        endpoint=endpoint,
        access_key_id="key",
        secret_access_key="secret",
        region="ap-northeast-2",
        public_base_url=public_base_url,
    )


class StorageTests(unittest.TestCase):
    def test_supabase_gateway_maps_to_public_object_url(self):
        client = _s3_client("https://proj.supabase.co/storage/v1/s3")
        self.assertEqual(
            client.public_url("posts/1-abc.png"),
            "https://proj.supabase.co/storage/v1/object/public/attachments/posts/1-abc.png",
        )

    def test_configured_public_base_wins(self):
        client = _s3_client(
            "https://proj.supabase.co/storage/v1/s3", public_base_url="https://cdn.test/files/"
        )
        self.assertEqual(client.public_url("posts/a.png"), "https://cdn.test/files/posts/a.png")

    def test_public_base_derived_from_supabase_url(self):
        settings = Settings(supabase_url="https://proj.supabase.co/", storage_public_base_url=None)
        self.assertEqual(
            storage_public_base_url(settings),
            "https://proj.supabase.co/storage/v1/object/public/attachments",
        )
        explicit = Settings(
            supabase_url="https://proj.supabase.co", storage_public_base_url="https://cdn.test"
        )
        self.assertEqual(storage_public_base_url(explicit), "https://cdn.test")

    def test_in_memory_rejects_duplicate_paths(self):
        storage = InMemoryStorageClient()
        storage.upload_bytes("posts/a.png", b"1", "image/png")
        with self.assertRaises(StoreError):
            storage.upload_bytes("posts/a.png", b"2", "image/png")


if __name__ == "__main__":
    unittest.main()
