"""Pytest configuration and fixtures for backend tests."""

import io
import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError

# Settings are read at import time; point them at throwaway resources first
_TMP_DIR = tempfile.mkdtemp(prefix="deployer-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/deployer.db")
os.environ.setdefault("DEPLOYER_LOG_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DEPLOY_DOMAIN", "sites.test")

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))


def _client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


class FakeS3Client:
    """
    In-memory stand-in for a boto3 S3 client.

    Continuation tokens are the last key returned, so deleting keys while
    paging through a listing neither skips nor repeats entries.
    """

    def __init__(self):
        self.buckets: Dict[str, Dict[str, Tuple[bytes, str]]] = {}
        self.policies: Dict[str, str] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self._failures: List[tuple] = []

    def fail_on(self, operation: str, key=None, code: str = "InternalError") -> None:
        """Make ``operation`` raise a ClientError, optionally only for one key or a key predicate"""
        self._failures.append((operation, key, code))

    def clear_failures(self) -> None:
        self._failures.clear()

    def _enter(self, operation: str, key: Optional[str] = None) -> None:
        self.calls.append((operation, key))
        for op, fail_key, code in self._failures:
            if op != operation:
                continue
            if fail_key is None or (fail_key(key) if callable(fail_key) else fail_key == key):
                raise _client_error(code, operation)

    def _bucket(self, name: str, operation: str) -> Dict[str, Tuple[bytes, str]]:
        if name not in self.buckets:
            raise _client_error("NoSuchBucket", operation)
        return self.buckets[name]

    def head_bucket(self, Bucket):
        self._enter("head_bucket")
        if Bucket not in self.buckets:
            raise _client_error("404", "HeadBucket", "Not Found")
        return {}

    def create_bucket(self, Bucket):
        self._enter("create_bucket")
        if Bucket in self.buckets:
            raise _client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.buckets[Bucket] = {}
        return {}

    def put_bucket_policy(self, Bucket, Policy):
        self._enter("put_bucket_policy")
        self._bucket(Bucket, "PutBucketPolicy")
        self.policies[Bucket] = Policy
        return {}

    def put_object(self, Bucket, Key, Body, ContentLength=None, ContentType=None):
        self._enter("put_object", Key)
        self._bucket(Bucket, "PutObject")[Key] = (bytes(Body), ContentType)
        return {}

    def get_object(self, Bucket, Key):
        self._enter("get_object", Key)
        objects = self._bucket(Bucket, "GetObject")
        if Key not in objects:
            raise _client_error("NoSuchKey", "GetObject")
        body, content_type = objects[Key]
        return {"Body": io.BytesIO(body), "ContentType": content_type, "ContentLength": len(body)}

    def copy_object(self, Bucket, Key, CopySource, MetadataDirective="COPY"):
        self._enter("copy_object", Key)
        source = self._bucket(CopySource["Bucket"], "CopyObject")
        if CopySource["Key"] not in source:
            raise _client_error("NoSuchKey", "CopyObject")
        self._bucket(Bucket, "CopyObject")[Key] = source[CopySource["Key"]]
        return {}

    def delete_object(self, Bucket, Key):
        self._enter("delete_object", Key)
        self._bucket(Bucket, "DeleteObject").pop(Key, None)
        return {}

    def list_objects_v2(self, Bucket, Prefix="", MaxKeys=1000, ContinuationToken=None):
        self._enter("list_objects_v2", Prefix)
        keys = sorted(k for k in self._bucket(Bucket, "ListObjectsV2") if k.startswith(Prefix))
        if ContinuationToken:
            keys = [k for k in keys if k > ContinuationToken]
        page = keys[:MaxKeys]
        truncated = len(keys) > MaxKeys
        response = {
            "Contents": [{"Key": k, "Size": len(self.buckets[Bucket][k][0])} for k in page],
            "IsTruncated": truncated,
            "KeyCount": len(page),
        }
        if truncated:
            response["NextContinuationToken"] = page[-1]
        return response

    # Test helpers

    def keys(self, bucket: str, prefix: str = "") -> List[str]:
        return sorted(k for k in self.buckets.get(bucket, {}) if k.startswith(prefix))

    def live_keys(self, bucket: str) -> List[str]:
        return [k for k in self.keys(bucket) if not k.startswith("_deployments/")]

    def body(self, bucket: str, key: str) -> bytes:
        return self.buckets[bucket][key][0]

    def content_type(self, bucket: str, key: str) -> str:
        return self.buckets[bucket][key][1]


@pytest.fixture
def s3() -> FakeS3Client:
    """Fresh in-memory object store."""
    return FakeS3Client()


@pytest.fixture
def store(s3):
    """ObjectStore over the fake client, with tiny pages to exercise pagination."""
    from deployer.core.object_store import ObjectStore
    return ObjectStore(client=s3, page_size=2)


@pytest_asyncio.fixture
async def db():
    """Create all tables (and reserved names) for one test, drop them afterwards."""
    from deployer.db.base import Base, async_engine, init_db

    await init_db()
    yield
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def limits():
    """Small quota caps so tests stay in kilobytes."""
    from deployer.core.quota_guard import QuotaLimits
    return QuotaLimits(max_file_bytes=1024, max_deployment_bytes=2048, max_user_bytes=4096)


@pytest.fixture
def engine(db, store, limits):
    """Deploy engine wired to the fake store, with fresh lock registries."""
    from deployer.core.deploy_engine import DeployEngine
    from deployer.core.project_locks import ProjectLockRegistry
    from deployer.core.version_allocator import VersionAllocator

    return DeployEngine(
        object_store=store,
        locks=ProjectLockRegistry(),
        allocator=VersionAllocator(locks=ProjectLockRegistry()),
        limits=limits,
        timeout=30,
    )


def site_files(files: Dict[str, bytes]):
    """Build SiteFile objects from a path -> content mapping."""
    from deployer.core.upload_pipeline import SiteFile
    return [SiteFile(path=path, content=content) for path, content in files.items()]
