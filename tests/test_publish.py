from __future__ import annotations

import asyncio

import boto3
import pytest
from botocore.stub import ANY, Stubber

from tubely.core.config import Settings
from tubely.core.errors import PublishFailed
from tubely.core.storage import LocalObjectStorage, ObjectStorageError, S3Storage, get_object_storage
from tubely.ingest.probe import Orientation
from tubely.ingest.publish import Publisher, build_object_key, generate_object_name
from tubely.ingest.staging import StagedFile

from tests.fakes import InMemoryObjectStorage


def _settings(**overrides) -> Settings:
    values = {"s3_bucket": "tubely-media", "s3_region": "eu-west-1", "s3_cdn_domain": None}
    values.update(overrides)
    return Settings(**values)


def _staged(tmp_path) -> StagedFile:
    path = tmp_path / "clip.mp4.processed"
    path.write_bytes(b"moov-mdat")
    return StagedFile(path=path, size_bytes=9, content_type="video/mp4")


def test_generated_names_are_url_safe_and_unique():
    names = {generate_object_name() for _ in range(20)}
    assert len(names) == 20
    for name in names:
        assert len(name) == 43
        assert "/" not in name and "+" not in name and "=" not in name


def test_object_key_layout():
    assert build_object_key("abc", "mp4", Orientation.portrait) == "portrait/abc.mp4"
    assert build_object_key("abc", "mp4") == "abc.mp4"


def test_public_url_uses_bucket_convention():
    publisher = Publisher(InMemoryObjectStorage(), _settings())
    assert publisher.public_url("other/abc.mp4") == "https://tubely-media.s3.eu-west-1.amazonaws.com/other/abc.mp4"


@pytest.mark.parametrize("domain", ["d111.cloudfront.net", "https://d111.cloudfront.net/"])
def test_public_url_prefers_distribution(domain):
    publisher = Publisher(InMemoryObjectStorage(), _settings(s3_cdn_domain=domain))
    assert publisher.public_url("landscape/abc.mp4") == "https://d111.cloudfront.net/landscape/abc.mp4"


def test_publish_puts_bytes_with_content_type(tmp_path):
    storage = InMemoryObjectStorage()
    publisher = Publisher(storage, _settings())

    published = asyncio.run(publisher.publish(_staged(tmp_path), "landscape/abc.mp4"))

    assert storage.objects["landscape/abc.mp4"] == (b"moov-mdat", "video/mp4")
    assert published.url.endswith("/landscape/abc.mp4")


def test_publish_wraps_storage_errors(tmp_path):
    publisher = Publisher(InMemoryObjectStorage(fail=True), _settings())
    with pytest.raises(PublishFailed):
        asyncio.run(publisher.publish(_staged(tmp_path), "abc.mp4"))


def test_local_object_storage_overwrites_atomically(tmp_path):
    storage = LocalObjectStorage(tmp_path / "objects")
    source = tmp_path / "src.mp4"
    source.write_bytes(b"first")
    storage.put_object("portrait/a.mp4", source, content_type="video/mp4")
    source.write_bytes(b"second")
    storage.put_object("portrait/a.mp4", source, content_type="video/mp4")

    stored = tmp_path / "objects" / "portrait" / "a.mp4"
    assert stored.read_bytes() == b"second"
    assert sorted(p.name for p in stored.parent.iterdir()) == ["a.mp4"]


def test_local_object_storage_rejects_escaping_keys(tmp_path):
    storage = LocalObjectStorage(tmp_path / "objects")
    source = tmp_path / "src.mp4"
    source.write_bytes(b"x")
    with pytest.raises(ObjectStorageError):
        storage.put_object("../escape.mp4", source, content_type="video/mp4")


def _s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_s3_storage_issues_single_put(tmp_path):
    client = _s3_client()
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"moov")
    with Stubber(client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"9b2cf535f27731c974343645a3985328"'},
            {"Bucket": "tubely-media", "Key": "landscape/abc.mp4", "Body": ANY, "ContentType": "video/mp4"},
        )
        S3Storage("tubely-media", client).put_object("landscape/abc.mp4", source, content_type="video/mp4")
        stubber.assert_no_pending_responses()


def test_s3_storage_translates_client_errors(tmp_path):
    client = _s3_client()
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"moov")
    with Stubber(client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(ObjectStorageError):
            S3Storage("tubely-media", client).put_object("abc.mp4", source, content_type="video/mp4")


def test_get_object_storage_selects_backend(tmp_path):
    local = get_object_storage(_settings(storage_backend="local", local_storage_base_path=tmp_path / "objects"))
    assert isinstance(local, LocalObjectStorage)

    s3 = get_object_storage(_settings(storage_backend="s3"))
    assert isinstance(s3, S3Storage)
    assert s3.bucket == "tubely-media"
