# tests/test_storage/test_s3_client.py

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from reelbox.utils.aws import S3Client, S3ObjectMissing, S3StorageError, _normalize_key


def _client_error(code: str, op: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


def _s3(**kwargs) -> tuple[S3Client, MagicMock]:
    boto = MagicMock()
    boto.meta.endpoint_url = "https://s3.us-east-1.amazonaws.com"
    return S3Client("reelbox-public", client=boto, region_name="us-east-1", **kwargs), boto


# ─────────────────────────────────────────────────────────────
# 🧰 Keys
# ─────────────────────────────────────────────────────────────

def test_normalize_key_strips_and_collapses():
    assert _normalize_key("  //abc//def.png ") == "abc/def.png"


@pytest.mark.parametrize("bad", ["", "   ", "a/../b", "..", "bad\x00key", "win\\path"])
def test_normalize_key_rejects_unsafe(bad):
    with pytest.raises(S3StorageError):
        _normalize_key(bad)


def test_missing_bucket_is_an_error():
    with pytest.raises(S3StorageError):
        S3Client(None, client=MagicMock())


# ─────────────────────────────────────────────────────────────
# 🚀 put / delete
# ─────────────────────────────────────────────────────────────

def test_put_bytes_passes_content_type_and_sse():
    s3, boto = _s3(sse_mode="aws:kms", kms_key_id="kms-123")

    key = s3.put_bytes("/abc-poster.png", b"data", content_type="image/png")

    assert key == "abc-poster.png"
    boto.put_object.assert_called_once_with(
        Bucket="reelbox-public",
        Key="abc-poster.png",
        Body=b"data",
        ContentType="image/png",
        ServerSideEncryption="aws:kms",
        SSEKMSKeyId="kms-123",
    )


def test_put_bytes_wraps_client_errors():
    s3, boto = _s3()
    boto.put_object.side_effect = _client_error("AccessDenied", "PutObject")
    with pytest.raises(S3StorageError):
        s3.put_bytes("k.png", b"x")


def test_delete_reports_existing_object():
    s3, boto = _s3()
    boto.head_object.return_value = {"ContentLength": 4}

    assert s3.delete("k.png") is True
    boto.delete_object.assert_called_once_with(Bucket="reelbox-public", Key="k.png")


def test_delete_of_absent_key_is_not_a_failure():
    s3, boto = _s3()
    boto.head_object.side_effect = _client_error("404")

    assert s3.delete("gone.png") is False


def test_delete_failure_raises():
    s3, boto = _s3()
    boto.head_object.return_value = {}
    boto.delete_object.side_effect = _client_error("AccessDenied", "DeleteObject")

    with pytest.raises(S3StorageError):
        s3.delete("k.png")


def test_head_propagates_non_404_errors():
    s3, boto = _s3()
    boto.head_object.side_effect = _client_error("403")
    with pytest.raises(S3StorageError):
        s3.exists("k.png")


# ─────────────────────────────────────────────────────────────
# 📥 reads / URLs
# ─────────────────────────────────────────────────────────────

def test_open_stream_missing_key():
    s3, boto = _s3()
    boto.get_object.side_effect = _client_error("NoSuchKey", "GetObject")
    with pytest.raises(S3ObjectMissing):
        s3.open_stream("nope.mp4")


def test_presigned_get_uses_ttl():
    s3, boto = _s3()
    boto.generate_presigned_url.return_value = "https://signed"

    assert s3.presigned_get("v.mp4", expires_in=120) == "https://signed"
    boto.generate_presigned_url.assert_called_once_with(
        ClientMethod="get_object",
        Params={"Bucket": "reelbox-public", "Key": "v.mp4"},
        ExpiresIn=120,
    )


def test_public_url_prefers_cdn():
    s3, _ = _s3(cdn_base_url="https://cdn.example.com/")
    assert s3.public_url("a-b.png") == "https://cdn.example.com/a-b.png"


def test_public_url_falls_back_to_bucket_url():
    s3, _ = _s3()
    assert s3.public_url("p.png") == "https://reelbox-public.s3.us-east-1.amazonaws.com/p.png"


def test_object_url_for_custom_endpoint_is_path_style():
    s3, boto = _s3()
    boto.meta.endpoint_url = "http://localhost:4566"
    assert s3.object_url("p.png") == "http://localhost:4566/reelbox-public/p.png"
