# autotag/services/storage.py
from __future__ import annotations

import os
import uuid
from typing import Tuple

import boto3
from django.core.files.uploadedfile import InMemoryUploadedFile, TemporaryUploadedFile

S3_SCHEME = "s3://"


def _getenv(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def s3():
    return boto3.client(
        "s3",
        aws_access_key_id=_getenv("AWS_ACCESS_KEY_ID") or None,
        aws_secret_access_key=_getenv("AWS_SECRET_ACCESS_KEY") or None,
        region_name=_getenv("AWS_REGION", "us-east-1"),
    )


def bucket_name() -> str:
    return _getenv("AWS_STORAGE_BUCKET_NAME")


def split_s3_uri(uri: str) -> Tuple[str, str]:
    """'s3://bucket/faces/x.jpg' -> ('bucket', 'faces/x.jpg')"""
    bucket, _, key = uri[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ValueError(f"URI S3 inválida: {uri!r}")
    return bucket, key


def upload_image(file_obj, prefix: str = "faces/") -> str:
    """Sube la imagen al bucket configurado y devuelve su URI s3://."""
    bucket = bucket_name()
    if not bucket:
        raise RuntimeError("Config AWS incompleta: AWS_STORAGE_BUCKET_NAME")
    p = (prefix or "").strip().rstrip("/")
    key = f"{p}/{uuid.uuid4()}.jpg" if p else f"{uuid.uuid4()}.jpg"
    extra = {"ContentType": "image/jpeg"}
    if isinstance(file_obj, (InMemoryUploadedFile, TemporaryUploadedFile)):
        file_obj.seek(0)
        s3().upload_fileobj(file_obj, bucket, key, ExtraArgs=extra)
    else:
        s3().upload_file(file_obj, bucket, key, ExtraArgs=extra)
    return f"{S3_SCHEME}{bucket}/{key}"


def read_image(uri: str) -> bytes:
    """Bytes de la imagen: s3://bucket/key vía boto3, cualquier otra cosa como ruta local."""
    if uri.startswith(S3_SCHEME):
        bucket, key = split_s3_uri(uri)
        resp = s3().get_object(Bucket=bucket, Key=key)
        return resp["Body"].read()
    with open(uri, "rb") as fh:
        return fh.read()
