import io
import zipfile

import pytest

from webapp import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def zip_of(xsd_dir, *names):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name in names:
            zf.write(xsd_dir / name, name)
    buffer.seek(0)
    return buffer


def test_index(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"xsd_file" in response.data


def test_convert_single_xsd(client, xsd_dir):
    data = {"xsd_file": (open(xsd_dir / "simple_element.xsd", "rb"), "simple_element.xsd")}
    response = client.post("/convert", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    files = response.get_json()["files"]
    assert list(files) == ["simple_element.proto"]
    assert "message Name {\n  required string name = 1;\n}" in files["simple_element.proto"]


def test_convert_zip_with_main_xsd(client, xsd_dir):
    data = {
        "xsd_file": (zip_of(xsd_dir, "person.xsd", "common/common.xsd"), "schemas.zip"),
        "main_xsd_name": "person.xsd",
        "protobuf_version": "3",
        "enum_start": "0",
        "split_by_namespace": "on",
    }
    response = client.post("/convert", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    files = response.get_json()["files"]
    assert sorted(files) == ["com.example.www.common_1_0.proto", "person.proto"]
    assert files["person.proto"].startswith('syntax = "proto3";')


def test_convert_zip_auto_detects_single_root_xsd(client, xsd_dir):
    data = {"xsd_file": (zip_of(xsd_dir, "catalog.xsd", "common/catalog_types.xsd"), "catalog.zip")}
    response = client.post("/convert", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    assert "catalog.proto" in response.get_json()["files"]


def test_missing_file(client):
    response = client.post("/convert", data={}, content_type="multipart/form-data")
    assert response.status_code == 400


def test_wrong_extension(client):
    data = {"xsd_file": (io.BytesIO(b"hello"), "notes.txt")}
    response = client.post("/convert", data=data, content_type="multipart/form-data")
    assert response.status_code == 400


def test_bad_zip(client):
    data = {"xsd_file": (io.BytesIO(b"not a zip"), "schemas.zip")}
    response = client.post("/convert", data=data, content_type="multipart/form-data")
    assert response.status_code == 400


def test_invalid_schema(client, xsd_dir):
    data = {"xsd_file": (open(xsd_dir / "invalid" / "missing.xsd", "rb"), "missing.xsd")}
    response = client.post("/convert", data=data, content_type="multipart/form-data")

    assert response.status_code == 422
    assert "Ghost" in response.get_json()["error"]


def test_invalid_options(client, xsd_dir):
    data = {
        "xsd_file": (open(xsd_dir / "simple_element.xsd", "rb"), "simple_element.xsd"),
        "protobuf_version": "4",
    }
    response = client.post("/convert", data=data, content_type="multipart/form-data")
    assert response.status_code == 400
