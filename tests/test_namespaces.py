import pytest

from xsdtoproto.namespaces import convert_from_schema


@pytest.mark.parametrize("namespace, expected", [
    ("urn:ex", "ex"),
    ("http://www.example.com/person", "com.example.www.person"),
    ("https://example.org/a/b", "org.example.a.b"),
    ("http://www.example.com/common/1.0", "com.example.www.common_1_0"),
    ("http://shop.example.org/catalog/2", "org.example.shop.catalog_2"),
    ("urn:oasis:names:tc", "oasis.names.tc"),
    ("http://example.com/my-schema/", "com.example.my_schema"),
])
def test_convert_from_schema(namespace, expected):
    assert convert_from_schema(namespace) == expected


@pytest.mark.parametrize("namespace", [None, ""])
def test_empty_namespace_maps_to_default_package(namespace):
    assert convert_from_schema(namespace) == ""


def test_package_never_starts_with_digit():
    assert convert_from_schema("urn:2024:schema") == "_2024.schema"
