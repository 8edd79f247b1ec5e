import pytest

from xsdtoproto.names import escape, escape_type, to_lower_underscore, to_upper_underscore


@pytest.mark.parametrize("name, expected", [
    ("Person", "Person"),
    ("first-name", "first_name"),
    ("a.b:c", "a_b_c"),
    ("1stPlace", "_1stPlace"),
    ("class", "_class"),
    ("service", "_service"),
    ("", "_"),
])
def test_escape_type(name, expected):
    assert escape_type(name) == expected


def test_escape_prefixes_basic_type_names():
    assert escape("string") == "_string"
    assert escape("int") == "_int"
    assert escape("int32") == "_int32"
    assert escape("dateTime") == "_dateTime"


def test_escape_keeps_capitalised_xsd_names():
    # 'Name' ou 'ID' ne sont jamais émis tels quels comme types
    assert escape("Name") == "Name"
    assert escape("ID") == "ID"


def test_escape_type_does_not_check_basic_types():
    assert escape_type("string") == "string"


@pytest.mark.parametrize("name", ["string", "class", "1abc", "a-b", "Person", "_x", "int32", "é-ç"])
def test_escape_is_idempotent(name):
    once = escape(name)
    assert escape(once) == once
    assert escape_type(escape_type(name)) == escape_type(name)


@pytest.mark.parametrize("name, expected", [
    ("baseObjectType", "base_object_type"),
    ("firstName", "first_name"),
    ("XMLHttpRequest", "xml_http_request"),
    ("zip_code", "zip_code"),
    ("_string", "_string"),
    ("id", "id"),
    ("address2Line", "address2_line"),
])
def test_to_lower_underscore(name, expected):
    assert to_lower_underscore(name) == expected


@pytest.mark.parametrize("name, expected", [
    ("Color_notSet", "COLOR_NOT_SET"),
    ("Color_RED", "COLOR_RED"),
    ("sizeType_S", "SIZE_TYPE_S"),
    ("Status_active", "STATUS_ACTIVE"),
    ("UnspecifiedValue", "UNSPECIFIED_VALUE"),
])
def test_to_upper_underscore(name, expected):
    assert to_upper_underscore(name) == expected
