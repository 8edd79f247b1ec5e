import pytest

from xsdtoproto.lowering import LoweringEngine, resolve_builtin_name
from xsdtoproto.registry import TypeRegistry
from xsdtoproto.xsd_parser import XSDParser


def lower(path):
    registry = TypeRegistry()
    LoweringEngine(registry).process_schema_set(XSDParser().parse(str(path)))
    return registry


def field_summary(message):
    return {f.name: (f.type, f.required, f.repeated) for f in message.fields}


@pytest.mark.parametrize("name, expected", [
    ("string", "string"),
    ("token", "normalizedString"),
    ("language", "normalizedString"),
    ("NCName", "Name"),
    ("ENTITY", "Name"),
    ("dateTimeStamp", "dateTime"),
    ("gYear", "string"),
    ("QName", "string"),
])
def test_resolve_builtin_name(name, expected):
    assert resolve_builtin_name(name) == expected


def test_simple_element_gets_a_wrapper_message(xsd_dir):
    registry = lower(xsd_dir / "simple_element.xsd")

    message = registry.get_message("Name")
    assert message.namespace == "ex"
    field = message.get_field("Name")
    assert (field.type, field.required, field.repeated, field.builtin) == ("string", True, False, True)


def test_enumeration_becomes_enum(xsd_dir):
    registry = lower(xsd_dir / "color.xsd")

    assert list(registry.get_enum("Color")) == ["RED", "GREEN", "BLUE"]
    assert registry.messages == {}


def test_ancestors_required_descendants_optional(xsd_dir):
    registry = lower(xsd_dir / "animals.xsd")

    assert field_summary(registry.get_message("Animal")) == {
        "name": ("string", True, False),
        "breed": ("string", False, False),
    }
    assert field_summary(registry.get_message("Dog")) == {
        "breed": ("string", True, False),
        "name": ("string", True, False),
    }
    assert registry.get_message("Dog").parent == "Animal"


def test_choice_fields_are_optional(xsd_dir):
    registry = lower(xsd_dir / "choice.xsd")

    assert field_summary(registry.get_message("Pick")) == {
        "a": ("int", False, False),
        "b": ("string", False, False),
    }


def test_person(xsd_dir):
    registry = lower(xsd_dir / "person.xsd")

    person = registry.get_message("Person")
    assert person.namespace == "com.example.www.person"
    assert person.documentation == "A person record"
    assert field_summary(person) == {
        "firstName": ("string", True, False),
        "birthDate": ("date", False, False),
        "address": ("Address", False, True),
        "status": ("Status", True, False),
        "phone": ("phoneType", True, False),
        "tags": ("string", False, True),
        "wakeUp": ("time", False, False),
        "id": ("ID", True, False),
        "createdBy": ("string", True, False),
        "version": ("positiveInteger", False, False),
    }
    assert person.get_field("address").type_namespace == "com.example.www.common_1_0"
    assert person.types == {"Address", "Status", "phoneType"}

    phone = registry.get_message("phoneType")
    assert field_summary(phone) == {"number": ("string", True, False), "kind": ("string", False, False)}

    address = registry.get_message("Address")
    assert address.namespace == "com.example.www.common_1_0"
    assert registry.documentation["Address"] == "Postal address"

    assert list(registry.get_enum("Status")) == ["active", "retired"]
    assert registry.simple_types == {"TagList": "string", "ZipCode": "normalizedString"}


def test_catalog(xsd_dir):
    registry = lower(xsd_dir / "catalog.xsd")

    catalog = registry.get_message("catalogType")
    assert field_summary(catalog) == {
        "item": ("Item", True, True),
        "updated": ("dateTime", False, False),
    }

    item = registry.get_message("Item")
    assert field_summary(item) == {
        "sku": ("Sku", True, False),
        "size": ("sizeType", True, False),
        "price": ("decimal", False, False),
        "currency": ("string", False, False),
        "string": ("string", False, False),
        "weight": ("Anonymous001", True, False),
        "code": ("Code", True, False),
        "shade": ("Shade", False, False),
    }

    assert list(registry.get_enum("sizeType")) == ["S", "M"]
    assert list(registry.get_enum("Shade")) == ["light", "dark"]
    assert list(registry.get_enum("BaseShade")) == ["light", "dark"]
    assert registry.simple_types == {"Anonymous001": "decimal", "Code": "string", "Sku": "string"}


def test_unresolved_type_is_kept_as_a_reference(xsd_dir):
    registry = lower(xsd_dir / "invalid" / "missing.xsd")

    field = registry.get_message("Haunted").get_field("spirit")
    assert field.type == "Ghost"
    assert not field.builtin


def test_lowering_is_deterministic(xsd_dir):
    first = lower(xsd_dir / "catalog.xsd")
    second = lower(xsd_dir / "catalog.xsd")

    assert list(first.messages) == list(second.messages)
    assert first.simple_types == second.simple_types
    assert [field_summary(m) for m in first.iter_messages()] == [field_summary(m) for m in second.iter_messages()]


def test_missing_references_are_kept_as_dependencies(xsd_dir):
    registry = lower(xsd_dir / "invalid" / "bad_references.xsd")

    holder = registry.get_message("Holder")
    assert field_summary(holder) == {
        "Ghost": ("Ghost", True, False),
        "x": ("int", True, False),
        "stamp": ("stamp", False, False),
    }
    assert holder.types == {"Audit", "Ghost", "Pricing", "stamp"}

    child = registry.get_message("Child")
    assert field_summary(child) == {"y": ("int", True, False)}
    assert child.types == {"Phantom"}
