import pytest

from xsdtoproto.exceptions import XSDParseError
from xsdtoproto.xsd_model import ANY_TYPE, ComplexType, ModelGroup, SimpleType, UnresolvedType
from xsdtoproto.xsd_parser import XSDParser


def test_parse_follows_imports(xsd_dir):
    schema_set = XSDParser().parse(str(xsd_dir / "person.xsd"))

    namespaces = [schema.target_namespace for schema in schema_set.iterate_schemas()]
    assert namespaces == ["http://www.example.com/person", "http://www.example.com/common/1.0"]

    person_schema = schema_set.get_schema("http://www.example.com/person")
    assert [e.name for e in person_schema.elements] == ["person"]
    assert [t.name for t in person_schema.complex_types] == ["Person"]
    assert [t.name for t in person_schema.simple_types] == ["Status", "TagList"]


def test_components_are_resolved(xsd_dir):
    schema_set = XSDParser().parse(str(xsd_dir / "person.xsd"))
    person = schema_set.get_schema("http://www.example.com/person").complex_types[0]

    assert person.documentation == "A person record"
    assert person.base_type is ANY_TYPE
    assert isinstance(person.particle.term, ModelGroup)
    assert person.particle.term.compositor == "sequence"

    particles = {p.term.name: p for p in person.particle.term.particles}
    assert list(particles) == ["firstName", "birthDate", "address", "status", "phone", "tags", "wakeUp"]
    assert particles["address"].min_occurs == 0
    assert particles["address"].is_repeated
    assert isinstance(particles["address"].term.type, ComplexType)
    assert particles["address"].term.type.name == "Address"
    assert particles["phone"].term.type.is_anonymous
    assert particles["tags"].term.type.list_item_type().name == "string"

    assert [(u.decl.name, u.required) for u in person.attribute_uses] == [("id", True)]
    audit = person.attribute_groups[0]
    assert [(u.decl.name, u.required) for u in audit.attribute_uses] == [("createdBy", True), ("version", False)]


def test_enumeration_facets(xsd_dir):
    schema_set = XSDParser().parse(str(xsd_dir / "color.xsd"))
    color = schema_set.schemas[0].simple_types[0]

    assert isinstance(color, SimpleType)
    assert color.enumeration_values() == ["RED", "GREEN", "BLUE"]
    assert color.base_type.builtin
    assert color.base_type.name == "string"


def test_chameleon_include_adopts_namespace(xsd_dir):
    schema_set = XSDParser().parse(str(xsd_dir / "catalog.xsd"))

    assert len(schema_set.schemas) == 1
    schema = schema_set.schemas[0]
    assert schema.target_namespace == "http://shop.example.org/catalog/2"
    assert [t.name for t in schema.simple_types] == ["Code", "Sku", "BaseShade", "Shade"]

    shade = schema.simple_types[3]
    assert shade.get_facets("enumeration") == []
    assert shade.enumeration_values() == ["light", "dark"]


def test_extension_base_type(xsd_dir):
    schema_set = XSDParser().parse(str(xsd_dir / "animals.xsd"))
    animal, dog = schema_set.schemas[0].complex_types

    assert animal.abstract
    assert dog.base_type is animal
    assert dog.derivation == "extension"
    assert [p.term.name for p in dog.particle.term.particles] == ["breed"]


def test_missing_type_is_reported(xsd_dir):
    parser = XSDParser()
    schema_set = parser.parse(str(xsd_dir / "invalid" / "missing.xsd"))

    assert parser.error_count == 1
    haunted = schema_set.schemas[0].complex_types[0]
    spirit_type = haunted.particle.term.particles[0].term.type
    assert isinstance(spirit_type, UnresolvedType)
    assert spirit_type.name == "Ghost"


def test_not_well_formed_is_fatal(xsd_dir):
    with pytest.raises(XSDParseError) as excinfo:
        XSDParser().parse(str(xsd_dir / "invalid" / "not_well_formed.xsd"))
    assert "not_well_formed.xsd" in str(excinfo.value)


def test_missing_include_is_a_warning(tmp_path):
    xsd = tmp_path / "main.xsd"
    xsd.write_text(
        '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">'
        '<xs:include schemaLocation="nowhere.xsd"/>'
        '<xs:element name="a" type="xs:string"/>'
        '</xs:schema>',
        encoding="utf-8",
    )
    parser = XSDParser()
    schema_set = parser.parse(str(xsd))

    assert parser.warning_count == 1
    assert [e.name for e in schema_set.schemas[0].elements] == ["a"]


def test_non_schema_root_is_fatal(tmp_path):
    xsd = tmp_path / "main.xsd"
    xsd.write_text("<root/>", encoding="utf-8")

    with pytest.raises(XSDParseError):
        XSDParser().parse(str(xsd))


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        XSDParser().parse(str(tmp_path / "absent.xsd"))


def test_missing_references_become_placeholders(xsd_dir):
    parser = XSDParser()
    schema_set = parser.parse(str(xsd_dir / "invalid" / "bad_references.xsd"))

    assert parser.error_count == 5
    holder, child = schema_set.schemas[0].complex_types
    ghost, x, pricing = holder.particle.term.particles
    assert isinstance(ghost.term.type, UnresolvedType)
    assert ghost.term.name == "Ghost"
    assert x.term.name == "x"
    assert isinstance(pricing.term, UnresolvedType)
    assert pricing.term.name == "Pricing"
    assert pricing.min_occurs == 0
    assert holder.attribute_uses[0].decl.name == "stamp"
    assert isinstance(holder.attribute_uses[0].decl.type, UnresolvedType)
    assert [group.name for group in holder.attribute_groups] == ["Audit"]
    assert isinstance(child.base_type, UnresolvedType)
    assert child.base_type.name == "Phantom"
