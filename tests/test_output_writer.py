from xsdtoproto.marshaller import ProtobufMarshaller
from xsdtoproto.output_writer import OutputWriter


def make_writer(**kwargs):
    return OutputWriter(ProtobufMarshaller(), file_name="main", default_namespace="com.example", **kwargs)


def test_single_file_mode_uses_main_package():
    writer = make_writer()
    writer.get_stream("org.other").write("message A {\n}\n")
    writer.get_stream("com.example").write("message B {\n}\n")

    assert writer.get_stream(None) is writer.get_stream("org.other")
    assert writer.render() == {
        "main.proto": 'syntax = "proto2";\n\npackage com.example;\n\nmessage A {\n}\nmessage B {\n}\n',
    }


def test_split_mode_one_file_per_package():
    writer = make_writer(split_by_namespace=True)
    writer.get_stream(None).write("message A {\n}\n")
    writer.get_stream("org.other").write("message B {\n}\n")

    assert writer.get_file_name(None) == "main.proto"
    assert writer.get_file_name("com.example") == "main.proto"
    assert writer.get_file_name("org.other") == "org.other.proto"
    assert list(writer.render()) == ["main.proto", "org.other.proto"]


def test_inclusions_become_imports_for_produced_files_only():
    writer = make_writer(split_by_namespace=True)
    writer.get_stream("com.example").write("message A {\n}\n")
    writer.get_stream("org.other").write("message B {\n}\n")
    writer.add_inclusion("com.example", "org.other")
    writer.add_inclusion("com.example", "google.protobuf")
    writer.add_inclusion("com.example", None)
    writer.add_import("com.example", "google/protobuf/timestamp.proto")

    main = writer.render()["main.proto"]
    assert main == (
        'syntax = "proto2";\n\n'
        'package com.example;\n\n'
        'import "google/protobuf/timestamp.proto";\n'
        'import "org.other.proto";\n\n'
        'message A {\n}\n'
    )


def test_inclusions_ignored_in_single_file_mode():
    writer = make_writer()
    writer.get_stream("com.example").write("message A {\n}\n")
    writer.add_inclusion("com.example", "org.other")

    assert "import" not in writer.render()["main.proto"]


def test_post_process_writes_files(tmp_path):
    output_dir = tmp_path / "out"
    writer = make_writer(output_dir=str(output_dir))
    writer.get_stream(None).write("message A {\n}\n")

    files = writer.post_process_namespaced_files_for_includes()

    assert (output_dir / "main.proto").read_text(encoding="utf-8") == files["main.proto"]
    assert writer.render() == files


def test_proto_extension_in_file_name_is_not_doubled():
    writer = OutputWriter(ProtobufMarshaller(), file_name="schema.proto")
    writer.get_stream(None)
    assert list(writer.render()) == ["schema.proto"]
