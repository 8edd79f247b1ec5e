import subprocess
from pathlib import Path
import pytest

ROOT = Path(__file__).resolve().parent.parent

def test_run_tests_sh_generates_proto():
    script = ROOT / "runTests.sh"
    assert script.exists(), "runTests.sh not found in project root"

    # Run the script
    proc = subprocess.run(["bash", str(script)], cwd=str(ROOT), capture_output=True, text=True)
    if proc.returncode != 0:
        pytest.fail(f"runTests.sh failed (code {proc.returncode})\nstdout:\n{proc.stdout}\nstderr:\n{proc.stderr}")

    out_dir = ROOT / "tests" / "out"
    assert out_dir.exists() and out_dir.is_dir(), f"No output directory: {out_dir}"

    proto_files = list(out_dir.rglob("*.proto"))
    assert proto_files, f"No .proto files generated in {out_dir}"

    expected = {"simple_element.proto", "color.proto", "animals.proto", "choice.proto", "cycle.proto", "duplicates.proto",
                "person.proto", "catalog.proto", "person3.proto", "com.example.www.common_1_0.proto"}
    assert expected <= {pf.name for pf in proto_files}

    # Verify each file has a syntax header and balanced braces
    for pf in proto_files:
        content = pf.read_text(encoding="utf-8")
        if not content.startswith('syntax = "proto'):
            pytest.fail(f"Missing syntax header in {pf}")
        if content.count("{") != content.count("}"):
            pytest.fail(f"Unbalanced braces in {pf}")
        if "message UnspecifiedType {" not in content and "common_1_0" not in pf.name:
            pytest.fail(f"Missing UnspecifiedType message in {pf}")
