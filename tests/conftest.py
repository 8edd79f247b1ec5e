from pathlib import Path

import pytest

from xsdtoproto.config import TranslatorOptions
from xsdtoproto.translator import XSDToProtoTranslator

ROOT = Path(__file__).resolve().parent.parent
XSD_DIR = Path(__file__).resolve().parent / "xsd"


@pytest.fixture
def xsd_dir():
    return XSD_DIR


@pytest.fixture
def translate():
    """Traduit un fichier du répertoire de fixtures et retourne {nom de fichier: contenu}."""
    def _translate(xsd_name, **options):
        translator = XSDToProtoTranslator(TranslatorOptions(**options))
        return translator.translate(str(XSD_DIR / xsd_name))
    return _translate


@pytest.fixture
def translate_single(translate):
    """Comme translate, pour une sortie en un seul fichier: retourne son contenu."""
    def _translate_single(xsd_name, **options):
        files = translate(xsd_name, **options)
        assert len(files) == 1, f"Expected a single output file, got {sorted(files)}"
        return next(iter(files.values()))
    return _translate_single
