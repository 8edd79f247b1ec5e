from typing import Dict, Optional, Set


class XSDToProtoError(Exception):
    """Erreur de base de la traduction XSD -> Protobuf."""


class XSDParseError(XSDToProtoError):
    """Le document XSD n'est pas bien formé ou ne peut pas être chargé (erreur fatale)."""

    def __init__(self, message: str, system_id: Optional[str] = None):
        self.system_id = system_id
        if system_id:
            message = f"{message} at {system_id}"
        super().__init__(message)


class InvalidXSDError(XSDToProtoError):
    """Le schéma est chargé mais ne peut pas être traduit."""


class MissingTypesError(InvalidXSDError):
    """Des champs référencent des types qui ne sont définis nulle part."""

    def __init__(self, missing: Dict[str, Set[str]]):
        self.missing = missing
        details = "; ".join(f"{name}: {sorted(types)}" for name, types in sorted(missing.items()))
        super().__init__(f"Source schema contains references to missing types ({details})")


class CircularDependencyError(InvalidXSDError):
    """Dépendances circulaires alors que le marshaller ne les supporte pas."""

    def __init__(self, graph: Dict[str, Set[str]]):
        self.graph = graph
        details = "; ".join(f"{name}: {sorted(types)}" for name, types in sorted(graph.items()))
        super().__init__(f"Source schema contains circular dependencies ({details})")
