# Namespace XSD
XSD_NAMESPACE_URI = "http://www.w3.org/2001/XMLSchema"
XSD_NAMESPACE = f"{{{XSD_NAMESPACE_URI}}}"

# Mots réservés qui ne peuvent pas servir d'identifiant dans la sortie
KEYWORDS = frozenset({
    "interface",
    "is",
    "class",
    "optional",
    "yield",
    "abstract",
    "required",
    "volatile",
    "transient",
    "service",
    "else",
})

# Types XSD de base, connus du marshaller
BASIC_TYPES = frozenset({
    "string",
    "normalizedString",
    "anyType",
    "anyURI",
    "anySimpleType",

    "integer",
    "positiveInteger",
    "nonPositiveInteger",
    "negativeInteger",
    "nonNegativeInteger",

    "unsignedLong",
    "unsignedInt",
    "unsignedShort",
    "unsignedByte",

    "base64Binary",
    "hexBinary",
    # binary n'est pas un type XSD valide, utilisé comme type de repli
    "binary",
    "boolean",
    "date",
    "dateTime",
    "time",
    "duration",
    "decimal",
    "float",
    "double",
    "byte",
    "short",
    "long",
    "int",
    "ID",
    "IDREF",
    "NMTOKEN",
    "NMTOKENS",
    "Name",
})

# Types scalaires Protobuf
PROTOBUF_SCALAR_TYPES = frozenset({
    "double", "float", "int32", "int64", "uint32", "uint64", "sint32", "sint64",
    "fixed32", "fixed64", "sfixed32", "sfixed64", "bool", "string", "bytes",
})

# Hiérarchie des types intégrés XSD qui ne sont pas des types de base.
# Les primitives sans ancêtre de base (QName, gYear, ...) sont absentes: elles retombent sur 'string'.
XSD_BUILTIN_BASES = {
    "token": "normalizedString",
    "language": "token",
    "NCName": "Name",
    "ENTITY": "NCName",
    "ENTITIES": "ENTITY",
    "IDREFS": "IDREF",
    "dateTimeStamp": "dateTime",
    "dayTimeDuration": "duration",
    "yearMonthDuration": "duration",
}

XSD_BUILTIN_TYPES = BASIC_TYPES.union(XSD_BUILTIN_BASES, {
    "QName",
    "NOTATION",
    "gYearMonth",
    "gYear",
    "gMonthDay",
    "gDay",
    "gMonth",
})

# Types listes intégrés: le type de l'item
XSD_BUILTIN_LIST_ITEMS = {
    "IDREFS": "IDREF",
    "ENTITIES": "ENTITY",
}

# Mapping des types XSD vers les types Protobuf
XSD_TO_PROTO_TYPE_MAP = {
    # Types numériques
    "positiveInteger": "int64",
    "nonNegativeInteger": "int64",
    "integer": "int64",
    "long": "int64",
    "int": "int32",
    "nonPositiveInteger": "sint64",
    "negativeInteger": "sint64",
    "unsignedLong": "uint64",
    "unsignedInt": "uint32",
    "unsignedShort": "uint32",  # Pas d'entier 16 bits en protobuf
    "unsignedByte": "uint32",  # Pas d'entier 8 bits en protobuf
    "short": "int32",
    "decimal": "double",
    "double": "double",
    "float": "float",

    # Types booléens
    "boolean": "bool",

    # Types date/heure
    "date": "int32",  # Nombre de jours depuis le 1er janvier 1970
    "dateTime": "int64",  # Nombre de millisecondes depuis le 1er janvier 1970
    "time": "google.protobuf.Timestamp",
    "duration": "google.protobuf.Duration",

    # Types chaîne de caractères
    "string": "string",
    "normalizedString": "string",
    "anyURI": "string",
    "ID": "string",
    "IDREF": "string",
    "Name": "string",
    "NMTOKEN": "string",
    "NMTOKENS": "string",

    # Types génériques, portés par le message de repli
    "anyType": "UnspecifiedType",
    "anySimpleType": "UnspecifiedType",

    # Types binaires
    "base64Binary": "bytes",
    "hexBinary": "bytes",
    "byte": "bytes",
    "binary": "bytes",  # UnspecifiedType.object est déclaré 'binary'
}

# Fichiers .proto à importer pour les types bien connus
PROTO_WELL_KNOWN_IMPORTS = {
    "google.protobuf.Any": "google/protobuf/any.proto",
    "google.protobuf.Duration": "google/protobuf/duration.proto",
    "google.protobuf.Empty": "google/protobuf/empty.proto",
    "google.protobuf.FieldMask": "google/protobuf/field_mask.proto",
    "google.protobuf.Struct": "google/protobuf/struct.proto",
    "google.protobuf.Value": "google/protobuf/struct.proto",
    "google.protobuf.Timestamp": "google/protobuf/timestamp.proto",
    "google.protobuf.BoolValue": "google/protobuf/wrappers.proto",
    "google.protobuf.BytesValue": "google/protobuf/wrappers.proto",
    "google.protobuf.DoubleValue": "google/protobuf/wrappers.proto",
    "google.protobuf.FloatValue": "google/protobuf/wrappers.proto",
    "google.protobuf.Int32Value": "google/protobuf/wrappers.proto",
    "google.protobuf.Int64Value": "google/protobuf/wrappers.proto",
    "google.protobuf.StringValue": "google/protobuf/wrappers.proto",
    "google.protobuf.UInt32Value": "google/protobuf/wrappers.proto",
    "google.protobuf.UInt64Value": "google/protobuf/wrappers.proto",
}

# Message de repli pour anyType / anySimpleType
UNSPECIFIED_TYPE = "UnspecifiedType"
# Type de repli pour les références non résolues
FALLBACK_TYPE = "binary"

# Facettes XSD reconnues dans une restriction
XSD_FACETS = frozenset({
    "enumeration",
    "pattern",
    "length",
    "minLength",
    "maxLength",
    "minInclusive",
    "maxInclusive",
    "minExclusive",
    "maxExclusive",
    "totalDigits",
    "fractionDigits",
    "whiteSpace",
    "assertion",
    "explicitTimezone",
})

UNBOUNDED = -1
