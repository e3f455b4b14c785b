"""
sprout Canonical Schemas
Structural requirements for the files the scaffolder reads back.
"""

PLATFORM_ENTRY_SCHEMA = {
    "type": ["object", "null"],
    "properties": {
        "pluginClass": {"type": "string"},
        "package": {"type": "string"},
        "fileName": {"type": "string"},
        "dartPluginClass": {"type": "string"},
    }
}

PLUGIN_MANIFEST_SCHEMA = {
    "type": "object",
    "required": ["flutter"],
    "properties": {
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "flutter": {
            "type": "object",
            "required": ["plugin"],
            "properties": {
                "plugin": {
                    "type": "object",
                    "required": ["platforms"],
                    "properties": {
                        "platforms": {
                            "type": "object",
                            "additionalProperties": PLATFORM_ENTRY_SCHEMA
                        }
                    }
                }
            }
        }
    }
}

PROJECT_METADATA_SCHEMA = {
    "type": "object",
    "properties": {
        "project_type": {"type": "string"},
        "version": {"type": ["object", "null"]}
    }
}

# Registry for lookup by file name
SCHEMA_REGISTRY = {
    "pubspec.yaml": PLUGIN_MANIFEST_SCHEMA,
    ".metadata": PROJECT_METADATA_SCHEMA,
}
