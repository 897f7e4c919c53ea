"""
JSON schemas for configuration validation.
"""

STORE_SCHEMA = {
    "type": "object",
    "properties": {
        "backend": {"type": "string", "enum": ["memory", "fs", "sqlite", "postgres"]},
        "directory": {"type": ["string", "null"]},
        "db_path": {"type": ["string", "null"]},
        "pg_dsn": {"type": ["string", "null"]},
        "table_name": {"type": ["string", "null"], "pattern": "^[a-zA-Z0-9_]+$"},
    },
    "required": ["backend"],
    "allOf": [
        {
            "if": {"properties": {"backend": {"const": "fs"}}},
            "then": {"required": ["directory"]},
        },
        {
            "if": {"properties": {"backend": {"const": "sqlite"}}},
            "then": {"required": ["db_path"]},
        },
        {
            "if": {"properties": {"backend": {"const": "postgres"}}},
            "then": {"required": ["pg_dsn"]},
        },
    ],
    "additionalProperties": False,
}

ENGINE_SCHEMA = {
    "type": "object",
    "properties": {
        "poll_interval": {"type": "number", "exclusiveMinimum": 0},
        "wait_timeout": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "status_model": {"type": "string", "enum": ["enum", "progress"]},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "store": STORE_SCHEMA,
        "engine": ENGINE_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": False,
}


__all__ = ["CONFIG_SCHEMA", "STORE_SCHEMA", "ENGINE_SCHEMA", "LOGGING_SCHEMA"]
