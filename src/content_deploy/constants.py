"""Named constants for content deploy.

File layout, dependency-name syntax and dump document keys live here so the
codec, the storage and the serializers agree on them.
"""

# -----------------------------------------------------------------------------
# Dependency names
# -----------------------------------------------------------------------------

# Separates the components of a dependency name: "node:article:<uuid>"
DEPENDENCY_NAME_SEPARATOR: str = ":"

# Replaces DEPENDENCY_NAME_SEPARATOR in file basenames
BASENAME_SEPARATOR: str = "."

# Dependency kinds, used as keys of Dump.dependencies
CONTENT_DEPENDENCY: str = "content"
CONFIG_DEPENDENCY: str = "config"

# First component of a configuration dependency name: "config:filter_format.basic_html"
CONFIG_DEPENDENCY_PREFIX: str = "config"


# -----------------------------------------------------------------------------
# Dump storage layout
# -----------------------------------------------------------------------------

DUMP_FILE_SUFFIX: str = ".yml"

# Blob files are named "<basename>.blob<extension>"
BLOB_FILE_MARKER: str = ".blob"

# A dump filename holds exactly three basename components
DUMP_FILENAME_PATTERN: str = r"^([^.]+\.[^.]+\.[^.]+)\.yml$"


# -----------------------------------------------------------------------------
# Dumper
# -----------------------------------------------------------------------------

# Field types filled in automatically by the live store; dumping them would
# make every re-export differ
SKIPPED_FIELD_TYPES: frozenset[str] = frozenset({"created", "changed"})

# Item key holding the raw target identifier of a reference field
REFERENCE_TARGET_KEY: str = "target_id"

# Item key holding the dependency name (dumped) or the live handle (restored)
REFERENCE_ENTITY_KEY: str = "entity"


# -----------------------------------------------------------------------------
# Diff
# -----------------------------------------------------------------------------

ENTITY_ADDED_PLACEHOLDER: str = "Entity added"
ENTITY_DELETED_PLACEHOLDER: str = "Entity deleted"


# -----------------------------------------------------------------------------
# Configuration defaults
# -----------------------------------------------------------------------------

DEFAULT_DESTINATION: str = "sync"
