"""
Form Engine Constants

Field type classifications and the property buckets that decide which
component properties are legal for which types.
"""

# Current form-js schema version
DEFAULT_SCHEMA_VERSION = 19

# form-js lays components out on a 16-column grid
DEFAULT_COLUMNS = 16

# Undo snapshots kept per form
MAX_HISTORY = 50

# =============================================================================
# Field Type Classifications
# =============================================================================

# Input field types (keyed - bind to process variables)
INPUT_FIELD_TYPES = (
    "textfield",
    "textarea",
    "number",
    "datetime",
    "expression",
    "filepicker",
)

# Selection field types (keyed - bind to process variables)
SELECTION_FIELD_TYPES = (
    "checkbox",
    "checklist",
    "radio",
    "select",
    "taglist",
)

# Presentation field types (display only)
PRESENTATION_FIELD_TYPES = (
    "text",
    "html",
    "image",
    "table",
    "documentPreview",
    "spacer",
    "separator",
)

# Types that may own a nested components list
CONTAINER_FIELD_TYPES = ("group", "dynamiclist", "iframe")

ACTION_FIELD_TYPES = ("button",)

KEYED_FIELD_TYPES = INPUT_FIELD_TYPES + SELECTION_FIELD_TYPES

# Types that accept values / valuesKey / valuesExpression
OPTIONS_FIELD_TYPES = ("select", "radio", "checklist", "taglist")

SUPPORTED_FIELD_TYPES = (
    INPUT_FIELD_TYPES
    + SELECTION_FIELD_TYPES
    + PRESENTATION_FIELD_TYPES
    + CONTAINER_FIELD_TYPES
    + ACTION_FIELD_TYPES
)

# Types that always span a full row in the two-column and compact layouts
FULL_WIDTH_TYPES = frozenset(
    [
        "text",
        "html",
        "separator",
        "spacer",
        "table",
        "documentPreview",
        "image",
        "group",
        "dynamiclist",
        "iframe",
        "button",
    ]
)

# =============================================================================
# Property Buckets (type replacement)
# =============================================================================

# Kept across every type change
UNIVERSAL_PROPS = frozenset(
    ["id", "type", "label", "description", "conditional", "layout", "properties"]
)

# Kept only when the new type is keyed
KEYED_PROPS = frozenset(["key", "defaultValue", "disabled", "readonly", "validate"])

# Kept only when the new type accepts options; mutually exclusive sources
OPTIONS_PROPS = ("values", "valuesKey", "valuesExpression")

# Kept only when the new type is a container
CONTAINER_PROPS = frozenset(["components"])

# Never writable through the generic property setter
READ_ONLY_PROPS = frozenset(["id", "type", "components"])
