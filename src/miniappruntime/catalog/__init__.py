"""miniappruntime.catalog

Static node type registry: ids, categories, pins and property schemas.
"""

from .models import PIN_TYPES, PROPERTY_TYPES, NodeCategory, NodeTypeDefinition, PinDef, PropertySchema
from .node_types import (
    NODE_CATEGORIES,
    NODE_TYPES,
    PIN_COLORS,
    create_node_instance,
    get_category_info,
    get_node_def,
    list_by_category,
    new_node_id,
)

__all__ = [
    "PIN_TYPES",
    "PROPERTY_TYPES",
    "PIN_COLORS",
    "NodeCategory",
    "NodeTypeDefinition",
    "PinDef",
    "PropertySchema",
    "NODE_CATEGORIES",
    "NODE_TYPES",
    "get_node_def",
    "get_category_info",
    "list_by_category",
    "create_node_instance",
    "new_node_id",
]
