"""Statement transformers applied before rendering."""

from sqlbee.transformers._base import BaseTransformer, Statement, Transformer, TransformerPipeline
from sqlbee.transformers.policy import AccessPolicy, masked_column
from sqlbee.transformers.soft_delete import SoftDelete
from sqlbee.transformers.tables import TableRef, collect_tables, table_ref
from sqlbee.transformers.tenant import TenantScope

__all__ = (
    "AccessPolicy",
    "BaseTransformer",
    "SoftDelete",
    "Statement",
    "TableRef",
    "TenantScope",
    "Transformer",
    "TransformerPipeline",
    "collect_tables",
    "masked_column",
    "table_ref",
)
