"""
Schema Models

Pydantic models for the schema exchange format returned by the completion API:

    {"tables": [{"name": ..., "fields": [...], "relationships": [...], "indexes": [...]}]}
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SchemaField(BaseModel):
    """One column of a generated table."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Postgres column type")
    constraints: List[str] = Field(..., description="Column constraints, in order")
    description: str


class TableSchema(BaseModel):
    """One generated table."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    fields: List[SchemaField] = Field(..., min_length=1)
    relationships: List[str] = Field(..., description="Relationship descriptions")
    indexes: List[str] = Field(..., description="Index definition statements")


class SchemaDocument(BaseModel):
    """Top-level completion payload."""

    model_config = ConfigDict(extra="forbid")

    tables: List[TableSchema]
