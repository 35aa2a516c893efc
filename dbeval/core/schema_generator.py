"""
Schema Generator

Turns a natural-language application description into a relational schema via
the completion API, then renders it as Postgres DDL.

Flow: prompt -> completion -> parse (fallback schema on any parse failure)
-> render SQL -> write file. A malformed completion never blocks generation;
a transport failure or an empty completion does.
"""

import json
import logging
import re
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from dbeval.config import Settings
from dbeval.connectors.llm_client import CompletionClient
from dbeval.core.helpers import truncate_str_for_log
from dbeval.models import SchemaDocument, SchemaField, TableSchema

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a database schema expert. Generate PostgreSQL schemas based on "
    "natural language descriptions. Return ONLY raw JSON without any markdown "
    "formatting or code blocks. Ensure the JSON is complete and valid."
)

DEFAULT_DESCRIPTION = textwrap.dedent(
    """\
    Create a blog application with the following features:
    - Users can create posts with title, content, and tags
    - Posts can have multiple comments from users
    - Users can like posts
    - Posts can be categorized
    - Users can follow other users

    Requirements:
    - Use appropriate data types and constraints
    - Include indexes for common queries
    - Implement proper foreign key relationships
    - Add timestamps for created_at and updated_at
    - Include soft delete where appropriate
    """
)

_PROMPT_TEMPLATE = textwrap.dedent(
    """\
    Generate a PostgreSQL schema for the following application description:
    "{description}"

    IMPORTANT: Return ONLY the raw JSON without any markdown formatting or code blocks.
    The response should start with {{ and end with }} and be in this exact format:
    {{
      "tables": [
        {{
          "name": "table_name",
          "fields": [
            {{
              "name": "field_name",
              "type": "postgres_type",
              "constraints": ["constraint1", "constraint2"],
              "description": "field description"
            }}
          ],
          "relationships": ["relationship description"],
          "indexes": ["CREATE INDEX statement"]
        }}
      ]
    }}

    Make sure:
    1. The output is valid JSON
    2. All arrays and objects are properly closed
    3. No trailing commas in arrays or objects
    4. All strings are properly quoted
    5. The response is complete and not truncated
    """
)

_CODE_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_WHITESPACE_RE = re.compile(r"\s+")
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


FALLBACK_SCHEMA: tuple[TableSchema, ...] = (
    TableSchema(
        name="users",
        fields=[
            SchemaField(
                name="id",
                type="SERIAL",
                constraints=["PRIMARY KEY"],
                description="Unique identifier for the user",
            ),
            SchemaField(
                name="username",
                type="VARCHAR(50)",
                constraints=["NOT NULL", "UNIQUE"],
                description="User's username",
            ),
            SchemaField(
                name="email",
                type="VARCHAR(255)",
                constraints=["NOT NULL", "UNIQUE"],
                description="User's email",
            ),
            SchemaField(
                name="created_at",
                type="TIMESTAMP",
                constraints=["NOT NULL", "DEFAULT CURRENT_TIMESTAMP"],
                description="Creation timestamp",
            ),
        ],
        relationships=[],
        indexes=["CREATE INDEX idx_users_username ON users(username);"],
    ),
    TableSchema(
        name="posts",
        fields=[
            SchemaField(
                name="id",
                type="SERIAL",
                constraints=["PRIMARY KEY"],
                description="Unique identifier for the post",
            ),
            SchemaField(
                name="title",
                type="VARCHAR(255)",
                constraints=["NOT NULL"],
                description="Post title",
            ),
            SchemaField(
                name="content",
                type="TEXT",
                constraints=["NOT NULL"],
                description="Post content",
            ),
            SchemaField(
                name="user_id",
                type="INTEGER",
                constraints=["NOT NULL", "REFERENCES users(id)"],
                description="Author ID",
            ),
            SchemaField(
                name="created_at",
                type="TIMESTAMP",
                constraints=["NOT NULL", "DEFAULT CURRENT_TIMESTAMP"],
                description="Creation timestamp",
            ),
        ],
        relationships=["FOREIGN KEY (user_id) REFERENCES users(id)"],
        indexes=["CREATE INDEX idx_posts_user_id ON posts(user_id);"],
    ),
)


def fallback_schema() -> List[TableSchema]:
    """Fresh copy of the static users/posts schema."""
    return [table.model_copy(deep=True) for table in FALLBACK_SCHEMA]


def build_prompt(description: str) -> str:
    return _PROMPT_TEMPLATE.format(description=description.strip())


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaParseResult:
    """Either parsed `tables` or an `error` describing why parsing failed."""

    tables: Optional[List[TableSchema]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.tables is not None


def clean_completion(text: str) -> str:
    """Drop code fence markers and collapse whitespace runs to single spaces."""
    text = _CODE_FENCE_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_schema_response(text: str) -> SchemaParseResult:
    """
    Extract and validate the schema JSON from raw completion text.

    Never raises: every failure (no object, invalid JSON, wrong shape) comes
    back as an error result.
    """
    cleaned = clean_completion(text or "")

    match = _JSON_OBJECT_RE.search(cleaned)
    if not match:
        return SchemaParseResult(error="No JSON object found in response")

    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        return SchemaParseResult(error=f"Invalid JSON: {e}")

    try:
        document = SchemaDocument.model_validate(payload)
    except ValidationError as e:
        return SchemaParseResult(
            error=f"Unexpected schema shape: {e.error_count()} validation error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
        )

    if not document.tables:
        return SchemaParseResult(error="Schema has no tables")

    return SchemaParseResult(tables=document.tables)


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def terminate_statement(statement: str) -> str:
    """Normalize a statement to end with exactly one semicolon."""
    body = statement.strip()
    while body.endswith(";"):
        body = body[:-1].rstrip()
    return f"{body};" if body else ""


def render_column(field: SchemaField) -> str:
    parts = [field.name, field.type, *field.constraints]
    return "  " + " ".join(p.strip() for p in parts if p and p.strip())


def render_table(table: TableSchema) -> str:
    columns = ",\n".join(render_column(field) for field in table.fields)
    return f"CREATE TABLE {table.name} (\n{columns}\n);"


def render_sql(tables: Sequence[TableSchema]) -> str:
    """
    Render tables as DDL: each CREATE TABLE followed by its index statements,
    tables in sequence order, statements separated by a blank line.

    Index statements are emitted as given apart from statement termination.
    """
    statements: List[str] = []
    for table in tables:
        statements.append(render_table(table))
        for index in table.indexes:
            statement = terminate_statement(index)
            if statement:
                statements.append(statement)
    return "\n\n".join(statements) + "\n"


def write_sql(path: str | Path, sql: str) -> Path:
    """Write SQL text to `path`, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(sql, encoding="utf-8")
    logger.info("SQL saved to %s", out)
    return out


# ----------------------------------------------------------------------
# Generator
# ----------------------------------------------------------------------


class SchemaGenerator:
    """Prompts the completion API and turns its answer into a schema."""

    def __init__(self, client: CompletionClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def generate_schema(self, description: str) -> List[TableSchema]:
        """
        Ask for a schema; substitute the fallback schema if the completion
        cannot be parsed.

        Raises:
            CompletionError: if the API returns no text
        """
        logger.info("Generating schema (%d chars of description)", len(description))
        raw = await self.client.complete(
            SYSTEM_PROMPT,
            build_prompt(description),
            temperature=self.settings.SCHEMA_TEMPERATURE,
            max_tokens=self.settings.SCHEMA_MAX_TOKENS,
        )

        parsed = parse_schema_response(raw)
        if parsed.tables is not None:
            logger.info("Parsed schema with %d tables", len(parsed.tables))
            return parsed.tables

        logger.error("Error parsing schema: %s", parsed.error)
        logger.error("Raw response: %s", truncate_str_for_log(raw, max_chars=4000))
        logger.warning("Using fallback schema (users, posts)")
        return fallback_schema()

    async def generate_sql(self, description: str) -> tuple[List[TableSchema], str]:
        tables = await self.generate_schema(description)
        return tables, render_sql(tables)
