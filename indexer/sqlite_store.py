"""SQLite document store for rustdoc-mcp.

Holds crate documentation, reusable code patterns and known error solutions,
and keeps an FTS5 index over the documents for ranked full-text search. The
database is a rebuild-on-boot cache: ``initialize()`` discards whatever file
was left by a previous run.
"""

import re
import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any, Optional, Union, Iterator

from .errors import NotInitializedError, StorageError
from .models import Document, Pattern, ErrorSolution

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_WORD_RE = re.compile(r"\w")


def build_match_query(query: str) -> Optional[str]:
    """Turn free text into an FTS5 MATCH expression.

    Every whitespace-separated term becomes a quoted prefix match and the
    terms are OR-ed together. Terms without a single word character would
    tokenize to nothing, so they are skipped. Returns ``None`` when no term
    survives.
    """
    terms = []
    for term in query.split():
        if not _WORD_RE.search(term):
            continue
        escaped = term.replace('"', '""')
        terms.append(f'"{escaped}"*')
    if not terms:
        return None
    return " OR ".join(terms)


class DocumentStore:
    """SQLite-backed store with a synchronized FTS5 search index."""

    def __init__(self, db_path: Union[str, Path] = MEMORY_PATH):
        self.db_path = str(db_path)
        self.conn: Optional[sqlite3.Connection] = None

    @property
    def is_initialized(self) -> bool:
        return self.conn is not None

    async def initialize(self):
        """Recreate the database file and apply the schema."""
        if self.conn is not None:
            logger.warning(f"Document store already initialized: {self.db_path}")
            return

        try:
            if self.db_path != MEMORY_PATH:
                db_file = Path(self.db_path)
                db_file.parent.mkdir(parents=True, exist_ok=True)
                if db_file.exists():
                    db_file.unlink()
                    logger.info(f"Removed existing database: {db_file}")

            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to initialize document store: {e}")
            raise StorageError("initialize", e) from e

        self.conn = conn
        logger.info(f"Document store initialized: {self.db_path}")

    async def close(self):
        """Close the SQLite connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Document store connection closed")

    def _require_conn(self, operation: str) -> sqlite3.Connection:
        if self.conn is None:
            raise NotInitializedError(operation)
        return self.conn

    @contextmanager
    def _storage(self, operation: str) -> Iterator[sqlite3.Connection]:
        conn = self._require_conn(operation)
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Storage error during {operation}: {e}")
            raise StorageError(operation, e) from e

    async def insert_document(self, doc: Union[Document, Dict[str, Any]]) -> int:
        """Insert a document, its tags and examples, and its index entry.

        All rows are written in one transaction so the index entry always
        sees the full set of tags and examples. Blank examples are dropped.
        """
        if not isinstance(doc, Document):
            doc = Document.model_validate(doc)

        tags = list(dict.fromkeys(doc.tags))
        examples = [example for example in doc.examples if example and example.strip()]
        now = datetime.now(timezone.utc).isoformat()

        with self._storage("insert_document") as conn:
            with conn:
                cursor = conn.execute(
                    """
                    INSERT INTO documents (crate, version, title, content, category, framework, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (doc.crate, doc.version, doc.title, doc.content, doc.category, doc.framework, now, now)
                )
                doc_id = cursor.lastrowid

                conn.executemany(
                    "INSERT INTO tags (doc_id, tag) VALUES (?, ?)",
                    [(doc_id, tag) for tag in tags]
                )
                conn.executemany(
                    "INSERT INTO examples (doc_id, code) VALUES (?, ?)",
                    [(doc_id, code) for code in examples]
                )
                conn.execute(
                    """
                    INSERT INTO documents_fts (rowid, title, content, category, framework, tags, examples)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (doc_id, doc.title, doc.content, doc.category, doc.framework,
                     " ".join(tags), " ".join(examples))
                )

        logger.debug(f"Inserted document {doc_id}: {doc.title}")
        return doc_id

    async def insert_pattern(self, pattern: Union[Pattern, Dict[str, Any]]) -> int:
        """Append a code pattern. Duplicates are allowed."""
        if not isinstance(pattern, Pattern):
            pattern = Pattern.model_validate(pattern)

        with self._storage("insert_pattern") as conn:
            with conn:
                cursor = conn.execute(
                    """
                    INSERT INTO patterns (name, description, code_template, framework, category)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (pattern.name, pattern.description, pattern.code_template,
                     pattern.framework, pattern.category)
                )
        return cursor.lastrowid

    async def insert_error_solution(self, solution: Union[ErrorSolution, Dict[str, Any]]) -> int:
        """Append an error solution. Duplicates are allowed."""
        if not isinstance(solution, ErrorSolution):
            solution = ErrorSolution.model_validate(solution)

        with self._storage("insert_error_solution") as conn:
            with conn:
                cursor = conn.execute(
                    """
                    INSERT INTO error_solutions (error_pattern, solution, example_fix, framework)
                    VALUES (?, ?, ?, ?)
                    """,
                    (solution.error_pattern, solution.solution,
                     solution.example_fix, solution.framework)
                )
        return cursor.lastrowid

    async def search(self, query: str, framework: Optional[str] = None,
                     limit: Optional[int] = None) -> List[Document]:
        """Ranked full-text search over documents, best match first.

        Terms are prefix-matched and OR-combined. ``framework`` restricts the
        results to an exact framework value.
        """
        conn = self._require_conn("search")
        match = build_match_query(query)
        if match is None:
            return []

        sql = """
            SELECT d.*
            FROM documents_fts
            JOIN documents d ON d.id = documents_fts.rowid
            WHERE documents_fts MATCH ?
        """
        params: List[Any] = [match]
        if framework:
            sql += " AND d.framework = ?"
            params.append(framework)
        sql += " ORDER BY documents_fts.rank"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._storage("search"):
            rows = conn.execute(sql, params).fetchall()

            seen = set()
            unique_rows = []
            for row in rows:
                if row["id"] not in seen:
                    seen.add(row["id"])
                    unique_rows.append(row)

            tags, examples = self._load_children([row["id"] for row in unique_rows])

        logger.debug(f"Search {match!r} (framework={framework}) matched {len(unique_rows)} documents")
        return [self._row_to_document(row, tags, examples) for row in unique_rows]

    async def get_document(self, doc_id: int) -> Optional[Document]:
        """Fetch a single document with its tags and examples."""
        with self._storage("get_document") as conn:
            row = conn.execute("SELECT * FROM documents WHERE id = ?", (doc_id,)).fetchone()
            if row is None:
                return None
            tags, examples = self._load_children([doc_id])
        return self._row_to_document(row, tags, examples)

    async def find_error_solutions(self, error_text: str) -> List[ErrorSolution]:
        """Solutions whose error pattern contains ``error_text`` (case-sensitive)."""
        with self._storage("find_error_solutions") as conn:
            rows = conn.execute(
                """
                SELECT * FROM error_solutions
                WHERE instr(error_pattern, ?) > 0
                ORDER BY id
                """,
                (error_text,)
            ).fetchall()
        return [ErrorSolution(**dict(row)) for row in rows]

    async def patterns_by_framework(self, framework: str) -> List[Pattern]:
        """All patterns registered for exactly ``framework``, in insertion order."""
        with self._storage("patterns_by_framework") as conn:
            rows = conn.execute(
                "SELECT * FROM patterns WHERE framework = ? ORDER BY id",
                (framework,)
            ).fetchall()
        return [Pattern(**dict(row)) for row in rows]

    async def rebuild_index(self) -> int:
        """Repopulate the FTS index from the relational tables."""
        with self._storage("rebuild_index") as conn:
            with conn:
                conn.execute("DELETE FROM documents_fts")
                conn.execute(
                    """
                    INSERT INTO documents_fts (rowid, title, content, category, framework, tags, examples)
                    SELECT d.id, d.title, d.content, d.category, d.framework,
                           COALESCE((SELECT GROUP_CONCAT(tag, ' ') FROM (SELECT tag FROM tags WHERE doc_id = d.id ORDER BY id)), ''),
                           COALESCE((SELECT GROUP_CONCAT(code, ' ') FROM (SELECT code FROM examples WHERE doc_id = d.id ORDER BY id)), '')
                    FROM documents d
                    """
                )
                count = conn.execute("SELECT COUNT(*) FROM documents_fts").fetchone()[0]
        logger.info(f"Rebuilt search index with {count} documents")
        return count

    async def stats(self) -> Dict[str, int]:
        """Row counts for status reporting."""
        with self._storage("stats") as conn:
            result = {}
            for key, table in (
                ("documents", "documents"),
                ("tags", "tags"),
                ("examples", "examples"),
                ("patterns", "patterns"),
                ("error_solutions", "error_solutions"),
                ("indexed_documents", "documents_fts"),
            ):
                result[key] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        return result

    def _load_children(self, doc_ids: List[int]):
        tags: Dict[int, List[str]] = {doc_id: [] for doc_id in doc_ids}
        examples: Dict[int, List[str]] = {doc_id: [] for doc_id in doc_ids}
        if not doc_ids:
            return tags, examples

        placeholders = ",".join("?" for _ in doc_ids)
        for row in self.conn.execute(
            f"SELECT doc_id, tag FROM tags WHERE doc_id IN ({placeholders}) ORDER BY id",
            doc_ids
        ):
            tags[row["doc_id"]].append(row["tag"])
        for row in self.conn.execute(
            f"SELECT doc_id, code FROM examples WHERE doc_id IN ({placeholders}) ORDER BY id",
            doc_ids
        ):
            examples[row["doc_id"]].append(row["code"])
        return tags, examples

    @staticmethod
    def _row_to_document(row: sqlite3.Row, tags: Dict[int, List[str]],
                         examples: Dict[int, List[str]]) -> Document:
        return Document(
            id=row["id"],
            crate=row["crate"],
            version=row["version"],
            title=row["title"],
            content=row["content"],
            category=row["category"],
            framework=row["framework"],
            tags=tags.get(row["id"], []),
            examples=examples.get(row["id"], []),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
