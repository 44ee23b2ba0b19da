"""
Tests for regindex.database module.

Tests cover:
- Database connection management
- Schema creation
- Index row upsert/delete
- Page queries
- Tag status
"""

import os
import sqlite3
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

from regindex.database.connection import (
    Database,
    get_db_path,
    get_connection,
    get_database_info,
)
from regindex.database.schema import (
    CURRENT_VERSION,
    ensure_schema,
    get_schema_version,
)
from regindex.database.repository import (
    upsert_record,
    delete_record,
    get_record_count,
)
from regindex.database.query import (
    compile_page_query,
    compile_count_query,
    escape_like,
    fetch_page,
    count_matching,
)
from regindex.database.tags import (
    register_tag,
    set_tag_status,
    get_tag_status,
)
from regindex.domain import QueryArgs, Target
from regindex.exceptions import NotFoundError, SchemaError, StoreError


def _target(repository, digest='sha256:aa', url=None):
    return Target(
        repository=repository,
        digest=digest,
        url=url or f'http://registry.local/v2/{repository}/manifests/{digest}',
    )


class TestDatabaseConnection(unittest.TestCase):
    """Tests for database connection management."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'test.db'

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_get_db_path_default(self):
        """Test default database path."""
        with patch.dict(os.environ, {}, clear=True):
            path = get_db_path()
            self.assertTrue(str(path).endswith('registry.sqlite3'))
            self.assertIn('.regindex', str(path))

    def test_get_db_path_from_env(self):
        """Test database path from environment variable."""
        with patch.dict(os.environ, {'REGINDEX_DB': '/custom/path/db.sqlite'}):
            path = get_db_path()
            self.assertEqual(str(path), '/custom/path/db.sqlite')

    def test_get_db_path_from_config(self):
        """Test database path from config."""
        config = {'database': {'path': '~/mydb.sqlite'}}
        with patch.dict(os.environ, {}, clear=True):
            path = get_db_path(config)
        self.assertIn('mydb.sqlite', str(path))
        self.assertNotIn('~', str(path))

    def test_database_context_manager(self):
        """Test Database context manager opens and closes."""
        with Database(db_path=self.db_path) as db:
            self.assertTrue(db.is_open)
            result = db.execute("SELECT 1").fetchone()
            self.assertEqual(result[0], 1)
        self.assertFalse(db.is_open)

    def test_database_creates_parent_directory(self):
        """Test that the store location is created on open."""
        nested = Path(self.temp_dir) / 'a' / 'b' / 'index.db'
        with Database(db_path=nested):
            pass
        self.assertTrue(nested.exists())

    def test_close_is_idempotent(self):
        db = Database(db_path=self.db_path).open()
        db.close()
        db.close()
        self.assertFalse(db.is_open)

    def test_run_after_close_raises_store_error(self):
        db = Database(db_path=self.db_path).open()
        db.close()
        with self.assertRaises(StoreError):
            db.run("SELECT 1")

    def test_open_failure_is_schema_error(self):
        """A path that cannot be opened aborts construction."""
        with self.assertRaises(SchemaError):
            get_connection(Path(self.temp_dir))

    def test_timeout_from_config(self):
        db = Database(db_path=self.db_path, config={'database': {'timeout': 2}})
        self.assertEqual(db.timeout, 2.0)

    def test_get_database_info(self):
        """Test get_database_info returns stats."""
        with Database(db_path=self.db_path) as db:
            upsert_record(db, _target('alpha/one'))
            info = get_database_info(db)

        self.assertEqual(info['path'], str(self.db_path))
        self.assertEqual(info['repositories'], 1)
        self.assertEqual(info['tags'], 0)
        self.assertEqual(info['schema_version'], CURRENT_VERSION)
        self.assertIn('size_human', info)


class TestSchema(unittest.TestCase):
    """Tests for schema creation."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'test.db'

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_get_schema_version_empty_db(self):
        """Test schema version on fresh database."""
        conn = sqlite3.connect(str(self.db_path))
        version = get_schema_version(conn)
        self.assertEqual(version, 0)
        conn.close()

    def test_ensure_schema_creates_tables(self):
        """Test ensure_schema creates all required tables and indexes."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        ensure_schema(conn)

        tables = [row['name'] for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        )]
        for table in ['repositories', 'tags', '_schema_info']:
            self.assertIn(table, tables)

        indexes = [row['name'] for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index'"
        )]
        self.assertIn('idx_repositories_name', indexes)
        self.assertIn('idx_tags_repository_tag', indexes)

        columns = [row['name'] for row in conn.execute("PRAGMA table_info(repositories)")]
        self.assertEqual(columns, ['id', 'repository', 'digest', 'url', 'updated_at'])
        conn.close()

    def test_ensure_schema_is_idempotent(self):
        """Re-applying the schema keeps existing rows."""
        with Database(db_path=self.db_path) as db:
            upsert_record(db, _target('alpha/one'))

        with Database(db_path=self.db_path) as db:
            ensure_schema(db.conn)
            self.assertEqual(get_record_count(db), 1)
            self.assertEqual(db.schema_version(), CURRENT_VERSION)

    def test_repository_is_unique(self):
        """The unique index rejects a second plain insert."""
        with Database(db_path=self.db_path) as db:
            db.execute("INSERT INTO repositories (repository) VALUES ('r1')")
            with self.assertRaises(sqlite3.IntegrityError):
                db.execute("INSERT INTO repositories (repository) VALUES ('r1')")

    def test_updated_at_defaults_to_now(self):
        with Database(db_path=self.db_path) as db:
            db.execute("INSERT INTO repositories (repository) VALUES ('r1')")
            row = db.execute("SELECT updated_at FROM repositories").fetchone()
            self.assertIsNotNone(row['updated_at'])


class TestRecordOperations(unittest.TestCase):
    """Tests for index row upsert and delete."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = Database(db_path=Path(self.temp_dir) / 'test.db').open()

    def tearDown(self):
        import shutil
        self.db.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _rows(self):
        return [dict(row) for row in self.db.execute(
            "SELECT repository, digest, url, updated_at FROM repositories ORDER BY repository"
        )]

    def test_upsert_inserts(self):
        upsert_record(self.db, _target('r1', 'sha256:aa', 'http://x/r1'))
        rows = self._rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['repository'], 'r1')
        self.assertEqual(rows[0]['digest'], 'sha256:aa')
        self.assertEqual(rows[0]['url'], 'http://x/r1')

    def test_upsert_replaces_whole_row(self):
        upsert_record(self.db, _target('r1', 'sha256:aa', 'http://x/a'), updated_at='2024-01-01T00:00:00+00:00')
        upsert_record(self.db, _target('r1', 'sha256:bb', 'http://x/b'), updated_at='2024-06-01T00:00:00+00:00')

        rows = self._rows()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['digest'], 'sha256:bb')
        self.assertEqual(rows[0]['url'], 'http://x/b')
        self.assertEqual(rows[0]['updated_at'], '2024-06-01T00:00:00+00:00')

    def test_delete_existing(self):
        upsert_record(self.db, _target('r1'))
        self.assertTrue(delete_record(self.db, 'r1'))
        self.assertEqual(get_record_count(self.db), 0)

    def test_delete_missing_is_not_an_error(self):
        self.assertFalse(delete_record(self.db, 'nope'))

    def test_delete_only_touches_its_repository(self):
        upsert_record(self.db, _target('r1'))
        upsert_record(self.db, _target('r2'))
        delete_record(self.db, 'r1')
        self.assertEqual([r['repository'] for r in self._rows()], ['r2'])


class TestPageQuery(unittest.TestCase):
    """Tests for the paginated keyword query."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = Database(db_path=Path(self.temp_dir) / 'test.db').open()
        for name in ['beta/one', 'alpha/two', 'alpha/one']:
            upsert_record(self.db, _target(name))

    def tearDown(self):
        import shutil
        self.db.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_compile_without_keyword(self):
        query = compile_page_query(QueryArgs(skip=5, limit=10))
        self.assertNotIn('WHERE', query.sql)
        self.assertIn('ORDER BY repository ASC', query.sql)
        self.assertEqual(query.params, [10, 5])

    def test_compile_with_keyword(self):
        query = compile_page_query(QueryArgs(keyword='alpha', skip=0, limit=20))
        self.assertIn('LIKE ?', query.sql)
        self.assertEqual(query.params, ['%alpha%', 20, 0])

    def test_compile_count(self):
        query = compile_count_query('x')
        self.assertTrue(query.sql.startswith('SELECT COUNT(*)'))
        self.assertEqual(query.params, ['%x%'])

    def test_escape_like(self):
        self.assertEqual(escape_like('a_b%c'), 'a\\_b\\%c')
        self.assertEqual(escape_like('a\\b'), 'a\\\\b')
        self.assertEqual(escape_like('plain'), 'plain')

    def test_keyword_filters_by_substring(self):
        page = fetch_page(self.db, QueryArgs(keyword='alpha', limit=20))
        self.assertEqual({r.repository for r in page}, {'alpha/one', 'alpha/two'})

    def test_results_are_sorted_by_repository(self):
        page = fetch_page(self.db, QueryArgs(limit=20))
        self.assertEqual([r.repository for r in page], ['alpha/one', 'alpha/two', 'beta/one'])

    def test_wildcards_match_literally(self):
        upsert_record(self.db, _target('under_score'))
        page = fetch_page(self.db, QueryArgs(keyword='_', limit=20))
        self.assertEqual([r.repository for r in page], ['under_score'])

        page = fetch_page(self.db, QueryArgs(keyword='%', limit=20))
        self.assertEqual(page, [])

    def test_skip_and_limit(self):
        page = fetch_page(self.db, QueryArgs(skip=1, limit=1))
        self.assertEqual([r.repository for r in page], ['alpha/two'])

    def test_no_match_is_empty(self):
        self.assertEqual(fetch_page(self.db, QueryArgs(keyword='gamma', limit=20)), [])

    def test_records_are_decoded(self):
        page = fetch_page(self.db, QueryArgs(keyword='beta', limit=20))
        self.assertEqual(len(page), 1)
        record = page[0]
        self.assertEqual(record.digest, 'sha256:aa')
        self.assertIsInstance(record.updated_at, datetime)
        self.assertIsNotNone(record.updated_at.tzinfo)

    def test_default_timestamp_is_decoded_as_utc(self):
        self.db.execute("INSERT INTO repositories (repository, digest, url) VALUES ('gamma', 'd', 'u')")
        page = fetch_page(self.db, QueryArgs(keyword='gamma', limit=20))
        self.assertEqual(len(page), 1)
        self.assertEqual(page[0].updated_at.tzinfo, timezone.utc)

    def test_undecodable_rows_are_skipped(self):
        self.db.execute(
            "INSERT INTO repositories (repository, digest, url, updated_at) VALUES (?, ?, ?, ?)",
            ('alpha/broken', 'd', 'u', 'not-a-timestamp'),
        )
        self.db.execute("INSERT INTO repositories (repository, digest, url) VALUES (NULL, 'd', 'u')")

        page = fetch_page(self.db, QueryArgs(limit=20))
        self.assertEqual(
            [r.repository for r in page],
            ['alpha/one', 'alpha/two', 'beta/one'],
        )

    def test_count_matching(self):
        self.assertEqual(count_matching(self.db), 3)
        self.assertEqual(count_matching(self.db, 'alpha'), 2)
        self.assertEqual(count_matching(self.db, 'gamma'), 0)


class TestTagStatus(unittest.TestCase):
    """Tests for per-tag status."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db = Database(db_path=Path(self.temp_dir) / 'test.db').open()

    def tearDown(self):
        import shutil
        self.db.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_set_status_on_unknown_pair(self):
        with self.assertRaises(NotFoundError) as ctx:
            set_tag_status(self.db, 'r1', 'latest', 'approved')
        self.assertEqual(ctx.exception.key, {'repository': 'r1', 'tag': 'latest'})

    def test_set_status_on_known_pair(self):
        register_tag(self.db, 'r1', 'latest')
        self.assertEqual(get_tag_status(self.db, 'r1', 'latest'), '')

        set_tag_status(self.db, 'r1', 'latest', 'approved')
        self.assertEqual(get_tag_status(self.db, 'r1', 'latest'), 'approved')

    def test_register_keeps_existing_status(self):
        register_tag(self.db, 'r1', 'latest')
        set_tag_status(self.db, 'r1', 'latest', 'approved')
        register_tag(self.db, 'r1', 'latest')
        self.assertEqual(get_tag_status(self.db, 'r1', 'latest'), 'approved')

    def test_status_is_per_tag(self):
        register_tag(self.db, 'r1', 'latest')
        register_tag(self.db, 'r1', 'v1')
        set_tag_status(self.db, 'r1', 'v1', 'deprecated')
        self.assertEqual(get_tag_status(self.db, 'r1', 'latest'), '')
        self.assertEqual(get_tag_status(self.db, 'r1', 'v1'), 'deprecated')

    def test_get_status_unknown_pair(self):
        self.assertIsNone(get_tag_status(self.db, 'r1', 'nope'))


if __name__ == '__main__':
    unittest.main()
