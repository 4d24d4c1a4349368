import sqlite3

import pytest
from pydantic import ValidationError

from indexer import (
    Document,
    DocumentStore,
    ErrorSolution,
    NotInitializedError,
    Pattern,
    StorageError,
    build_match_query,
)


def make_doc(**overrides) -> Document:
    data = dict(
        crate='leptos',
        version='0.6.0',
        title='Signal basics',
        content='create_signal returns a getter and a setter for reactive state',
        category='function',
        framework='leptos',
        tags=['signals', 'state'],
        examples=['let (count, set_count) = create_signal(0);'],
    )
    data.update(overrides)
    return Document(**data)


class TestBuildMatchQuery:

    def test_terms_are_quoted_prefix_matches_joined_with_or(self):
        assert build_match_query('signal view') == '"signal"* OR "view"*'

    def test_quotes_are_escaped(self):
        assert build_match_query('say"hi') == '"say""hi"*'

    def test_punctuation_only_terms_are_dropped(self):
        assert build_match_query('signal !!! ::') == '"signal"*'

    def test_nothing_left(self):
        assert build_match_query('   ') is None
        assert build_match_query('-- ??') is None


class TestDocumentStore:

    @pytest.mark.asyncio
    async def test_insert_then_search_round_trip(self, store):
        doc_id = await store.insert_document(make_doc())

        results = await store.search('signal')

        assert [doc.id for doc in results] == [doc_id]
        found = results[0]
        assert found.title == 'Signal basics'
        assert found.tags == ['signals', 'state']
        assert found.examples == ['let (count, set_count) = create_signal(0);']
        assert found.created_at is not None

    @pytest.mark.asyncio
    async def test_tags_and_examples_keep_commas(self, store):
        await store.insert_document(make_doc(tags=['a,b', 'c'], examples=['foo(1, 2)', 'bar(3, 4)']))

        found = (await store.search('signal'))[0]

        assert found.tags == ['a,b', 'c']
        assert found.examples == ['foo(1, 2)', 'bar(3, 4)']

    @pytest.mark.asyncio
    async def test_blank_examples_and_duplicate_tags_dropped(self, store):
        doc_id = await store.insert_document(make_doc(tags=['x', 'x', 'y'], examples=['', '   ', 'code()']))

        doc = await store.get_document(doc_id)

        assert doc.tags == ['x', 'y']
        assert doc.examples == ['code()']

    @pytest.mark.asyncio
    async def test_search_matches_tags_and_examples(self, store):
        await store.insert_document(make_doc(tags=['hydration'], examples=['mount_to_body(App)']))

        assert len(await store.search('hydration')) == 1
        assert len(await store.search('mount_to_body')) == 1

    @pytest.mark.asyncio
    async def test_prefix_matching(self, store):
        await store.insert_document(make_doc(title='Router component', content='Declares nested routes'))

        assert len(await store.search('rout')) == 1

    @pytest.mark.asyncio
    async def test_any_term_may_match(self, store):
        await store.insert_document(make_doc())

        results = await store.search('signal zzzqqq')

        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_documents_matching_different_terms(self, store):
        alpha = await store.insert_document(make_doc(title='Alpha notes', content='alpha only here',
                                                     tags=[], examples=[]))
        beta = await store.insert_document(make_doc(title='Beta notes', content='beta only here',
                                                    tags=[], examples=[]))

        results = await store.search('alpha beta')

        assert {doc.id for doc in results} == {alpha, beta}

    @pytest.mark.asyncio
    async def test_framework_filter(self, store):
        await store.insert_document(make_doc(title='Leptos window', content='window handle', framework='leptos'))
        await store.insert_document(make_doc(title='Tauri window', content='window handle', framework='tauri'))

        results = await store.search('window', framework='tauri')

        assert [doc.framework for doc in results] == ['tauri']
        assert len(await store.search('window')) == 2

    @pytest.mark.asyncio
    async def test_best_match_first(self, store):
        weak = await store.insert_document(make_doc(
            title='Overview',
            content='This long page mentions a router once among many other unrelated words about styling and layout'
        ))
        strong = await store.insert_document(make_doc(title='Router', content='router router router configuration'))

        results = await store.search('router')

        assert [doc.id for doc in results] == [strong, weak]

    @pytest.mark.asyncio
    async def test_search_without_usable_terms(self, store):
        await store.insert_document(make_doc())

        assert await store.search('!!!') == []
        assert await store.search('') == []

    @pytest.mark.asyncio
    async def test_search_limit(self, store):
        for i in range(3):
            await store.insert_document(make_doc(title=f'Signal {i}'))

        assert len(await store.search('signal', limit=2)) == 2

    @pytest.mark.asyncio
    async def test_insert_accepts_dict(self, store):
        doc_id = await store.insert_document(make_doc().model_dump(exclude={'id'}))

        assert (await store.get_document(doc_id)).title == 'Signal basics'

    @pytest.mark.asyncio
    async def test_empty_required_field_rejected(self, store):
        with pytest.raises(ValidationError):
            await store.insert_document(make_doc().model_dump() | {'title': ''})

    @pytest.mark.asyncio
    async def test_get_missing_document(self, store):
        assert await store.get_document(999) is None

    @pytest.mark.asyncio
    async def test_error_solutions_substring_case_sensitive(self, store):
        await store.insert_error_solution(ErrorSolution(
            error_pattern='cannot find macro `view` in this scope',
            solution='Enable the macro feature',
            framework='leptos'
        ))

        assert len(await store.find_error_solutions('macro `view`')) == 1
        assert await store.find_error_solutions('Cannot Find Macro') == []

    @pytest.mark.asyncio
    async def test_patterns_by_framework_in_insertion_order(self, store):
        for name in ('First', 'Second'):
            await store.insert_pattern(Pattern(
                name=name, description='d', code_template='fn x() {}', framework='leptos', category='c'
            ))
        await store.insert_pattern(Pattern(
            name='Other', description='d', code_template='fn y() {}', framework='tauri', category='c'
        ))

        patterns = await store.patterns_by_framework('leptos')

        assert [p.name for p in patterns] == ['First', 'Second']
        assert await store.patterns_by_framework('dioxus') == []

    @pytest.mark.asyncio
    async def test_duplicates_allowed(self, store):
        solution = ErrorSolution(error_pattern='E0425: cannot find value', solution='Declare it')
        await store.insert_error_solution(solution)
        await store.insert_error_solution(solution)

        assert len(await store.find_error_solutions('E0425')) == 2

    @pytest.mark.asyncio
    async def test_rebuild_index(self, store):
        await store.insert_document(make_doc(tags=['hydration']))
        await store.insert_document(make_doc(title='Other item', content='unrelated text'))

        count = await store.rebuild_index()

        assert count == 2
        assert len(await store.search('hydration')) == 1

    @pytest.mark.asyncio
    async def test_stats(self, store):
        await store.insert_document(make_doc())

        stats = await store.stats()

        assert stats['documents'] == 1
        assert stats['indexed_documents'] == 1
        assert stats['tags'] == 2
        assert stats['examples'] == 1
        assert stats['patterns'] == 0
        assert stats['error_solutions'] == 0

    @pytest.mark.asyncio
    async def test_storage_error_wraps_sqlite_error(self, store):
        store.conn.execute("DROP TABLE patterns")

        with pytest.raises(StorageError) as exc_info:
            await store.insert_pattern(Pattern(
                name='n', description='d', code_template='t', framework='leptos', category='c'
            ))

        assert isinstance(exc_info.value.cause, sqlite3.Error)
        assert exc_info.value.operation == 'insert_pattern'


class TestStoreLifecycle:

    @pytest.mark.asyncio
    async def test_operations_before_initialize(self):
        store = DocumentStore()

        with pytest.raises(NotInitializedError):
            await store.search('signal')
        with pytest.raises(NotInitializedError):
            await store.insert_document(make_doc())
        with pytest.raises(NotInitializedError):
            await store.find_error_solutions('E0425')

    @pytest.mark.asyncio
    async def test_initialize_recreates_existing_file(self, tmp_path):
        db_path = tmp_path / 'nested' / 'docs.db'
        db_path.parent.mkdir()
        db_path.write_text('left over from a previous run')

        store = DocumentStore(db_path)
        await store.initialize()
        try:
            assert store.is_initialized
            assert (await store.stats())['documents'] == 0
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_examples_table_columns(self, store):
        columns = [row['name'] for row in store.conn.execute("PRAGMA table_info(examples)")]

        assert columns == ['id', 'doc_id', 'code']

    @pytest.mark.asyncio
    async def test_data_does_not_survive_restart(self, tmp_path):
        db_path = tmp_path / 'docs.db'
        store = DocumentStore(db_path)
        await store.initialize()
        await store.insert_document(make_doc())
        await store.close()

        store = DocumentStore(db_path)
        await store.initialize()
        try:
            assert await store.search('signal') == []
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_second_initialize_is_a_no_op(self, store):
        await store.insert_document(make_doc())

        await store.initialize()

        assert (await store.stats())['documents'] == 1

    @pytest.mark.asyncio
    async def test_close_then_use(self):
        store = DocumentStore()
        await store.initialize()
        await store.close()

        assert not store.is_initialized
        with pytest.raises(NotInitializedError):
            await store.stats()
