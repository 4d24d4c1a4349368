import pytest

from pipelines.doc_fetcher import DocFetcher, FetchSummary
from pipelines.errors import ToolError
from pipelines.github import GitHubClient


@pytest.fixture
def doc_fetcher(store, fetcher, sources):
    return DocFetcher(store, fetcher, GitHubClient(fetcher), sources)


class TestSeeding:

    @pytest.mark.asyncio
    async def test_seed_all(self, doc_fetcher, store):
        seeded = await doc_fetcher.seed_all()

        stats = await store.stats()
        assert seeded == 4
        assert stats['patterns'] == 2
        assert stats['error_solutions'] == 2

    @pytest.mark.asyncio
    async def test_seed_runs_once_per_source(self, doc_fetcher, store):
        await doc_fetcher.seed_all()
        again = await doc_fetcher.seed_all()

        assert again == 0
        assert (await store.stats())['patterns'] == 2


class TestFetch:

    @pytest.mark.asyncio
    async def test_unknown_source(self, doc_fetcher):
        with pytest.raises(ToolError):
            await doc_fetcher.fetch('dioxus')

    @pytest.mark.asyncio
    async def test_integration_patterns_from_readmes(self, doc_fetcher, fetcher, store):
        readme = "## Call a command\n\n```rust\ninvoke(\"greet\").await;\n```\n"

        async def get_json(url, headers=None, params=None):
            if url.endswith('/search/repositories'):
                return {'items': [{'name': 'tauri-leptos-demo', 'owner': {'login': 'someone'}}, {'name': 'no-owner'}]}
            if url.endswith('/repos/someone/tauri-leptos-demo/readme'):
                return {'content': readme}
            return []

        fetcher.get_text.return_value = '<html><body></body></html>'
        fetcher.get_json.side_effect = get_json

        summary = await doc_fetcher.fetch('tauri')

        patterns = await store.patterns_by_framework('integration')
        assert [p.name for p in patterns] == ['Call a command']
        assert patterns[0].category == 'tauri-leptos'
        assert summary.patterns == 1
        assert summary.error_solutions == 1
        assert summary.failed_steps == 0


def test_summary_format():
    summary = FetchSummary(source='leptos', documents=3, patterns=2, error_solutions=1)

    assert summary.format('Leptos') == (
        "Leptos documentation fetched and stored successfully "
        "(3 documents, 2 patterns, 1 error solutions)"
    )
    summary.failed_steps = 1
    assert summary.format('Leptos').endswith("; 1 optional step(s) failed, see server log")
