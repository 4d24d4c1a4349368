import pytest

from sources.loader import SourceConfig, SourceLoader


class TestBundledSources:

    def test_leptos_and_tauri_are_enabled(self):
        sources = SourceLoader().get_enabled_sources()

        assert sorted(sources) == ['leptos', 'tauri']

    def test_leptos_config(self):
        leptos = SourceLoader().load_source_config('leptos')

        assert leptos.title == 'Leptos'
        assert leptos.docs_url.startswith('https://docs.rs/leptos/')
        assert (leptos.awesome_list.owner, leptos.awesome_list.repo) == ('leptos-rs', 'awesome-leptos')
        assert leptos.issue_repo.labels == 'bug'
        assert [p.name for p in leptos.patterns] == ['Signal Component Pattern', 'Resource Loading Pattern']
        assert {p.framework for p in leptos.patterns} == {'leptos'}
        assert leptos.error_solutions[0].framework == 'leptos'

    def test_tauri_config(self):
        tauri = SourceLoader().load_source_config('tauri')

        assert tauri.awesome_list is None
        assert tauri.integration_query
        assert tauri.patterns == []


class TestSourceLoader:

    def test_disabled_sources_are_skipped(self, tmp_path):
        (tmp_path / 'dioxus.yaml').write_text(
            "name: dioxus\ndocs_url: https://docs.rs/dioxus/latest/dioxus/\nenabled: false\n"
        )
        (tmp_path / 'yew.yaml').write_text("name: yew\ndocs_url: https://docs.rs/yew/latest/yew/\n")

        loader = SourceLoader(tmp_path)

        assert sorted(loader.load_all_sources()) == ['dioxus', 'yew']
        assert list(loader.get_enabled_sources()) == ['yew']

    def test_defaults_filled_in(self, tmp_path):
        (tmp_path / 'yew.yaml').write_text("docs_url: https://docs.rs/yew/latest/yew/\n")

        yew = SourceLoader(tmp_path).load_source_config('yew')

        assert yew.name == 'yew'
        assert yew.crate == 'yew'
        assert yew.framework == 'yew'
        assert yew.title == 'Yew'
        assert yew.version == 'latest'

    def test_file_name_wins_over_name_field(self, tmp_path):
        (tmp_path / 'yew.yaml').write_text("name: other\ndocs_url: https://docs.rs/yew/\n")

        assert SourceLoader(tmp_path).load_source_config('yew').name == 'yew'

    def test_invalid_files(self, tmp_path):
        (tmp_path / 'broken.yaml').write_text("name: [unterminated\n")
        (tmp_path / 'empty.yaml').write_text("")
        (tmp_path / 'nourl.yaml').write_text("name: nourl\n")

        loader = SourceLoader(tmp_path)

        assert loader.load_source_config('broken') is None
        assert loader.load_source_config('empty') is None
        assert loader.load_source_config('nourl') is None
        assert loader.load_source_config('absent') is None
        assert loader.load_all_sources() == {}

    def test_cache(self, tmp_path):
        yaml_file = tmp_path / 'yew.yaml'
        yaml_file.write_text("docs_url: https://docs.rs/yew/\ntitle: Yew\n")
        loader = SourceLoader(tmp_path)
        assert loader.load_source_config('yew').title == 'Yew'

        yaml_file.write_text("docs_url: https://docs.rs/yew/\ntitle: Yew Framework\n")
        assert loader.load_source_config('yew').title == 'Yew'

        loader.reload_cache()
        assert loader.load_source_config('yew').title == 'Yew Framework'


def test_source_requires_name_and_url():
    with pytest.raises(ValueError):
        SourceConfig(name='', crate='x', version='1', docs_url='https://docs.rs/x/')
    with pytest.raises(ValueError):
        SourceConfig(name='x', crate='x', version='1', docs_url='')
