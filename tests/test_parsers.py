from pipelines.awesome_parser import AwesomeLeptosParser, categorize_repo, parse_sections
from pipelines.docsrs_parser import DocsRsParser, determine_category
from pipelines.github import extract_error_from_issue, extract_integration_patterns
from pipelines.rust_manual import search_html


MODULE_PAGE = """
<html><body>
<section id="main-content">
  <div class="docblock">
    <p>Leptos is a full-stack web framework.</p>
    <pre><code>let (count, set_count) = create_signal(0);</code></pre>
  </div>
  <dl class="item-table">
    <dt><a class="mod" href="html/index.html">html</a></dt>
    <dd>HTML element helpers.</dd>
    <dt><a class="fn" href="fn.create_signal.html">create_signal</a></dt>
    <dd>Creates a   reactive
        signal.</dd>
    <dt><a class="fn" href="fn.create_signal.html">create_signal</a></dt>
    <dd>Duplicate listing.</dd>
    <dt><a class="macro" href="macro.view.html">view</a></dt>
    <dd></dd>
  </dl>
</section>
</body></html>
"""

ITEM_PAGE = """
<html><body>
<pre class="item-decl"><div class="code-attribute">#[derive(Clone, Debug)]</div><span class="item-name">pub struct Window</span></pre>
<div class="docblock">A webview window. <pre>let w = Window::new();</pre></div>
<h3 class="impl">impl Clone for Window</h3>
<div class="impl-items"><p>Returns a copy of the window handle.</p></div>
</body></html>
"""

AWESOME_README = """# Awesome Leptos

A curated list.

## Examples

- [router-demo](https://example.com/router-demo) - Example of routing
- [nested-router](https://example.com/nested) - Demo with a router and nested routes
- [form-demo](https://example.com/form) - Example form

## Tools
Helpers for building Leptos apps.

- [cargo-leptos](https://example.com/cargo-leptos) - Build tool
"""


class TestDocsRsParser:

    def test_module_page(self):
        docs = DocsRsParser.parse(MODULE_PAGE, 'leptos', '0.6.0')
        by_title = {doc.title: doc for doc in docs}

        assert list(by_title) == ['leptos - Module Documentation', 'html', 'create_signal']
        overview = by_title['leptos - Module Documentation']
        assert overview.category == 'module'
        assert overview.examples == ['let (count, set_count) = create_signal(0);']
        assert by_title['html'].category == 'module'
        signal = by_title['create_signal']
        assert signal.category == 'function'
        assert signal.content == 'Creates a reactive signal.'
        assert signal.framework == 'leptos'
        assert signal.version == '0.6.0'

    def test_framework_override(self):
        docs = DocsRsParser.parse(MODULE_PAGE, 'leptos_dom', 'latest', framework='leptos')

        assert {doc.framework for doc in docs} == {'leptos'}
        assert {doc.crate for doc in docs} == {'leptos_dom'}

    def test_item_declarations_and_impls(self):
        docs = DocsRsParser.parse(ITEM_PAGE, 'tauri', '2.0.0')
        by_category = {doc.category: doc for doc in docs}

        window = by_category['struct']
        assert window.title == 'pub struct Window'
        assert window.examples == ['let w = Window::new();']
        assert {'struct', 'Clone', 'Debug'} <= set(window.tags)

        impl = by_category['implementation']
        assert impl.title == 'Implementation impl Clone for Window'
        assert impl.content == 'Returns a copy of the window handle.'
        assert impl.tags[0] == 'impl'

    def test_page_without_documentation(self):
        assert DocsRsParser.parse('<html><body><p>nothing</p></body></html>', 'x', '1') == []

    def test_determine_category(self):
        assert determine_category('pub enum Theme') == 'enum'
        assert determine_category('pub fn run()') == 'function'
        assert determine_category('something else') == 'other'


class TestAwesomeLeptosParser:

    def test_sections_and_repos(self):
        docs = AwesomeLeptosParser.parse(AWESOME_README)

        titles = [doc.title for doc in docs]
        assert titles == ['Examples', 'router-demo', 'nested-router', 'form-demo', 'Tools', 'cargo-leptos']

        examples_section = docs[0]
        assert examples_section.category == 'awesome-leptos'
        assert examples_section.content == 'Examples from awesome-leptos (3 entries)'
        assert docs[4].content == 'Helpers for building Leptos apps.'

        repo = docs[1]
        assert repo.category == 'example'
        assert repo.content == 'Example of routing'
        assert repo.examples == ['https://example.com/router-demo']
        assert docs[5].category == 'tool'

    def test_patterns_need_two_examples(self):
        docs = AwesomeLeptosParser.parse(AWESOME_README)

        patterns = AwesomeLeptosParser.extract_patterns(docs)

        assert [p.title for p in patterns] == ['Common Pattern: Routing']
        routing = patterns[0]
        assert routing.category == 'pattern'
        assert routing.examples == ['https://example.com/router-demo', 'https://example.com/nested']
        assert '- router-demo: Example of routing' in routing.content

    def test_preamble_is_not_a_section(self):
        assert [s.title for s in parse_sections(AWESOME_README)] == ['Examples', 'Tools']

    def test_categorize_repo(self):
        assert categorize_repo('leptos-starter', 'A template') == 'template'
        assert categorize_repo('thing', '') == 'other'


class TestGitHubExtractors:

    def test_error_with_fix_and_code(self):
        body = (
            "Got this while building:\n"
            "error[E0308]: mismatched types\n\n"
            "Fix: convert the value first\n"
            "```rust\nlet x: u32 = y.into();\n```\n\n"
            "Thanks!"
        )

        extracted = extract_error_from_issue(body)

        assert extracted == {
            'error_pattern': 'E0308: mismatched types',
            'solution': 'convert the value first',
            'example_fix': 'let x: u32 = y.into();',
        }

    def test_error_without_solution(self):
        assert extract_error_from_issue("error[E0599]: no method named `foo`") is None

    def test_issue_without_error(self):
        assert extract_error_from_issue("Solution: restart") is None
        assert extract_error_from_issue("") is None

    def test_integration_patterns(self):
        readme = (
            "## Invoke a command\n\n"
            "```rust\n#[tauri::command]\nfn greet() {}\n```\n\n"
            "Some text\n\n"
            "```rust\nlet orphan = 1;\n```\n"
        )

        patterns = extract_integration_patterns(readme)

        assert patterns == [{
            'name': 'Invoke a command',
            'description': 'Integration example between Tauri and Leptos',
            'code': '#[tauri::command]\nfn greet() {}',
        }]

    def test_integration_pattern_description_line(self):
        readme = "Example: Emit events to the frontend\n```rust\napp.emit(\"ready\", ());\n```\n"

        patterns = extract_integration_patterns(readme)

        assert patterns[0]['name'] == 'Integration Pattern'
        assert patterns[0]['description'] == 'Emit events to the frontend'


class TestRustManualSearch:

    def test_case_insensitive_deduplicated_and_limited(self):
        html = "<main>" + "".join(
            f"<p>Borrowing rule number {i} keeps references valid.</p>" for i in range(5)
        ) + "<p>Borrowing rule number 0 keeps references valid.</p><p>borrow</p></main>"

        matches = search_html(html, 'BORROWING', limit=3)

        assert matches == [f"Borrowing rule number {i} keeps references valid." for i in range(3)]

    def test_no_match(self):
        assert search_html("<p>Nothing relevant in this paragraph at all.</p>", 'lifetimes') == []
