"""Tests for model output sanitization."""

import pytest

from designforge.services.output_sanitizer import (
    sanitize_output,
    strip_fence_lines,
    strip_thinking_blocks,
    strip_thinking_preamble,
)

CODE = "export default function C(){return null}"


@pytest.mark.unit
class TestSanitizeOutput:
    """Test sanitize_output."""

    def test_removes_thinking_block(self):
        assert sanitize_output("<thinking>ignore me</thinking>const x=1;") == "const x=1;"

    def test_strips_fences(self):
        assert sanitize_output("```tsx\nconst x=1;\n```") == "const x=1;"

    def test_thinking_then_fenced_code(self):
        raw = f"<Thinking>\nplan the layout\n</THINKING>\n\n```typescript\n{CODE}\n```\n"
        assert sanitize_output(raw) == CODE

    def test_multiple_thinking_blocks(self):
        raw = f"<thinking>a</thinking>import x from 'y';\n<thinking type=\"note\">b</thinking>\n{CODE}"
        assert sanitize_output(raw) == f"import x from 'y';\n\n{CODE}"

    def test_unmatched_closing_tag_drops_preamble(self):
        assert sanitize_output(f"reasoning that lost its opening tag</thinking>\n{CODE}") == CODE

    def test_bare_opening_tag_removed(self):
        assert sanitize_output(f"<thinking>\n{CODE}") == CODE

    def test_bare_fence_without_language(self):
        assert sanitize_output(f"```\n{CODE}\n```") == CODE

    def test_inline_backticks_preserved(self):
        code = "const s = `hello ${name}`;\nconst t = ```;"
        assert sanitize_output(code) == "const s = `hello ${name}`;\nconst t = ```;"

    def test_plain_code_untouched(self):
        assert sanitize_output(f"  {CODE}\n") == CODE

    @pytest.mark.parametrize('raw', ['', None])
    def test_empty_input(self, raw):
        assert sanitize_output(raw) == ''

    def test_only_reasoning_yields_empty(self):
        assert sanitize_output("<thinking>nothing useful</thinking>") == ''

    @pytest.mark.parametrize('raw', [
        "<thinking>x</thinking>" + CODE,
        "```tsx\n```tsx\nconst a = 1;\n```\n```",
        "</thinking></thinking>const b = 2;",
        "<thinking><thinking>nested</thinking></thinking>const c = 3;",
        "```\n<thinking>\n```\nconst d = 4;",
        "text before\n```jsx\nconst e = 5;\n```\ntext after",
    ])
    def test_idempotent(self, raw):
        once = sanitize_output(raw)
        assert sanitize_output(once) == once


@pytest.mark.unit
class TestSanitizerPasses:

    def test_strip_thinking_blocks_spans_newlines(self):
        assert strip_thinking_blocks("a<thinking>\nb\n</thinking>c") == "ac"

    def test_preamble_kept_when_opening_tag_comes_first(self):
        text = "<thinking>a</thinking>b"
        assert strip_thinking_preamble(text) == text

    def test_fence_lines_removed_with_info_string(self):
        assert strip_fence_lines("```tsx title=\"x\"\nbody\n```") == "body\n"
