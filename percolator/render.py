from jinja2 import Environment
from pydantic import BaseModel
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import CoffeeScriptLexer

from percolator.exceptions import CompileDiagnostic

ERROR_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{{ title }}</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 0; background: #f6f8fa; color: #24292f; }
        header { background: #b31d28; color: #fff; padding: 1.5rem 2rem; }
        header h1 { margin: 0; font-size: 1.4rem; }
        header p { margin: 0.5rem 0 0; font-family: monospace; }
        main { padding: 1.5rem 2rem; }
        pre.message { white-space: pre-wrap; background: #fff; border: 1px solid #d0d7de; padding: 1rem; }
        .source { border: 1px solid #d0d7de; overflow-x: auto; }
        {{ formatting_style | safe }}
    </style>
</head>
<body>
    <header>
        <h1>{{ title }}</h1>
        {% if diagnostic %}
        <p>
            {{ diagnostic.source_path }}{% if diagnostic.line_number %}, line {{ diagnostic.line_number }}{% endif %}
        </p>
        {% endif %}
    </header>
    <main>
        <pre class="message">{{ message }}</pre>
        {% if code_context %}
        <div class="source">{{ code_context | safe }}</div>
        {% endif %}
    </main>
</body>
</html>
"""


class CodeContext(BaseModel):
    html: str
    start_line_number: int
    end_line_number: int


class ErrorPageRenderer:
    """
    Builds the HTML page served in place of a script that failed to compile. When
    the compiler told us the failing line we include the surrounding source with
    that line highlighted.

    """

    def __init__(self, context_lines: int = 5):
        self.context_lines = context_lines
        self.formatter_style = "github-dark"
        # Keep leading blank lines so the window lines up with linenostart
        self.lexer = CoffeeScriptLexer(stripnl=False)
        self.template = Environment(autoescape=True).from_string(
            ERROR_PAGE_TEMPLATE
        )

    def render_compile_error(
        self, diagnostic: CompileDiagnostic, source_text: str | None = None
    ) -> str:
        code_context = None
        if source_text and diagnostic.line_number > 0:
            code_context = self.get_context(source_text, diagnostic.line_number)

        return self.template.render(
            title="CoffeeScript compilation error",
            diagnostic=diagnostic,
            message=diagnostic.message,
            code_context=code_context.html if code_context else None,
            formatting_style=self.get_style_defs(),
        )

    def render_generic_error(self, message: str) -> str:
        return self.template.render(
            title="Internal server error",
            diagnostic=None,
            message=message,
            code_context=None,
            formatting_style="",
        )

    def get_context(self, source_text: str, line_number: int) -> CodeContext | None:
        """
        Highlight the lines around `line_number` (1-indexed). Returns None if the
        line is past the end of the source.

        """
        lines = source_text.splitlines(keepends=True)
        if line_number > len(lines):
            return None

        start_line = max(line_number - self.context_lines, 1)
        end_line = min(line_number + self.context_lines, len(lines))

        formatter = HtmlFormatter(
            style=self.formatter_style,
            linenos="table",
            linenostart=start_line,
            hl_lines=[line_number - start_line + 1],
        )
        html = highlight(
            "".join(lines[start_line - 1 : end_line]), self.lexer, formatter
        )

        return CodeContext(
            html=html, start_line_number=start_line, end_line_number=end_line
        )

    def get_style_defs(self) -> str:
        return HtmlFormatter(style=self.formatter_style).get_style_defs(".highlight")
