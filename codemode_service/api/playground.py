"""Informational page served for ``GET /`` without code."""

import html

from ..sandbox.harness import ENTRY_FUNCTION_NAME

INITIAL_CODE = "\n".join(
    [
        "interface User {",
        "  name: string;",
        "  age: number;",
        "}",
        "",
        "function greet(user: User): string {",
        "  return `Hello ${user.name}, you are ${user.age} years old.`;",
        "}",
        "",
        f"async function {ENTRY_FUNCTION_NAME}() {{",
        "  return greet({name: 'John', age: 40});",
        "}",
    ]
)

PAGE_TEMPLATE = """
<main style="display: flex; flex-direction: column; max-width: 600px; margin: 12px;">
  <h2>write some typescript code below</h2>
  <p>the code will be executed in a sandbox. you must define a function called <code>{entry}</code>.</p>
  <textarea
    id="tscode"
    rows="20"
    cols="80"
  >{code}</textarea>
  <button
    id="run"
    style="display: block; font-size: xx-large;"
    onclick="document.getElementById('result').src = '/?code=' + encodeURIComponent(document.getElementById('tscode').value);"
  >run</button>
  <iframe id="result" style="width: 100%; height: 500px; border: 1px solid #ccc;"></iframe>
</main>
"""


def render_playground() -> str:
    return PAGE_TEMPLATE.format(entry=ENTRY_FUNCTION_NAME, code=html.escape(INITIAL_CODE))
