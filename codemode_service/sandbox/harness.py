"""
Entry Module Synthesizer

Wraps lowered guest code in the fixed harness that runs inside the sandbox.
The harness is a module whose default export handles one request: it calls
the guest's ``codemode`` function once and turns its outcome into the JSON
envelope. Composition is plain text; nothing is executed here.
"""

ENTRY_FUNCTION_NAME = "codemode"
ENTRY_MODULE_NAME = "code.js"

MISSING_ENTRY_MESSAGE = (
    f"No '{ENTRY_FUNCTION_NAME}' function found. "
    f"Your code must define: async function {ENTRY_FUNCTION_NAME}() {{ ... }}"
)

HARNESS_TEMPLATE = """
export default {
  async fetch(request) {
    try {
      if (typeof %(entry)s !== 'function') {
        return Response.json({
          success: false,
          error: %(missing)s
        }, { status: 400 });
      }

      const result = await %(entry)s();

      return Response.json({
        success: true,
        result: result
      });
    } catch (error) {
      return Response.json({
        success: false,
        error: error instanceof Error ? error.message : String(error)
      }, { status: 500 });
    }
  }
};
"""


def _js_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


HARNESS = HARNESS_TEMPLATE % {
    "entry": ENTRY_FUNCTION_NAME,
    "missing": _js_string(MISSING_ENTRY_MESSAGE),
}


class EntryModuleSynthesizer:
    """Compose the self-contained entry module for one sandbox run."""

    module_name = ENTRY_MODULE_NAME
    entry_function = ENTRY_FUNCTION_NAME

    def wrap(self, lowered: str) -> str:
        """Lowered body first, then the harness.

        The harness owns the module's default export; a guest default export
        collides with it and the module fails to load.
        """
        return f"\n{lowered}\n{HARNESS}"
