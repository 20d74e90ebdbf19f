"""Run Omni Automation (OmniJS) scripts inside OmniFocus through `osascript`.

Invocation
- `run_omnijs()` wraps the OmniJS source in a small JXA program that calls
  `Application('OmniFocus').evaluateJavascript(...)` and pipes that program to
  `osascript -l JavaScript -` on stdin. Nothing is written to disk, so there are no temp
  files to secure or clean up.
- The OmniJS source is embedded in a JXA template literal; backslashes, backticks and `$`
  are escaped so the script text reaches OmniFocus unchanged.
- If the JXA layer itself throws (OmniFocus not running, automation permission denied, ...)
  the wrapper returns `{"error": "<message>"}` instead of crashing `osascript`.

Output handling
- A non-zero `osascript` exit raises `RuntimeError("osascript exited with code N: ...")`.
- stderr on a zero exit is not an error; it is echoed to our stderr as a warning.
- The trimmed stdout is parsed as one JSON document. Output that is not JSON is returned as
  the raw trimmed string so the caller can decide what to make of it.

Error-handling assumptions
- `osascript` must be on `PATH` (or passed explicitly); a missing executable raises
  `RuntimeError`, as does hitting `timeout`.
- This module never interprets the payload's `success` flag; that is the backend's job.
"""

from __future__ import annotations

import json
import subprocess
import sys
from typing import Any

_JXA_TEMPLATE = """function run() {
  try {
    const app = Application('OmniFocus');
    app.includeStandardAdditions = true;
    const result = app.evaluateJavascript(`__SCRIPT__`);
    return result;
  } catch (e) {
    var errorMsg = (e && typeof e.message === 'string') ? e.message : String(e);
    return JSON.stringify({ error: errorMsg });
  }
}"""


def build_jxa(script: str) -> str:
    escaped = script.replace("\\", "\\\\").replace("`", "\\`").replace("$", "\\$")
    return _JXA_TEMPLATE.replace("__SCRIPT__", escaped)


def run_omnijs(script: str, *, executable: str = "osascript", timeout: float | None = None) -> Any:
    """Execute `script` in OmniFocus and return its parsed JSON result."""
    if not isinstance(script, str) or not script.strip():
        raise ValueError("Script content must be a non-empty string")

    cmd = [executable, "-l", "JavaScript", "-"]
    try:
        proc = subprocess.run(
            cmd,
            input=build_jxa(script),
            text=True,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        print(f"[omnibridge] failed to spawn {executable}: {e}", file=sys.stderr)
        raise RuntimeError(f"Failed to execute osascript: {e}") from e
    except subprocess.TimeoutExpired as e:
        print(f"[omnibridge] {executable} timed out after {timeout}s", file=sys.stderr)
        raise RuntimeError(f"osascript timed out after {timeout} seconds") from e

    stderr = (proc.stderr or "").strip()
    if proc.returncode != 0:
        print(f"[omnibridge] {executable} exited with code {proc.returncode}", file=sys.stderr)
        raise RuntimeError(f"osascript exited with code {proc.returncode}: {stderr}")
    if stderr:
        print(f"[omnibridge] warning: script stderr: {stderr}", file=sys.stderr)

    out = (proc.stdout or "").strip()
    if not out:
        return out
    try:
        return json.loads(out)
    except json.JSONDecodeError as e:
        print(f"[omnibridge] script output is not JSON ({e.msg}); returning raw text", file=sys.stderr)
        return out
