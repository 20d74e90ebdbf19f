"""Module entrypoint for ``python -m omnibridge``.

A thin wrapper around :func:`omnibridge.cli.main`: argument parsing, backend selection and
output all live in the CLI module. The CLI return code becomes the process exit status via
``SystemExit(main())``, exactly like the ``omnibridge`` console script.

Exit status
-----------
- ``0``: the operation (or at least one item of a batch) succeeded.
- ``1``: the operation failed, or every item of a batch failed, or the batch input was
  rejected as a whole (not an array, empty, non-object entries, duplicate ``tempId``).
- ``2``: command-line usage errors, including input that is not valid JSON.
"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
