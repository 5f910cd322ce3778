"""Package entry point for ``python -m assembly_cli``.

WHY: Users run the tool as ``python -m assembly_cli transcribe ...`` when
the ``assembly-cli`` console script is not on PATH.

HOW: Delegates to the CLI's main() and exits with its return code.
"""

import sys

from assembly_cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
