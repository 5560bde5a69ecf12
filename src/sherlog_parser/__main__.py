"""Module entrypoint.

Allows:
    python -m sherlog_parser
"""

from __future__ import annotations

from sherlog_parser.server.log_server import main

if __name__ == "__main__":
    main()
