"""Allow ``python -m luogu_saver``."""

from __future__ import annotations

from luogu_saver.ui.cli import main


if __name__ == "__main__":
    main()
