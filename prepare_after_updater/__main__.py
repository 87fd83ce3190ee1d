from __future__ import annotations

from prepare_after_updater.main import main

if __name__ == "__main__":
    raise SystemExit(main())
