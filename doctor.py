"""Run local environment checks for Fieldpath Terminal."""

import os
import platform
import sys
from pathlib import Path


def _ok(flag: bool) -> str:
    return "PASS" if flag else "FAIL"


def _warn(flag: bool) -> str:
    return "PASS" if flag else "WARN"


def _can_write(path: Path) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        marker = path.parent / ".fieldpath_write_test"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink(missing_ok=True)
        return True
    except Exception:
        return False


def main() -> int:
    root = Path(__file__).resolve().parent
    print("Fieldpath Terminal Doctor")
    print(f"- OS: {platform.system()} {platform.release()}")
    print(f"- Python: {platform.python_version()} ({sys.executable})")

    py_ok = sys.version_info >= (3, 8)
    print(f"[{_ok(py_ok)}] Python >= 3.8")
    if not py_ok:
        return 1

    try:
        import pygame  # noqa: F401
        pg_ok = True
    except Exception:
        pg_ok = False
    print(f"[{_ok(pg_ok)}] pygame available")

    try:
        import requests  # noqa: F401
        rq_ok = True
    except Exception:
        rq_ok = False
    print(f"[{_ok(rq_ok)}] requests available")

    required = [
        root / "main.py",
        root / "fieldpath" / "config.py",
        root / "fieldpath" / "playback.py",
        root / "fieldpath" / "session.py",
    ]
    files_ok = all(p.exists() for p in required)
    print(f"[{_ok(files_ok)}] core files present")
    if not files_ok:
        for p in required:
            if not p.exists():
                print(f"       Missing: {p}")

    cfg_found = (root / "config.json").exists()
    print(f"[{_warn(cfg_found)}] config.json present (defaults are written on first run)")

    try:
        from fieldpath.config import _config_candidates  # type: ignore

        cfg_candidates = [Path(p) for p in _config_candidates()]
    except Exception:
        cfg_candidates = [root / "config.json"]
    writable = any(_can_write(p) for p in cfg_candidates)
    print(f"[{_ok(writable)}] writable config path available")

    if os.environ.get("SDL_VIDEODRIVER") == "dummy":
        print("[WARN] SDL_VIDEODRIVER=dummy, viewer window will not be visible")

    all_ok = py_ok and pg_ok and rq_ok and files_ok and writable
    if all_ok:
        print("All checks passed.")
        return 0
    print("One or more checks failed.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
