from __future__ import annotations

import argparse
import os
from pathlib import Path

import uvicorn


def main() -> int:
    ap = argparse.ArgumentParser(description="Serve local directories over HTTP through the filelink file connector.")
    ap.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    ap.add_argument("--port", type=int, default=8000, help="Port to bind.")
    ap.add_argument(
        "--mounts",
        help="Path to a mounts JSON config (overrides FILELINK_MOUNTS_CONFIG).",
    )
    ap.add_argument(
        "--root",
        help="Serve a single directory as the 'root' mount when no mounts config is present.",
    )
    ap.add_argument("--reload", action="store_true", help="Reload on code changes (development).")
    args = ap.parse_args()

    if args.mounts:
        cfg = Path(args.mounts).expanduser().resolve()
        if not cfg.exists():
            raise SystemExit(f"mounts config not found: {cfg}")
        os.environ["FILELINK_MOUNTS_CONFIG"] = str(cfg)
    if args.root:
        root = Path(args.root).expanduser().resolve()
        if not root.is_dir():
            raise SystemExit(f"root is not a directory: {root}")
        os.environ["FILELINK_ROOT"] = str(root)

    uvicorn.run("filelink.main:create_app", factory=True, host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
